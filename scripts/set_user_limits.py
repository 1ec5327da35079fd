#!/usr/bin/env python3
"""
Set a user's usage counters directly, for development testing.

Usage:
  set_user_limits.py <user_id> <email> <coaching> <conversations>

Example:
  set_user_limits.py e00ea7b1-c622-4598-a0c7-5000e1ab1f9b 10 5 3

Pass 0 0 0 to clear all counters.
"""
import argparse
import asyncio
import sys
from uuid import UUID

from coach_api.services.admin_override import AdminOverride
from coach_api.services.exceptions import UsageLimitsError
from coach_shared.db.connection import get_db


def non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} is negative")
    return number


async def set_user_limits(user_id: UUID, email: int, coaching: int, conversations: int) -> None:
    print(f"Setting limits for user {user_id}:")
    print(f"  Email: {email}")
    print(f"  Coaching: {coaching}")
    print(f"  Conversations: {conversations}")

    db = get_db()
    try:
        async with db.session() as session:
            record = await AdminOverride(session).set_counters(
                user_id,
                email=email,
                coaching=coaching,
                difficult_conversation=conversations,
            )
    finally:
        await db.close()

    print("\nUpdated limits:")
    print(f"  Email generations today: {record.email_generations_today}")
    print(f"  Coaching sessions today: {record.coaching_sessions_today}")
    print(f"  Difficult conversations today: {record.difficult_conversations_today}")


def main():
    parser = argparse.ArgumentParser(description="Set usage counters for a user")
    parser.add_argument("user_id", type=UUID, help="User ID")
    parser.add_argument("email", type=non_negative, help="Email generations today")
    parser.add_argument("coaching", type=non_negative, help="Coaching sessions today")
    parser.add_argument("conversations", type=non_negative, help="Difficult conversations today")

    args = parser.parse_args()

    try:
        asyncio.run(set_user_limits(args.user_id, args.email, args.coaching, args.conversations))
    except UsageLimitsError as e:
        print(f"Error setting limits: {e.message}", file=sys.stderr)
        sys.exit(1)

    print("\nLimits set successfully!")


if __name__ == "__main__":
    main()
