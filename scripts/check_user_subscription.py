#!/usr/bin/env python3
"""
Show (and optionally change) a user's subscription, derived tier and usage.

Usage:
  check_user_subscription.py <user_id> [status plan]

Examples:
  check_user_subscription.py e00ea7b1-c622-4598-a0c7-5000e1ab1f9b
  check_user_subscription.py e00ea7b1-c622-4598-a0c7-5000e1ab1f9b active pro
"""
import argparse
import asyncio
import sys
from uuid import UUID

from sqlalchemy import select

from coach_api.services.entitlement import derive_tier
from coach_api.services.usage_ledger import UsageLedger
from coach_shared.db.connection import get_db
from coach_shared.db.models import Subscription, SubscriptionPlan, SubscriptionStatus, User, utcnow


async def check_user_subscription(
    user_id: UUID,
    new_status: str | None = None,
    new_plan: str | None = None,
) -> bool:
    db = get_db()
    try:
        async with db.session() as session:
            user = await session.get(User, user_id)
            if user is None:
                print(f"User with ID {user_id} not found", file=sys.stderr)
                return False
            print(f"Found user: {user.email}\n")

            result = await session.execute(
                select(Subscription).where(Subscription.user_id == user_id)
            )
            subscription = result.scalar_one_or_none()

            if subscription is None:
                print("No subscription found for this user")
                if new_status and new_plan:
                    print(f"\nCreating subscription with status: {new_status}, plan: {new_plan}...")
                    subscription = Subscription(user_id=user_id, status=new_status, plan=new_plan)
                    session.add(subscription)
                    await session.flush()
                    print("Subscription created!")
            else:
                print("Current subscription:")
                print(f"   Status: {subscription.status}")
                print(f"   Plan: {subscription.plan}")
                print(f"   Expires: {subscription.current_period_end}")
                print(f"   Created: {subscription.created_at}")
                print(f"   Updated: {subscription.updated_at}")
                if new_status and new_plan:
                    print(f"\nUpdating subscription to status: {new_status}, plan: {new_plan}...")
                    subscription.status = new_status
                    subscription.plan = new_plan
                    subscription.updated_at = utcnow()
                    await session.flush()
                    print("Subscription updated!")

            print(f"\nDerived tier: {derive_tier(subscription).value}")

            limits = await UsageLedger(session).get(user_id)
            if limits is None:
                print("\nNo usage limits record found")
            else:
                print("\nCurrent usage limits:")
                print(f"   Email generations today: {limits.email_generations_today}")
                print(f"   Coaching sessions today: {limits.coaching_sessions_today}")
                print(f"   Difficult conversations today: {limits.difficult_conversations_today}")
    finally:
        await db.close()
    return True


def main():
    statuses = [s.value for s in SubscriptionStatus]
    plans = [p.value for p in SubscriptionPlan]

    parser = argparse.ArgumentParser(description="Check or update a user subscription")
    parser.add_argument("user_id", type=UUID, help="User ID")
    parser.add_argument("status", nargs="?", choices=statuses, help="New subscription status")
    parser.add_argument("plan", nargs="?", choices=plans, help="New subscription plan")

    args = parser.parse_args()
    if bool(args.status) != bool(args.plan):
        parser.error("status and plan must be given together")

    if not asyncio.run(check_user_subscription(args.user_id, args.status, args.plan)):
        sys.exit(1)

    print("\nDone!")


if __name__ == "__main__":
    main()
