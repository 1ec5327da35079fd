"""API tests for the admin usage endpoints."""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import status

from coach_shared.db.models import utcnow

from helpers import create_subscription, create_usage


class TestListAllUsage:
    """Tests for GET /api/usage-limits/all."""

    @pytest.mark.asyncio
    async def test_admin_sees_every_user(
        self, async_client, session, admin, member, admin_headers
    ):
        await create_usage(session, member.id, email=2, last_reset=utcnow())
        await create_subscription(
            session,
            member.id,
            status="trialing",
            plan="pro",
            current_period_end=utcnow() + timedelta(days=7),
        )

        response = await async_client.get("/api/usage-limits/all", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [row["email"] for row in data] == ["admin@example.com", "member@example.com"]

        admin_row, member_row = data
        assert admin_row["derivedTier"] == "FREE"
        assert admin_row["subscriptionType"] == "FREE"
        assert admin_row["emailGenerations"] == 0
        assert member_row["userId"] == str(member.id)
        assert member_row["fullName"] == "Morgan Member"
        assert member_row["emailGenerations"] == 2
        assert member_row["derivedTier"] == "PRO"
        assert member_row["subscriptionType"] == "PRO"
        assert member_row["subscriptionStatus"] == "trialing"
        assert member_row["subscriptionPlan"] == "pro"

    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, async_client, member_headers):
        response = await async_client.get("/api/usage-limits/all", headers=member_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_requires_token(self, async_client):
        response = await async_client.get("/api/usage-limits/all")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestSetUsageCounters:
    """Tests for PUT /api/usage-limits/{user_id}."""

    @pytest.mark.asyncio
    async def test_admin_sets_counters(self, async_client, session, member, admin_headers):
        await create_usage(session, member.id, email=1, coaching=1, last_reset=utcnow())

        response = await async_client.put(
            f"/api/usage-limits/{member.id}",
            json={"email_generations_today": 10, "difficult_conversations_today": 3},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["email_generations_today"] == 10
        assert data["coaching_sessions_today"] == 1
        assert data["difficult_conversations_today"] == 3

    @pytest.mark.asyncio
    async def test_reset_all(self, async_client, session, member, admin_headers):
        await create_usage(session, member.id, email=3, coaching=1, last_reset=utcnow())

        response = await async_client.put(
            f"/api/usage-limits/{member.id}",
            json={"email_generations_today": 7, "reset_all": True},
            headers=admin_headers,
        )

        data = response.json()
        assert data["email_generations_today"] == 0
        assert data["coaching_sessions_today"] == 0
        assert data["difficult_conversations_today"] == 0

    @pytest.mark.asyncio
    async def test_unknown_user_returns_404(self, async_client, admin_headers):
        response = await async_client.put(
            f"/api/usage-limits/{uuid4()}",
            json={"email_generations_today": 1},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_negative_counter_is_rejected(self, async_client, member, admin_headers):
        response = await async_client.put(
            f"/api/usage-limits/{member.id}",
            json={"email_generations_today": -1},
            headers=admin_headers,
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["message"] == "Validation Error"
        assert error["details"][0]["field"] == "body.email_generations_today"

    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, async_client, member, member_headers):
        response = await async_client.put(
            f"/api/usage-limits/{member.id}",
            json={"reset_all": True},
            headers=member_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
