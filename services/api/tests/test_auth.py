"""Tests for bearer token authentication."""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import status

from helpers import bearer, make_token


class TestRequireAuth:
    """Tests for the require_auth dependency via a protected route."""

    @pytest.mark.asyncio
    async def test_missing_header(self, async_client):
        response = await async_client.get("/api/subscriptions")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "No token provided"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, async_client, member):
        response = await async_client.get(
            "/api/subscriptions",
            headers={"Authorization": f"Basic {make_token(member.id)}"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Invalid authorization header"

    @pytest.mark.asyncio
    async def test_wrong_signature(self, async_client, member):
        headers = bearer(member.id, secret="another-secret-key-that-is-long-enough-0000")

        response = await async_client.get("/api/subscriptions", headers=headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Could not validate credentials"

    @pytest.mark.asyncio
    async def test_expired_token(self, async_client, member):
        headers = bearer(member.id, expires_in=timedelta(minutes=-5))

        response = await async_client.get("/api/subscriptions", headers=headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_non_uuid_subject(self, async_client):
        response = await async_client.get("/api/subscriptions", headers=bearer("not-a-uuid"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Invalid token payload"

    @pytest.mark.asyncio
    async def test_sub_claim_is_accepted(self, async_client, member):
        response = await async_client.get(
            "/api/subscriptions", headers=bearer(member.id, claim="sub")
        )

        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_unconfigured_secret_rejects_tokens(self, async_client, monkeypatch):
        from coach_shared.config import refresh_settings

        monkeypatch.setenv("AUTH_JWT_SECRET", "")
        refresh_settings()

        response = await async_client.get("/api/subscriptions", headers=bearer(uuid4()))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestCorrelationId:
    """Tests for correlation IDs on responses and error bodies."""

    @pytest.mark.asyncio
    async def test_incoming_id_is_echoed(self, async_client):
        response = await async_client.get(
            "/api/subscriptions", headers={"X-Correlation-ID": "abc-123"}
        )

        assert response.headers["X-Correlation-ID"] == "abc-123"
        assert response.json()["error"]["correlation_id"] == "abc-123"

    @pytest.mark.asyncio
    async def test_id_is_generated_when_absent(self, async_client):
        response = await async_client.get("/health")

        assert response.headers["X-Correlation-ID"]

    @pytest.mark.asyncio
    async def test_malformed_incoming_id_is_replaced(self, async_client):
        response = await async_client.get(
            "/health", headers={"X-Correlation-ID": "bad id\twith spaces"}
        )

        correlation_id = response.headers["X-Correlation-ID"]
        assert correlation_id != "bad id\twith spaces"
        assert len(correlation_id) == 36
