"""Tests for Firebase ID-token checks on authenticated endpoints."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from firebase_admin import auth as firebase_auth

from bidnthrift.auth import FirebaseAuth, get_current_user


@pytest.fixture
def auth_client(client):
    settings = client.app.state.server_config
    client.app.state.server_config = replace(settings, auth=replace(settings.auth, enabled=True))
    yield client
    client.app.state.server_config = settings


def _intent():
    intent = MagicMock()
    intent.id = "pi_123"
    intent.client_secret = "pi_123_secret_abc"
    return intent


class TestPaymentIntentAuth:
    def test_missing_bearer_token(self, auth_client):
        response = auth_client.post("/create-payment-intent", json={"amount": 5000})

        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header missing or invalid"

    def test_user_id_must_match_token(self, auth_client):
        with patch.object(FirebaseAuth, "verify_id_token", AsyncMock(return_value={"uid": "user-1"})):
            response = auth_client.post(
                "/create-payment-intent",
                json={"amount": 5000, "userId": "user-2"},
                headers={"Authorization": "Bearer good-token"},
            )

        assert response.status_code == 403

    def test_matching_user_id_creates_intent(self, auth_client):
        verify = AsyncMock(return_value={"uid": "user-1"})
        with patch.object(FirebaseAuth, "verify_id_token", verify), patch(
            "stripe.PaymentIntent.create", return_value=_intent()
        ):
            response = auth_client.post(
                "/create-payment-intent",
                json={"amount": 5000, "userId": "user-1"},
                headers={"Authorization": "Bearer good-token"},
            )

        assert response.status_code == 200
        assert response.json()["paymentIntentId"] == "pi_123"
        verify.assert_awaited_once_with("good-token")

    def test_expired_token(self, auth_client):
        error = firebase_auth.ExpiredIdTokenError("Token expired", cause=None)
        with patch.object(FirebaseAuth, "verify_id_token", AsyncMock(side_effect=error)):
            response = auth_client.post(
                "/create-payment-intent",
                json={"amount": 5000},
                headers={"Authorization": "Bearer stale-token"},
            )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authentication token"

    def test_disabled_account(self, auth_client):
        error = firebase_auth.UserDisabledError("The user record is disabled.")
        with patch.object(FirebaseAuth, "verify_id_token", AsyncMock(side_effect=error)):
            response = auth_client.post(
                "/create-payment-intent",
                json={"amount": 5000},
                headers={"Authorization": "Bearer disabled-user"},
            )

        assert response.status_code == 401

    def test_certificate_fetch_failure(self, auth_client):
        error = firebase_auth.CertificateFetchError("Failed to fetch public key certificates", cause=None)
        with patch.object(FirebaseAuth, "verify_id_token", AsyncMock(side_effect=error)):
            response = auth_client.post(
                "/create-payment-intent",
                json={"amount": 5000},
                headers={"Authorization": "Bearer any-token"},
            )

        assert response.status_code == 503


class TestCurrentUser:
    @pytest.mark.asyncio
    async def test_disabled_auth_yields_no_user(self):
        request = MagicMock()
        request.app.state.server_config.auth.enabled = False
        request.headers = {"authorization": "Bearer ignored"}

        assert await get_current_user(request) is None
        request.app.state.firebase_auth.verify_id_token.assert_not_called()

    def test_disabled_auth_skips_token_check(self, client):
        with patch.object(FirebaseAuth, "verify_id_token", AsyncMock()) as verify, patch(
            "stripe.PaymentIntent.create", return_value=_intent()
        ):
            response = client.post("/create-payment-intent", json={"amount": 5000, "userId": "anyone"})

        assert response.status_code == 200
        verify.assert_not_called()
