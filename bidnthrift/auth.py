"""Firebase Authentication helpers: ID token checks and admin claims."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import firebase_admin
from fastapi import HTTPException, Request, status
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from .config import AuthConfig

logger = logging.getLogger(__name__)


class FirebaseAuth:
    def __init__(self, config: AuthConfig) -> None:
        self._config = config
        self._app: firebase_admin.App | None = None

    def _ensure_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app()
            except ValueError:
                cred = (
                    credentials.Certificate(self._config.credentials_path)
                    if self._config.credentials_path
                    else credentials.ApplicationDefault()
                )
                options = {"projectId": self._config.project_id} if self._config.project_id else None
                self._app = firebase_admin.initialize_app(cred, options)
                logger.info("Firebase Admin initialized")
        return self._app

    async def verify_id_token(self, token: str) -> dict[str, Any]:
        app = self._ensure_app()
        return await asyncio.to_thread(firebase_auth.verify_id_token, token, app=app)

    async def has_admin_claim(self, uid: str) -> bool:
        app = self._ensure_app()
        try:
            user = await asyncio.to_thread(firebase_auth.get_user, uid, app=app)
        except firebase_auth.UserNotFoundError:
            return False
        return bool((user.custom_claims or {}).get("admin"))

    def set_admin_claim(self, uid: str) -> None:
        firebase_auth.set_custom_user_claims(uid, {"admin": True}, app=self._ensure_app())
        logger.info("Admin role assigned to user %s", uid)


async def get_current_user(request: Request) -> dict[str, Any] | None:
    """Resolve the caller from a ``Bearer`` ID token when auth is enabled."""
    settings = request.app.state.server_config
    if not settings.auth.enabled:
        return None
    header = request.headers.get("authorization", "")
    if not header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing or invalid",
        )
    firebase: FirebaseAuth = request.app.state.firebase_auth
    try:
        return await firebase.verify_id_token(header.split("Bearer ", 1)[1])
    except firebase_auth.CertificateFetchError as exc:
        logger.error("Could not fetch token signing certificates: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc
    except (
        ValueError,
        firebase_auth.InvalidIdTokenError,
        firebase_auth.ExpiredIdTokenError,
        firebase_auth.RevokedIdTokenError,
        firebase_auth.UserDisabledError,
    ) as exc:
        logger.warning("Token verification failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from exc
