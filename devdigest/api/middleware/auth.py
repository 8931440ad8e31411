"""Admin authentication for the manual newsletter trigger"""

from __future__ import annotations

import os
import secrets

from fastapi import HTTPException, status

from devdigest.observability.logging import get_logger

logger = get_logger(__name__)


class APIKeyAuth:
    """
    Shared-secret authentication for admin endpoints.

    The key is read from DEVDIGEST_ADMIN_API_KEY (or ADMIN_KEY). Clients send it
    as ``Authorization: Bearer <key>`` or as an ``admin_key`` body field.
    """

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or os.getenv("DEVDIGEST_ADMIN_API_KEY", os.getenv("ADMIN_KEY"))
        if not self.api_key:
            logger.warning("DEVDIGEST_ADMIN_API_KEY not set - admin endpoints are unprotected!")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def verify(self, authorization: str | None = None, admin_key: str | None = None) -> bool:
        """
        Verify the admin key from the Authorization header or a body field.

        Raises:
            HTTPException: 401 if no credentials were sent, 403 if they are wrong
        """
        # No key configured: development mode, allow access
        if not self.api_key:
            return True

        token = admin_key or None
        if token is None and authorization:
            try:
                scheme, token = authorization.split()
                if scheme.lower() != "bearer":
                    raise ValueError("Invalid authentication scheme")
            except ValueError as e:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid authorization header format. Expected: Bearer {api_key}",
                    headers={"WWW-Authenticate": "Bearer"},
                ) from e

        if not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )

        # Timing-safe comparison
        if not secrets.compare_digest(str(token), self.api_key):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid API key",
            )

        return True
