"""
Bearer-token verification against the hosted auth provider.

The intent endpoint is permissive by default: a missing or rejected token is
logged and the request proceeds. With `require_auth` the endpoint answers 401
instead.
"""

import logging
from typing import Optional

import httpx

from paypilot.config import Settings, settings as default_settings


logger = logging.getLogger(__name__)


class AuthVerifier:
    """Resolves a bearer token to the user it belongs to."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self.base_url = self.settings.supabase_url.rstrip("/")
        self.transport = transport
        self.timeout = 5.0

    @staticmethod
    def extract_token(authorization: Optional[str]) -> Optional[str]:
        """Token part of an `Authorization: Bearer <token>` header, or None."""
        if not authorization:
            return None
        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()

    async def verify(self, authorization: Optional[str]) -> Optional[str]:
        """
        Verify the header with the auth provider.

        Returns:
            The user id, or None when the token is missing or rejected
        """
        token = self.extract_token(authorization)
        if token is None:
            logger.warning("Auth Warning: No auth header present")
            return None

        headers = {
            "apikey": self.settings.supabase_anon_key,
            "Authorization": f"Bearer {token}",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
                response.raise_for_status()
                user_id = response.json().get("id")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Auth Warning: Token validation failed: {e}")
            return None

        logger.debug(f"Authenticated user {user_id}")
        return user_id
