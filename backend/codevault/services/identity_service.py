"""
CodeVault Backend — Identity Service Gateway
=============================================

What:  Thin httpx client for the hosted identity provider (GoTrue REST API).
Who:   Used by the auth dependencies (token verification) and by signup
       (administrative user creation).

Endpoints:
    GET  {SUPABASE_URL}/auth/v1/user         verify a caller's access token
    POST {SUPABASE_URL}/auth/v1/admin/users  create a pre-confirmed user

Both calls send the service-role key as `apikey`. The admin call also uses
it as the bearer token; verification uses the caller's own token.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from codevault.config import settings
from codevault.exceptions import (
    AuthenticationError,
    ConfigurationError,
    UpstreamServiceError,
)
from codevault.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)


def provider_message(response: httpx.Response, default: str) -> str:
    """GoTrue reports errors under several keys depending on the endpoint."""
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    for key in ("msg", "message", "error_description", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return default


class IdentityService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def ensure_configured(self) -> Tuple[str, str]:
        missing = settings.missing_settings_for("identity")
        if missing:
            raise ConfigurationError(
                message="Identity service is not configured",
                remediation=" ".join(missing.values()),
            )
        return settings.supabase_url.rstrip("/"), settings.supabase_service_key.strip()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=15.0)

    async def get_user(self, access_token: str) -> CurrentUser:
        """
        Resolve a bearer token to the user it belongs to.

        Raises:
            AuthenticationError:  token rejected by the provider (401/403)
            UpstreamServiceError: provider unreachable or answered 5xx
        """
        base_url, service_key = self.ensure_configured()
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{base_url}/auth/v1/user",
                    headers={"apikey": service_key, "Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error("Identity provider unreachable: %s", e)
            raise UpstreamServiceError(message="Could not verify credentials", details=str(e))

        if response.status_code in (401, 403):
            raise AuthenticationError(message="Invalid or expired access token")
        if response.status_code >= 400:
            raise UpstreamServiceError(
                message=provider_message(response, "Could not verify credentials"),
                status_code=response.status_code if response.status_code >= 500 else 500,
            )

        data = response.json()
        metadata = data.get("user_metadata") or {}
        return CurrentUser(id=data["id"], email=data.get("email"), username=metadata.get("username"))

    async def create_user(self, email: str, password: str, username: str) -> Dict[str, Any]:
        """
        Create an already-confirmed user carrying `username` in its metadata.

        Provider rejections (weak password, email already registered, ...)
        surface as HTTP 400 with the provider's own message.
        """
        base_url, service_key = self.ensure_configured()
        payload = {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"username": username},
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{base_url}/auth/v1/admin/users",
                    json=payload,
                    headers={"apikey": service_key, "Authorization": f"Bearer {service_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("Identity provider unreachable during signup: %s", e)
            raise UpstreamServiceError(message="Internal server error during signup.", details=str(e))

        if response.status_code >= 400:
            message = provider_message(response, "Could not create user")
            logger.warning("Admin createUser rejected (%d): %s", response.status_code, message)
            raise UpstreamServiceError(message=message, status_code=400)

        return response.json()


# ── Singleton Instance ────────────────────────────────────────────────────
identity_service = IdentityService()


def get_identity_service() -> IdentityService:
    return identity_service
