"""Bearer token verification against the hosted auth provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
import jwt

from app.config import Settings
from app.errors import ApiError, AuthError

logger = logging.getLogger(__name__)

_AUDIENCE = "authenticated"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None


class AuthProviderError(ApiError):
    error = "Failed to verify authentication"
    message = "An error occurred while processing your request."


class SupabaseAuthClient:
    """Resolve access tokens to users.

    Tokens are checked with the provider's ``/auth/v1/user`` endpoint, or
    decoded locally when a JWT secret is configured.
    """

    def __init__(
        self,
        base_url: str | None,
        anon_key: str | None,
        *,
        jwt_secret: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.anon_key = anon_key
        self.jwt_secret = jwt_secret
        self._http = http_client or httpx.AsyncClient(timeout=10)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "SupabaseAuthClient":
        return cls(
            cfg.supabase_url,
            cfg.supabase_anon_key,
            jwt_secret=cfg.supabase_jwt_secret,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_user(self, token: str) -> AuthUser:
        if self.jwt_secret:
            return self._decode(token)
        return await self._fetch_user(token)

    def _decode(self, token: str) -> AuthUser:
        try:
            claims = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=_AUDIENCE,
                options={"verify_exp": True},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Session expired. Please sign in again.") from exc
        except jwt.PyJWTError as exc:
            raise AuthError("Invalid or expired token. Please sign in again.") from exc
        subject = claims.get("sub")
        if not subject:
            raise AuthError("Invalid or expired token. Please sign in again.")
        return AuthUser(id=str(subject), email=claims.get("email"))

    async def _fetch_user(self, token: str) -> AuthUser:
        if not self.base_url or not self.anon_key:
            logger.error("Supabase settings are not configured")
            raise AuthProviderError("Server configuration error")
        try:
            resp = await self._http.get(
                f"{self.base_url}/auth/v1/user",
                headers={
                    "Authorization": f"Bearer {token}",
                    "apikey": self.anon_key,
                },
            )
        except httpx.HTTPError as exc:
            logger.exception("Auth provider request failed")
            raise AuthProviderError() from exc

        if resp.status_code in (401, 403):
            raise AuthError("Invalid or expired token. Please sign in again.")
        if resp.status_code >= 400:
            logger.error("Auth provider returned %s: %s", resp.status_code, resp.text)
            raise AuthProviderError()
        try:
            data = resp.json()
            user_id = data["id"]
        except (ValueError, KeyError, TypeError) as exc:
            logger.exception("Malformed auth provider response")
            raise AuthProviderError() from exc
        return AuthUser(id=str(user_id), email=data.get("email"))


__all__ = ["AuthProviderError", "AuthUser", "SupabaseAuthClient"]
