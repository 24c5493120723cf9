from __future__ import annotations

import logging
import time

import redis.asyncio as redis
from redis.exceptions import RedisError
from fastapi import Depends, Header, Request

from app.config import Settings
from app.errors import AuthError, ForbiddenError, RateLimitError, ServiceUnavailableError
from app.metrics import rate_limit_reject_total
from app.services.auth import AuthProviderError, AuthUser, SupabaseAuthClient
from app.services.orchestrator import CaseStudyOrchestrator
from app.services.quota import UsageIdentity

settings = Settings()
redis_client = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)


logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    """Return the caller IP, trusting ``X-Forwarded-For`` only via known proxies."""
    client_host = request.client.host if request.client else ""
    ip = client_host
    xff = request.headers.get("X-Forwarded-For")
    if xff and client_host in settings.trusted_proxies:
        forwarded = [h.strip() for h in xff.split(",") if h.strip()]
        proxies = forwarded[1:] + [client_host]
        if forwarded and all(p in settings.trusted_proxies for p in proxies):
            ip = forwarded[0]
    return ip or "unknown"


async def _hit_window(scope: str, ip: str, limit: int) -> None:
    """Count a request in the current fixed window for ``scope`` and ``ip``."""
    window = settings.rate_limit_window_seconds
    now = int(time.time())
    key = f"rate:{scope}:{ip}:{now // window}"

    try:
        pipe = redis_client.pipeline()
        pipe.incr(key)
        pipe.expire(key, window)
        count, _ = await pipe.execute()
    except RedisError as exc:
        logger.exception("Redis unavailable for rate limiting: %s", exc)
        raise ServiceUnavailableError() from exc
    if count > limit:
        rate_limit_reject_total.labels(scope=scope).inc()
        logger.warning(
            "Rate limit exceeded (%s) for IP: %s",
            scope,
            ip,
            extra={"extra_data": {"scope": scope, "count": count}},
        )
        raise RateLimitError(headers={"Retry-After": str(window - now % window)})


async def general_rate_limit(request: Request) -> None:
    await _hit_window("general", client_ip(request), settings.general_rate_limit)


async def strict_rate_limit(request: Request) -> None:
    """Guard for the generation endpoint, which calls paid APIs."""
    await _hit_window("strict", client_ip(request), settings.strict_rate_limit)


async def moderate_rate_limit(request: Request) -> None:
    await _hit_window("moderate", client_ip(request), settings.moderate_rate_limit)


def get_orchestrator(request: Request) -> CaseStudyOrchestrator:
    return request.app.state.orchestrator


def get_auth_client(request: Request) -> SupabaseAuthClient | None:
    return getattr(request.app.state, "auth_client", None)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def _check_api_key(x_api_key: str | None) -> None:
    if not settings.api_keys:
        logger.warning("No API keys configured, endpoint is unprotected")
        return
    if not x_api_key:
        raise AuthError("An API key is required in the 'x-api-key' header")
    if x_api_key not in settings.api_keys:
        raise ForbiddenError()


async def require_identity(
    request: Request,
    authorization: str | None = Header(None, alias="Authorization"),
    x_api_key: str | None = Header(None, alias="x-api-key"),
    auth_client: SupabaseAuthClient | None = Depends(get_auth_client),
) -> UsageIdentity:
    """Authenticate the caller and describe it for quota accounting."""
    user: AuthUser | None = None
    if settings.auth_mode == "api_key":
        _check_api_key(x_api_key)
    else:
        token = _bearer_token(authorization)
        if token is None or auth_client is None:
            raise AuthError()
        user = await auth_client.get_user(token)

    return UsageIdentity(
        user_id=user.id if user else None,
        email=user.email if user else None,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


async def optional_user(
    authorization: str | None = Header(None, alias="Authorization"),
    auth_client: SupabaseAuthClient | None = Depends(get_auth_client),
) -> AuthUser | None:
    """Resolve the caller when a bearer token is sent; anonymous otherwise.

    A token that does not resolve, or an auth provider failure, falls back to
    the anonymous listing instead of failing the request.
    """
    if settings.auth_mode != "supabase":
        return None
    token = _bearer_token(authorization)
    if token is None or auth_client is None:
        return None
    try:
        return await auth_client.get_user(token)
    except (AuthError, AuthProviderError) as exc:
        logger.warning("Optional auth failed, continuing anonymously: %s", exc.message)
        return None
