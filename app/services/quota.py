"""Usage quota per user id, email and IP address.

Usage is counted from the ``usage_events`` log rather than from stored case
studies, so deleting case studies or the account does not restore quota.
The check and the later insert are not atomic: concurrent requests from one
identity can overshoot the limit by the number of requests in flight.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app import db as db_module
from app.errors import QuotaExceededError
from app.metrics import quota_reject_total
from app.models import UsageEvent

logger = logging.getLogger(__name__)

# Checked in this order; the first exhausted dimension is reported
DIMENSIONS = ("user_id", "email", "ip_address")


@dataclass(frozen=True)
class UsageIdentity:
    user_id: str | None = None
    email: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    def dimensions(self) -> list[tuple[str, str]]:
        values = []
        for name in DIMENSIONS:
            value = getattr(self, name)
            if value:
                values.append((name, value))
        return values


def _count(db: Session, column: str, value: str) -> int:
    stmt = (
        select(func.count())
        .select_from(UsageEvent)
        .where(getattr(UsageEvent, column) == value)
    )
    return db.execute(stmt).scalar_one()


def check_quota_sync(identity: UsageIdentity, limit: int) -> dict[str, int]:
    """Raise ``QuotaExceededError`` if any dimension is at ``limit``.

    Returns the per-dimension counts when the request is allowed.
    """
    counts: dict[str, int] = {}
    with db_module.SessionLocal() as db:
        for name, value in identity.dimensions():
            current = _count(db, name, value)
            if current >= limit:
                quota_reject_total.labels(limit_type=name).inc()
                logger.warning(
                    "Usage limit reached on %s (%d/%d)",
                    name,
                    current,
                    limit,
                    extra={"extra_data": {"limit_type": name, "current": current}},
                )
                raise QuotaExceededError(name, current, limit)
            counts[name] = current
    return counts


def record_usage_sync(identity: UsageIdentity) -> None:
    with db_module.SessionLocal() as db:
        db.add(
            UsageEvent(
                user_id=identity.user_id,
                email=identity.email,
                ip_address=identity.ip_address,
                user_agent=identity.user_agent,
            )
        )
        db.commit()


__all__ = [
    "DIMENSIONS",
    "UsageIdentity",
    "check_quota_sync",
    "record_usage_sync",
]
