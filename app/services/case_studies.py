"""Storage of generated case studies and usage events."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app import db as db_module
from app.metrics import persistence_error_total
from app.models import CaseStudy
from app.services.orchestrator import GeneratedCaseStudy
from app.services.quota import UsageIdentity, record_usage_sync

logger = logging.getLogger(__name__)


class CaseStudyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    created_at: datetime
    prompt: str
    generated_text: str
    image_url: str
    image_design_description: str
    user_id: str | None = None


def save_case_study_sync(
    result: GeneratedCaseStudy, user_id: str | None = None
) -> tuple[CaseStudyOut, bool]:
    """Insert a case study row.

    A failed write does not discard the generated content: the caller gets an
    unsaved record (``id`` is ``None``) and ``saved`` set to ``False``.
    """
    row = CaseStudy(
        prompt=result.prompt,
        generated_text=result.generated_text,
        image_url=result.image_url,
        image_design_description=result.image_design_description,
        user_id=user_id,
    )
    try:
        with db_module.SessionLocal() as db:
            try:
                db.add(row)
                db.commit()
                db.refresh(row)
            except SQLAlchemyError:
                db.rollback()
                raise
    except SQLAlchemyError:
        persistence_error_total.inc()
        logger.exception("Failed to save case study")
        unsaved = CaseStudyOut(
            id=None,
            created_at=datetime.now(timezone.utc),
            prompt=result.prompt,
            generated_text=result.generated_text,
            image_url=result.image_url,
            image_design_description=result.image_design_description,
            user_id=user_id,
        )
        return unsaved, False
    return CaseStudyOut.model_validate(row), True


def record_usage_event_sync(identity: UsageIdentity) -> bool:
    """Append a usage event; failures are logged and reported as ``False``."""
    try:
        record_usage_sync(identity)
    except SQLAlchemyError:
        logger.exception("Failed to record usage event")
        return False
    return True


def list_case_studies_sync(user_id: str | None = None) -> list[CaseStudyOut]:
    stmt = select(CaseStudy).order_by(CaseStudy.created_at.desc(), CaseStudy.id.desc())
    if user_id is not None:
        stmt = stmt.where(CaseStudy.user_id == user_id)
    with db_module.SessionLocal() as db:
        rows = db.execute(stmt).scalars().all()
        return [CaseStudyOut.model_validate(row) for row in rows]


__all__ = [
    "CaseStudyOut",
    "list_case_studies_sync",
    "record_usage_event_sync",
    "save_case_study_sync",
]
