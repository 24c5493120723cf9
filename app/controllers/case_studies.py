from __future__ import annotations

import asyncio
import json
import logging
import time

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from app.dependencies import (
    get_orchestrator,
    moderate_rate_limit,
    optional_user,
    require_identity,
    settings,
    strict_rate_limit,
)
from app.errors import (
    ErrorResponse,
    FieldViolation,
    InputValidationError,
    PayloadTooLargeError,
)
from app.metrics import case_study_latency_seconds, case_study_requests_total
from app.services.auth import AuthUser
from app.services.case_studies import (
    CaseStudyOut,
    list_case_studies_sync,
    record_usage_event_sync,
    save_case_study_sync,
)
from app.services.orchestrator import CaseStudyOrchestrator
from app.services.quota import UsageIdentity, check_quota_sync
from app.services.validation import validate_case_study_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate-case-study", tags=["case-studies"])


class GenerateCaseStudyResponse(BaseModel):
    newCaseStudy: CaseStudyOut
    saved: bool


class CaseStudyListResponse(BaseModel):
    caseStudies: list[CaseStudyOut]
    count: int
    limit: int
    remaining: int


async def _read_json(request: Request):
    declared = request.headers.get("Content-Length")
    if declared and declared.isdigit() and int(declared) > settings.max_body_bytes:
        raise PayloadTooLargeError()
    # Chunked bodies carry no length up front
    raw = await request.body()
    if len(raw) > settings.max_body_bytes:
        raise PayloadTooLargeError()
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InputValidationError(
            [FieldViolation(field="", message="Malformed JSON body")]
        ) from exc


@router.post(
    "",
    response_model=GenerateCaseStudyResponse,
    dependencies=[Depends(strict_rate_limit)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_case_study(
    request: Request,
    identity: UsageIdentity = Depends(require_identity),
    orchestrator: CaseStudyOrchestrator = Depends(get_orchestrator),
):
    """Generate, store and return a case study for the submitted prompt."""

    payload = await _read_json(request)
    prompt = validate_case_study_input(payload)

    counts = await asyncio.to_thread(check_quota_sync, identity, settings.usage_limit)

    started = time.perf_counter()
    try:
        result = await orchestrator.run(prompt)
    except Exception:
        case_study_requests_total.labels(outcome="error").inc()
        raise
    case_study_latency_seconds.observe(time.perf_counter() - started)

    case_study, saved = await asyncio.to_thread(
        save_case_study_sync, result, identity.user_id
    )
    recorded = await asyncio.to_thread(record_usage_event_sync, identity)
    logger.info(
        "Case study generated",
        extra={
            "extra_data": {
                "prior_usage": counts,
                "saved": saved,
                "usage_recorded": recorded,
            }
        },
    )

    case_study_requests_total.labels(outcome="saved" if saved else "unsaved").inc()
    return GenerateCaseStudyResponse(newCaseStudy=case_study, saved=saved)


@router.get(
    "",
    response_model=CaseStudyListResponse,
    dependencies=[Depends(moderate_rate_limit)],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_case_studies(user: AuthUser | None = Depends(optional_user)):
    """List case studies newest first, scoped to the caller when signed in."""

    case_studies = await asyncio.to_thread(
        list_case_studies_sync, user.id if user else None
    )
    count = len(case_studies)
    limit = settings.usage_limit
    return CaseStudyListResponse(
        caseStudies=case_studies,
        count=count,
        limit=limit,
        remaining=max(limit - count, 0),
    )
