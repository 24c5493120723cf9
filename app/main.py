from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from app.config import Settings
from app.db import close_db, init_db
from app.errors import ApiError
from app.logger import setup_logging
from app.middleware.errors import UnhandledErrorMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.services.auth import SupabaseAuthClient
from app.services.gpt import CaseStudyGenerator
from app.services.orchestrator import CaseStudyOrchestrator
from app.controllers import api

settings = Settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Provider clients are built once here and reached through dependencies
    init_db(settings)
    generator = CaseStudyGenerator.from_settings(settings)
    app.state.orchestrator = CaseStudyOrchestrator(generator)
    app.state.auth_client = (
        SupabaseAuthClient.from_settings(settings)
        if settings.auth_mode == "supabase"
        else None
    )
    if settings.auth_mode == "api_key" and not settings.api_keys:
        logger.warning("AUTH_MODE=api_key without API_KEYS, generation is unprotected")
    logger.info("Started in %s mode (auth: %s)", settings.environment, settings.auth_mode)
    yield
    if app.state.auth_client is not None:
        await app.state.auth_client.aclose()
    generator.close()
    close_db()


app = FastAPI(
    title="Case Study Generator API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.environment == "production" else "/docs",
    redoc_url=None,
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code, content=exc.payload(), headers=exc.headers
    )


# Added first so it sits innermost, under the security headers and CORS
app.add_middleware(UnhandledErrorMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-api-key"],
    max_age=86400,
)

app.include_router(api.router)

Instrumentator().instrument(app).expose(app)
