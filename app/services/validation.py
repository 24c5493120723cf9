"""Request body validation for case study generation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from app.errors import FieldViolation, InputValidationError

MIN_PROMPT_LENGTH = 10
MAX_PROMPT_LENGTH = 500

_MESSAGES = {
    "missing": "The 'prompt' field is required",
    "string_type": "The prompt must be a string",
    "model_type": "The request body must be a JSON object",
    "model_attributes_type": "The request body must be a JSON object",
    "string_too_short": (
        f"The prompt must be at least {MIN_PROMPT_LENGTH} characters long"
    ),
    "string_too_long": (
        f"The prompt cannot exceed {MAX_PROMPT_LENGTH} characters"
    ),
}


class CreateCaseStudyRequest(BaseModel):
    model_config = ConfigDict(strict=True)

    prompt: str

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("The prompt cannot be empty after trimming whitespace")
        if len(v) < MIN_PROMPT_LENGTH:
            raise ValueError(_MESSAGES["string_too_short"])
        if len(v) > MAX_PROMPT_LENGTH:
            raise ValueError(_MESSAGES["string_too_long"])
        return v


def _violations(exc: ValidationError) -> list[FieldViolation]:
    details = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        message = _MESSAGES.get(err["type"])
        if message is None:
            message = err["msg"].removeprefix("Value error, ")
        details.append(FieldViolation(field=field, message=message))
    return details


def validate_case_study_input(data: Any) -> str:
    """Return the trimmed prompt from ``data`` or raise ``InputValidationError``."""
    try:
        request = CreateCaseStudyRequest.model_validate(data)
    except ValidationError as exc:
        raise InputValidationError(_violations(exc)) from exc
    return request.prompt


__all__ = [
    "CreateCaseStudyRequest",
    "MAX_PROMPT_LENGTH",
    "MIN_PROMPT_LENGTH",
    "validate_case_study_input",
]
