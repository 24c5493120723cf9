"""Text, image and vision generation using the OpenAI client."""

from __future__ import annotations

import logging
import os

import httpx
from openai import APIStatusError, OpenAI, OpenAIError

from app.config import Settings
from app.errors import ProviderError
from app.metrics import provider_error_total

logger = logging.getLogger(__name__)

CASE_STUDY_SYSTEM_PROMPT = (
    "You are an expert portfolio marketer. Write a professional case study "
    "based on the user's prompt. Structure it into 3 clear sections: "
    "'### The Problem', '### The Solution', and '### The Results'. "
    "Write in a professional and concise tone.\n\n"
    "Crucially, you must write the entire case study in the SAME language as "
    "the user's prompt."
)

COVER_IMAGE_TEMPLATE = (
    "A cinematic, professional cover image for a web app case study. "
    "The topic is: {prompt}"
)

DESIGN_DESCRIPTION_PROMPT = (
    "Analyze the provided image. Give a concise description of its visual "
    "style, dominant colors, and key elements that would be useful for a web "
    "designer to create a cohesive page layout. Focus on UI/UX design "
    "inspiration and keep it under 100 words."
)

IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "standard"


def build_openai_client(cfg: Settings) -> OpenAI:
    """Build an OpenAI client honouring ``HTTP_PROXY``/``HTTPS_PROXY``."""
    if not cfg.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    mounts: dict[str, httpx.HTTPTransport] = {}
    http_proxy = os.environ.get("HTTP_PROXY")
    https_proxy = os.environ.get("HTTPS_PROXY")
    if http_proxy:
        mounts["http://"] = httpx.HTTPTransport(proxy=http_proxy)
    if https_proxy:
        mounts["https://"] = httpx.HTTPTransport(proxy=https_proxy)
    http_client = httpx.Client(mounts=mounts) if mounts else None

    return OpenAI(
        api_key=cfg.openai_api_key,
        timeout=cfg.openai_timeout_seconds,
        http_client=http_client,
    )


class CaseStudyGenerator:
    """The three generation capabilities behind one OpenAI client.

    Every call is blocking; callers run them in a worker thread. Failures are
    raised as :class:`ProviderError` tagged with the failing step.
    """

    def __init__(
        self,
        client: OpenAI,
        *,
        text_model: str = "gpt-4o-mini",
        image_model: str = "dall-e-3",
        vision_model: str = "gpt-4o",
    ) -> None:
        self.client = client
        self.text_model = text_model
        self.image_model = image_model
        self.vision_model = vision_model

    @classmethod
    def from_settings(cls, cfg: Settings) -> "CaseStudyGenerator":
        return cls(
            build_openai_client(cfg),
            text_model=cfg.openai_text_model,
            image_model=cfg.openai_image_model,
            vision_model=cfg.openai_vision_model,
        )

    def close(self) -> None:
        self.client.close()

    def generate_text(self, prompt: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.text_model,
                messages=[
                    {"role": "system", "content": CASE_STUDY_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as exc:
            raise _provider_error("text", exc) from exc
        return _first_message(completion, "text")

    def generate_image(self, prompt: str) -> str:
        try:
            response = self.client.images.generate(
                model=self.image_model,
                prompt=COVER_IMAGE_TEMPLATE.format(prompt=prompt),
                n=1,
                size=IMAGE_SIZE,
                quality=IMAGE_QUALITY,
            )
        except OpenAIError as exc:
            raise _provider_error("image", exc) from exc
        try:
            url = response.data[0].url
        except (AttributeError, IndexError, TypeError) as exc:
            raise _provider_error("image", exc) from exc
        if not url:
            raise _provider_error("image", ValueError("No image URL returned"))
        return url

    def describe_image(self, image_url: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": DESIGN_DESCRIPTION_PROMPT},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    }
                ],
            )
        except OpenAIError as exc:
            raise _provider_error("vision", exc) from exc
        return _first_message(completion, "vision")


def _first_message(completion, step: str) -> str:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise _provider_error(step, exc) from exc
    if not content:
        raise _provider_error(step, ValueError("Empty completion"))
    return content


def _provider_error(step: str, exc: Exception) -> ProviderError:
    status = exc.status_code if isinstance(exc, APIStatusError) else None
    logger.error(
        "OpenAI %s request failed: %s",
        step,
        exc,
        exc_info=exc,
        extra={"extra_data": {"step": step, "status": status}},
    )
    provider_error_total.labels(step=step).inc()
    return ProviderError(step, status_code=status)


__all__ = [
    "CASE_STUDY_SYSTEM_PROMPT",
    "COVER_IMAGE_TEMPLATE",
    "CaseStudyGenerator",
    "DESIGN_DESCRIPTION_PROMPT",
    "build_openai_client",
]
