from __future__ import annotations

import logging
from types import SimpleNamespace

import httpx
import pytest
from openai import APIStatusError, APITimeoutError

from app.config import Settings
from app.errors import ProviderError
from app.services import gpt


def _fake_completion(content: str | None = "### The Problem\n### The Solution\n### The Results"):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_images(url: str | None = "https://images.example.com/a.png"):
    return SimpleNamespace(data=[SimpleNamespace(url=url)])


def _fake_client(chat_create=None, images_generate=None):
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=chat_create)),
        images=SimpleNamespace(generate=images_generate),
    )


def _status_error(status: int) -> APIStatusError:
    request = httpx.Request("POST", "https://api.openai.com/v1/images/generations")
    response = httpx.Response(status, request=request)
    return APIStatusError("provider said no", response=response, body=None)


def test_generate_text_sends_system_instruction():
    captured: dict = {}

    def _create(**kwargs):
        captured.update(kwargs)
        return _fake_completion()

    generator = gpt.CaseStudyGenerator(_fake_client(chat_create=_create))
    text = generator.generate_text("A faster onboarding flow")

    assert text.count("###") == 3
    assert captured["model"] == "gpt-4o-mini"
    system, user = captured["messages"]
    assert system == {"role": "system", "content": gpt.CASE_STUDY_SYSTEM_PROMPT}
    assert user == {"role": "user", "content": "A faster onboarding flow"}
    assert "SAME language" in system["content"]
    for heading in ("### The Problem", "### The Solution", "### The Results"):
        assert heading in system["content"]


def test_generate_image_requests_single_standard_image():
    captured: dict = {}

    def _generate(**kwargs):
        captured.update(kwargs)
        return _fake_images()

    generator = gpt.CaseStudyGenerator(
        _fake_client(images_generate=_generate), image_model="dall-e-3"
    )
    url = generator.generate_image("A faster onboarding flow")

    assert url == "https://images.example.com/a.png"
    assert captured["model"] == "dall-e-3"
    assert captured["n"] == 1
    assert captured["size"] == "1024x1024"
    assert captured["quality"] == "standard"
    assert captured["prompt"].endswith("The topic is: A faster onboarding flow")


def test_describe_image_sends_image_url_object():
    captured: dict = {}

    def _create(**kwargs):
        captured.update(kwargs)
        return _fake_completion("Muted teal palette with bold serif headings.")

    generator = gpt.CaseStudyGenerator(
        _fake_client(chat_create=_create), vision_model="gpt-4o"
    )
    description = generator.describe_image("https://images.example.com/a.png")

    assert description.startswith("Muted teal")
    assert captured["model"] == "gpt-4o"
    text_part, image_part = captured["messages"][0]["content"]
    assert text_part == {"type": "text", "text": gpt.DESIGN_DESCRIPTION_PROMPT}
    assert image_part == {
        "type": "image_url",
        "image_url": {"url": "https://images.example.com/a.png"},
    }
    assert "100 words" in gpt.DESIGN_DESCRIPTION_PROMPT


def test_status_error_keeps_provider_status():
    def _generate(**kwargs):
        raise _status_error(400)

    generator = gpt.CaseStudyGenerator(_fake_client(images_generate=_generate))
    with pytest.raises(ProviderError) as exc:
        generator.generate_image("A faster onboarding flow")

    assert exc.value.step == "image"
    assert exc.value.status_code == 400
    assert "provider said no" not in exc.value.message


def test_timeout_maps_to_internal_error():
    def _create(**kwargs):
        raise APITimeoutError(httpx.Request("POST", "https://example.com"))

    generator = gpt.CaseStudyGenerator(_fake_client(chat_create=_create))
    with pytest.raises(ProviderError) as exc:
        generator.generate_text("A faster onboarding flow")

    assert exc.value.step == "text"
    assert exc.value.status_code == 500


@pytest.mark.parametrize(
    "completion",
    [SimpleNamespace(choices=[]), _fake_completion(None), _fake_completion("")],
)
def test_empty_completion_is_an_error(completion):
    generator = gpt.CaseStudyGenerator(_fake_client(chat_create=lambda **kw: completion))
    with pytest.raises(ProviderError):
        generator.describe_image("https://images.example.com/a.png")


@pytest.mark.parametrize(
    "response",
    [SimpleNamespace(data=[]), _fake_images(None)],
)
def test_missing_image_url_is_an_error(response):
    generator = gpt.CaseStudyGenerator(_fake_client(images_generate=lambda **kw: response))
    with pytest.raises(ProviderError) as exc:
        generator.generate_image("A faster onboarding flow")
    assert exc.value.step == "image"


def test_build_client_requires_api_key():
    with pytest.raises(RuntimeError):
        gpt.build_openai_client(Settings(openai_api_key=None))


def test_from_settings_uses_configured_models():
    cfg = Settings(
        openai_api_key="sk-test",
        openai_text_model="text-model",
        openai_image_model="image-model",
        openai_vision_model="vision-model",
    )
    generator = gpt.CaseStudyGenerator.from_settings(cfg)
    try:
        assert generator.text_model == "text-model"
        assert generator.image_model == "image-model"
        assert generator.vision_model == "vision-model"
    finally:
        generator.close()


def test_provider_failure_logs_traceback(caplog):
    def _create(**kwargs):
        raise APITimeoutError(httpx.Request("POST", "https://example.com"))

    generator = gpt.CaseStudyGenerator(_fake_client(chat_create=_create))
    with caplog.at_level(logging.ERROR, logger="app.services.gpt"):
        with pytest.raises(ProviderError):
            generator.generate_text("A faster onboarding flow")

    record = caplog.records[-1]
    assert record.exc_info is not None
    assert isinstance(record.exc_info[1], APITimeoutError)
    assert record.extra_data == {"step": "text", "status": None}
