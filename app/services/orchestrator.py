"""Chain text, image and vision generation into one case study."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from app.services.gpt import CaseStudyGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedCaseStudy:
    prompt: str
    generated_text: str
    image_url: str
    image_design_description: str


class CaseStudyOrchestrator:
    """Run the generation steps in order and stop at the first failure.

    The design description depends on the image URL; the text step is
    independent but still runs first. Nothing is retried and nothing is
    written here, so a failed step leaves no trace in the store.
    """

    def __init__(self, generator: CaseStudyGenerator) -> None:
        self.generator = generator

    async def run(self, prompt: str) -> GeneratedCaseStudy:
        text = await asyncio.to_thread(self.generator.generate_text, prompt)
        logger.info("Case study text generated (%d chars)", len(text))

        image_url = await asyncio.to_thread(self.generator.generate_image, prompt)
        logger.info("Cover image generated")

        description = await asyncio.to_thread(
            self.generator.describe_image, image_url
        )

        return GeneratedCaseStudy(
            prompt=prompt,
            generated_text=text,
            image_url=image_url,
            image_design_description=description,
        )


__all__ = ["CaseStudyOrchestrator", "GeneratedCaseStudy"]
