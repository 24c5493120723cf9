from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from .base import Base


class CaseStudy(Base):
    """Generated case study: prose, cover image and design notes."""

    __tablename__ = "case_studies"

    id = Column(Integer, primary_key=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    prompt = Column(Text, nullable=False)
    generated_text = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    image_design_description = Column(Text, nullable=False, default="")
    user_id = Column(String(64), nullable=True, index=True)


__all__ = ["CaseStudy"]
