from .base import Base
from .case_study import CaseStudy
from .usage_event import UsageEvent

__all__ = [
    "Base",
    "CaseStudy",
    "UsageEvent",
]
