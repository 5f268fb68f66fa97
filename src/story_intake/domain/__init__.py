"""Domain models and ports for the new-story workflow."""

from story_intake.domain.models import (
    Follower,
    FormValues,
    ProductRef,
    ReferenceData,
    StorySummary,
)
from story_intake.domain.ports import FileReader, Navigator, SessionContext

__all__ = [
    "FileReader",
    "Follower",
    "FormValues",
    "Navigator",
    "ProductRef",
    "ReferenceData",
    "SessionContext",
    "StorySummary",
]
