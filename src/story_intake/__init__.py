"""Headless new-story workflow: reference data loading, form state and submission."""

from story_intake.domain.ports import SessionContext
from story_intake.settings import IntakeSettings, load_settings
from story_intake.workflow import NewStoryWorkflow

__all__ = ["IntakeSettings", "NewStoryWorkflow", "SessionContext", "load_settings"]
