"""Exception hierarchy for the new-story workflow."""

from __future__ import annotations


class StoryIntakeError(Exception):
    """Base class for all workflow errors."""


class ValidationError(StoryIntakeError):
    """One or more form fields failed their constraints."""

    def __init__(self, fields: frozenset[str] | set[str]) -> None:
        self.fields = frozenset(fields)
        super().__init__(f"Invalid form fields: {', '.join(sorted(self.fields))}")


class NetworkError(StoryIntakeError):
    """Transport failure or an HTTP error status from the backend."""


class MalformedResponseError(StoryIntakeError):
    """Response body is not JSON or does not match the expected shape."""


class ServerError(StoryIntakeError):
    """Backend answered with a well-formed GraphQL `errors` list."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = messages
        super().__init__("; ".join(messages) or "GraphQL request failed.")


class AuthenticationRequiredError(StoryIntakeError):
    """Workflow was opened without an authenticated session."""


class SubmissionInProgressError(StoryIntakeError):
    """A submit was attempted while another one is in flight."""


class SubmissionClosedError(StoryIntakeError):
    """A submit was attempted after the story was already created."""
