"""Submit state machine for the new-story form."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import pydantic

from story_intake.api.contracts import CreateStoryInput, created_at_from_payload
from story_intake.api.queries import GraphQLRequest, create_user_story_request
from story_intake.core.fetchers import GraphQLExecutor
from story_intake.core.form_state import FormState, is_missing
from story_intake.domain.models import DESCRIPTION, FormValues
from story_intake.domain.ports import Navigator
from story_intake.errors import (
    MalformedResponseError,
    NetworkError,
    ServerError,
    StoryIntakeError,
    SubmissionClosedError,
    SubmissionInProgressError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    INVALID = "invalid"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one `submit()` call."""

    state: SubmissionState
    invalid_fields: frozenset[str] = field(default_factory=frozenset)
    created_at: str | None = None
    error: StoryIntakeError | None = None

    @property
    def ok(self) -> bool:
        return self.state is SubmissionState.SUBMITTED


def _invalid(fields: frozenset[str]) -> SubmissionOutcome:
    return SubmissionOutcome(
        state=SubmissionState.INVALID, invalid_fields=fields, error=ValidationError(fields)
    )


def build_create_story_request(values: FormValues, *, status_id: str) -> GraphQLRequest:
    """Parameterized `createUserStory` mutation for the given form values."""
    payload = CreateStoryInput.from_form(values, status_id=status_id)
    return create_user_story_request(payload.to_variables())


class SubmissionController:
    """Drives `IDLE -> VALIDATING -> (INVALID | SUBMITTING) -> (SUBMITTED | FAILED)`.

    Invalid attempts drop straight back to `IDLE`. `FAILED` keeps the form
    intact and accepts another `submit()`; `SUBMITTED` is terminal.
    """

    def __init__(
        self,
        form: FormState,
        executor: GraphQLExecutor,
        navigator: Navigator,
        *,
        status_id: str,
        home_route: str = "/",
    ) -> None:
        self._form = form
        self._executor = executor
        self._navigator = navigator
        self._status_id = status_id
        self._home_route = home_route
        self._state = SubmissionState.IDLE
        self._description_error = False
        self._submission_error: StoryIntakeError | None = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def description_error(self) -> bool:
        return self._description_error

    @property
    def submission_error(self) -> StoryIntakeError | None:
        return self._submission_error

    def clear_description_error(self) -> None:
        self._description_error = False

    async def submit(self) -> SubmissionOutcome:
        if self._state is SubmissionState.SUBMITTING:
            raise SubmissionInProgressError("A story submission is already in flight.")
        if self._state is SubmissionState.SUBMITTED:
            raise SubmissionClosedError("This story has already been created.")

        self._state = SubmissionState.VALIDATING
        invalid = self._form.validate_on_submit()
        if invalid:
            self._state = SubmissionState.IDLE
            return _invalid(invalid)

        values = self._form.snapshot()
        if is_missing(values.description):
            self._description_error = True
            self._state = SubmissionState.IDLE
            logger.info("submit.invalid field=%s", DESCRIPTION)
            return _invalid(frozenset({DESCRIPTION}))

        try:
            request = build_create_story_request(values, status_id=self._status_id)
        except pydantic.ValidationError:
            self._state = SubmissionState.IDLE
            raise

        self._state = SubmissionState.SUBMITTING
        self._submission_error = None
        try:
            payload = await self._executor.execute(request)
        except (NetworkError, MalformedResponseError, ServerError) as exc:
            self._state = SubmissionState.FAILED
            self._submission_error = exc
            logger.warning("submit.failed error=%s", exc)
            return SubmissionOutcome(state=SubmissionState.FAILED, error=exc)
        except BaseException:
            self._state = SubmissionState.IDLE
            raise

        self._state = SubmissionState.SUBMITTED
        created_at = created_at_from_payload(payload)
        logger.info("submit.created created_at=%s", created_at)
        self._navigator.navigate(self._home_route)
        return SubmissionOutcome(state=SubmissionState.SUBMITTED, created_at=created_at)
