from __future__ import annotations

import asyncio
from typing import Any

import pydantic
import pytest

from story_intake.api.queries import CREATE_USER_STORY_MUTATION, GraphQLRequest
from story_intake.core.form_state import FormState, RichTextAdapter, new_story_form
from story_intake.core.submission import (
    SubmissionController,
    SubmissionState,
    build_create_story_request,
)
from story_intake.domain.models import FormValues
from story_intake.errors import (
    NetworkError,
    ServerError,
    SubmissionClosedError,
    SubmissionInProgressError,
    ValidationError,
)
from story_intake.settings import DEFAULT_STATUS_ID


class _FakeExecutor:
    def __init__(self, *results: dict[str, Any] | Exception) -> None:
        self.results = list(results) or [
            {"data": {"createUserStory": {"userStory": {"createdAt": "2020-07-20T10:00:00Z"}}}}
        ]
        self.requests: list[GraphQLRequest] = []

    async def execute(self, request: GraphQLRequest) -> dict[str, Any]:
        self.requests.append(request)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class _Navigator:
    def __init__(self) -> None:
        self.routes: list[str] = []

    def navigate(self, route: str) -> None:
        self.routes.append(route)


def _filled_form(*, title: str = "Fix crash", description: str | None = "Steps to repro") -> tuple[
    FormState, RichTextAdapter
]:
    form = new_story_form()
    form.set_value("title", title)
    form.set_value("source_code_link", "https://git.example.com/app")
    form.set_value("category", "Bug")
    form.set_value("priority", "High")
    form.set_value("product", "p1")
    editor = RichTextAdapter(form)
    if description is not None:
        editor.on_change(description)
    return form, editor


def _controller(
    form: FormState, executor: _FakeExecutor, navigator: _Navigator
) -> SubmissionController:
    return SubmissionController(form, executor, navigator, status_id=DEFAULT_STATUS_ID)


@pytest.mark.asyncio
async def test_valid_submit_sends_one_mutation_and_navigates_home() -> None:
    form, _ = _filled_form()
    executor = _FakeExecutor()
    navigator = _Navigator()
    controller = _controller(form, executor, navigator)

    outcome = await controller.submit()

    assert outcome.ok
    assert outcome.created_at == "2020-07-20T10:00:00Z"
    assert controller.state is SubmissionState.SUBMITTED
    assert navigator.routes == ["/"]
    assert len(executor.requests) == 1
    request = executor.requests[0]
    assert request.with_credentials is True
    assert request.query == CREATE_USER_STORY_MUTATION
    assert request.variables == {
        "data": {
            "Description": "Steps to repro",
            "Title": "Fix crash",
            "Category": "Bug",
            "user_story_status": "5f0f33205f5695666b0d2e7e",
            "product": "p1",
            "Priority": "High",
        }
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("description", [None, ""])
async def test_missing_description_is_invalid_without_network_call(
    description: str | None,
) -> None:
    form, _ = _filled_form(title="X", description=description)
    executor = _FakeExecutor()
    navigator = _Navigator()
    controller = _controller(form, executor, navigator)

    outcome = await controller.submit()

    assert outcome.state is SubmissionState.INVALID
    assert outcome.invalid_fields == frozenset({"description"})
    assert isinstance(outcome.error, ValidationError)
    assert controller.description_error is True
    assert controller.state is SubmissionState.IDLE
    assert executor.requests == []
    assert navigator.routes == []


@pytest.mark.asyncio
async def test_editor_change_clears_description_error() -> None:
    form, _ = _filled_form(description=None)
    executor = _FakeExecutor()
    controller = _controller(form, executor, _Navigator())
    editor = RichTextAdapter(form, on_change=controller.clear_description_error)

    await controller.submit()
    assert controller.description_error is True
    editor.on_change("<p>now described</p>")
    assert controller.description_error is False


@pytest.mark.asyncio
async def test_form_constraints_run_before_description_check() -> None:
    form = new_story_form()
    executor = _FakeExecutor()
    controller = _controller(form, executor, _Navigator())

    outcome = await controller.submit()

    assert outcome.state is SubmissionState.INVALID
    assert "title" in outcome.invalid_fields
    assert "description" not in outcome.invalid_fields
    assert controller.description_error is False
    assert executor.requests == []


@pytest.mark.asyncio
async def test_free_text_with_quotes_travels_as_variables() -> None:
    title = 'Crash on "Save"\n'
    description = '<p>He said "no"</p>\u0000\\'
    form, _ = _filled_form(title=title, description=description)
    executor = _FakeExecutor()
    controller = _controller(form, executor, _Navigator())

    await controller.submit()

    request = executor.requests[0]
    assert request.query == CREATE_USER_STORY_MUTATION
    assert title not in request.query
    assert request.variables["data"]["Title"] == title
    assert request.variables["data"]["Description"] == description


@pytest.mark.asyncio
async def test_failed_submit_keeps_form_and_allows_retry() -> None:
    form, _ = _filled_form()
    executor = _FakeExecutor(
        NetworkError("createUserStory failed with HTTP 500."),
        {"data": {"createUserStory": None}},
    )
    navigator = _Navigator()
    controller = _controller(form, executor, navigator)

    failed = await controller.submit()
    assert failed.state is SubmissionState.FAILED
    assert isinstance(controller.submission_error, NetworkError)
    assert controller.state is SubmissionState.FAILED
    assert form.watch("title") == "Fix crash"
    assert form.watch("description") == "Steps to repro"
    assert navigator.routes == []

    retried = await controller.submit()
    assert retried.ok
    assert retried.created_at is None
    assert controller.submission_error is None
    assert navigator.routes == ["/"]
    assert len(executor.requests) == 2


@pytest.mark.asyncio
async def test_server_error_is_surfaced() -> None:
    form, _ = _filled_form()
    executor = _FakeExecutor(ServerError(["Priority is invalid"]))
    controller = _controller(form, executor, _Navigator())
    outcome = await controller.submit()
    assert outcome.state is SubmissionState.FAILED
    assert str(outcome.error) == "Priority is invalid"


@pytest.mark.asyncio
async def test_submitted_is_terminal() -> None:
    form, _ = _filled_form()
    controller = _controller(form, _FakeExecutor(), _Navigator())
    await controller.submit()
    with pytest.raises(SubmissionClosedError):
        await controller.submit()


@pytest.mark.asyncio
async def test_concurrent_submit_is_rejected() -> None:
    form, _ = _filled_form()
    gate = asyncio.Event()

    class _SlowExecutor(_FakeExecutor):
        async def execute(self, request: GraphQLRequest) -> dict[str, Any]:
            await gate.wait()
            return await super().execute(request)

    executor = _SlowExecutor()
    controller = _controller(form, executor, _Navigator())
    first = asyncio.create_task(controller.submit())
    await asyncio.sleep(0)
    assert controller.state is SubmissionState.SUBMITTING
    with pytest.raises(SubmissionInProgressError):
        await controller.submit()
    gate.set()
    assert (await first).ok
    assert len(executor.requests) == 1


def test_build_create_story_request_uses_status_id() -> None:
    values = FormValues(
        title="T", description="D", category="Feature", priority="Low", product="p2"
    )
    request = build_create_story_request(values, status_id="status-1")
    assert request.operation == "createUserStory"
    assert request.variables["data"]["user_story_status"] == "status-1"
    assert "source_code_link" not in request.variables["data"]


@pytest.mark.asyncio
async def test_unbuildable_request_does_not_lock_the_controller() -> None:
    form, _ = _filled_form()
    executor = _FakeExecutor()
    controller = SubmissionController(form, executor, _Navigator(), status_id="")

    with pytest.raises(pydantic.ValidationError):
        await controller.submit()
    assert controller.state is SubmissionState.IDLE

    with pytest.raises(pydantic.ValidationError):
        await controller.submit()
    assert controller.state is SubmissionState.IDLE
    assert executor.requests == []


@pytest.mark.asyncio
async def test_unexpected_executor_error_resets_to_idle() -> None:
    form, _ = _filled_form()
    executor = _FakeExecutor(
        RuntimeError("executor crashed"),
        {"data": {"createUserStory": {"userStory": {"createdAt": "later"}}}},
    )
    navigator = _Navigator()
    controller = _controller(form, executor, navigator)

    with pytest.raises(RuntimeError, match="executor crashed"):
        await controller.submit()
    assert controller.state is SubmissionState.IDLE
    assert navigator.routes == []

    retried = await controller.submit()
    assert retried.ok
    assert navigator.routes == ["/"]
