"""Page-level composition of the new-story workflow."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any, TypeVar

from story_intake.adapters.local_files import LocalFileReader
from story_intake.api.queries import CATEGORY_ENUM, PRIORITY_ENUM
from story_intake.core.fetchers import (
    DatasetFetcher,
    EnumFetcher,
    GraphQLExecutor,
    products_fetcher,
    stories_fetcher,
)
from story_intake.core.form_state import FormState, RichTextAdapter, new_story_form
from story_intake.core.loading import LoadingAggregator
from story_intake.core.submission import SubmissionController, SubmissionOutcome
from story_intake.core.title_search import search_stories
from story_intake.domain.models import (
    CATEGORY,
    DESCRIPTION,
    PRIORITY,
    PRODUCT,
    TITLE,
    ProductRef,
    ReferenceData,
    StorySummary,
)
from story_intake.domain.ports import FileReader, Navigator, SessionContext
from story_intake.errors import (
    AuthenticationRequiredError,
    MalformedResponseError,
    NetworkError,
    ServerError,
    StoryIntakeError,
)
from story_intake.settings import IntakeSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOGIN_MESSAGE = "Please login to create a new story"


class NewStoryWorkflow:
    """Everything a view needs to render and submit the new-story form.

    `mount()` launches the four reference fetches without waiting for them;
    `busy` stays true until the last one settles. A failed fetch is logged and
    leaves its dataset empty. After `dispose()` late completions are ignored.
    """

    def __init__(
        self,
        executor: GraphQLExecutor,
        session: SessionContext,
        navigator: Navigator,
        *,
        settings: IntakeSettings | None = None,
        file_reader: FileReader | None = None,
    ) -> None:
        if not session.is_authenticated:
            raise AuthenticationRequiredError(LOGIN_MESSAGE)
        settings = settings or IntakeSettings()
        self._executor = executor
        self._file_reader = file_reader or LocalFileReader()
        self.loading = LoadingAggregator()
        self.form: FormState = new_story_form()
        self.controller = SubmissionController(
            self.form,
            executor,
            navigator,
            status_id=settings.default_status_id,
            home_route=settings.home_route,
        )
        self.editor = RichTextAdapter(self.form, on_change=self.controller.clear_description_error)
        self._reference = ReferenceData()
        self._tasks: list[asyncio.Task[None]] = []
        self._disposed = False
        self._test_report: str | None = None

    @property
    def busy(self) -> bool:
        return self.loading.is_busy()

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def reference(self) -> ReferenceData:
        return self._reference

    @property
    def categories(self) -> tuple[str, ...]:
        return self._reference.categories

    @property
    def priorities(self) -> tuple[str, ...]:
        return self._reference.priorities

    @property
    def products(self) -> tuple[ProductRef, ...]:
        return self._reference.products

    @property
    def stories(self) -> tuple[StorySummary, ...]:
        return self._reference.stories

    @property
    def test_report(self) -> str | None:
        return self._test_report

    def mount(self) -> None:
        """Start the reference fetches on the running event loop."""
        if self._disposed:
            raise RuntimeError("Workflow has been disposed.")
        self._spawn(
            f"enum:{CATEGORY_ENUM}",
            EnumFetcher(self._executor, CATEGORY_ENUM),
            self._apply_categories,
        )
        self._spawn("products", products_fetcher(self._executor), self._apply_products)
        self._spawn(
            f"enum:{PRIORITY_ENUM}",
            EnumFetcher(self._executor, PRIORITY_ENUM),
            self._apply_priorities,
        )
        self._spawn("userStories", stories_fetcher(self._executor), self._apply_stories)

    async def wait_until_loaded(self) -> None:
        """Wait for every mount-time fetch to settle."""
        tasks = list(self._tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.loading.wait_idle()

    async def dispose(self) -> None:
        """Tear down: cancel in-flight fetches and ignore anything still arriving."""
        self._disposed = True
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        logger.info("workflow.disposed cancelled=%s", len(pending))

    def set_field(self, name: str, value: str | None) -> None:
        """Write a field from an ordinary input.

        `description` is owned by the rich-text editor; use `editor.on_change`.
        """
        if name == DESCRIPTION:
            raise ValueError("description is written by the rich-text editor only.")
        self.form.set_value(name, value)

    def search_results(self) -> list[StorySummary]:
        return search_stories(self._reference.stories, self.form.watch(TITLE, ""))

    def read_test_report(self, path: str) -> str:
        """Read a test report file; its content is logged and not submitted."""
        text = self._file_reader.read_text(path)
        self._test_report = text
        logger.info("test_report.read path=%s chars=%s", path, len(text))
        logger.debug("test_report.content %s", text)
        return text

    async def submit(self) -> SubmissionOutcome:
        outcome = await self.controller.submit()
        if outcome.ok:
            await self.dispose()
        return outcome

    @property
    def submission_error(self) -> StoryIntakeError | None:
        return self.controller.submission_error

    def _spawn(
        self,
        op_id: str,
        fetcher: DatasetFetcher[T],
        apply: Callable[[T], None],
    ) -> None:
        loop = asyncio.get_running_loop()
        # Pending from the moment of launch; the done callback also covers a
        # task cancelled before its first step.
        self.loading.begin(op_id)
        task = loop.create_task(self._load(op_id, fetcher, apply), name=f"story_intake:{op_id}")
        task.add_done_callback(lambda done: self._finish(op_id, done))
        self._tasks.append(task)

    def _finish(self, op_id: str, task: asyncio.Task[None]) -> None:
        self.loading.end(op_id)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("reference.fetch_crashed op_id=%s error=%r", op_id, exc)

    async def _load(
        self,
        op_id: str,
        fetcher: DatasetFetcher[T],
        apply: Callable[[T], None],
    ) -> None:
        try:
            result = await fetcher.fetch()
        except (NetworkError, MalformedResponseError, ServerError) as exc:
            logger.warning("reference.fetch_failed op_id=%s error=%s", op_id, exc)
            return
        if self._disposed:
            logger.debug("reference.ignored op_id=%s reason=disposed", op_id)
            return
        apply(result)

    def _replace(self, **changes: Any) -> None:
        self._reference = replace(self._reference, **changes)

    def _apply_categories(self, labels: tuple[str, ...]) -> None:
        self._replace(categories=labels)
        self.form.set_choices(CATEGORY, labels)

    def _apply_priorities(self, labels: tuple[str, ...]) -> None:
        self._replace(priorities=labels)
        self.form.set_choices(PRIORITY, labels)

    def _apply_products(self, products: tuple[ProductRef, ...]) -> None:
        self._replace(products=products)
        self.form.set_choices(PRODUCT, self._reference.product_ids())

    def _apply_stories(self, stories: tuple[StorySummary, ...]) -> None:
        self._replace(stories=stories)
