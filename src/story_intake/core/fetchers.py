"""One-shot fetchers for server enumerations and reference datasets."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

import pydantic

from story_intake.api.contracts import EnumResponse, ProductsResponse, StoriesResponse
from story_intake.api.queries import (
    GraphQLRequest,
    enum_values_request,
    products_request,
    user_stories_request,
)
from story_intake.domain.models import ProductRef, StorySummary
from story_intake.errors import MalformedResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GraphQLExecutor(Protocol):
    async def execute(self, request: GraphQLRequest) -> dict[str, Any]:
        ...


class DatasetFetcher(Generic[T]):
    """Runs a single request and parses the payload into a typed result.

    No retries: transport and shape errors propagate to the caller.
    """

    def __init__(
        self,
        executor: GraphQLExecutor,
        request: GraphQLRequest,
        parse: Callable[[dict[str, Any]], T],
    ) -> None:
        self._executor = executor
        self._request = request
        self._parse = parse

    async def fetch(self) -> T:
        payload = await self._executor.execute(self._request)
        try:
            result = self._parse(payload)
        except pydantic.ValidationError as exc:
            raise MalformedResponseError(
                f"{self._request.operation} response did not match schema: "
                f"{exc.error_count()} error(s)."
            ) from exc
        logger.info("fetch.done operation=%s", self._request.operation)
        return result


class EnumFetcher(DatasetFetcher[tuple[str, ...]]):
    """Fetches the labels of a named server enum, in server order."""

    def __init__(self, executor: GraphQLExecutor, type_name: str) -> None:
        super().__init__(
            executor,
            enum_values_request(type_name),
            lambda payload: EnumResponse.model_validate(payload).labels(),
        )


def products_fetcher(executor: GraphQLExecutor) -> DatasetFetcher[tuple[ProductRef, ...]]:
    return DatasetFetcher(
        executor,
        products_request(),
        lambda payload: ProductsResponse.model_validate(payload).to_domain(),
    )


def stories_fetcher(executor: GraphQLExecutor) -> DatasetFetcher[tuple[StorySummary, ...]]:
    return DatasetFetcher(
        executor,
        user_stories_request(),
        lambda payload: StoriesResponse.model_validate(payload).to_domain(),
    )
