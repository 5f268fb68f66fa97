from __future__ import annotations

from typing import Any

import pytest

from story_intake.api.queries import CATEGORY_ENUM, GraphQLRequest
from story_intake.core.fetchers import EnumFetcher, products_fetcher, stories_fetcher
from story_intake.domain.models import Follower, ProductRef
from story_intake.errors import MalformedResponseError, NetworkError


class _FakeExecutor:
    def __init__(self, result: dict[str, Any] | Exception) -> None:
        self.result = result
        self.requests: list[GraphQLRequest] = []

    async def execute(self, request: GraphQLRequest) -> dict[str, Any]:
        self.requests.append(request)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.mark.asyncio
async def test_enum_fetcher_yields_labels_in_source_order() -> None:
    executor = _FakeExecutor(
        {"data": {"__type": {"enumValues": [{"name": "Bug"}, {"name": "Feature"}]}}}
    )
    labels = await EnumFetcher(executor, CATEGORY_ENUM).fetch()
    assert labels == ("Bug", "Feature")
    request = executor.requests[0]
    assert request.variables == {"name": "ENUM_USERSTORY_CATEGORY"}
    assert request.with_credentials is False


@pytest.mark.asyncio
async def test_enum_fetcher_rejects_unknown_enum_type() -> None:
    executor = _FakeExecutor({"data": {"__type": None}})
    with pytest.raises(MalformedResponseError, match="did not match schema"):
        await EnumFetcher(executor, CATEGORY_ENUM).fetch()


@pytest.mark.asyncio
async def test_fetcher_does_not_retry_network_errors() -> None:
    executor = _FakeExecutor(NetworkError("connection refused"))
    with pytest.raises(NetworkError):
        await products_fetcher(executor).fetch()
    assert len(executor.requests) == 1


@pytest.mark.asyncio
async def test_products_fetcher_maps_backend_names() -> None:
    executor = _FakeExecutor(
        {"data": {"products": [{"id": "p1", "Name": "Checkout"}, {"id": "p2", "Name": "Search"}]}}
    )
    products = await products_fetcher(executor).fetch()
    assert products == (ProductRef(id="p1", name="Checkout"), ProductRef(id="p2", name="Search"))
    assert executor.requests[0].with_credentials is True


@pytest.mark.asyncio
async def test_stories_fetcher_keeps_server_order_and_sort() -> None:
    executor = _FakeExecutor(
        {
            "data": {
                "userStories": [
                    {
                        "id": "s9",
                        "Title": "Most voted",
                        "Description": "<p>x</p>",
                        "followers": [{"username": "ana"}, {"username": "bo"}],
                    },
                    {"id": "s1", "Title": "Older", "Description": None, "followers": None},
                ]
            }
        }
    )
    stories = await stories_fetcher(executor).fetch()
    assert [story.id for story in stories] == ["s9", "s1"]
    assert stories[0].followers == (Follower("ana"), Follower("bo"))
    assert stories[1].description == ""
    assert stories[1].follower_names() == []
    request = executor.requests[0]
    assert request.variables == {"sort": "votes:desc,createdAt:desc"}
    assert request.with_credentials is True
