"""Async GraphQL client for the story backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from story_intake.api.queries import GraphQLRequest
from story_intake.domain.ports import SessionContext
from story_intake.errors import MalformedResponseError, NetworkError, ServerError
from story_intake.settings import IntakeSettings

logger = logging.getLogger(__name__)


class StoryGraphQLClient:
    """Posts GraphQL operations to `{api_url}/graphql`.

    Requests flagged `with_credentials` carry the session's bearer token;
    all others are sent anonymously.
    """

    def __init__(
        self,
        settings: IntakeSettings,
        session: SessionContext,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def session(self) -> SessionContext:
        return self._session

    async def __aenter__(self) -> StoryGraphQLClient:
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self, request: GraphQLRequest) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if request.with_credentials and self._session.jwt:
            headers["Authorization"] = f"Bearer {self._session.jwt}"
        return headers

    async def execute(self, request: GraphQLRequest) -> dict[str, Any]:
        """Send one operation and return the decoded response object.

        Raises `NetworkError` for transport failures and HTTP error statuses,
        `MalformedResponseError` when the body is not a JSON object, and
        `ServerError` when the backend reports GraphQL errors.
        """
        client = self._get_client()
        try:
            response = await client.post(
                self._settings.graphql_url,
                json=request.body(),
                headers=self._headers(request),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"{request.operation} failed with HTTP {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"{request.operation} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{request.operation} returned non-JSON body.") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"{request.operation} response was not an object.")

        errors = payload.get("errors")
        if errors:
            messages = [
                str(item.get("message", item)) if isinstance(item, dict) else str(item)
                for item in (errors if isinstance(errors, list) else [errors])
            ]
            raise ServerError(messages)

        logger.debug("graphql.execute operation=%s status=%s", request.operation, response.status_code)
        return payload
