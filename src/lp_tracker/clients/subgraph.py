"""Minimal GraphQL client for indexed subgraphs."""

from __future__ import annotations

import asyncio
from typing import Any

import backoff
import requests

from ..errors import SubgraphQueryError
from ..logger import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_permanent_http_error(exc: Exception) -> bool:
    return (
        isinstance(exc, requests.exceptions.HTTPError)
        and exc.response is not None
        and exc.response.status_code not in RETRYABLE_STATUS_CODES
    )


class SubgraphClient:
    """POSTs GraphQL queries and returns the ``data`` object.

    Provides:
    - Exponential backoff on transport errors and 429/5xx responses
    - GraphQL ``errors`` surfaced as SubgraphQueryError
    """

    def __init__(
        self,
        url: str,
        *,
        request_timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self._url = url
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @backoff.on_exception(
        backoff.expo,
        requests.exceptions.RequestException,
        max_tries=5,
        giveup=is_permanent_http_error,
        jitter=backoff.full_jitter,
    )
    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._session.post(
            self._url, json=payload, timeout=self._request_timeout
        )
        response.raise_for_status()
        return response.json()

    def execute(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run ``query`` synchronously and return its ``data`` object.

        Raises:
            SubgraphQueryError: If the response carries GraphQL errors or no data.
            requests.exceptions.RequestException: If the request keeps failing.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        body = self._post(payload)

        if body.get("errors"):
            logger.error("GraphQL errors: %s", body["errors"])
            raise SubgraphQueryError(f"GraphQL query failed: {body['errors']}")

        data = body.get("data")
        if not data:
            raise SubgraphQueryError("No data returned from the GraphQL query")
        return data

    async def query(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await asyncio.to_thread(self.execute, query, variables)
