"""Async HTTP client for the document store query and mutate endpoints."""

import asyncio
import json
from typing import Any, Protocol

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from id_slugs.models.config import StoreConfig
from id_slugs.utils.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class StoreError(Exception):
    """Base exception for document store failures."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class StoreQueryError(StoreError):
    """The store rejected the request (malformed query, permissions)."""


class StoreUnavailableError(StoreError):
    """Transient failure: store unreachable, throttled or erroring."""


class PatchBuilder(Protocol):
    def set(self, fields: dict[str, Any]) -> "PatchBuilder": ...

    async def commit(self) -> Any: ...


class DocumentStore(Protocol):
    """Contract the scanner and the conversion pipeline rely on."""

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any: ...

    def patch(self, document_id: str) -> PatchBuilder: ...


class Patch:
    """Partial update of a single document, committed atomically."""

    def __init__(self, client: "StoreClient", document_id: str) -> None:
        self.client = client
        self.document_id = document_id
        self.operations: dict[str, Any] = {}

    def set(self, fields: dict[str, Any]) -> "Patch":
        self.operations.setdefault("set", {}).update(fields)
        return self

    def serialize(self) -> dict[str, Any]:
        return {"patch": {"id": self.document_id, **self.operations}}

    async def commit(self) -> Any:
        if not self.document_id:
            raise StoreQueryError("Cannot patch a document without an identifier")
        return await self.client.mutate([self.serialize()])


class StoreClient:
    """
    Stateless request/response facade over the store HTTP API.

    Owns one aiohttp session for its lifetime; use as an async context
    manager or call ``close`` when done.
    """

    def __init__(self, config: StoreConfig, session: aiohttp.ClientSession | None = None) -> None:
        if not config.project_id:
            raise ValueError("Store project_id is required")
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    @property
    def base_url(self) -> str:
        host = "apicdn.sanity.io" if self.config.use_cdn else self.config.api_host
        return f"https://{self.config.project_id}.{host}/v{self.config.api_version}/data"

    def query_url(self) -> str:
        return f"{self.base_url}/query/{self.config.dataset}"

    def mutate_url(self) -> str:
        return f"{self.base_url}/mutate/{self.config.dataset}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """
        Execute a read-only query.

        Args:
            query: GROQ query, sent verbatim
            params: Query parameters, bound as ``$name``

        Returns:
            The ``result`` member of the response

        Raises:
            StoreQueryError: Store rejected the query
            StoreUnavailableError: Store unreachable after retries
        """
        request_params = {"query": query}
        for key, value in (params or {}).items():
            request_params[f"${key}"] = json.dumps(value)

        payload = await self._request("GET", self.query_url(), params=request_params)
        return payload.get("result")

    def patch(self, document_id: str) -> Patch:
        return Patch(self, document_id)

    async def mutate(self, mutations: list[dict[str, Any]]) -> Any:
        """Submit mutations as one transaction."""
        payload = await self._request(
            "POST",
            self.mutate_url(),
            params={"returnIds": "true", "visibility": "sync"},
            json_body={"mutations": mutations},
        )
        logger.debug("Mutation committed", transaction=payload.get("transactionId"))
        return payload

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.retry_attempts),
            wait=wait_exponential(
                multiplier=1, min=self.config.retry_min_wait, max=self.config.retry_max_wait
            ),
            retry=retry_if_exception_type(StoreUnavailableError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._send(method, url, params, json_body)
        raise StoreUnavailableError("Store request was not attempted")  # pragma: no cover

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None,
        json_body: dict[str, Any] | None,
    ) -> dict[str, Any]:
        session = self._get_session()
        try:
            async with session.request(
                method, url, params=params, json=json_body, headers=self._headers()
            ) as response:
                try:
                    payload = await response.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError):
                    payload = None

                if response.status >= 400:
                    message = _error_message(payload, response.status)
                    if response.status in RETRYABLE_STATUS:
                        logger.warning("Store request failed, retrying", status=response.status)
                        raise StoreUnavailableError(message, status=response.status)
                    raise StoreQueryError(message, status=response.status)

        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            logger.warning("Store unreachable", url=url, error=str(e))
            raise StoreUnavailableError(f"Store unreachable: {e}") from e

        if not isinstance(payload, dict):
            raise StoreQueryError("Store returned an unexpected response body")
        return payload


def _error_message(payload: Any, status: int) -> str:
    """Extract the store's error description from an error response."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            description = error.get("description") or error.get("message")
            if description:
                return str(description)
        if isinstance(error, str):
            return payload.get("message") or error
        if payload.get("message"):
            return str(payload["message"])
    return f"Store request failed with HTTP {status}"
