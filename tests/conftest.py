"""Shared pytest fixtures and configuration."""

import re
from typing import Any

import pytest

from id_slugs.models.config import ConvertConfig, FieldMapping, ScanConfig, SlugConfig
from id_slugs.models.documents import Document
from id_slugs.store.client import StoreQueryError

_PROBE_FIELD_RE = re.compile(r"(\w+)\.current == \$slug")


class FakePatch:
    """Records and applies a patch against a FakeStore."""

    def __init__(self, store: "FakeStore", document_id: str) -> None:
        self.store = store
        self.document_id = document_id
        self.fields: dict[str, Any] = {}

    def set(self, fields: dict[str, Any]) -> "FakePatch":
        self.fields.update(fields)
        return self

    async def commit(self) -> dict[str, Any]:
        if self.document_id in self.store.fail_commit_ids:
            raise StoreQueryError(f"Document {self.document_id} is locked", status=409)
        self.store.commits.append((self.document_id, dict(self.fields)))
        for doc in self.store.documents:
            if doc.get("_id") == self.document_id:
                doc.update(self.fields)
        return {"results": [{"id": self.document_id, "operation": "update"}]}


class FakeStore:
    """In-memory document store speaking the fetch/patch contract."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self.documents = [dict(doc) for doc in documents or []]
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.commits: list[tuple[str, dict[str, Any]]] = []
        self.scan_result: Any = None
        self.scan_error: Exception | None = None
        self.fail_probe_ids: set[str] = set()
        self.fail_commit_ids: set[str] = set()

    async def __aenter__(self) -> "FakeStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    @property
    def probes(self) -> list[tuple[str, dict[str, Any]]]:
        return [(query, params) for query, params in self.queries if "$slug" in query]

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        params = params or {}
        self.queries.append((query, params))

        match = _PROBE_FIELD_RE.search(query)
        if match:
            return self._probe(match.group(1), params)

        if self.scan_error is not None:
            raise self.scan_error
        if self.scan_result is not None:
            return self.scan_result

        wanted_type = params.get("type")
        return [
            dict(doc)
            for doc in self.documents
            if wanted_type is None or doc.get("_type") == wanted_type
        ]

    def _probe(self, slug_field: str, params: dict[str, Any]) -> list[str]:
        if params["id"] in self.fail_probe_ids:
            raise StoreQueryError("Probe rejected", status=400)
        return [
            doc["_id"]
            for doc in self.documents
            if doc.get("_type") == params["type"]
            and (doc.get(slug_field) or {}).get("current") == params["slug"]
            and doc.get("_id") != params["id"]
        ]

    def patch(self, document_id: str) -> FakePatch:
        return FakePatch(self, document_id)


class CountingTokens:
    """Deterministic disambiguation tokens."""

    def __init__(self) -> None:
        self.issued = 0

    def __call__(self) -> str:
        self.issued += 1
        return f"t{self.issued}"


@pytest.fixture
def fake_store() -> FakeStore:
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def tokens() -> CountingTokens:
    """Deterministic token source."""
    return CountingTokens()


@pytest.fixture
def fields() -> FieldMapping:
    """Default field mapping (title -> slug)."""
    return FieldMapping()


@pytest.fixture
def scan_config() -> ScanConfig:
    """Default Step 1 configuration."""
    return ScanConfig()


@pytest.fixture
def convert_config() -> ConvertConfig:
    """Default Step 2 configuration."""
    return ConvertConfig()


@pytest.fixture
def slug_config() -> SlugConfig:
    """No prefix or suffix."""
    return SlugConfig()


@pytest.fixture
def sample_documents() -> list[dict[str, Any]]:
    """Raw documents as the store returns them."""
    return [
        {"_id": "post-1", "_type": "post", "title": "Hello, World!"},
        {"_id": "post-2", "_type": "post", "title": "Second Post", "slug": {"current": "second"}},
        {"_id": "author-1", "_type": "author", "name": "Ada Lovelace"},
        {"_id": "post-3", "_type": "post"},
        {"_id": "post-4", "_type": "post", "title": "Empty Slug", "slug": {"current": ""}},
    ]


def make_documents(count: int, doc_type: str = "post") -> list[Document]:
    """Build count distinct candidate documents."""
    return [
        Document.model_validate({"_id": f"{doc_type}-{i}", "_type": doc_type, "title": f"Post {i}"})
        for i in range(1, count + 1)
    ]


@pytest.fixture
def store_factory() -> type[FakeStore]:
    """Build stores preloaded with documents."""
    return FakeStore


@pytest.fixture
def document_factory():
    """Build candidate documents."""
    return make_documents


@pytest.fixture
def token_factory() -> type[CountingTokens]:
    """Build independent deterministic token sources."""
    return CountingTokens
