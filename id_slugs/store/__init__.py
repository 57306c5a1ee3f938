"""Document store access."""

from id_slugs.store.client import (
    DocumentStore,
    Patch,
    StoreClient,
    StoreError,
    StoreQueryError,
    StoreUnavailableError,
)

__all__ = [
    "DocumentStore",
    "Patch",
    "StoreClient",
    "StoreError",
    "StoreQueryError",
    "StoreUnavailableError",
]
