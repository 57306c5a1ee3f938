"""Step 1: Document scan and candidate selection."""

from typing import Any

from pydantic import ValidationError

from id_slugs.models.config import FieldMapping, ScanConfig
from id_slugs.models.documents import Document, ScanResult
from id_slugs.store.client import DocumentStore
from id_slugs.utils.logging import get_logger

logger = get_logger(__name__)


def build_scan_query(config: ScanConfig, fields: FieldMapping) -> tuple[str, dict[str, Any]]:
    """Build the scan query and its parameters.

    A custom query is returned verbatim with no parameters. Otherwise the
    type and search filters are bound as ``$type`` and ``$search``.
    """
    if config.use_custom_query and config.custom_query:
        return config.custom_query, {}

    params: dict[str, Any] = {}

    if config.document_type:
        type_filter = "_type == $type"
        params["type"] = config.document_type
    else:
        type_filter = "defined(_type)"

    search_filter = ""
    if config.search_query:
        search_filter = " && (title match $search || name match $search)"
        params["search"] = f"*{config.search_query}*"

    projection = ["_id", "_type", "title", "name"]
    for field_name in (fields.source_field, fields.slug_field):
        if field_name not in projection:
            projection.append(field_name)

    query = (
        f"*[{type_filter}{search_filter}][0...{config.max_documents}] "
        f"{{{', '.join(projection)}}}"
    )
    return query, params


def needs_conversion(document: Document, fields: FieldMapping, replace_existing: bool) -> bool:
    """Whether a document has source text and either no slug or may be overwritten."""
    if document.source_text(fields.source_field) is None:
        return False
    if replace_existing:
        return True
    return document.current_slug(fields.slug_field) is None


def _as_documents(result: Any) -> list[Document]:
    """Normalize a query result into documents.

    Custom queries may return a single object or null instead of a list.
    """
    if result is None:
        return []
    if isinstance(result, dict):
        result = [result]
    if not isinstance(result, list):
        raise ValueError(f"Query returned {type(result).__name__}, expected documents")
    return [Document.model_validate(item) for item in result if isinstance(item, dict)]


async def run_scan(
    config: ScanConfig,
    fields: FieldMapping,
    client: DocumentStore,
) -> ScanResult:
    """
    Execute Step 1: Document scan.

    This step:
    1. Builds the scan query (custom passthrough or structured filter)
    2. Fetches documents from the store, capped at max_documents
    3. Selects documents that need a slug

    Any failure discards partial results.

    Args:
        config: Step 1 configuration
        fields: Source and slug field names
        client: Document store client

    Returns:
        ScanResult with fetched documents and conversion candidates
    """
    if not config.enabled:
        logger.info("Step 1 is disabled, skipping")
        return ScanResult(success=True)

    query, params = build_scan_query(config, fields)
    logger.info(
        "Starting Step 1: Document scan",
        custom_query=config.use_custom_query and bool(config.custom_query),
        document_type=config.document_type or "any",
    )
    logger.debug("Scan query", query=query, params=params)

    try:
        result = await client.fetch(query, params)
        documents = _as_documents(result)

    except ValidationError as e:
        error_msg = f"Unexpected document shape: {e}"
        logger.error("Step 1 failed", error=error_msg)
        return ScanResult(success=False, query=query, errors=[error_msg])

    except Exception as e:
        logger.error("Step 1 failed", error=str(e))
        return ScanResult(success=False, query=query, errors=[str(e) or "Scan failed"])

    candidates = [
        doc for doc in documents if needs_conversion(doc, fields, config.replace_existing)
    ]

    logger.info(
        "Step 1 completed",
        documents=len(documents),
        candidates=len(candidates),
        replace_existing=config.replace_existing,
    )

    return ScanResult(success=True, query=query, documents=documents, candidates=candidates)
