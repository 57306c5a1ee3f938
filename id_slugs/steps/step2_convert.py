"""Step 2: Slug derivation, uniqueness probe and write-back."""

import time
from collections.abc import Callable, Iterator, Sequence

from id_slugs.constants import SLUG_TYPE
from id_slugs.models.config import ConvertConfig, FieldMapping, SlugConfig
from id_slugs.models.documents import (
    ConversionOutcome,
    ConversionReport,
    Document,
    ProgressUpdate,
)
from id_slugs.store.client import DocumentStore
from id_slugs.utils.logging import get_logger
from id_slugs.utils.slug import disambiguate_slug, generate_slug

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]


class MonotonicTimestamp:
    """Millisecond wall-clock tokens that never repeat within one instance."""

    def __init__(self, clock: Callable[[], int] = time.time_ns) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        now = self._clock() // 1_000_000
        self._last = max(now, self._last + 1)
        return str(self._last)


def iter_batches(documents: Sequence[Document], batch_size: int) -> Iterator[Sequence[Document]]:
    """Yield consecutive slices of at most batch_size documents."""
    for start in range(0, len(documents), batch_size):
        yield documents[start : start + batch_size]


class SlugLedger:
    """
    Slugs assigned so far in one run, scoped by document type.

    A dry run writes nothing, so the store alone cannot tell that an earlier
    candidate already took a slug, or moved off the slug it held before.
    The ledger answers both for the documents of the current run.
    """

    def __init__(self) -> None:
        self._holders: dict[tuple[str, str], str] = {}
        self._assigned: dict[str, str] = {}

    def claim(self, document: Document, slug: str) -> None:
        previous = self._assigned.get(document.id)
        if previous is not None:
            self._holders.pop((document.type, previous), None)
        self._assigned[document.id] = slug
        self._holders[(document.type, slug)] = document.id

    def holder(self, doc_type: str, slug: str) -> str | None:
        return self._holders.get((doc_type, slug))

    def still_holds(self, document_id: str, slug: str) -> bool:
        """Whether a document the store lists under slug has not been moved off it."""
        assigned = self._assigned.get(document_id)
        return assigned is None or assigned == slug


def build_probe_query(slug_field: str) -> str:
    """Query for the ids of other documents of the same type using a slug."""
    return f"*[_type == $type && {slug_field}.current == $slug && _id != $id]._id"


async def slug_is_taken(
    client: DocumentStore,
    document: Document,
    slug: str,
    slug_field: str,
    ledger: SlugLedger | None = None,
) -> bool:
    """Whether a different document of the same type holds or will hold this slug."""
    if ledger is not None:
        holder = ledger.holder(document.type, slug)
        if holder is not None and holder != document.id:
            return True

    holders = await client.fetch(
        build_probe_query(slug_field),
        {"type": document.type, "slug": slug, "id": document.id},
    )
    if isinstance(holders, str):
        holders = [holders]
    if ledger is None:
        return bool(holders)
    return any(ledger.still_holds(holder_id, slug) for holder_id in holders or [])


async def convert_document(
    document: Document,
    config: ConvertConfig,
    fields: FieldMapping,
    slug_config: SlugConfig,
    client: DocumentStore,
    token_source: Callable[[], str],
    ledger: SlugLedger | None = None,
) -> ConversionOutcome:
    """
    Derive, deduplicate and (unless dry run) persist one document's slug.

    Store failures are returned as a failed outcome instead of raised.

    Args:
        document: Candidate document
        config: Step 2 configuration
        fields: Source and slug field names
        slug_config: Prefix and suffix
        client: Document store client
        token_source: Produces disambiguation tokens
        ledger: Slugs already assigned in this run; updated on success

    Returns:
        ConversionOutcome for the document
    """
    source_text = document.resolve_source_text(fields.source_field)
    candidate = generate_slug(source_text, slug_config.prefix, slug_config.suffix)

    if not candidate:
        logger.warning("No source text for document", document_id=document.id)
        return ConversionOutcome(
            document_id=document.id,
            success=False,
            error=f"Failed to generate slug for {document.id}: no source text found",
        )

    try:
        if not document.id:
            raise ValueError("document has no identifier")

        collided = await slug_is_taken(client, document, candidate, fields.slug_field, ledger)
        final_slug = disambiguate_slug(candidate, token_source()) if collided else candidate

        if collided:
            logger.debug("Slug collision", base=candidate, final=final_slug, type=document.type)

        if not config.dry_run:
            await (
                client.patch(document.id)
                .set({fields.slug_field: {"_type": SLUG_TYPE, "current": final_slug}})
                .commit()
            )

    except Exception as e:
        logger.warning("Failed to convert document", document_id=document.id, error=str(e))
        return ConversionOutcome(
            document_id=document.id,
            success=False,
            error=f"Failed to convert {document.id}: {str(e) or 'Conversion failed'}",
        )

    if ledger is not None:
        ledger.claim(document, final_slug)

    return ConversionOutcome(
        document_id=document.id, success=True, slug=final_slug, collided=collided
    )


async def run_conversion(
    config: ConvertConfig,
    fields: FieldMapping,
    slug_config: SlugConfig,
    candidates: Sequence[Document],
    client: DocumentStore,
    on_progress: ProgressCallback | None = None,
    token_source: Callable[[], str] | None = None,
) -> ConversionReport:
    """
    Execute Step 2: Slug conversion.

    Documents are processed strictly one at a time in candidate order.
    Batches only set the cadence of progress notifications. A failing
    document is recorded and the run continues; documents already written
    are never rolled back.

    Args:
        config: Step 2 configuration
        fields: Source and slug field names
        slug_config: Prefix and suffix
        candidates: Documents selected by Step 1
        client: Document store client
        on_progress: Called after each batch
        token_source: Disambiguation token factory (defaults to a monotonic timestamp)

    Returns:
        ConversionReport with per-document outcomes
    """
    report = ConversionReport(total=len(candidates), dry_run=config.dry_run)

    if not config.enabled:
        logger.info("Step 2 is disabled, skipping")
        return report

    token_source = token_source or MonotonicTimestamp()
    ledger = SlugLedger()
    processed = 0

    logger.info(
        "Starting Step 2: Slug conversion",
        candidates=len(candidates),
        batch_size=config.batch_size,
        dry_run=config.dry_run,
    )

    for batch_index, batch in enumerate(iter_batches(candidates, config.batch_size)):
        for document in batch:
            outcome = await convert_document(
                document, config, fields, slug_config, client, token_source, ledger
            )
            report.record(outcome)
            processed += 1

        progress = ProgressUpdate(
            batch_index=batch_index,
            processed=processed,
            converted=report.converted,
            total=len(candidates),
        )
        logger.debug(
            "Batch finished",
            batch=batch_index,
            processed=processed,
            converted=report.converted,
        )
        if on_progress is not None:
            on_progress(progress)

    logger.info(
        "Step 2 completed",
        converted=report.converted,
        failed=report.failed,
        dry_run=config.dry_run,
    )

    return report
