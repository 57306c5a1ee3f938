"""Document and result models for the converter."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from id_slugs.constants import FALLBACK_SOURCE_FIELDS


class Document(BaseModel):
    """A document as returned by the store.

    Only the identifier, type tag and the common title-like fields are
    declared; every other attribute (custom source field, slug field) is kept
    as an extra field and read through ``get``.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(default="", alias="_id", description="Store-assigned identifier")
    type: str = Field(default="", alias="_type", description="Document type tag")
    title: Any = Field(default=None)
    name: Any = Field(default=None)

    def get(self, field_name: str) -> Any:
        """Return an attribute by its store name (``_id``, ``title``, ``slug``...).

        Only ``_id`` and ``_type`` map to the identifier and type tag; a
        document field literally named ``id`` or ``type`` is read as stored.
        """
        if field_name == "_id":
            return self.id
        if field_name == "_type":
            return self.type
        if field_name in ("title", "name"):
            return getattr(self, field_name)
        return (self.model_extra or {}).get(field_name)

    def current_slug(self, slug_field: str) -> str | None:
        """Return ``<slug_field>.current`` or None when absent/empty."""
        value = self.get(slug_field)
        if isinstance(value, dict):
            current = value.get("current")
            if isinstance(current, str) and current:
                return current
        return None

    def source_text(self, source_field: str) -> str | None:
        """
        Text the slug is derived from, without the identifier fallback.

        Tries the configured source field, then ``title``, then ``name``.
        Non-string and empty values are skipped.

        Args:
            source_field: Configured source field

        Returns:
            First usable text or None
        """
        for field_name in (source_field, *FALLBACK_SOURCE_FIELDS):
            value = self.get(field_name)
            if isinstance(value, str) and value:
                return value
        return None

    def resolve_source_text(self, source_field: str) -> str:
        """Source text with the document identifier as last resort."""
        return self.source_text(source_field) or self.id

    def label(self) -> str:
        """Human-readable label for previews and logs."""
        for value in (self.title, self.name):
            if isinstance(value, str) and value:
                return value
        return self.id


class ConversionOutcome(BaseModel):
    """Result of converting a single document."""

    document_id: str = Field(description="Identifier of the document")
    success: bool = Field(description="Whether a slug was derived (and written)")
    slug: str | None = Field(default=None, description="Final slug when successful")
    error: str | None = Field(default=None, description="Failure message otherwise")
    collided: bool = Field(default=False, description="Whether the base slug was taken")


class ProgressUpdate(BaseModel):
    """Progress notification emitted after each batch."""

    batch_index: int = Field(ge=0, description="Zero-based index of the finished batch")
    processed: int = Field(ge=0, description="Documents processed so far")
    converted: int = Field(ge=0, description="Documents converted so far")
    total: int = Field(ge=0, description="Total candidates in the run")


class ConversionReport(BaseModel):
    """Terminal artifact of one conversion run."""

    converted: int = Field(default=0, ge=0, description="Documents converted")
    errors: list[str] = Field(default_factory=list, description="Error messages in order")
    slugs_generated: list[str] = Field(
        default_factory=list, description="Final slugs in conversion order"
    )
    outcomes: list[ConversionOutcome] = Field(
        default_factory=list, description="Per-document outcomes in order"
    )
    total: int = Field(default=0, ge=0, description="Candidates handed to the run")
    dry_run: bool = Field(default=False)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def record(self, outcome: ConversionOutcome) -> None:
        """Append an outcome and update the aggregates."""
        self.outcomes.append(outcome)
        if outcome.success and outcome.slug is not None:
            self.converted += 1
            self.slugs_generated.append(outcome.slug)
        elif outcome.error:
            self.errors.append(outcome.error)


class ScanResult(BaseModel):
    """Result from Step 1 execution."""

    success: bool = Field(description="Whether the scan completed")
    query: str = Field(default="", description="Query sent to the store")
    documents: list[Document] = Field(
        default_factory=list, description="Every document the query returned"
    )
    candidates: list[Document] = Field(
        default_factory=list, description="Documents that need a slug"
    )
    errors: list[str] = Field(default_factory=list, description="Error messages if any")
