"""Configuration models for the converter."""

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from id_slugs.constants import (
    DEFAULT_API_VERSION,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DATASET,
    DEFAULT_MAX_DOCUMENTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_MAX_WAIT,
    DEFAULT_RETRY_MIN_WAIT,
    DEFAULT_SLUG_FIELD,
    DEFAULT_SOURCE_FIELD,
)

_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FrozenModel(BaseModel):
    """Base for configuration values that must not change during a run."""

    model_config = ConfigDict(frozen=True)


class FieldMapping(FrozenModel):
    """Which document attributes feed and receive the slug."""

    source_field: str = Field(
        default=DEFAULT_SOURCE_FIELD, description="Field the slug is generated from"
    )
    slug_field: str = Field(default=DEFAULT_SLUG_FIELD, description="Field the slug is stored in")

    @field_validator("source_field", "slug_field")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        # Field names end up inside GROQ projections and filters.
        if not _FIELD_NAME_RE.match(value):
            raise ValueError(f"Invalid field name: {value!r}")
        return value


class StepConfig(FrozenModel):
    """Base configuration for a pipeline step."""

    enabled: bool = Field(default=True)


class ScanConfig(StepConfig):
    """Step 1: Document scan configuration."""

    document_type: str | None = Field(
        default=None, description="Only scan this _type (None scans every type)"
    )
    search_query: str | None = Field(
        default=None, description="Substring matched against title and name"
    )
    use_custom_query: bool = Field(default=False)
    custom_query: str | None = Field(
        default=None, description="Raw GROQ query used verbatim when use_custom_query is set"
    )
    max_documents: int = Field(default=DEFAULT_MAX_DOCUMENTS, ge=1)
    replace_existing: bool = Field(
        default=False, description="Regenerate slugs for documents that already have one"
    )


class SlugConfig(FrozenModel):
    """Affixes applied to every generated slug."""

    prefix: str = Field(default="")
    suffix: str = Field(default="")


class ConvertConfig(StepConfig):
    """Step 2: Conversion configuration."""

    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    dry_run: bool = Field(default=False, description="Compute slugs without writing them")


class StoreConfig(FrozenModel):
    """Document store connection settings."""

    project_id: str = Field(default="", description="Store project identifier")
    dataset: str = Field(default=DEFAULT_DATASET)
    api_version: str = Field(default=DEFAULT_API_VERSION)
    token: str | None = Field(default=None, description="Bearer token for reads and writes")
    use_cdn: bool = Field(default=False)
    api_host: str = Field(default="api.sanity.io")
    timeout_seconds: int = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, ge=1)
    retry_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1)
    retry_min_wait: float = Field(default=DEFAULT_RETRY_MIN_WAIT, ge=0)
    retry_max_wait: float = Field(default=DEFAULT_RETRY_MAX_WAIT, ge=0)


class LoggingConfig(FrozenModel):
    """Logging configuration for loguru."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    serialize: bool = Field(default=False, description="Serialize file logs to JSON")
    colorize: bool = Field(default=True, description="Colorize console output")
    file_path: str | None = Field(default=None, description="Optional log file")
    rotation: str = Field(default="500 MB", description="Log rotation size/time")
    retention: str = Field(default="30 days", description="Log retention period")
    compression: str = Field(default="zip", description="Compression format for rotated logs")


class PipelineConfig(FrozenModel):
    """Complete converter configuration."""

    document_types: list[str] = Field(
        default_factory=list, description="Allow-list offered for --type (empty allows any)"
    )
    fields: FieldMapping = Field(default_factory=FieldMapping)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    slug: SlugConfig = Field(default_factory=SlugConfig)
    convert: ConvertConfig = Field(default_factory=ConvertConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
