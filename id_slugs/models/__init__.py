"""Pydantic data models for the converter."""

from id_slugs.models.config import (
    ConvertConfig,
    FieldMapping,
    LoggingConfig,
    PipelineConfig,
    ScanConfig,
    SlugConfig,
    StepConfig,
    StoreConfig,
)
from id_slugs.models.documents import (
    ConversionOutcome,
    ConversionReport,
    Document,
    ProgressUpdate,
    ScanResult,
)

__all__ = [
    # Documents
    "Document",
    "ScanResult",
    "ConversionOutcome",
    "ConversionReport",
    "ProgressUpdate",
    # Config
    "FieldMapping",
    "StepConfig",
    "ScanConfig",
    "SlugConfig",
    "ConvertConfig",
    "StoreConfig",
    "LoggingConfig",
    "PipelineConfig",
]
