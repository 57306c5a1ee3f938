#!/usr/bin/env python3
"""Main entry point for the id-slugs converter.

This orchestrates the two steps:
- Step 1: Scan the store for documents that need a slug
- Step 2: Generate, deduplicate and write slugs

Usage:
    python -m id_slugs.main scan --type post
    python -m id_slugs.main convert --type post --dry-run
    python -m id_slugs.main convert --query '*[_type == "post" && defined(title)]'
    python -m id_slugs.main convert --config config/converter.yaml --yes
"""

import asyncio
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, ValidationError

from id_slugs.constants import (
    MAX_ERROR_DISPLAY,
    PREVIEW_LIMIT,
    PROJECT_ENV_VAR,
    TOKEN_ENV_VAR,
)
from id_slugs.models.config import PipelineConfig
from id_slugs.models.documents import ConversionReport, Document, ProgressUpdate, ScanResult
from id_slugs.steps.step1_scan import run_scan
from id_slugs.steps.step2_convert import run_conversion
from id_slugs.store.client import DocumentStore, StoreClient
from id_slugs.utils.config_loader import load_pipeline_config
from id_slugs.utils.logging import setup_logging
from id_slugs.utils.slug import preview_slugs

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(help="Generate slugs for documents that lack one.")

StatusCallback = Callable[[str], None]
CompleteCallback = Callable[[ConversionReport], None]
ErrorCallback = Callable[[str], None]
ProgressCallback = Callable[[ProgressUpdate], None]


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    def __init__(self, message: str, step: str, recoverable: bool = False):
        self.step = step
        self.recoverable = recoverable
        super().__init__(message)


class CriticalError(PipelineError):
    """Critical error that stops the pipeline."""

    def __init__(self, message: str, step: str):
        super().__init__(message, step, recoverable=False)


def _noop(*_: Any) -> None:
    return None


async def scan_phase(
    config: PipelineConfig,
    client: DocumentStore,
    on_status: StatusCallback = _noop,
) -> ScanResult:
    """
    Run Step 1 and report its status.

    Raises:
        CriticalError: If the scan failed
    """
    on_status("Scanning for documents...")
    result = await run_scan(config.scan, config.fields, client)

    if not result.success:
        message = result.errors[0] if result.errors else "Scan failed"
        on_status(f"Scan error: {message}")
        raise CriticalError(message, step="Step 1")

    on_status(f"Found {len(result.candidates)} documents that need slug conversion")
    return result


async def convert_phase(
    config: PipelineConfig,
    candidates: Sequence[Document],
    client: DocumentStore,
    on_status: StatusCallback = _noop,
    on_progress: ProgressCallback | None = None,
) -> ConversionReport:
    """Run Step 2, turning batch progress into status messages."""
    dry_run = config.convert.dry_run
    verb = "Would convert" if dry_run else "Converted"

    def report_progress(update: ProgressUpdate) -> None:
        on_status(f"{verb} {update.converted}/{update.total} documents...")
        if on_progress is not None:
            on_progress(update)

    on_status("Converting IDs to slugs...")
    report = await run_conversion(
        config.convert,
        config.fields,
        config.slug,
        candidates,
        client,
        on_progress=report_progress,
    )

    done = "Dry run complete" if dry_run else "Conversion complete"
    on_status(f"{done}: {report.converted} documents processed")
    return report


async def run_pipeline(
    config: PipelineConfig,
    client: DocumentStore,
    on_complete: CompleteCallback | None = None,
    on_error: ErrorCallback | None = None,
    on_status: StatusCallback | None = None,
    on_progress: ProgressCallback | None = None,
) -> ConversionReport | None:
    """
    Execute the complete scan and conversion.

    Scan failures and errors raised outside the per-document scope go to
    on_error; per-document failures only appear in the report handed to
    on_complete.

    Args:
        config: Converter configuration
        client: Document store client
        on_complete: Receives the conversion report
        on_error: Receives a failure message
        on_status: Receives status messages at each phase transition
        on_progress: Receives progress after each batch

    Returns:
        ConversionReport, or None if the run failed
    """
    status = on_status or _noop

    try:
        scan_result = await scan_phase(config, client, status)
    except CriticalError as e:
        logger.error(f"Critical error in {e.step}: {e}")
        if on_error is not None:
            on_error(str(e))
        return None

    if not scan_result.candidates:
        logger.info("Nothing to convert")
        return None

    try:
        report = await convert_phase(config, scan_result.candidates, client, status, on_progress)
    except Exception as e:
        message = str(e) or "Conversion failed"
        logger.error("Unexpected conversion error", error=message)
        status(f"Conversion error: {message}")
        if on_error is not None:
            on_error(message)
        return None

    if on_complete is not None:
        on_complete(report)
    return report


def print_header(title: str) -> None:
    """Print a formatted header."""
    print("\n" + "=" * 80)
    print(f"  {title}")
    print("=" * 80 + "\n")


def print_stats(label: str, value: Any) -> None:
    """Print a formatted stat line."""
    print(f"  • {label}: {value}")


def print_preview(config: PipelineConfig, candidates: Sequence[Document]) -> None:
    """Print the slugs the first candidates would receive."""
    preview = preview_slugs(
        candidates, config.fields.source_field, config.slug.prefix, config.slug.suffix
    )
    for document, slug in preview:
        print(f"  {document.type}: {document.label()}")
        print(f"     Will generate: {slug}")
    if len(candidates) > PREVIEW_LIMIT:
        print(f"  ...and {len(candidates) - PREVIEW_LIMIT} more documents")


def print_summary(report: ConversionReport) -> None:
    """Print final conversion summary."""
    print_header("📈 Conversion Summary")
    print_stats("Mode", "Dry run" if report.dry_run else "Write")
    print_stats("Candidates", report.total)
    print_stats("Converted", report.converted)
    print_stats("Failed", report.failed)

    if report.errors:
        print("\n⚠️  Errors:")
        for error in report.errors[:MAX_ERROR_DISPLAY]:
            print(f"  • {error}")
        if report.failed > MAX_ERROR_DISPLAY:
            print(f"  ...and {report.failed - MAX_ERROR_DISPLAY} more")


M = TypeVar("M", bound=BaseModel)


def _merged(model: M, updates: dict[str, Any]) -> M:
    """Validated copy of a config model with some fields replaced."""
    if not updates:
        return model
    return type(model).model_validate({**model.model_dump(), **updates})


def build_config(
    config_file: Path | None,
    document_type: str | None = None,
    search: str | None = None,
    query: str | None = None,
    source_field: str | None = None,
    slug_field: str | None = None,
    prefix: str | None = None,
    suffix: str | None = None,
    replace_existing: bool = False,
    dry_run: bool = False,
    batch_size: int | None = None,
    max_documents: int | None = None,
) -> PipelineConfig:
    """
    Load the YAML configuration and apply command-line overrides.

    Store credentials missing from the file are read from the environment.

    Raises:
        ValueError: If the document type is outside the configured allow-list
        ValidationError: If an override is invalid
    """
    if config_file is not None and config_file.exists():
        config = load_pipeline_config(config_file)
    else:
        if config_file is not None:
            logger.warning(f"Config file {config_file} not found, using defaults")
        config = PipelineConfig()

    scan_updates: dict[str, Any] = {}
    if document_type is not None:
        scan_updates["document_type"] = document_type
    if search is not None:
        scan_updates["search_query"] = search
    if query is not None:
        scan_updates.update(use_custom_query=True, custom_query=query)
    if replace_existing:
        scan_updates["replace_existing"] = True
    if max_documents is not None:
        scan_updates["max_documents"] = max_documents

    field_updates = {
        key: value
        for key, value in {"source_field": source_field, "slug_field": slug_field}.items()
        if value is not None
    }
    slug_updates = {
        key: value for key, value in {"prefix": prefix, "suffix": suffix}.items() if value is not None
    }

    convert_updates: dict[str, Any] = {}
    if dry_run:
        convert_updates["dry_run"] = True
    if batch_size is not None:
        convert_updates["batch_size"] = batch_size

    store_updates = {
        key: value
        for key, value in {
            "project_id": config.store.project_id or os.getenv(PROJECT_ENV_VAR),
            "token": config.store.token or os.getenv(TOKEN_ENV_VAR),
        }.items()
        if value
    }

    config = PipelineConfig(
        document_types=config.document_types,
        fields=_merged(config.fields, field_updates),
        scan=_merged(config.scan, scan_updates),
        slug=_merged(config.slug, slug_updates),
        convert=_merged(config.convert, convert_updates),
        store=_merged(config.store, store_updates),
        logging=config.logging,
    )

    selected = config.scan.document_type
    if config.document_types and selected and selected not in config.document_types:
        allowed = ", ".join(config.document_types)
        raise ValueError(f"Document type '{selected}' is not one of: {allowed}")

    return config


def _status(message: str) -> None:
    print(f"  {message}")
    logger.info(message)


async def _scan(config: PipelineConfig) -> ScanResult:
    async with StoreClient(config.store) as client:
        return await scan_phase(config, client, _status)


async def _convert(config: PipelineConfig, candidates: Sequence[Document]) -> ConversionReport:
    async with StoreClient(config.store) as client:
        return await convert_phase(config, candidates, client, _status)


ConfigOption = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to converter configuration file"),
]
TypeOption = Annotated[
    str | None, typer.Option("--type", "-t", help="Only scan documents of this _type")
]
SearchOption = Annotated[
    str | None, typer.Option("--search", "-s", help="Match text in title or name")
]
QueryOption = Annotated[
    str | None, typer.Option("--query", "-q", help="Raw GROQ query, used verbatim")
]
SourceFieldOption = Annotated[
    str | None, typer.Option("--source-field", help="Field to generate the slug from")
]
SlugFieldOption = Annotated[
    str | None, typer.Option("--slug-field", help="Field to store the slug in")
]
PrefixOption = Annotated[str | None, typer.Option("--prefix", help="Prefix for every slug")]
SuffixOption = Annotated[str | None, typer.Option("--suffix", help="Suffix for every slug")]
ReplaceOption = Annotated[
    bool, typer.Option("--replace-existing", help="Regenerate slugs that already exist")
]
MaxDocumentsOption = Annotated[
    int | None, typer.Option("--max-documents", min=1, help="Maximum documents to scan")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging")]


def _load_or_exit(config_file: Path, verbose: bool, **overrides: Any) -> PipelineConfig:
    try:
        config = build_config(config_file, **overrides)
    except (ValueError, ValidationError, yaml.YAMLError) as e:
        print(f"\n❌ Invalid configuration: {e}")
        raise typer.Exit(1) from e

    setup_logging(config.logging, verbose=verbose)

    if not config.store.project_id:
        print(f"\n❌ No store project configured (set store.project_id or {PROJECT_ENV_VAR})")
        raise typer.Exit(1)
    return config


def _run_scan_or_exit(config: PipelineConfig) -> ScanResult:
    try:
        return asyncio.run(_scan(config))
    except CriticalError as e:
        logger.error(f"Critical error in {e.step}: {e}")
        print(f"\n❌ Scan failed: {e}")
        raise typer.Exit(1) from e
    except KeyboardInterrupt as e:
        print("\n\n⚠️  Interrupted by user")
        raise typer.Exit(130) from e


@app.command()
def scan(
    config_file: ConfigOption = Path("config/converter.yaml"),
    document_type: TypeOption = None,
    search: SearchOption = None,
    query: QueryOption = None,
    source_field: SourceFieldOption = None,
    slug_field: SlugFieldOption = None,
    prefix: PrefixOption = None,
    suffix: SuffixOption = None,
    replace_existing: ReplaceOption = False,
    max_documents: MaxDocumentsOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Scan for documents that need a slug and preview the result."""
    config = _load_or_exit(
        config_file,
        verbose,
        document_type=document_type,
        search=search,
        query=query,
        source_field=source_field,
        slug_field=slug_field,
        prefix=prefix,
        suffix=suffix,
        replace_existing=replace_existing,
        max_documents=max_documents,
    )

    print_header("🔍 Scan for Documents")
    result = _run_scan_or_exit(config)

    print_stats("Documents fetched", len(result.documents))
    print_stats("Need conversion", len(result.candidates))
    if result.candidates:
        print("\n📄 Documents to Convert:")
        print_preview(config, result.candidates)


@app.command()
def convert(
    config_file: ConfigOption = Path("config/converter.yaml"),
    document_type: TypeOption = None,
    search: SearchOption = None,
    query: QueryOption = None,
    source_field: SourceFieldOption = None,
    slug_field: SlugFieldOption = None,
    prefix: PrefixOption = None,
    suffix: SuffixOption = None,
    replace_existing: ReplaceOption = False,
    max_documents: MaxDocumentsOption = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Compute slugs without writing them")
    ] = False,
    batch_size: Annotated[
        int | None, typer.Option("--batch-size", min=1, help="Documents per progress update")
    ] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    verbose: VerboseOption = False,
) -> None:
    """Scan for documents that need a slug, then generate and write the slugs."""
    config = _load_or_exit(
        config_file,
        verbose,
        document_type=document_type,
        search=search,
        query=query,
        source_field=source_field,
        slug_field=slug_field,
        prefix=prefix,
        suffix=suffix,
        replace_existing=replace_existing,
        dry_run=dry_run,
        batch_size=batch_size,
        max_documents=max_documents,
    )

    print_header("🔍 STEP 1: Scan for Documents")
    result = _run_scan_or_exit(config)

    if not result.candidates:
        print("\n✅ Nothing to convert")
        return

    print("\n📄 Documents to Convert:")
    print_preview(config, result.candidates)

    if not (yes or config.convert.dry_run):
        typer.confirm(f"\nWrite slugs to {len(result.candidates)} documents?", abort=True)

    print_header("🔁 STEP 2: Convert IDs to Slugs")
    print_stats("Batch size", config.convert.batch_size)
    print_stats("Dry run", "ON" if config.convert.dry_run else "OFF")
    print()

    try:
        report = asyncio.run(_convert(config, result.candidates))
    except KeyboardInterrupt as e:
        print("\n\n⚠️  Interrupted by user")
        raise typer.Exit(130) from e
    except Exception as e:
        logger.error("Unexpected conversion error", exc_info=True)
        print(f"\n❌ Conversion error: {e}")
        raise typer.Exit(1) from e

    print_summary(report)

    if report.dry_run:
        print("\n🔍 DRY RUN MODE - No changes written")


if __name__ == "__main__":
    app()
