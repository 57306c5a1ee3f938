"""Utility functions and helpers."""

from id_slugs.utils.config_loader import load_pipeline_config, load_yaml_config
from id_slugs.utils.logging import get_logger, setup_logging
from id_slugs.utils.slug import disambiguate_slug, generate_slug, preview_slugs

__all__ = [
    "setup_logging",
    "get_logger",
    "generate_slug",
    "disambiguate_slug",
    "preview_slugs",
    "load_yaml_config",
    "load_pipeline_config",
]
