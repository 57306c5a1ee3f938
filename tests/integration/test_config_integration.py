"""Integration tests for configuration loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from id_slugs.models.config import PipelineConfig, StoreConfig
from id_slugs.utils.config_loader import load_pipeline_config, load_yaml_config


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_converter_yaml(temp_config_dir: Path) -> Path:
    """Create sample converter.yaml file."""
    converter_config = {
        "document_types": ["post", "author"],
        "fields": {"source_field": "headline", "slug_field": "permalink"},
        "scan": {"document_type": "post", "max_documents": 250, "replace_existing": True},
        "slug": {"prefix": "blog", "suffix": ""},
        "convert": {"batch_size": 25, "dry_run": True},
        "store": {"project_id": "proj1", "dataset": "staging", "retry_attempts": 5},
        "logging": {"level": "DEBUG", "colorize": False},
    }

    config_path = temp_config_dir / "converter.yaml"
    config_path.write_text(yaml.dump(converter_config))
    return config_path


class TestConfigLoading:
    """Test YAML configuration loading."""

    def test_load_full_config(self, sample_converter_yaml: Path) -> None:
        config = load_pipeline_config(sample_converter_yaml)

        assert isinstance(config, PipelineConfig)
        assert config.document_types == ["post", "author"]
        assert config.fields.source_field == "headline"
        assert config.fields.slug_field == "permalink"
        assert config.scan.document_type == "post"
        assert config.scan.max_documents == 250
        assert config.scan.replace_existing is True
        assert config.slug.prefix == "blog"
        assert config.convert.batch_size == 25
        assert config.convert.dry_run is True
        assert config.store.dataset == "staging"
        assert config.store.retry_attempts == 5
        assert config.logging.level == "DEBUG"

    def test_shipped_example_config_is_valid(self) -> None:
        example = Path(__file__).parents[2] / "config" / "converter.yaml"
        config = load_pipeline_config(example)
        assert config.convert.batch_size == 10

    def test_empty_file_gives_defaults(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "empty.yaml"
        path.write_text("")

        config = load_yaml_config(path, PipelineConfig)

        assert config == PipelineConfig()

    def test_missing_file(self, temp_config_dir: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_pipeline_config(temp_config_dir / "missing.yaml")

    def test_invalid_batch_size_rejected(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "bad.yaml"
        path.write_text(yaml.dump({"convert": {"batch_size": 0}}))

        with pytest.raises(ValidationError):
            load_pipeline_config(path)

    def test_malformed_yaml(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "broken.yaml"
        path.write_text("scan: [unclosed")

        with pytest.raises(yaml.YAMLError):
            load_pipeline_config(path)


class TestTypedLoading:
    """load_yaml_config returns an instance of the requested model."""

    def test_loads_any_model_class(self, temp_config_dir: Path) -> None:
        path = temp_config_dir / "store.yaml"
        path.write_text(yaml.dump({"project_id": "proj1", "use_cdn": True}))

        config = load_yaml_config(path, StoreConfig)

        assert type(config) is StoreConfig
        assert config.project_id == "proj1"
        assert config.use_cdn is True
