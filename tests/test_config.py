"""Tests for configuration models."""

from pathlib import Path

import pytest
from pagemark.models.config import ExportSettings, PagemarkConfig
from pydantic import ValidationError


class TestExportSettings:
    """Tests for ExportSettings."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = ExportSettings()
        assert settings.export_post_types == ["post", "page"]
        assert settings.include_drafts is False
        assert settings.include_private is False
        assert settings.chunk_size == 50
        assert settings.chunk_delay == 2.0
        assert settings.history_limit == 5
        assert settings.conversion_timeout == 30.0

    @pytest.mark.parametrize("chunk_size", [9, 201, 0])
    def test_chunk_size_bounds(self, chunk_size):
        """Test chunk_size stays within 10..200."""
        with pytest.raises(ValidationError):
            ExportSettings(chunk_size=chunk_size)

    @pytest.mark.parametrize("chunk_size", [10, 200])
    def test_chunk_size_edges(self, chunk_size):
        """Test the bounds themselves are accepted."""
        assert ExportSettings(chunk_size=chunk_size).chunk_size == chunk_size

    def test_types_cleaned(self):
        """Test blank and duplicate types are dropped."""
        assert ExportSettings(export_post_types=[" post", "page", "post", ""]).export_post_types == ["post", "page"]

    def test_types_required(self):
        """Test at least one type is needed."""
        with pytest.raises(ValidationError):
            ExportSettings(export_post_types=["  "])


class TestPagemarkConfig:
    """Tests for the root configuration."""

    def test_from_yaml(self):
        """Test loading nested settings."""
        config = PagemarkConfig.from_yaml(
            """
            source:
              directory: ./site
            export:
              export_post_types: [post]
              include_drafts: true
              chunk_size: 100
            adapters:
              page_builder:
                enabled: true
                enabled_modules: [mod-text]
                enabled_areas:
                  default: [right-sidebar]
            api_key: secret
            """.replace("\n            ", "\n")
        )

        assert config.source.directory == Path("./site")
        assert config.export.export_post_types == ["post"]
        assert config.export.include_drafts is True
        assert config.export.chunk_size == 100
        assert config.adapters.enabled_names() == {"page_builder"}
        assert config.adapters.page_builder.enabled_areas == {"default": ["right-sidebar"]}
        assert config.api_key == "secret"

    def test_empty_yaml(self):
        """Test an empty document gives defaults."""
        config = PagemarkConfig.from_yaml("")
        assert config.sanitizer.disallowed_classes == ["u-preloader"]
        assert config.adapters.enabled_names() == set()
        assert config.output.live_name == "pagemark-export"

    def test_unknown_keys_rejected(self):
        """Test typos fail loudly."""
        with pytest.raises(ValidationError):
            PagemarkConfig.from_yaml("export:\n  chunksize: 10\n")

    def test_yaml_round_trip(self, tmp_path):
        """Test dump and reload."""
        config = PagemarkConfig.from_yaml("export:\n  chunk_size: 20\nlog_level: DEBUG\n")
        path = tmp_path / "pagemark.yaml"
        path.write_text(config.to_yaml(), encoding="utf-8")

        assert PagemarkConfig.from_yaml_file(path) == config
