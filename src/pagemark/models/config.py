"""Pydantic configuration models for pagemark."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_ITEM_TYPES = ["post", "page"]


class SourceConfig(BaseModel):
    """Where content items are read from."""

    directory: Path = Field(Path("./content"), description="Directory of item JSON/YAML files")

    model_config = {"extra": "forbid"}


class ExportSettings(BaseModel):
    """Options recognised by the export orchestrator."""

    export_post_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ITEM_TYPES),
        description="Content types to export",
    )
    include_drafts: bool = Field(False, description="Include draft and pending items")
    include_private: bool = Field(False, description="Include private items")
    chunk_size: int = Field(
        50,
        ge=10,
        le=200,
        description="Items processed per background chunk",
    )
    chunk_delay: float = Field(2.0, ge=0, description="Seconds between background chunks")
    history_limit: int = Field(5, ge=1, description="Batch status records kept after a batch ends")
    conversion_timeout: Optional[float] = Field(
        30.0,
        gt=0,
        description="Seconds allowed for converting a single item (None = unbounded)",
    )

    model_config = {"extra": "forbid"}

    @field_validator("export_post_types")
    @classmethod
    def _types_not_empty(cls, value: list[str]) -> list[str]:
        cleaned = [t.strip() for t in value if t and t.strip()]
        if not cleaned:
            raise ValueError("export_post_types must name at least one type")
        return list(dict.fromkeys(cleaned))


class OutputConfig(BaseModel):
    """Configuration for the live/pending export directories."""

    directory: Path = Field(Path("./export"), description="Base directory holding both export trees")
    live_name: str = Field("pagemark-export", description="Name of the published directory")
    pending_name: str = Field("pagemark-export-pending", description="Name of the in-flight directory")
    protect_directories: bool = Field(
        True,
        description="Write .htaccess/index.html guards into every export directory",
    )

    model_config = {"extra": "forbid"}


class SanitizerConfig(BaseModel):
    """Configuration for HTML sanitization."""

    disallowed_classes: list[str] = Field(
        default_factory=lambda: ["u-preloader"],
        description="Elements carrying any of these classes are removed with their children",
    )

    model_config = {"extra": "forbid"}


class PageBuilderConfig(BaseModel):
    """Configuration for the page-builder adapter."""

    enabled: bool = Field(False, description="Merge page-builder modules into exported content")
    enabled_modules: list[str] = Field(
        default_factory=list,
        description="Module types that may be rendered",
    )
    enabled_areas: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Per-template list of zones whose modules are rendered",
    )

    model_config = {"extra": "forbid"}


class AdaptersConfig(BaseModel):
    """Adapter opt-in/opt-out switches and adapter options."""

    page_builder: PageBuilderConfig = Field(default_factory=PageBuilderConfig)

    model_config = {"extra": "forbid"}

    def enabled_names(self) -> set[str]:
        """Names of adapters switched on in configuration."""
        names = set()
        if self.page_builder.enabled:
            names.add("page_builder")
        return names


class PagemarkConfig(BaseModel):
    """
    Root configuration model for pagemark.

    Example:
        config = PagemarkConfig(
            source=SourceConfig(directory=Path("./content")),
            output=OutputConfig(directory=Path("./public")),
        )

    YAML format:
        source:
          directory: ./content
        export:
          export_post_types: [post, page]
          chunk_size: 50
        output:
          directory: ./public
    """

    source: SourceConfig = Field(default_factory=SourceConfig)
    export: ExportSettings = Field(default_factory=ExportSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    sanitizer: SanitizerConfig = Field(default_factory=SanitizerConfig)
    adapters: AdaptersConfig = Field(default_factory=AdaptersConfig)

    state_dir: Path = Field(Path(".pagemark"), description="Directory for batch status and scheduled jobs")
    api_key: Optional[str] = Field(None, description="Key expected by transports serving the export")
    hooks_file: Optional[Path] = Field(None, description="Python file with before/after export hooks")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "PagemarkConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "PagemarkConfig":
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))
