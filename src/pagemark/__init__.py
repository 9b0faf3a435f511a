"""
pagemark - Export CMS content as clean Markdown files with YAML front matter.

Usage:
    from pagemark import AppContext, ExportOrchestrator, PagemarkConfig

    config = PagemarkConfig.from_yaml_file(Path("pagemark.yaml"))
    orchestrator = ExportOrchestrator(AppContext.from_config(config))

    count = await orchestrator.run()
"""

__version__ = "1.0.0"

from .adapters import AdapterRegistry, PageBuilderAdapter
from .context import AppContext
from .conversion import ContentSanitizer, FrontmatterBuilder, HtmlToMarkdown, clean_markdown
from .core import ExportOrchestrator, run_export_blocking
from .hooks import HookManager, HookType, hook
from .models import (
    BatchStatus,
    ContentItem,
    EventType,
    ExportArtifact,
    ExportBatch,
    ExportEvent,
    LastExport,
    PagemarkConfig,
)
from .storage import ExportDirectory

__all__ = [
    "__version__",
    # Core
    "ExportOrchestrator",
    "run_export_blocking",
    "AppContext",
    # Conversion
    "ContentSanitizer",
    "HtmlToMarkdown",
    "FrontmatterBuilder",
    "clean_markdown",
    # Adapters
    "AdapterRegistry",
    "PageBuilderAdapter",
    # Storage
    "ExportDirectory",
    # Hooks
    "HookManager",
    "HookType",
    "hook",
    # Models
    "PagemarkConfig",
    "ContentItem",
    "ExportArtifact",
    "ExportBatch",
    "BatchStatus",
    "LastExport",
    # Events
    "EventType",
    "ExportEvent",
]
