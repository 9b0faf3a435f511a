"""Explicit wiring of the exporter's collaborators."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .adapters import AdapterRegistry, PageBuilderAdapter
from .content import ContentStore, DirectoryContentStore
from .conversion import ContentSanitizer, HtmlToMarkdown
from .conversion.protocols import MarkdownConverter, Sanitizer
from .hooks import HookManager
from .models.config import PagemarkConfig
from .pipeline import ExportPipeline
from .pipeline.steps import ConvertStep, InjectStep, LoadStep, SanitizeStep, SaveStep
from .scheduling import FileScheduler, Scheduler
from .storage import ExportDirectory, StatusStore, open_status_store

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    Everything an ExportOrchestrator needs, passed in one object.

    Build one from configuration with from_config(), or construct it
    directly to substitute collaborators (in-memory stores in tests, a
    different content store in an embedding application).
    """

    config: PagemarkConfig
    store: ContentStore
    directory: ExportDirectory
    status: StatusStore
    scheduler: Scheduler
    registry: AdapterRegistry = field(default_factory=AdapterRegistry)
    hooks: HookManager = field(default_factory=HookManager)
    sanitizer: Sanitizer = field(default_factory=ContentSanitizer)
    converter: MarkdownConverter = field(default_factory=HtmlToMarkdown)
    clock: Callable[[], float] = time.time

    @classmethod
    def from_config(cls, config: PagemarkConfig) -> AppContext:
        """Wire the file-backed collaborators described by config."""
        store = DirectoryContentStore(config.source.directory)

        directory = ExportDirectory(
            config.output.directory,
            config.export.export_post_types,
            live_name=config.output.live_name,
            pending_name=config.output.pending_name,
            protect=config.output.protect_directories,
        )

        registry = AdapterRegistry.from_config(
            [PageBuilderAdapter(store, config.adapters.page_builder)],
            enabled=config.adapters.enabled_names(),
        )

        hooks = HookManager()
        if config.hooks_file:
            hooks.load_from_file(config.hooks_file)

        state_dir = config.state_dir
        return cls(
            config=config,
            store=store,
            directory=directory,
            status=open_status_store(state_dir),
            scheduler=FileScheduler(state_dir / "jobs.json"),
            registry=registry,
            hooks=hooks,
            sanitizer=ContentSanitizer(config.sanitizer.disallowed_classes),
        )

    def build_pipeline(self) -> ExportPipeline:
        """Per-item pipeline writing into the pending tree."""
        return ExportPipeline(
            steps=[
                LoadStep(self.store),
                InjectStep(self.registry),
                SanitizeStep(self.sanitizer),
                ConvertStep(self.converter, timeout=self.config.export.conversion_timeout),
                SaveStep(self.directory, role="pending"),
            ]
        )
