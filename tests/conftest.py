"""Shared fixtures for pagemark tests."""

import json
import logging
from pathlib import Path

import pytest
from pagemark.context import AppContext
from pagemark.content import DirectoryContentStore
from pagemark.models.config import ExportSettings, OutputConfig, PagemarkConfig, SourceConfig
from pagemark.scheduling import MemoryScheduler
from pagemark.storage import ExportDirectory, MemoryStatusStore


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def item_record(item_id: int, item_type: str = "post", **overrides) -> dict:
    """Raw item file entry; later ids are newer."""
    record = {
        "id": item_id,
        "type": item_type,
        "title": f"Item {item_id}",
        "slug": f"item-{item_id}",
        "date": f"2024-01-01 00:00:{item_id % 60:02d}",
        "content": f"<p>Body of item {item_id}</p>",
    }
    if item_id >= 60:
        record["date"] = f"2024-01-{1 + item_id // 60:02d} 00:00:{item_id % 60:02d}"
    record.update(overrides)
    return record


def write_items(directory: Path, records: list[dict]) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for record in records:
        path = directory / f"{record['type']}-{record['id']}.json"
        path.write_text(json.dumps(record), encoding="utf-8")


@pytest.fixture(autouse=True)
def reset_pagemark_logger():
    """Undo setup_logging() so caplog keeps seeing pagemark records."""
    yield
    logger = logging.getLogger("pagemark")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_context(tmp_path, clock):
    """Build an AppContext over tmp_path with in-memory status and scheduler."""

    def _make(records=(), **export_settings) -> AppContext:
        content_dir = tmp_path / "content"
        write_items(content_dir, list(records))

        config = PagemarkConfig(
            source=SourceConfig(directory=content_dir),
            output=OutputConfig(directory=tmp_path / "export"),
            export=ExportSettings(**export_settings),
            state_dir=tmp_path / "state",
        )
        directory = ExportDirectory(
            config.output.directory,
            config.export.export_post_types,
            live_name=config.output.live_name,
            pending_name=config.output.pending_name,
        )
        return AppContext(
            config=config,
            store=DirectoryContentStore(content_dir),
            directory=directory,
            status=MemoryStatusStore(),
            scheduler=MemoryScheduler(clock),
            clock=clock,
        )

    return _make
