"""Pipeline architecture for item export."""

from .base import ExportPipeline, ExportStep, ItemContext

__all__ = ["ExportPipeline", "ExportStep", "ItemContext"]
