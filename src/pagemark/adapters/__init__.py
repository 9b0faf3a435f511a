"""Content adapters that merge external markup into item bodies."""

from .page_builder import AREA_ORDER, PageBuilderAdapter
from .protocols import Adapter, LayoutProvider, PageModule
from .registry import AdapterRegistry

__all__ = [
    # Protocols
    "Adapter",
    "LayoutProvider",
    "PageModule",
    # Implementations
    "AdapterRegistry",
    "PageBuilderAdapter",
    "AREA_ORDER",
]
