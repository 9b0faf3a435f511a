"""Protocol definitions for content adapters."""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ..models.content import ContentItem


@dataclass(frozen=True)
class PageModule:
    """
    One module placed in a page-builder zone.

    Attributes:
        id: Module identifier
        type: Module type key, checked against the enabled module types
        hidden: Hidden modules are never rendered
        html: Pre-rendered markup for the module
    """

    id: int
    type: str
    hidden: bool = False
    html: str = ""


@runtime_checkable
class Adapter(Protocol):
    """
    Protocol for content adapters.

    An adapter augments an item's HTML with content held outside the body,
    such as page-builder modules. Adapters run before sanitizing.

    Example implementation:
        class SignatureAdapter:
            name = "signature"

            def installed(self) -> bool:
                return True

            def supports(self, item: ContentItem) -> bool:
                return item.type == "post"

            def inject(self, content: str, item: ContentItem) -> str:
                return content + "<p>Written by the editors</p>"
    """

    name: str

    def installed(self) -> bool:
        """Whether the backing system is available at all."""
        ...

    def supports(self, item: ContentItem) -> bool:
        """Whether this adapter applies to the item."""
        ...

    def inject(self, content: str, item: ContentItem) -> str:
        """Return the content with the adapter's markup merged in."""
        ...


class LayoutProvider(Protocol):
    """
    Protocol for the page-builder data an adapter reads.

    get_modules maps zone names to the modules placed in them, in display
    order. A zone may be present with no modules.
    """

    def installed(self) -> bool:
        ...

    def get_modules(self, item_id: int) -> dict[str, list[PageModule]]:
        ...

    def get_template(self, item_id: int) -> Optional[str]:
        ...

    def render_module(self, module: PageModule) -> str:
        ...
