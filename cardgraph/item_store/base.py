from typing import List, Protocol

from cardgraph.domain.item import ContentItem


class ItemStore(Protocol):
    """Protocol for content item suppliers."""

    def get_items(self, scope: str) -> List[ContentItem]:
        """Get all items of a scope (board), in a stable order."""
        ...

    def get_scopes(self) -> List[str]:
        """Get all scopes that hold items."""
        ...

    def add_item(self, scope: str, item: ContentItem) -> None:
        """Add an item to a scope, replacing any item with the same ID."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the item store to disk."""
        ...
