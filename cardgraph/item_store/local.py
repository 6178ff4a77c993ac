import json
import logging
from pathlib import Path
from typing import Dict, List

from cardgraph.domain.item import ContentItem
from cardgraph.errors import PersistenceError
from cardgraph.item_store.base import ItemStore

logger = logging.getLogger(__name__)


class LocalItemStore(ItemStore):
    """Local item store that keeps the items of every scope in a JSON file."""

    def __init__(self, filepath: str | Path | None = None) -> None:
        """Initialize LocalItemStore.

        Args:
            filepath: Path to item store file. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, creates empty store in memory only.
        """
        self._filepath = str(filepath) if filepath else None

        if self._filepath and Path(self._filepath).exists():
            try:
                with open(self._filepath, "r") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise PersistenceError(
                    f"Could not read item store {self._filepath}: {e}", operation="load"
                ) from e
            self._items = {
                scope: {item["id"]: ContentItem(**item) for item in items}
                for scope, items in data["scopes"].items()
            }
        else:
            self._items = {}

    @classmethod
    def from_data(cls, items: Dict[str, List[ContentItem]] | None = None) -> "LocalItemStore":
        """Create LocalItemStore from provided items per scope (useful for testing)."""
        instance = cls(filepath=None)
        for scope, scope_items in (items or {}).items():
            for item in scope_items:
                instance.add_item(scope, item)
        return instance

    def get_items(self, scope: str) -> List[ContentItem]:
        """Get all items of a scope, in insertion order."""
        return list(self._items.get(scope, {}).values())

    def get_scopes(self) -> List[str]:
        """Get all scopes that hold items."""
        return list(self._items.keys())

    def add_item(self, scope: str, item: ContentItem) -> None:
        """Add an item to a scope, replacing any item with the same ID."""
        self._items.setdefault(scope, {})[item.id] = item

    def save(self, filepath: str | None = None) -> None:
        """Save the item store to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
                A store built in memory without either keeps its data in memory only.
        """
        save_path = filepath or self._filepath
        if not save_path:
            logger.debug("No filepath set, keeping store in memory only")
            return

        data = {
            "scopes": {
                scope: [item.model_dump(mode="json") for item in items.values()]
                for scope, items in self._items.items()
            }
        }
        try:
            with open(str(save_path), "w") as f:
                json.dump(data, f)
        except OSError as e:
            raise PersistenceError(
                f"Could not write item store {save_path}: {e}", operation="save"
            ) from e
