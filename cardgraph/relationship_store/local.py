import json
import logging
from pathlib import Path
from typing import Dict, List

from cardgraph.domain.relationships import Relationship
from cardgraph.errors import PersistenceError
from cardgraph.relationship_store.base import RelationshipStore

logger = logging.getLogger(__name__)


class LocalRelationshipStore(RelationshipStore):
    """Local relationship store that keeps relationships per scope in a JSON file."""

    def __init__(self, filepath: str | Path | None = None) -> None:
        """Initialize LocalRelationshipStore.

        Args:
            filepath: Path to relationship store file. If provided and exists, will auto-load.
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
                    f"Could not read relationship store {self._filepath}: {e}", operation="load"
                ) from e
            self._relationships = {
                scope: {rel["id"]: Relationship(**rel) for rel in relationships}
                for scope, relationships in data["scopes"].items()
            }
        else:
            self._relationships = {}

    @classmethod
    def from_data(
        cls, relationships: Dict[str, List[Relationship]] | None = None
    ) -> "LocalRelationshipStore":
        """Create LocalRelationshipStore from provided relationships per scope (useful for testing)."""
        instance = cls(filepath=None)
        for scope, scope_relationships in (relationships or {}).items():
            instance.add_relationships(scope, scope_relationships)
        return instance

    def get_relationships(self, scope: str | None = None) -> List[Relationship]:
        """Get the relationships of a scope, or of every scope when scope is None."""
        if scope is not None:
            return list(self._relationships.get(scope, {}).values())
        return [rel for by_id in self._relationships.values() for rel in by_id.values()]

    def add_relationships(self, scope: str, relationships: List[Relationship]) -> None:
        """Persist new relationships in a scope."""
        by_id = self._relationships.setdefault(scope, {})
        for relationship in relationships:
            by_id[relationship.id] = relationship

    def delete_relationships(self, relationship_ids: List[str]) -> List[str]:
        """Delete relationships by ID, returning the IDs that were found and removed."""
        deleted = []
        for relationship_id in relationship_ids:
            for by_id in self._relationships.values():
                if relationship_id in by_id:
                    del by_id[relationship_id]
                    deleted.append(relationship_id)
                    break
        return deleted

    def save(self, filepath: str | None = None) -> None:
        """Save the relationship store to a JSON file.

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
                scope: [rel.model_dump(mode="json") for rel in by_id.values()]
                for scope, by_id in self._relationships.items()
            }
        }
        try:
            with open(str(save_path), "w") as f:
                json.dump(data, f)
        except OSError as e:
            raise PersistenceError(
                f"Could not write relationship store {save_path}: {e}", operation="save"
            ) from e
