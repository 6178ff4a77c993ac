from typing import List, Protocol

from cardgraph.domain.relationships import Relationship


class RelationshipStore(Protocol):
    """Protocol for relationship persistence.

    Implementations raise ``cardgraph.errors.PersistenceError`` when a read,
    write or delete is rejected as a whole.
    """

    def get_relationships(self, scope: str | None = None) -> List[Relationship]:
        """Get the relationships of a scope, or of every scope when scope is None."""
        ...

    def add_relationships(self, scope: str, relationships: List[Relationship]) -> None:
        """Persist new relationships in a scope."""
        ...

    def delete_relationships(self, relationship_ids: List[str]) -> List[str]:
        """Delete relationships by ID.

        Returns:
            The IDs the store confirms as deleted. IDs it rejected or did not
            find are left out.
        """
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the relationship store to disk."""
        ...
