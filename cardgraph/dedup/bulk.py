"""Filter-driven bulk deletion of relationships."""

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, field_validator, model_validator

from cardgraph.domain.relationships import RelationType, Relationship, normalize_relation_type
from cardgraph.errors import PersistenceError
from cardgraph.relationship_store.base import RelationshipStore

logger = logging.getLogger(__name__)


class StrengthRange(BaseModel):
    """Inclusive strength bounds, either side may be open."""

    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> "StrengthRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self

    def contains(self, strength: float) -> bool:
        if self.min is not None and strength < self.min:
            return False
        if self.max is not None and strength > self.max:
            return False
        return True


class BulkDeleteFilter(BaseModel):
    """Selects relationships for bulk deletion.

    Criteria combine with AND. A filter without any criterion is rejected
    unless ``all`` is set explicitly.
    """

    scope: str | None = None
    type: RelationType | None = None
    strength_range: StrengthRange | None = None
    older_than: datetime | None = None
    all: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return normalize_relation_type(value)

    @model_validator(mode="after")
    def check_has_criteria(self) -> "BulkDeleteFilter":
        has_criteria = any(
            value is not None
            for value in (self.scope, self.type, self.strength_range, self.older_than)
        )
        if not has_criteria and not self.all:
            raise ValueError("Refusing an empty bulk delete filter, set all=True to match everything")
        return self

    def matches(self, relationship: Relationship) -> bool:
        """Check a relationship against every criterion except the scope."""
        if self.type is not None and relationship.type != self.type:
            return False
        if self.strength_range is not None and not self.strength_range.contains(
            relationship.strength
        ):
            return False
        if self.older_than is not None and _as_utc(relationship.created_at) >= _as_utc(
            self.older_than
        ):
            return False
        return True


class BulkDeleteResult(BaseModel):
    requested: int = 0
    confirmed: int = 0
    deleted_ids: list[str] = []
    errors: list[str] = []


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are taken as UTC so they compare with aware ones
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BulkRelationOps:
    """Bulk operations over a relationship store."""

    def __init__(self, relationship_store: RelationshipStore) -> None:
        self.relationship_store = relationship_store

    def bulk_delete(self, delete_filter: BulkDeleteFilter) -> BulkDeleteResult:
        """Delete every relationship matching a filter.

        Args:
            delete_filter: Criteria selecting the relationships to delete

        Returns:
            BulkDeleteResult with one error entry per requested ID the store did
            not confirm. A rejected delete call is reported as zero confirmed; a
            failed save keeps the confirmed count and adds its own error entry.

        Raises:
            PersistenceError: If the store rejects the read
        """
        relationships = self.relationship_store.get_relationships(delete_filter.scope)
        requested = [r.id for r in relationships if delete_filter.matches(r)]
        if not requested:
            logger.info("Bulk delete matched no relationships")
            return BulkDeleteResult()

        try:
            confirmed = self.relationship_store.delete_relationships(requested)
        except PersistenceError as e:
            logger.error(f"Bulk delete of {len(requested)} relationships failed: {e}")
            return BulkDeleteResult(requested=len(requested), confirmed=0, errors=[str(e)])

        confirmed_set = set(confirmed)
        unconfirmed = [rid for rid in requested if rid not in confirmed_set]
        errors = [f"Relationship {rid} was not confirmed as deleted" for rid in unconfirmed]
        if errors:
            logger.warning(f"Bulk delete left {len(errors)} of {len(requested)} relationships")

        try:
            self.relationship_store.save()
        except PersistenceError as e:
            logger.error(f"Bulk delete confirmed {len(confirmed_set)} deletions but saving failed: {e}")
            errors.append(f"Deletions were applied but not saved: {e}")

        return BulkDeleteResult(
            requested=len(requested),
            confirmed=len(requested) - len(unconfirmed),
            deleted_ids=[rid for rid in requested if rid in confirmed_set],
            errors=errors,
        )
