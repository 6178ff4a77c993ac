"""Store-backed deduplication pass over one scope."""

import logging
import time

from pydantic import BaseModel

from cardgraph.config import DedupStrategy
from cardgraph.errors import PersistenceError
from cardgraph.relationship_store.base import RelationshipStore

from .resolver import DeduplicationResolver, DeletionRecord, QualityMetrics, compute_metrics

logger = logging.getLogger(__name__)


class DeduplicationReport(BaseModel):
    """Outcome of a deduplication pass, split into intended and confirmed deletions."""

    scope: str
    intended: list[str] = []
    confirmed: list[str] = []
    metrics: QualityMetrics = QualityMetrics()
    deletions: list[DeletionRecord] = []
    processing_time_ms: float = 0.0
    errors: list[str] = []

    @property
    def unconfirmed(self) -> list[str]:
        confirmed = set(self.confirmed)
        return [rid for rid in self.intended if rid not in confirmed]


class DeduplicationService:
    """Runs the resolver against a relationship store and applies its deletions."""

    def __init__(self, *, relationship_store: RelationshipStore) -> None:
        self.relationship_store = relationship_store

    def deduplicate_scope(
        self, scope: str, strategy: DedupStrategy | None = None
    ) -> DeduplicationReport:
        """Delete duplicate relationships of a scope.

        Deletions the store confirmed before a later failure are not rolled
        back; the report's metrics describe the state the store actually reached.

        Args:
            scope: Scope whose relationships are reconciled
            strategy: Keep/delete policy, defaults to ``DedupStrategy()``

        Returns:
            DeduplicationReport listing intended and confirmed deletions

        Raises:
            PersistenceError: If the store rejects the read or the delete. A failed
                save after the delete is reported in ``errors`` instead
        """
        started = time.perf_counter()
        relationships = self.relationship_store.get_relationships(scope)
        plan = DeduplicationResolver(strategy).resolve(relationships)

        intended = [record.relationship_id for record in plan.deletions]
        confirmed: list[str] = []
        errors: list[str] = []
        if intended:
            confirmed = self.relationship_store.delete_relationships(intended)
            try:
                self.relationship_store.save()
            except PersistenceError as e:
                logger.error(f"Deletions in scope '{scope}' were applied but not saved: {e}")
                errors.append(f"Deletions were applied but not saved: {e}")

        confirmed_set = set(confirmed)
        if len(confirmed_set) < len(intended):
            logger.warning(
                f"Store confirmed {len(confirmed_set)} of {len(intended)} deletions in scope '{scope}'"
            )

        remaining = [r for r in relationships if r.id not in confirmed_set]
        metrics = compute_metrics(relationships, remaining, plan.metrics.duplicate_groups_found)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"Deduplicated scope '{scope}': {len(confirmed_set)} deleted, "
            f"{metrics.relationships_kept} kept in {elapsed_ms:.1f}ms"
        )
        return DeduplicationReport(
            scope=scope,
            intended=intended,
            confirmed=[rid for rid in intended if rid in confirmed_set],
            metrics=metrics,
            deletions=[d for d in plan.deletions if d.relationship_id in confirmed_set],
            processing_time_ms=elapsed_ms,
            errors=errors,
        )
