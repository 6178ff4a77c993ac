"""Orchestration of one relationship generation pass over a scope."""

import logging
from typing import Literal

from pydantic import BaseModel

from cardgraph.config import InferenceConfig
from cardgraph.dedup.service import DeduplicationReport, DeduplicationService
from cardgraph.domain.relationships import Relationship
from cardgraph.item_store.base import ItemStore
from cardgraph.relationship_store.base import RelationshipStore

from .candidates import CandidateGenerator
from .scoring import apply_score
from .selection import compute_target_count, select_top_k

logger = logging.getLogger(__name__)

GenerationStatus = Literal["ok", "insufficient_input", "no_candidates_found"]


class GenerationResult(BaseModel):
    """Outcome of a generation pass."""

    scope: str
    status: GenerationStatus
    candidates_evaluated: int = 0
    target_count: int = 0
    created: list[Relationship] = []
    errors: list[str] = []
    deduplication: DeduplicationReport | None = None


class RelationshipInferencePipeline:
    """Runs generation, scoring, selection and persistence for a scope."""

    def __init__(
        self,
        *,
        item_store: ItemStore,
        relationship_store: RelationshipStore,
        config: InferenceConfig | None = None,
    ):
        """Initialize the pipeline with required services.

        Args:
            item_store: Source of the content items of a scope
            relationship_store: Store receiving the selected relationships
            config: Inference configuration, balanced preset when omitted
        """
        self.item_store = item_store
        self.relationship_store = relationship_store
        self.config = config or InferenceConfig()

        self.generator = CandidateGenerator(self.config.scoring)

    def run(self, scope: str) -> GenerationResult:
        """Infer and persist new relationships for the items of a scope.

        Pairs that already have a relationship in the scope are never proposed
        again. Store failures propagate as ``PersistenceError``.

        Args:
            scope: Scope (board) to run on

        Returns:
            GenerationResult with the relationships that were persisted
        """
        items = self.item_store.get_items(scope)
        if len(items) < 2:
            logger.info(f"Scope '{scope}' has {len(items)} item(s), nothing to relate")
            return GenerationResult(scope=scope, status="insufficient_input")

        existing = self.relationship_store.get_relationships(scope)
        existing_pairs = {relationship.pair_key for relationship in existing}

        candidates = self.generator.generate(items, existing_pairs)
        scored = [apply_score(candidate, self.config.scoring) for candidate in candidates]
        target = compute_target_count(len(items), self.config.selection)
        selected = select_top_k(scored, len(items), self.config.selection)

        if not selected:
            reason = (
                f"No candidate among {len(scored)} cleared the selection floors "
                f"(target {target} for {len(items)} items)"
            )
            logger.info(f"Scope '{scope}': {reason}")
            return GenerationResult(
                scope=scope,
                status="no_candidates_found",
                candidates_evaluated=len(scored),
                target_count=target,
                errors=[reason],
            )

        created = [candidate.to_relationship() for candidate in selected]
        self.relationship_store.add_relationships(scope, created)
        self.relationship_store.save()
        logger.info(f"Persisted {len(created)} relationships in scope '{scope}'")

        report = None
        if self.config.auto_deduplicate:
            service = DeduplicationService(relationship_store=self.relationship_store)
            report = service.deduplicate_scope(scope, self.config.dedup)

        return GenerationResult(
            scope=scope,
            status="ok",
            candidates_evaluated=len(scored),
            target_count=target,
            created=created,
            deduplication=report,
        )
