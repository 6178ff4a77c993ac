"""Resolving duplicate relationships that share a pair key."""

import logging

from pydantic import BaseModel

from cardgraph.config import DedupStrategy
from cardgraph.domain.relationships import PairKey, Relationship

logger = logging.getLogger(__name__)

STRENGTH_WEIGHT = 0.6
CONFIDENCE_WEIGHT = 0.4
PRIORITY_BONUS_WEIGHT = 0.2
BELOW_THRESHOLD_PENALTY = 0.5


class DeletionRecord(BaseModel):
    """Why a relationship was marked for deletion."""

    relationship_id: str
    type: str
    strength: float
    kept_id: str
    reason: str


class QualityMetrics(BaseModel):
    relationships_analyzed: int = 0
    duplicate_groups_found: int = 0
    relationships_deleted: int = 0
    relationships_kept: int = 0
    average_strength_before: float = 0.0
    average_strength_after: float = 0.0
    quality_improvement: float = 0.0


class DeduplicationResult(BaseModel):
    kept: list[Relationship] = []
    deleted: list[Relationship] = []
    deletions: list[DeletionRecord] = []
    metrics: QualityMetrics = QualityMetrics()


def group_by_pair(relationships: list[Relationship]) -> dict[PairKey, list[Relationship]]:
    """Group relationships by pair key, keeping first-encountered order."""
    groups: dict[PairKey, list[Relationship]] = {}
    for relationship in relationships:
        groups.setdefault(relationship.pair_key, []).append(relationship)
    return groups


def find_duplicate_groups(relationships: list[Relationship]) -> list[list[Relationship]]:
    """Groups of relationships that share a pair key with at least one other."""
    return [group for group in group_by_pair(relationships).values() if len(group) > 1]


def average_strength(relationships: list[Relationship]) -> float:
    if not relationships:
        return 0.0
    return sum(r.strength for r in relationships) / len(relationships)


def quality_improvement(before: float, after: float) -> float:
    """Relative change of average strength, 0.0 when there was nothing before."""
    if before == 0:
        return 0.0
    return (after - before) / before


def priority_bonus(relationship: Relationship, strategy: DedupStrategy) -> float:
    priority = strategy.priority
    if relationship.type not in priority:
        return 0.0
    index = priority.index(relationship.type)
    return (len(priority) - index) / len(priority) * PRIORITY_BONUS_WEIGHT


def relationship_quality_score(relationship: Relationship, strategy: DedupStrategy) -> float:
    """Score used to rank relationships of the same pair against each other."""
    score = (
        STRENGTH_WEIGHT * relationship.strength
        + CONFIDENCE_WEIGHT * relationship.confidence
        + priority_bonus(relationship, strategy)
    )
    if relationship.strength < strategy.quality_threshold:
        score *= BELOW_THRESHOLD_PENALTY
    return score


def select_best(group: list[Relationship], strategy: DedupStrategy) -> Relationship:
    """Pick the relationship to keep among relationships of one pair.

    Manual relationships win when ``preserve_manual`` is set. Otherwise the
    first type of the priority list present in the group restricts the pool.
    Within the pool the highest quality score wins; on equal scores the
    relationship encountered first is kept.
    """
    if not group:
        raise ValueError("Cannot select the best relationship of an empty group")

    pool = group
    if strategy.preserve_manual and any(r.type == "manual" for r in group):
        pool = [r for r in group if r.type == "manual"]
    else:
        for priority_type in strategy.priority:
            typed = [r for r in group if r.type == priority_type]
            if typed:
                pool = typed
                break

    # max() returns the first maximal element, which gives the stable tie-break
    return max(pool, key=lambda r: relationship_quality_score(r, strategy))


def deletion_reason(
    relationship: Relationship, kept: Relationship, strategy: DedupStrategy
) -> str:
    if strategy.preserve_manual and kept.type == "manual" and relationship.type != "manual":
        return "superseded by manual relationship"
    if relationship.strength < strategy.quality_threshold:
        return (
            f"below quality threshold (strength {relationship.strength:.2f} "
            f"< {strategy.quality_threshold})"
        )
    if relationship.type not in strategy.priority:
        return f"unprioritized type: {relationship.type}"
    if relationship.type != kept.type:
        rank = strategy.priority.index(relationship.type) + 1
        return f"lower priority type ({relationship.type}, rank {rank})"
    return f"lower quality score than {kept.id}"


def compute_metrics(
    relationships: list[Relationship],
    remaining: list[Relationship],
    duplicate_groups: int,
) -> QualityMetrics:
    before = average_strength(relationships)
    after = average_strength(remaining)
    return QualityMetrics(
        relationships_analyzed=len(relationships),
        duplicate_groups_found=duplicate_groups,
        relationships_deleted=len(relationships) - len(remaining),
        relationships_kept=len(remaining),
        average_strength_before=before,
        average_strength_after=after,
        quality_improvement=quality_improvement(before, after),
    )


class DeduplicationResolver:
    """Reduces every group of relationships sharing a pair key to one kept relationship."""

    def __init__(self, strategy: DedupStrategy | None = None) -> None:
        self.strategy = strategy or DedupStrategy()

    def resolve(self, relationships: list[Relationship]) -> DeduplicationResult:
        """Plan which relationships to keep and which to delete.

        Args:
            relationships: Every relationship currently persisted for a scope

        Returns:
            DeduplicationResult whose ``kept`` holds every relationship not marked
            for deletion, including those that had no duplicate
        """
        # positions rather than ids, so a repeated record cannot end up on both sides
        groups: dict[PairKey, list[int]] = {}
        for position, relationship in enumerate(relationships):
            groups.setdefault(relationship.pair_key, []).append(position)
        duplicate_groups = [positions for positions in groups.values() if len(positions) > 1]

        deleted_positions: list[int] = []
        deletions: list[DeletionRecord] = []
        for positions in duplicate_groups:
            group = [relationships[p] for p in positions]
            best = select_best(group, self.strategy)
            best_position = positions[next(i for i, r in enumerate(group) if r is best)]

            for position in positions:
                if position == best_position:
                    continue
                relationship = relationships[position]
                deleted_positions.append(position)
                deletions.append(
                    DeletionRecord(
                        relationship_id=relationship.id,
                        type=relationship.type,
                        strength=relationship.strength,
                        kept_id=best.id,
                        reason=deletion_reason(relationship, best, self.strategy),
                    )
                )

        deleted_set = set(deleted_positions)
        kept = [r for p, r in enumerate(relationships) if p not in deleted_set]
        deleted = [relationships[p] for p in deleted_positions]
        metrics = compute_metrics(relationships, kept, len(duplicate_groups))

        logger.info(
            f"Deduplication plan: {metrics.relationships_analyzed} analyzed, "
            f"{metrics.duplicate_groups_found} duplicate groups, "
            f"{metrics.relationships_deleted} to delete"
        )
        return DeduplicationResult(kept=kept, deleted=deleted, deletions=deletions, metrics=metrics)


def deduplicate(
    relationships: list[Relationship], strategy: DedupStrategy | None = None
) -> DeduplicationResult:
    """Resolve duplicate relationships of a scope to one kept relationship per pair."""
    return DeduplicationResolver(strategy).resolve(relationships)
