"""Generating candidate relationships between content items."""

import logging
from collections.abc import Iterable, Iterator
from itertools import combinations

from cardgraph.config import ScoringConfig, StrategyName
from cardgraph.domain.item import ContentItem
from cardgraph.domain.relationships import (
    Candidate,
    ContentMetadata,
    PairKey,
    TagMetadata,
    TemporalMetadata,
    UnifiedMetadata,
    WorkflowMetadata,
    pair_key,
)

from .text_similarity import jaccard, text_similarity, tokenize

logger = logging.getLogger(__name__)


def tag_similarity(
    tags_a: set[str],
    tags_b: set[str],
    jaccard_weight: float = 0.6,
    coverage_weight: float = 0.4,
) -> tuple[float, float, float]:
    """Calculate the blended tag similarity of two tag sets.

    Args:
        tags_a: Tags of the first item
        tags_b: Tags of the second item
        jaccard_weight: Weight of the Jaccard index
        coverage_weight: Weight of the average per-item coverage

    Returns:
        Tuple of (jaccard, average coverage, similarity)
    """
    if not tags_a or not tags_b:
        return 0.0, 0.0, 0.0

    common = len(tags_a & tags_b)
    jaccard_index = common / len(tags_a | tags_b)
    coverage = (common / len(tags_a) + common / len(tags_b)) / 2
    similarity = jaccard_weight * jaccard_index + coverage_weight * coverage
    return jaccard_index, coverage, similarity


def temporal_bonus(
    first: ContentItem, second: ContentItem, max_span: float, config: ScoringConfig
) -> float:
    """Bonus for items created close together relative to the observed time span."""
    if max_span <= 0:
        return config.temporal_fallback
    delta = abs(first.created_at.timestamp() - second.created_at.timestamp())
    return max(0.0, 1.0 - delta / max_span) * config.temporal_weight


def observed_time_span(items: Iterable[ContentItem]) -> float:
    """Seconds between the oldest and newest item."""
    timestamps = [item.created_at.timestamp() for item in items]
    if not timestamps:
        return 0.0
    return max(timestamps) - min(timestamps)


def unified_components(
    first: ContentItem, second: ContentItem, config: ScoringConfig
) -> dict[str, float]:
    """Calculate the four signals blended into a unified similarity.

    Args:
        first: First item
        second: Second item
        config: Scoring configuration

    Returns:
        Dict with ``semantic``, ``structural``, ``contextual`` and ``content`` scores
    """
    semantic = text_similarity(first.text, second.text, min_length=1)

    same_type = 1.0 if first.type and first.type == second.type else 0.0
    structural = (
        config.unified_tag_weight * jaccard(first.tag_set, second.tag_set)
        + config.unified_type_weight * same_type
    )

    delta = abs(first.created_at.timestamp() - second.created_at.timestamp())
    if delta < config.unified_near_seconds:
        contextual = config.unified_near_bonus
    elif delta < config.unified_day_seconds:
        contextual = config.unified_day_bonus
    else:
        contextual = 0.0

    min_length = config.min_word_length
    content = config.unified_title_weight * text_similarity(
        first.title, second.title, min_length
    ) + config.unified_body_weight * text_similarity(first.body, second.body, min_length)

    return {
        "semantic": semantic,
        "structural": structural,
        "contextual": min(contextual, 1.0),
        "content": content,
    }


class CandidateGenerator:
    """Proposes relationships between items using independent heuristics."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        """Initialize the generator.

        Args:
            config: Scoring configuration holding thresholds and enabled strategies
        """
        self.config = config or ScoringConfig()

    def generate(
        self, items: list[ContentItem], existing_pairs: set[PairKey] | None = None
    ) -> list[Candidate]:
        """Generate candidate relationships for an item set.

        Strategies run in the configured order. A pair accepted by one strategy
        is excluded from the later ones, so a pass proposes each pair at most once.

        Args:
            items: Items to relate
            existing_pairs: Pair keys that are already related and must be skipped

        Returns:
            List of unscored candidates in deterministic order
        """
        if len(items) < 2:
            logger.info(f"Skipping candidate generation, {len(items)} item(s) supplied")
            return []

        excluded = set(existing_pairs or ())
        max_span = observed_time_span(items)
        min_length = self.config.min_word_length
        words = {item.id: tokenize(item.text, min_length) for item in items}
        by_id = {item.id: item for item in items}

        candidates: list[Candidate] = []
        for strategy in self.config.strategies:
            produced = 0
            for candidate in self._run_strategy(strategy, items, excluded, words):
                candidate = self._with_pair_signals(candidate, by_id, max_span, words)
                excluded.add(candidate.pair_key)
                candidates.append(candidate)
                produced += 1
            logger.debug(f"Strategy '{strategy}' produced {produced} candidates")

        logger.info(f"Generated {len(candidates)} candidates from {len(items)} items")
        return candidates

    def _run_strategy(
        self,
        strategy: StrategyName,
        items: list[ContentItem],
        excluded: set[PairKey],
        words: dict[str, set[str]],
    ) -> Iterator[Candidate]:
        if strategy == "tag":
            return self._tag_candidates(items, excluded)
        if strategy == "workflow":
            return self._workflow_candidates(items, excluded)
        if strategy == "content":
            return self._content_candidates(items, excluded, words)
        if strategy == "temporal":
            return self._temporal_candidates(items, excluded)
        if strategy == "unified":
            return self._unified_candidates(items, excluded)
        raise ValueError(f"Unknown strategy: {strategy}")

    @staticmethod
    def _open_pairs(
        items: list[ContentItem], excluded: set[PairKey]
    ) -> Iterator[tuple[ContentItem, ContentItem]]:
        for first, second in combinations(items, 2):
            if first.id == second.id or pair_key(first.id, second.id) in excluded:
                continue
            yield first, second

    def _tag_candidates(
        self, items: list[ContentItem], excluded: set[PairKey]
    ) -> Iterator[Candidate]:
        config = self.config
        for first, second in self._open_pairs(items, excluded):
            tags_a, tags_b = first.tag_set, second.tag_set
            if not tags_a or not tags_b:
                continue

            common = tags_a & tags_b
            if len(common) < max(1, config.min_common_tags):
                continue

            jaccard_index, coverage, similarity = tag_similarity(
                tags_a, tags_b, config.tag_jaccard_weight, config.tag_coverage_weight
            )
            if similarity < config.tag_min_similarity:
                continue

            common_tags = list(dict.fromkeys(tag for tag in first.tags if tag in common))
            yield Candidate(
                source_id=first.id,
                target_id=second.id,
                type="inferred_tag",
                similarity=similarity,
                explanation=f"shared tags: {', '.join(common_tags)} ({len(common_tags)})",
                metadata=TagMetadata(
                    common_tags=common_tags,
                    source_tags=list(first.tags),
                    target_tags=list(second.tags),
                    jaccard=jaccard_index,
                    coverage=coverage,
                ),
            )

    def _content_candidates(
        self, items: list[ContentItem], excluded: set[PairKey], words: dict[str, set[str]]
    ) -> Iterator[Candidate]:
        for first, second in self._open_pairs(items, excluded):
            words_a, words_b = words[first.id], words[second.id]
            similarity = jaccard(words_a, words_b)
            if similarity < self.config.content_min_similarity:
                continue

            common_words = sorted(words_a & words_b)
            preview = ", ".join(common_words[:5])
            yield Candidate(
                source_id=first.id,
                target_id=second.id,
                type="inferred_content",
                similarity=similarity,
                explanation=f"shared words: {preview} ({len(common_words)})",
                metadata=ContentMetadata(
                    shared_words=common_words,
                    union_size=len(words_a | words_b),
                    jaccard=similarity,
                ),
            )

    def _workflow_candidates(
        self, items: list[ContentItem], excluded: set[PairKey]
    ) -> Iterator[Candidate]:
        config = self.config
        min_length = config.min_word_length
        for first, second in self._open_pairs(items, excluded):
            ordered = self._workflow_order(first, second)
            if ordered is None:
                continue

            source, target = ordered
            title_similarity = text_similarity(source.title, target.title, min_length)
            body_similarity = text_similarity(source.body, target.body, min_length)
            blended = (
                config.workflow_title_weight * title_similarity
                + config.workflow_body_weight * body_similarity
            )
            similarity = min(1.0, blended + config.workflow_bonus)
            if similarity < config.workflow_min_similarity:
                continue

            yield Candidate(
                source_id=source.id,
                target_id=target.id,
                type="inferred_workflow",
                similarity=similarity,
                explanation=(
                    f"{source.type} → {target.type} workflow (text overlap {blended:.2f})"
                ),
                metadata=WorkflowMetadata(
                    source_type=source.type,
                    target_type=target.type,
                    title_similarity=title_similarity,
                    body_similarity=body_similarity,
                    workflow_bonus=config.workflow_bonus,
                ),
            )

    def _temporal_candidates(
        self, items: list[ContentItem], excluded: set[PairKey]
    ) -> Iterator[Candidate]:
        config = self.config
        window = config.temporal_window_seconds
        if window <= 0:
            return

        for first, second in self._open_pairs(items, excluded):
            ordered = self._workflow_order(first, second)
            if ordered is None:
                continue

            source, target = ordered
            seconds_apart = target.created_at.timestamp() - source.created_at.timestamp()
            # the later stage of the workflow must follow the earlier one
            if not 0 < seconds_apart < window:
                continue

            decay = (seconds_apart / window) * (
                config.temporal_peak_similarity - config.temporal_floor_similarity
            )
            similarity = max(
                config.temporal_floor_similarity, config.temporal_peak_similarity - decay
            )
            minutes = round(seconds_apart / 60)
            yield Candidate(
                source_id=source.id,
                target_id=target.id,
                type="inferred_temporal",
                similarity=similarity,
                explanation=f"{target.type} created {minutes} min after {source.type}",
                metadata=TemporalMetadata(
                    seconds_apart=seconds_apart,
                    window_seconds=window,
                    source_type=source.type,
                    target_type=target.type,
                ),
            )

    def _unified_candidates(
        self, items: list[ContentItem], excluded: set[PairKey]
    ) -> Iterator[Candidate]:
        weights = self.config.unified_weights
        for first, second in self._open_pairs(items, excluded):
            components = unified_components(first, second, self.config)
            similarity = min(
                1.0,
                weights.semantic * components["semantic"]
                + weights.structural * components["structural"]
                + weights.contextual * components["contextual"]
                + weights.content * components["content"],
            )
            if similarity < self.config.unified_min_similarity:
                continue

            strongest = max(components, key=components.get)
            yield Candidate(
                source_id=first.id,
                target_id=second.id,
                type="unified",
                similarity=similarity,
                explanation=(
                    f"unified similarity {similarity:.2f}, "
                    f"strongest {strongest} ({components[strongest]:.2f})"
                ),
                metadata=UnifiedMetadata(components=components),
            )

    def _workflow_order(
        self, first: ContentItem, second: ContentItem
    ) -> tuple[ContentItem, ContentItem] | None:
        """Order two items along a configured workflow pair, or None if unrelated."""
        pairs = self.config.workflow_pairs
        if (first.type, second.type) in pairs:
            return first, second
        if (second.type, first.type) in pairs:
            return second, first
        return None

    def _with_pair_signals(
        self,
        candidate: Candidate,
        by_id: dict[str, ContentItem],
        max_span: float,
        words: dict[str, set[str]],
    ) -> Candidate:
        """Attach the pair-level signals every strategy shares."""
        source, target = by_id[candidate.source_id], by_id[candidate.target_id]
        return candidate.model_copy(
            update={
                "content_similarity": jaccard(words[source.id], words[target.id]),
                "temporal_bonus": temporal_bonus(source, target, max_span, self.config),
                "shared_tag_count": len(source.tag_set & target.tag_set),
            }
        )


def generate_candidates(
    items: list[ContentItem],
    existing_pairs: set[PairKey] | None = None,
    config: ScoringConfig | None = None,
) -> list[Candidate]:
    """Generate candidate relationships for an item set."""
    return CandidateGenerator(config).generate(items, existing_pairs)
