"""Choosing which scored candidates become persisted relationships."""

import logging
import math

from cardgraph.config import SelectionConfig
from cardgraph.domain.relationships import Candidate

logger = logging.getLogger(__name__)


def compute_target_count(item_count: int, config: SelectionConfig | None = None) -> int:
    """Number of relationships one pass may persist for ``item_count`` items.

    Grows sub-linearly with the item count and never exceeds the absolute cap.
    """
    config = config or SelectionConfig()
    if item_count < 2:
        return 0

    total_pairs = item_count * (item_count - 1) // 2
    return max(
        0,
        min(
            math.floor(total_pairs * config.max_pair_ratio),
            config.absolute_cap,
            max(config.min_guarantee, math.floor(item_count * config.item_ratio)),
        ),
    )


def select_top_k(
    candidates: list[Candidate], item_count: int, config: SelectionConfig | None = None
) -> list[Candidate]:
    """Select the highest quality candidates up to the target count.

    Args:
        candidates: Scored candidates
        item_count: Number of items the candidates were generated from
        config: Selection configuration

    Returns:
        Selected candidates ordered by quality, highest first. Empty when no
        candidate clears the floors.
    """
    config = config or SelectionConfig()
    target = compute_target_count(item_count, config)

    eligible = [
        c
        for c in candidates
        if c.similarity >= config.min_similarity and c.quality >= config.min_quality
    ]
    # sorted() is stable, equal qualities keep their generation order
    ranked = sorted(eligible, key=lambda c: c.quality, reverse=True)
    selected = ranked[:target]

    logger.info(
        f"Selected {len(selected)} of {len(candidates)} candidates "
        f"({len(eligible)} eligible, target {target})"
    )
    return selected
