"""Folding candidate signals into strength and confidence."""

from collections.abc import Iterable

import numpy as np
from pydantic import BaseModel

from cardgraph.config import ScoringConfig
from cardgraph.domain.relationships import Candidate, UnifiedMetadata, clamp_unit


class CandidateScore(BaseModel):
    quality: float
    strength: float
    confidence: float
    tag_quality_bonus: float = 0.0


def tag_quality_bonus(shared_tag_count: int, config: ScoringConfig) -> float:
    """Reward sharing more than one tag, with diminishing returns up to a cap."""
    if shared_tag_count > 1:
        return min(config.tag_quality_cap, shared_tag_count * config.tag_quality_step)
    if shared_tag_count == 1:
        return config.tag_quality_single
    return 0.0


def component_confidence(components: Iterable[float]) -> float:
    """Confidence of a blended score from how well its components agree.

    Averages the agreement, 1 - 2 * variance floored at 0, with the strongest component.
    """
    values = np.array([clamp_unit(value) for value in components], dtype=float)
    if values.size == 0:
        return 0.0
    consistency = max(0.0, 1.0 - 2.0 * float(np.var(values)))
    return (consistency + float(values.max())) / 2


def score_candidate(candidate: Candidate, config: ScoringConfig | None = None) -> CandidateScore:
    """Calculate quality, strength and confidence of a candidate.

    Args:
        candidate: Candidate carrying the raw signals of its strategy
        config: Scoring configuration with per-strategy weights

    Returns:
        CandidateScore with every value clamped to [0, 1]
    """
    config = config or ScoringConfig()
    weights = config.weights_for(candidate.type)
    bonus = tag_quality_bonus(candidate.shared_tag_count, config)
    similarity = clamp_unit(candidate.similarity)
    content_similarity = clamp_unit(candidate.content_similarity)

    quality = clamp_unit(
        weights.similarity * similarity
        + weights.content * content_similarity
        + weights.temporal * clamp_unit(candidate.temporal_bonus)
        + weights.tag_quality * bonus
    )
    strength = clamp_unit(min(config.max_strength, quality))
    confidence = clamp_unit(
        min(
            config.max_confidence,
            similarity + content_similarity * config.confidence_content_weight,
        )
    )
    if isinstance(candidate.metadata, UnifiedMetadata) and candidate.metadata.components:
        confidence = clamp_unit(
            min(
                config.max_confidence,
                component_confidence(candidate.metadata.components.values()),
            )
        )
    return CandidateScore(
        quality=quality, strength=strength, confidence=confidence, tag_quality_bonus=bonus
    )


def apply_score(candidate: Candidate, config: ScoringConfig | None = None) -> Candidate:
    """Return a copy of the candidate with its score filled in."""
    score = score_candidate(candidate, config)
    return candidate.model_copy(
        update={
            "quality": score.quality,
            "strength": score.strength,
            "confidence": score.confidence,
        }
    )
