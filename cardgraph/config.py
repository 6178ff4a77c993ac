from typing import Literal

from pydantic import BaseModel, field_validator, model_validator
from pydantic_settings import BaseSettings

from cardgraph.domain.relationships import RelationType, normalize_relation_type

StrategyName = Literal["tag", "workflow", "content", "temporal", "unified"]
AnalysisMode = Literal["conservative", "balanced", "aggressive"]


class StrategyWeights(BaseModel):
    """Weights folding a candidate's raw signals into one quality score."""

    similarity: float
    content: float
    temporal: float
    tag_quality: float

    @model_validator(mode="after")
    def check_total(self) -> "StrategyWeights":
        total = self.similarity + self.content + self.temporal + self.tag_quality
        if total > 1.0 + 1e-9:
            raise ValueError(f"Strategy weights must sum to at most 1.0, got {total:.3f}")
        return self


class UnifiedWeights(BaseModel):
    """Weights blending the four components of a unified similarity."""

    semantic: float = 0.4
    structural: float = 0.3
    contextual: float = 0.1
    content: float = 0.2


class ScoringConfig(BaseModel):
    """Tunables of candidate generation and quality scoring."""

    strategies: list[StrategyName] = ["tag", "workflow", "content", "temporal"]

    # tag similarity
    tag_jaccard_weight: float = 0.6
    tag_coverage_weight: float = 0.4
    tag_min_similarity: float = 0.4
    min_common_tags: int = 1

    # text overlap
    min_word_length: int = 3
    content_min_similarity: float = 0.3

    # creation-time proximity
    temporal_weight: float = 0.2
    temporal_fallback: float = 0.1
    temporal_window_seconds: float = 3600.0
    temporal_peak_similarity: float = 0.8
    temporal_floor_similarity: float = 0.4

    # analytic workflow between card types, (from_type, to_type)
    workflow_pairs: list[tuple[str, str]] = [
        ("question", "insight"),
        ("insight", "action"),
        ("insight", "theme"),
        ("theme", "action"),
        ("question", "theme"),
        ("inbox", "insight"),
        ("inbox", "action"),
    ]
    workflow_title_weight: float = 0.6
    workflow_body_weight: float = 0.4
    workflow_bonus: float = 0.1
    workflow_min_similarity: float = 0.25

    # blended multi-signal similarity
    unified_weights: UnifiedWeights = UnifiedWeights()
    unified_tag_weight: float = 0.7
    unified_type_weight: float = 0.3
    unified_near_seconds: float = 3600.0
    unified_near_bonus: float = 0.4
    unified_day_seconds: float = 86400.0
    unified_day_bonus: float = 0.2
    unified_title_weight: float = 0.6
    unified_body_weight: float = 0.4
    unified_min_similarity: float = 0.35

    # shared tag bonus
    tag_quality_step: float = 0.1
    tag_quality_cap: float = 0.2
    tag_quality_single: float = 0.05

    max_strength: float = 0.9
    max_confidence: float = 0.95
    confidence_content_weight: float = 0.3

    weights: dict[RelationType, StrategyWeights] = {
        "inferred_tag": StrategyWeights(similarity=0.5, content=0.25, temporal=0.15, tag_quality=0.1),
        "inferred_workflow": StrategyWeights(
            similarity=0.6, content=0.2, temporal=0.15, tag_quality=0.05
        ),
        "inferred_content": StrategyWeights(
            similarity=0.7, content=0.0, temporal=0.2, tag_quality=0.1
        ),
        "inferred_temporal": StrategyWeights(
            similarity=0.5, content=0.2, temporal=0.3, tag_quality=0.0
        ),
        "unified": StrategyWeights(similarity=0.7, content=0.1, temporal=0.1, tag_quality=0.1),
    }
    default_weights: StrategyWeights = StrategyWeights(
        similarity=0.6, content=0.2, temporal=0.1, tag_quality=0.1
    )

    @field_validator("workflow_pairs")
    @classmethod
    def normalize_workflow_pairs(cls, pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
        return [(first.strip().lower(), second.strip().lower()) for first, second in pairs]

    def weights_for(self, relation_type: str) -> StrategyWeights:
        return self.weights.get(relation_type, self.default_weights)


class SelectionConfig(BaseModel):
    """Bounds on how many candidates one generation pass persists."""

    max_pair_ratio: float = 0.08
    absolute_cap: int = 20
    min_guarantee: int = 3
    item_ratio: float = 0.4
    min_similarity: float = 0.25
    min_quality: float = 0.1


class DedupStrategy(BaseModel):
    """Policy for picking the relationship to keep among duplicates of one pair."""

    priority: list[RelationType] = [
        "manual",
        "unified",
        "inferred_workflow",
        "inferred_tag",
        "inferred_content",
        "inferred_temporal",
    ]
    quality_threshold: float = 0.5
    preserve_manual: bool = True

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value: list[str]) -> list[str]:
        return [normalize_relation_type(v) for v in value]


class InferenceConfig(BaseModel):
    scoring: ScoringConfig = ScoringConfig()
    selection: SelectionConfig = SelectionConfig()
    dedup: DedupStrategy = DedupStrategy()
    auto_deduplicate: bool = False

    @classmethod
    def for_mode(cls, mode: AnalysisMode, **overrides) -> "InferenceConfig":
        """Build the preset configuration for an analysis mode."""
        if mode == "conservative":
            config = cls(
                scoring=ScoringConfig(
                    tag_min_similarity=0.6,
                    min_common_tags=2,
                    content_min_similarity=0.4,
                    workflow_min_similarity=0.35,
                ),
                selection=SelectionConfig(absolute_cap=15, min_quality=0.3),
                dedup=DedupStrategy(quality_threshold=0.6),
            )
        elif mode == "aggressive":
            config = cls(
                scoring=ScoringConfig(
                    tag_min_similarity=0.3,
                    content_min_similarity=0.2,
                    workflow_min_similarity=0.2,
                    strategies=["tag", "workflow", "content", "temporal", "unified"],
                    unified_min_similarity=0.25,
                ),
                selection=SelectionConfig(max_pair_ratio=0.15, absolute_cap=50, min_quality=0.05),
                dedup=DedupStrategy(quality_threshold=0.3),
            )
        elif mode == "balanced":
            config = cls()
        else:
            raise ValueError(f"Unknown analysis mode: {mode}")
        return config.model_copy(update=overrides)


class Settings(BaseSettings):
    # Store settings
    item_store_path: str = "data/items.json"
    relationship_store_path: str = "data/relationships.json"

    # Inference settings
    analysis_mode: AnalysisMode = "balanced"
    auto_deduplicate: bool = False

    # Web server settings
    cors_origins: list[str] = ["*"]

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
