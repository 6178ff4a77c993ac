"""Relationship domain models."""

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union, get_args
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

RelationType = Literal[
    "manual",
    "inferred_tag",
    "inferred_content",
    "inferred_temporal",
    "inferred_workflow",
    "unified",
]

RELATION_TYPES: tuple[str, ...] = get_args(RelationType)

# Type names written by earlier versions of the board store
LEGACY_TYPE_ALIASES = {
    "tag_similarity": "inferred_tag",
    "tagSimilarity": "inferred_tag",
    "inferredTag": "inferred_tag",
    "derived": "inferred_workflow",
    "inferredWorkflow": "inferred_workflow",
    "semantic": "inferred_content",
    "ai": "inferred_content",
    "inferredContent": "inferred_content",
    "inferredTemporal": "inferred_temporal",
}

PairKey = tuple[str, str]


def pair_key(first_id: str, second_id: str) -> PairKey:
    """Order-independent key for an unordered pair of item ids."""
    return (first_id, second_id) if first_id <= second_id else (second_id, first_id)


def clamp_unit(value: float | None) -> float:
    """Clamp a score to [0, 1], mapping None and NaN to 0."""
    if value is None or math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


def normalize_relation_type(value: Any) -> Any:
    if isinstance(value, str):
        return LEGACY_TYPE_ALIASES.get(value, value)
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TagMetadata(BaseModel):
    """Explanation fields of a tag-similarity relationship."""

    type: Literal["inferred_tag"] = "inferred_tag"
    common_tags: list[str] = []
    source_tags: list[str] = []
    target_tags: list[str] = []
    jaccard: float = 0.0
    coverage: float = 0.0


class ContentMetadata(BaseModel):
    """Explanation fields of a text-overlap relationship."""

    type: Literal["inferred_content"] = "inferred_content"
    shared_words: list[str] = []
    union_size: int = 0
    jaccard: float = 0.0


class TemporalMetadata(BaseModel):
    """Explanation fields of a creation-time proximity relationship."""

    type: Literal["inferred_temporal"] = "inferred_temporal"
    seconds_apart: float = 0.0
    window_seconds: float = 0.0
    source_type: str = ""
    target_type: str = ""


class WorkflowMetadata(BaseModel):
    """Explanation fields of a type-workflow relationship."""

    type: Literal["inferred_workflow"] = "inferred_workflow"
    source_type: str = ""
    target_type: str = ""
    title_similarity: float = 0.0
    body_similarity: float = 0.0
    workflow_bonus: float = 0.0


class ManualMetadata(BaseModel):
    type: Literal["manual"] = "manual"
    note: str = ""


class UnifiedMetadata(BaseModel):
    type: Literal["unified"] = "unified"
    components: dict[str, float] = {}


RelationshipMetadata = Annotated[
    Union[
        TagMetadata,
        ContentMetadata,
        TemporalMetadata,
        WorkflowMetadata,
        ManualMetadata,
        UnifiedMetadata,
    ],
    Field(discriminator="type"),
]


def _attach_metadata(data: Any) -> Any:
    """Normalize the relationship type and tag the metadata payload with it."""
    if not isinstance(data, dict):
        return data

    data = dict(data)
    relation_type = normalize_relation_type(data.get("type"))
    data["type"] = relation_type

    metadata = data.get("metadata")
    if metadata is None:
        data["metadata"] = {"type": relation_type}
    elif isinstance(metadata, dict):
        # legacy payloads carry untyped bags; extra keys are ignored by the variant
        data["metadata"] = {**metadata, "type": relation_type}
    return data


class Relationship(BaseModel):
    """A persisted, logically undirected link between two content items."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    source_id: str
    target_id: str
    type: RelationType
    strength: float = 1.0
    confidence: float = 1.0
    metadata: RelationshipMetadata
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="before")
    @classmethod
    def tag_metadata(cls, data: Any) -> Any:
        return _attach_metadata(data)

    @field_validator("strength", "confidence")
    @classmethod
    def clamp_scores(cls, value: float) -> float:
        return clamp_unit(value)

    @model_validator(mode="after")
    def check_metadata_type(self) -> "Relationship":
        if self.metadata.type != self.type:
            raise ValueError(
                f"metadata of type {self.metadata.type!r} does not match relationship "
                f"type {self.type!r}"
            )
        return self

    @property
    def pair_key(self) -> PairKey:
        return pair_key(self.source_id, self.target_id)


class Candidate(BaseModel):
    """A proposed, not yet persisted relationship produced by one strategy.

    Raw signals are filled in by the generator; quality, strength and
    confidence are filled in by the scorer.
    """

    source_id: str
    target_id: str
    type: RelationType
    similarity: float
    content_similarity: float = 0.0
    temporal_bonus: float = 0.0
    shared_tag_count: int = 0
    explanation: str = ""
    metadata: RelationshipMetadata
    quality: float = 0.0
    strength: float = 0.0
    confidence: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def tag_metadata(cls, data: Any) -> Any:
        return _attach_metadata(data)

    @property
    def pair_key(self) -> PairKey:
        return pair_key(self.source_id, self.target_id)

    def to_relationship(self) -> Relationship:
        """Create the relationship to persist for this candidate."""
        return Relationship(
            source_id=self.source_id,
            target_id=self.target_id,
            type=self.type,
            strength=self.strength,
            confidence=self.confidence,
            metadata=self.metadata,
        )
