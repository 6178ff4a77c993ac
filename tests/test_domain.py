"""Tests for the content item and relationship models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from cardgraph.domain.item import ContentItem
from cardgraph.domain.relationships import (
    Candidate,
    ManualMetadata,
    Relationship,
    TagMetadata,
    clamp_unit,
    pair_key,
)


def test_pair_key_is_order_independent() -> None:
    """Test that a pair key does not depend on the argument order."""
    assert pair_key("a", "b") == pair_key("b", "a") == ("a", "b")

    forward = Relationship(source_id="x", target_id="y", type="manual")
    backward = Relationship(source_id="y", target_id="x", type="manual")
    assert forward.pair_key == backward.pair_key


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 0.5), (1.7, 1.0), (-0.2, 0.0), (float("nan"), 0.0), (None, 0.0)],
)
def test_clamp_unit(value, expected) -> None:
    assert clamp_unit(value) == expected


def test_relationship_scores_are_clamped() -> None:
    """Test that strength and confidence always end up in [0, 1]."""
    relationship = Relationship(
        source_id="a", target_id="b", type="manual", strength=1.4, confidence=float("nan")
    )

    assert relationship.strength == 1.0
    assert relationship.confidence == 0.0


def test_missing_metadata_gets_variant_of_type() -> None:
    relationship = Relationship(source_id="a", target_id="b", type="manual")

    assert isinstance(relationship.metadata, ManualMetadata)
    assert relationship.metadata.type == "manual"


def test_legacy_type_names_are_migrated() -> None:
    """Test that relationships written with old type names load as current types."""
    relationship = Relationship.model_validate(
        {
            "id": "legacy",
            "source_id": "a",
            "target_id": "b",
            "type": "tag_similarity",
            "strength": 0.6,
            "metadata": {"common_tags": ["ux"], "algorithm": "v1"},
        }
    )

    assert relationship.type == "inferred_tag"
    assert isinstance(relationship.metadata, TagMetadata)
    assert relationship.metadata.common_tags == ["ux"]

    derived = Relationship(source_id="a", target_id="b", type="derived")
    assert derived.type == "inferred_workflow"


def test_metadata_must_match_relationship_type() -> None:
    with pytest.raises(ValidationError):
        Relationship(source_id="a", target_id="b", type="manual", metadata=TagMetadata())


def test_unknown_relationship_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Relationship(source_id="a", target_id="b", type="guessed")


def test_content_item_normalizes_type_and_is_frozen() -> None:
    """Test that item types are normalized and items cannot be changed."""
    item = ContentItem(
        id="c1",
        title="Title",
        body="Body",
        tags=["ux", "", "ux"],
        type=" Insight ",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    assert item.type == "insight"
    assert item.tag_set == {"ux"}
    assert item.text == "Title Body"
    with pytest.raises(ValidationError):
        item.title = "Changed"


def test_candidate_to_relationship_carries_scores() -> None:
    candidate = Candidate(
        source_id="a",
        target_id="b",
        type="inferred_tag",
        similarity=0.7,
        metadata=TagMetadata(common_tags=["ux"]),
        quality=0.6,
        strength=0.6,
        confidence=0.7,
    )

    first = candidate.to_relationship()
    second = candidate.to_relationship()

    assert first.source_id == "a"
    assert first.target_id == "b"
    assert first.type == "inferred_tag"
    assert first.strength == 0.6
    assert first.confidence == 0.7
    assert first.metadata.common_tags == ["ux"]
    assert first.id != second.id
