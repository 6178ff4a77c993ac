"""Tests for candidate generation."""

from datetime import datetime, timedelta, timezone

import pytest

from cardgraph.config import ScoringConfig
from cardgraph.domain.item import ContentItem
from cardgraph.domain.relationships import UnifiedMetadata, pair_key
from cardgraph.inference.candidates import (
    generate_candidates,
    observed_time_span,
    tag_similarity,
    temporal_bonus,
    unified_components,
)

BASE = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_item(item_id: str, **fields) -> ContentItem:
    fields.setdefault("created_at", BASE)
    return ContentItem(id=item_id, **fields)


def test_tag_similarity_blends_jaccard_and_coverage() -> None:
    """Test the tag similarity of {ux, design, research} and {ux, design}."""
    jaccard_index, coverage, similarity = tag_similarity(
        {"ux", "design", "research"}, {"ux", "design"}
    )

    assert jaccard_index == pytest.approx(2 / 3)
    assert coverage == pytest.approx(5 / 6)
    assert similarity == pytest.approx(0.7333, abs=1e-3)


def test_tag_similarity_with_empty_tags() -> None:
    assert tag_similarity(set(), {"ux"}) == (0.0, 0.0, 0.0)


def test_shared_tags_produce_tag_candidate() -> None:
    items = [
        make_item("a", title="Research plan", tags=["ux", "design", "research"]),
        make_item("b", title="Review meeting", tags=["ux", "design"], created_at=BASE + timedelta(hours=1)),
    ]

    candidates = generate_candidates(items)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.type == "inferred_tag"
    assert (candidate.source_id, candidate.target_id) == ("a", "b")
    assert candidate.similarity == pytest.approx(0.7333, abs=1e-3)
    assert candidate.explanation == "shared tags: ux, design (2)"
    assert candidate.metadata.common_tags == ["ux", "design"]
    assert candidate.shared_tag_count == 2


def test_existing_pairs_are_skipped() -> None:
    """Test that pairs with a persisted relationship are never proposed again."""
    items = [
        make_item("a", tags=["ux", "design"]),
        make_item("b", tags=["ux", "design"]),
    ]

    assert generate_candidates(items, existing_pairs={pair_key("b", "a")}) == []


def test_fewer_than_two_items_yield_nothing() -> None:
    assert generate_candidates([]) == []
    assert generate_candidates([make_item("a", tags=["ux"])]) == []


def test_pair_is_proposed_by_first_matching_strategy_only() -> None:
    """Test that a pair matching several strategies yields a single candidate."""
    items = [
        make_item("a", title="onboarding signup flow friction", tags=["ux"]),
        make_item("b", title="onboarding signup flow issues", tags=["ux"]),
    ]

    default_order = generate_candidates(items)
    content_first = generate_candidates(
        items, config=ScoringConfig(strategies=["content", "tag"])
    )

    assert [c.type for c in default_order] == ["inferred_tag"]
    assert [c.type for c in content_first] == ["inferred_content"]
    assert content_first[0].similarity == pytest.approx(3 / 5)
    assert content_first[0].metadata.shared_words == ["flow", "onboarding", "signup"]


def test_workflow_candidate_points_along_workflow() -> None:
    """Test that a question and an insight with similar titles are linked question to insight."""
    items = [
        make_item("insight", title="Users churn after trial ends", type="insight"),
        make_item("question", title="Why users churn after trial", type="question"),
    ]

    candidates = generate_candidates(items, config=ScoringConfig(strategies=["workflow"]))

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.type == "inferred_workflow"
    assert candidate.source_id == "question"
    assert candidate.target_id == "insight"
    # title overlap 4/6 weighted 0.6, plus the workflow bonus
    assert candidate.similarity == pytest.approx(0.6 * 4 / 6 + 0.1)
    assert candidate.metadata.source_type == "question"


def test_temporal_candidate_decays_with_distance() -> None:
    """Test that an insight written half an hour after a question is linked."""
    items = [
        make_item("q", title="Alpha", type="question", created_at=BASE),
        make_item("i", title="Bravo", type="insight", created_at=BASE + timedelta(minutes=30)),
    ]

    candidates = generate_candidates(items)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.type == "inferred_temporal"
    assert candidate.similarity == pytest.approx(0.6)
    assert candidate.metadata.seconds_apart == pytest.approx(1800)


def test_temporal_candidate_requires_workflow_order() -> None:
    """Test that an insight written before the question is not linked by time."""
    items = [
        make_item("q", title="Alpha", type="question", created_at=BASE + timedelta(minutes=30)),
        make_item("i", title="Bravo", type="insight", created_at=BASE),
    ]

    assert generate_candidates(items, config=ScoringConfig(strategies=["temporal"])) == []


def test_identical_timestamps_use_temporal_fallback() -> None:
    """Test that a zero observed time span gives the fallback bonus instead of dividing by zero."""
    config = ScoringConfig()
    first = make_item("a", tags=["ux"])
    second = make_item("b", tags=["ux"])

    assert observed_time_span([first, second]) == 0.0
    assert temporal_bonus(first, second, 0.0, config) == config.temporal_fallback

    candidates = generate_candidates([first, second], config=config)
    assert candidates[0].temporal_bonus == config.temporal_fallback


def test_temporal_bonus_scales_with_span() -> None:
    config = ScoringConfig()
    first = make_item("a", created_at=BASE)
    second = make_item("b", created_at=BASE + timedelta(hours=1))

    assert temporal_bonus(first, second, 4 * 3600, config) == pytest.approx(0.75 * 0.2)
    assert temporal_bonus(first, second, 3600, config) == 0.0


def test_generation_is_deterministic() -> None:
    items = [
        make_item("a", title="signup flow", tags=["ux", "research"], type="question"),
        make_item("b", title="signup flow broken", tags=["ux"], type="insight"),
        make_item("c", title="fix signup flow", tags=["research"], type="action"),
    ]

    first = generate_candidates(items)
    second = generate_candidates(items)

    assert [c.model_dump() for c in first] == [c.model_dump() for c in second]
    assert len({c.pair_key for c in first}) == len(first)


def matching_insights() -> list[ContentItem]:
    fields = {
        "title": "Checkout button is hidden",
        "body": "Users cannot find the checkout button on mobile",
        "tags": ["ux", "research"],
        "type": "insight",
    }
    return [
        make_item("u1", **fields),
        make_item("u2", created_at=BASE + timedelta(minutes=10), **fields),
    ]


def test_unified_components_of_matching_items() -> None:
    """Test the four unified components of two matching insights ten minutes apart."""
    first, second = matching_insights()

    components = unified_components(first, second, ScoringConfig())

    assert components["semantic"] == pytest.approx(1.0)
    assert components["structural"] == pytest.approx(1.0)
    assert components["contextual"] == pytest.approx(0.4)
    assert components["content"] == pytest.approx(1.0)


def test_unified_contextual_component_decays_by_day() -> None:
    first = make_item("a", title="Alpha", type="insight")
    same_day = make_item("b", title="Beta", type="question", created_at=BASE + timedelta(hours=5))
    later = make_item("c", title="Gamma", type="question", created_at=BASE + timedelta(days=2))

    assert unified_components(first, same_day, ScoringConfig())["contextual"] == pytest.approx(0.2)
    assert unified_components(first, later, ScoringConfig())["contextual"] == 0.0
    assert unified_components(first, same_day, ScoringConfig())["structural"] == 0.0


def test_unified_strategy_blends_components() -> None:
    """Test that the unified strategy weights semantic, structural, contextual and content."""
    config = ScoringConfig(strategies=["unified"])

    candidates = generate_candidates(matching_insights(), config=config)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.type == "unified"
    assert (candidate.source_id, candidate.target_id) == ("u1", "u2")
    assert candidate.similarity == pytest.approx(0.4 + 0.3 + 0.1 * 0.4 + 0.2)
    assert isinstance(candidate.metadata, UnifiedMetadata)
    assert set(candidate.metadata.components) == {"semantic", "structural", "contextual", "content"}


def test_unified_strategy_skips_unrelated_items() -> None:
    items = [
        make_item(
            "t1",
            title="Pricing page",
            body="Plans are hard to compare",
            tags=["pricing"],
            type="theme",
            created_at=BASE + timedelta(days=3),
        ),
        make_item(
            "n1",
            title="Interview notes",
            body="Raw transcript excerpt",
            tags=["interview"],
            type="inbox",
        ),
    ]

    assert generate_candidates(items, config=ScoringConfig(strategies=["unified"])) == []
