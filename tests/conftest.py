import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from cardgraph.api import create_app
from cardgraph.config import InferenceConfig
from cardgraph.domain.item import ContentItem
from cardgraph.domain.relationships import Relationship
from tests.fakes import FakeItemStore, FakeRelationshipStore


@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def board_items(base_time: datetime) -> list[ContentItem]:
    """A small research board with one clear tag and workflow cluster."""
    return [
        ContentItem(
            id="q1",
            title="Why do users abandon onboarding",
            body="Many users drop out during the signup flow",
            tags=["ux", "onboarding", "research"],
            type="question",
            created_at=base_time,
        ),
        ContentItem(
            id="i1",
            title="The signup flow asks for too much",
            body="Users abandon onboarding at the company details step",
            tags=["ux", "onboarding"],
            type="insight",
            created_at=base_time + timedelta(minutes=20),
        ),
        ContentItem(
            id="a1",
            title="Shorten the signup flow",
            body="Move company details to a later step",
            tags=["onboarding"],
            type="action",
            created_at=base_time + timedelta(minutes=40),
        ),
        ContentItem(
            id="t1",
            title="Pricing confusion",
            body="Plans are hard to compare",
            tags=["pricing"],
            type="theme",
            created_at=base_time + timedelta(days=2),
        ),
        ContentItem(
            id="n1",
            title="Interview notes from the Tuesday session",
            body="Raw transcript excerpt",
            tags=["interview"],
            type="inbox",
            created_at=base_time + timedelta(days=3),
        ),
        ContentItem(
            id="i2",
            title="Pricing page lacks a comparison table",
            body="Participants could not tell the plans apart",
            tags=["pricing", "research"],
            type="insight",
            created_at=base_time + timedelta(days=3, minutes=5),
        ),
    ]


@pytest.fixture
def duplicate_relationships() -> list[Relationship]:
    """Three relationships on the pair (c1, c2) and one on (c3, c4)."""
    return [
        Relationship(
            id="rel-tag",
            source_id="c1",
            target_id="c2",
            type="inferred_tag",
            strength=0.8,
            confidence=0.9,
        ),
        Relationship(
            id="rel-workflow",
            source_id="c2",
            target_id="c1",
            type="inferred_workflow",
            strength=0.7,
            confidence=0.8,
        ),
        Relationship(
            id="rel-manual",
            source_id="c1",
            target_id="c2",
            type="manual",
            strength=0.4,
            confidence=1.0,
        ),
        Relationship(
            id="rel-content",
            source_id="c3",
            target_id="c4",
            type="inferred_content",
            strength=0.6,
            confidence=0.5,
        ),
    ]


@pytest.fixture
def fake_item_store(board_items: list[ContentItem]) -> FakeItemStore:
    return FakeItemStore({"board-1": board_items, "tiny": board_items[:1]})


@pytest.fixture
def fake_relationship_store(
    duplicate_relationships: list[Relationship],
) -> FakeRelationshipStore:
    return FakeRelationshipStore({"board-1": duplicate_relationships})


@pytest.fixture
def test_client(
    fake_item_store: FakeItemStore, fake_relationship_store: FakeRelationshipStore
) -> TestClient:
    """Create test client with fake implementations."""
    app = create_app(
        item_store=fake_item_store,
        relationship_store=fake_relationship_store,
        config=InferenceConfig(),
    )
    return TestClient(app)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Temporary directory for store files."""
    with tempfile.TemporaryDirectory() as directory:
        yield Path(directory)
