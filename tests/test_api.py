from fastapi.testclient import TestClient

from cardgraph.api import create_app
from cardgraph.config import InferenceConfig
from tests.fakes import FakeItemStore, FakeRelationshipStore


def test_health_check(test_client: TestClient) -> None:
    response = test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_list_relationships(test_client: TestClient) -> None:
    """Test that relationships of a scope are listed with their metadata."""
    response = test_client.get("/api/scopes/board-1/relationships")
    assert response.status_code == 200

    relationships = response.json()
    assert [r["id"] for r in relationships] == [
        "rel-tag",
        "rel-workflow",
        "rel-manual",
        "rel-content",
    ]
    assert relationships[0]["metadata"]["type"] == "inferred_tag"


def test_generate_relationships(test_client: TestClient) -> None:
    """Test that the generate endpoint runs a pass and returns the created relationships."""
    response = test_client.post("/api/scopes/board-1/relationships/generate")
    assert response.status_code == 200

    result = response.json()
    assert result["status"] == "ok"
    assert len(result["created"]) == 1

    listed = test_client.get("/api/scopes/board-1/relationships").json()
    assert len(listed) == 5


def test_generate_with_unknown_mode(test_client: TestClient) -> None:
    response = test_client.post("/api/scopes/board-1/relationships/generate?mode=reckless")
    assert response.status_code == 422


def test_generate_for_tiny_scope(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/scopes/tiny/relationships/generate", params={"mode": "conservative"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "insufficient_input"


def test_deduplicate_relationships(test_client: TestClient) -> None:
    """Test that deduplication keeps the manual relationship by default."""
    response = test_client.post("/api/scopes/board-1/relationships/deduplicate")
    assert response.status_code == 200

    report = response.json()
    assert report["confirmed"] == ["rel-tag", "rel-workflow"]
    assert report["metrics"]["relationships_deleted"] == 2


def test_deduplicate_with_custom_strategy(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/scopes/board-1/relationships/deduplicate",
        json={"priority": ["inferred_tag", "manual"], "preserve_manual": False},
    )
    assert response.status_code == 200
    assert response.json()["confirmed"] == ["rel-workflow", "rel-manual"]


def test_analysis_and_quality_reports(test_client: TestClient) -> None:
    analysis = test_client.get("/api/scopes/board-1/relationships/analysis")
    assert analysis.status_code == 200
    assert analysis.json()["duplicate_pairs"] == 1

    quality = test_client.get("/api/scopes/board-1/relationships/quality")
    assert quality.status_code == 200
    assert quality.json()["item_count"] == 6


def test_quality_report_for_unknown_scope(test_client: TestClient) -> None:
    response = test_client.get("/api/scopes/unknown/relationships/quality")
    assert response.status_code == 404


def test_bulk_delete(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/relationships/bulk-delete",
        json={"type": "derived", "strength_range": {"max": 0.75}},
    )
    assert response.status_code == 200
    assert response.json() == {
        "requested": 1,
        "confirmed": 1,
        "deleted_ids": ["rel-workflow"],
        "errors": [],
    }


def test_bulk_delete_rejects_empty_filter(test_client: TestClient) -> None:
    response = test_client.post("/api/relationships/bulk-delete", json={})
    assert response.status_code == 422


def test_store_failure_returns_503(fake_item_store: FakeItemStore) -> None:
    """Test that store failures surface as service unavailable."""
    app = create_app(
        item_store=fake_item_store,
        relationship_store=FakeRelationshipStore(fail_on_read=True),
        config=InferenceConfig(),
    )
    client = TestClient(app)

    assert client.get("/api/scopes/board-1/relationships").status_code == 503
    assert client.post("/api/scopes/board-1/relationships/generate").status_code == 503
    assert client.post("/api/scopes/board-1/relationships/deduplicate").status_code == 503
    assert (
        client.post("/api/relationships/bulk-delete", json={"all": True}).status_code == 503
    )
