from fastapi import APIRouter, HTTPException
from loguru import logger

from cardgraph.config import AnalysisMode, DedupStrategy, InferenceConfig
from cardgraph.dedup.analysis import (
    DuplicationReport,
    QualityReport,
    analyze_duplication,
    build_quality_report,
)
from cardgraph.dedup.bulk import BulkDeleteFilter, BulkDeleteResult, BulkRelationOps
from cardgraph.dedup.service import DeduplicationReport, DeduplicationService
from cardgraph.domain.relationships import Relationship
from cardgraph.errors import PersistenceError
from cardgraph.inference.pipeline import GenerationResult, RelationshipInferencePipeline
from cardgraph.item_store.base import ItemStore
from cardgraph.relationship_store.base import RelationshipStore


def _persistence_unavailable(action: str, error: PersistenceError) -> HTTPException:
    logger.error(f"Store failure while {action}: {error}")
    return HTTPException(status_code=503, detail="Relationship storage unavailable")


def _create_list_endpoint(relationship_store: RelationshipStore):
    """Create the relationship listing endpoint handler."""

    async def list_relationships(scope: str) -> list[Relationship]:
        try:
            return relationship_store.get_relationships(scope)
        except PersistenceError as e:
            raise _persistence_unavailable(f"listing relationships of '{scope}'", e) from e

    return list_relationships


def _create_generate_endpoint(
    item_store: ItemStore, relationship_store: RelationshipStore, config: InferenceConfig
):
    """Create the relationship generation endpoint handler."""

    async def generate_relationships(
        scope: str, mode: AnalysisMode | None = None
    ) -> GenerationResult:
        run_config = config
        if mode is not None:
            run_config = InferenceConfig.for_mode(mode, auto_deduplicate=config.auto_deduplicate)

        pipeline = RelationshipInferencePipeline(
            item_store=item_store, relationship_store=relationship_store, config=run_config
        )
        try:
            result = pipeline.run(scope)
        except PersistenceError as e:
            raise _persistence_unavailable(f"generating relationships for '{scope}'", e) from e

        logger.info(
            f"Generation for '{scope}' finished with status {result.status}, "
            f"{len(result.created)} created"
        )
        return result

    return generate_relationships


def _create_deduplicate_endpoint(relationship_store: RelationshipStore, config: InferenceConfig):
    """Create the deduplication endpoint handler."""

    async def deduplicate_relationships(
        scope: str, strategy: DedupStrategy | None = None
    ) -> DeduplicationReport:
        service = DeduplicationService(relationship_store=relationship_store)
        try:
            report = service.deduplicate_scope(scope, strategy or config.dedup)
        except PersistenceError as e:
            raise _persistence_unavailable(f"deduplicating '{scope}'", e) from e

        if report.unconfirmed:
            logger.warning(
                f"{len(report.unconfirmed)} deletions in '{scope}' were not confirmed by the store"
            )
        for error in report.errors:
            logger.error(f"Deduplication of '{scope}': {error}")
        return report

    return deduplicate_relationships


def _create_analysis_endpoint(relationship_store: RelationshipStore):
    """Create the duplication analysis endpoint handler."""

    async def analyze_relationships(scope: str) -> DuplicationReport:
        try:
            relationships = relationship_store.get_relationships(scope)
        except PersistenceError as e:
            raise _persistence_unavailable(f"analyzing '{scope}'", e) from e
        return analyze_duplication(relationships)

    return analyze_relationships


def _create_quality_endpoint(item_store: ItemStore, relationship_store: RelationshipStore):
    """Create the quality report endpoint handler."""

    async def relationship_quality(scope: str) -> QualityReport:
        try:
            items = item_store.get_items(scope)
            relationships = relationship_store.get_relationships(scope)
        except PersistenceError as e:
            raise _persistence_unavailable(f"grading '{scope}'", e) from e

        if not items:
            logger.warning(f"Quality report requested for empty scope '{scope}'")
            raise HTTPException(status_code=404, detail="Scope has no items")
        return build_quality_report(len(items), relationships)

    return relationship_quality


def _create_bulk_delete_endpoint(relationship_store: RelationshipStore):
    """Create the bulk delete endpoint handler."""

    async def bulk_delete(delete_filter: BulkDeleteFilter) -> BulkDeleteResult:
        try:
            return BulkRelationOps(relationship_store).bulk_delete(delete_filter)
        except PersistenceError as e:
            raise _persistence_unavailable("reading relationships for bulk delete", e) from e

    return bulk_delete


def get_endpoints_router(
    *,
    item_store: ItemStore,
    relationship_store: RelationshipStore,
    config: InferenceConfig,
) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    router.get("/api/scopes/{scope}/relationships")(_create_list_endpoint(relationship_store))
    router.post("/api/scopes/{scope}/relationships/generate")(
        _create_generate_endpoint(item_store, relationship_store, config)
    )
    router.post("/api/scopes/{scope}/relationships/deduplicate")(
        _create_deduplicate_endpoint(relationship_store, config)
    )
    router.get("/api/scopes/{scope}/relationships/analysis")(
        _create_analysis_endpoint(relationship_store)
    )
    router.get("/api/scopes/{scope}/relationships/quality")(
        _create_quality_endpoint(item_store, relationship_store)
    )
    router.post("/api/relationships/bulk-delete")(_create_bulk_delete_endpoint(relationship_store))

    return router
