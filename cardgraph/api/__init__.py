from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardgraph.api.endpoints import get_endpoints_router
from cardgraph.config import InferenceConfig, settings
from cardgraph.item_store.base import ItemStore
from cardgraph.relationship_store.base import RelationshipStore


def create_app(
    *,
    item_store: ItemStore,
    relationship_store: RelationshipStore,
    config: InferenceConfig | None = None,
) -> FastAPI:
    """Create FastAPI app."""
    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    config = config or InferenceConfig.for_mode(
        settings.analysis_mode, auto_deduplicate=settings.auto_deduplicate
    )
    app.include_router(
        router=get_endpoints_router(
            item_store=item_store, relationship_store=relationship_store, config=config
        )
    )

    return app
