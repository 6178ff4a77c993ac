import sys

from loguru import logger

from cardgraph.api import create_app
from cardgraph.config import settings
from cardgraph.item_store.local import LocalItemStore
from cardgraph.relationship_store.local import LocalRelationshipStore

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(
    f"Loading stores from {settings.item_store_path} and {settings.relationship_store_path} "
    f"(analysis mode: {settings.analysis_mode})"
)
item_store = LocalItemStore(filepath=settings.item_store_path)
relationship_store = LocalRelationshipStore(filepath=settings.relationship_store_path)
app = create_app(
    item_store=item_store,
    relationship_store=relationship_store,
)
