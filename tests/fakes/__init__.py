from tests.fakes.fake_item_store import FakeItemStore
from tests.fakes.fake_relationship_store import FakeRelationshipStore

__all__ = ["FakeItemStore", "FakeRelationshipStore"]
