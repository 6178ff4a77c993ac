"""Content item domain models."""

from datetime import datetime

from pydantic import BaseModel, field_validator


class ContentItem(BaseModel):
    """Represents a card on a board, as supplied by the item store.

    Attributes:
        id: Opaque identifier of the item
        title: Short card title
        body: Free text of the card
        tags: Tags attached to the card, order is not significant
        type: Category label of the card (question, insight, action, ...)
        created_at: Creation timestamp
    """

    model_config = {"frozen": True}

    id: str
    title: str = ""
    body: str = ""
    tags: list[str] = []
    type: str = ""
    created_at: datetime

    @field_validator("type")
    @classmethod
    def normalize_type(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def tag_set(self) -> set[str]:
        return {tag for tag in self.tags if tag}

    @property
    def text(self) -> str:
        return f"{self.title} {self.body}".strip()
