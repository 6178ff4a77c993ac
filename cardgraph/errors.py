"""Exceptions raised by cardgraph."""


class CardgraphError(Exception):
    """Base class for cardgraph errors."""


class PersistenceError(CardgraphError):
    """Raised when an item or relationship store rejects a read, write or delete."""

    def __init__(self, message: str, *, operation: str = "", scope: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.scope = scope
