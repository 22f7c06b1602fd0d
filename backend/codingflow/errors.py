"""Error kinds raised by the CodingFlow data layer.

Every failed mutation leaves the store unchanged; callers get one of the
specific kinds below rather than a generic failure.
"""

from __future__ import annotations


class CodingFlowError(Exception):
    """Base class for all data-layer errors."""


class PersistenceError(CodingFlowError):
    """Underlying storage I/O or constraint failure. Never retried automatically."""


class DuplicateKeyError(PersistenceError):
    """Raised when inserting an entity whose id is already taken."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Duplicate {kind} id: {entity_id}")


class NotFoundError(CodingFlowError):
    """Raised when an operation references an entity id that does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class ValidationError(CodingFlowError):
    """Raised when a caller supplies an out-of-range or empty value."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid {field}: {message}")
