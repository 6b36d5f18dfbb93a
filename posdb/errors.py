"""Error taxonomy raised across the storage boundary.

Every error carries the entity (model class name) and, where one can be
identified, the offending field so callers can report precisely what was
rejected.  None of these are retried automatically.
"""


class PosDBError(Exception):
    """Base class for all POSdb errors."""


class UniqueConstraintViolation(PosDBError):
    """A create attempted to reuse a value that must be unique."""

    def __init__(self, entity: str, field: str | None) -> None:
        self.entity = entity
        self.field = field
        super().__init__(f"{entity}.{field or '?'} must be unique")


class ForeignKeyViolation(PosDBError):
    """A write referenced a missing row, or a delete was restricted by a reference."""

    def __init__(self, entity: str, field: str | None, detail: str | None = None) -> None:
        self.entity = entity
        self.field = field
        self.detail = detail
        message = f"{entity}.{field or '?'} references a missing or protected row"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ValidationError(PosDBError):
    """A value falls outside an enum's closed set or a field's declared type/range."""

    def __init__(self, entity: str, field: str | None, reason: str) -> None:
        self.entity = entity
        self.field = field
        self.reason = reason
        super().__init__(f"{entity}.{field or '?'}: {reason}")


class ConnectivityError(PosDBError):
    """The database could not be reached."""


class ImmutableRecordError(PosDBError):
    """An append-only record was updated or deleted."""

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} rows are append-only")
