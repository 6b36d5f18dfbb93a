"""Closed enumerations shared by the ORM models and the boundary schemas."""

from enum import StrEnum

from sqlalchemy import Enum


class Role(StrEnum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class OrderStatus(StrEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(StrEnum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class MovementType(StrEnum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"
    RESERVE = "RESERVE"
    RELEASE = "RELEASE"
    SALE = "SALE"


def db_enum(enum_cls: type[StrEnum], name: str) -> Enum:
    """Return a SQLAlchemy ``Enum`` column type storing the member values.

    ``validate_strings`` makes SQLAlchemy reject unknown strings before they
    reach the driver; ``create_constraint`` adds a CHECK on backends without
    native enum types.
    """
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
        create_constraint=True,
    )
