import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from posdb.errors import ImmutableRecordError
from posdb.models.base import Base, CreatedAtMixin, UUIDMixin
from posdb.models.enums import MovementType, db_enum

if TYPE_CHECKING:
    from posdb.models.product import Product


class Inventory(UUIDMixin, Base):
    __tablename__ = "inventories"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        CheckConstraint("reserved_qty >= 0", name="reserved_qty_non_negative"),
        CheckConstraint("reserved_qty <= quantity", name="reserved_within_quantity"),
        CheckConstraint("low_stock_threshold >= 0", name="low_stock_threshold_non_negative"),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reserved_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    product: Mapped["Product"] = relationship("Product", back_populates="inventory")

    @property
    def available_qty(self) -> int:
        return self.quantity - self.reserved_qty

    def __repr__(self) -> str:
        return (
            f"<Inventory id={self.id!r} product_id={self.product_id!r} "
            f"quantity={self.quantity!r} reserved_qty={self.reserved_qty!r}>"
        )


class StockMovement(UUIDMixin, CreatedAtMixin, Base):
    """Append-only log of every quantity change on an Inventory record."""

    __tablename__ = "stock_movements"
    __table_args__ = (Index("ix_stock_movements_created_at", "created_at"),)

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    type: Mapped[MovementType] = mapped_column(
        db_enum(MovementType, "movement_type"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_type: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_id: Mapped[str] = mapped_column(String(64), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    product: Mapped["Product"] = relationship("Product")

    def __repr__(self) -> str:
        return (
            f"<StockMovement id={self.id!r} type={self.type!r} quantity={self.quantity!r}>"
        )


@event.listens_for(StockMovement, "before_update")
def _refuse_movement_update(mapper, connection, target) -> None:
    raise ImmutableRecordError("StockMovement")


@event.listens_for(StockMovement, "before_delete")
def _refuse_movement_delete(mapper, connection, target) -> None:
    raise ImmutableRecordError("StockMovement")
