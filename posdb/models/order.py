import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Text, event, inspect
from sqlalchemy.orm import Mapped, mapped_column, relationship

from posdb.errors import ValidationError
from posdb.models.base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin
from posdb.models.enums import OrderStatus, PaymentStatus, db_enum

if TYPE_CHECKING:
    from posdb.models.product import Product
    from posdb.models.user import User

MONEY_FIELDS = ("subtotal", "discount", "tax", "total")


class Customer(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "customers"
    __table_args__ = (CheckConstraint("points >= 0", name="points_non_negative"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Orders outlive their customer; the database nulls the reference.
    orders: Mapped[list["Order"]] = relationship(
        "Order",
        back_populates="customer",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id!r} phone={self.phone!r}>"


class Order(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("subtotal >= 0", name="subtotal_non_negative"),
        CheckConstraint("discount >= 0", name="discount_non_negative"),
        CheckConstraint("tax >= 0", name="tax_non_negative"),
        CheckConstraint(
            "total = subtotal - discount + tax", name="total_matches_parts"
        ).ddl_if(dialect="postgresql"),
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_status_payment_status", "status", "payment_status"),
    )

    order_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        db_enum(OrderStatus, "order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        db_enum(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )
    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    customer: Mapped["Customer | None"] = relationship("Customer", back_populates="orders")
    user: Mapped["User"] = relationship("User", back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id!r} order_number={self.order_number!r} status={self.status!r}>"
        )


class OrderItem(UUIDMixin, Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint("discount >= 0", name="discount_non_negative"),
        CheckConstraint(
            "total = price * quantity - discount", name="total_matches_parts"
        ).ddl_if(dialect="postgresql"),
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="items")
    product: Mapped["Product"] = relationship("Product", back_populates="order_items")

    def __repr__(self) -> str:
        return f"<OrderItem id={self.id!r} product_id={self.product_id!r} quantity={self.quantity!r}>"


@event.listens_for(Order, "before_update")
def _freeze_completed_totals(mapper, connection, target: Order) -> None:
    state = inspect(target)
    status_history = state.attrs.status.history
    previous = status_history.deleted[0] if status_history.deleted else target.status
    if previous != OrderStatus.COMPLETED:
        return
    for field in MONEY_FIELDS:
        if getattr(state.attrs, field).history.has_changes():
            raise ValidationError("Order", field, "totals are immutable once COMPLETED")
