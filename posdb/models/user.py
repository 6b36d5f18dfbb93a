from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from posdb.models.base import Base, TimestampMixin, UUIDMixin
from posdb.models.enums import Role, db_enum

if TYPE_CHECKING:
    from posdb.models.order import Order


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(db_enum(Role, "role"), nullable=False, default=Role.STAFF)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    orders: Mapped[list["Order"]] = relationship(
        "Order",
        back_populates="user",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id!r} email={self.email!r}>"
