from posdb.models.category import Category
from posdb.models.enums import MovementType, OrderStatus, PaymentStatus, Role
from posdb.models.inventory import Inventory, StockMovement
from posdb.models.order import Customer, Order, OrderItem
from posdb.models.product import Product, ProductVariant
from posdb.models.user import User

__all__ = [
    "Category",
    "Customer",
    "Inventory",
    "MovementType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Product",
    "ProductVariant",
    "Role",
    "StockMovement",
    "User",
]
