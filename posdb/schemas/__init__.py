from .category import CategoryCreate
from .common import CreateSchema, Money, quantize_money
from .inventory import InventoryCreate, StockMovementCreate
from .order import CustomerCreate, OrderCreate, OrderItemCreate
from .product import ProductCreate, ProductVariantCreate
from .user import UserCreate

__all__ = [
    # common
    "CreateSchema",
    "Money",
    "quantize_money",
    # user
    "UserCreate",
    # catalog
    "CategoryCreate",
    "ProductCreate",
    "ProductVariantCreate",
    # inventory
    "InventoryCreate",
    "StockMovementCreate",
    # orders
    "CustomerCreate",
    "OrderCreate",
    "OrderItemCreate",
]
