from posdb.services.auth import hash_password, verify_password
from posdb.services.categories import ancestor_ids, children_of, set_parent
from posdb.services.inventory import (
    apply_movement,
    is_low_stock,
    on_hand_from_movements,
    plan_movement,
)
from posdb.services.orders import (
    OrderLine,
    OrderTotals,
    advance_payment_status,
    advance_status,
    check_payment_transition,
    check_status_transition,
    compute_totals,
    create_order,
    generate_order_number,
    line_total,
)

__all__ = [
    # auth
    "hash_password",
    "verify_password",
    # categories
    "ancestor_ids",
    "children_of",
    "set_parent",
    # inventory
    "apply_movement",
    "is_low_stock",
    "on_hand_from_movements",
    "plan_movement",
    # orders
    "OrderLine",
    "OrderTotals",
    "advance_payment_status",
    "advance_status",
    "check_payment_transition",
    "check_status_transition",
    "compute_totals",
    "create_order",
    "generate_order_number",
    "line_total",
]
