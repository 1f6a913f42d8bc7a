from magnetcart.db.cart_store import SqlCartStore
from magnetcart.db.database import get_session, init_db
from magnetcart.db.operations import (
    ORDER_STATUSES,
    create_order,
    delete_cart_snapshot,
    get_cart_snapshot,
    get_order,
    get_orders_for_user,
    order_items_for,
    save_cart_snapshot,
    update_order_status,
)

__all__ = [
    "ORDER_STATUSES",
    "SqlCartStore",
    "create_order",
    "delete_cart_snapshot",
    "get_cart_snapshot",
    "get_order",
    "get_orders_for_user",
    "get_session",
    "init_db",
    "order_items_for",
    "save_cart_snapshot",
    "update_order_status",
]
