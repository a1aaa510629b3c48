"""Shopping cart package: models, stores, notifiers and manager facade."""
from .errors import (
    CartError,
    InstanceError,
    InvalidItemError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidRowIdError,
    ItemExistsError,
)
from .events import EventDispatcher, NullNotifier, RedisStreamNotifier
from .models import Cart, Row, RowOptions, generate_row_id
from .schemas import CartSummary, RowSummary
from .service import CartManager, DuplicatePolicy, get_cart_manager
from .store import MemoryStore, RedisStore

__all__ = [
    "Cart",
    "CartError",
    "CartManager",
    "CartSummary",
    "DuplicatePolicy",
    "EventDispatcher",
    "InstanceError",
    "InvalidItemError",
    "InvalidPriceError",
    "InvalidQuantityError",
    "InvalidRowIdError",
    "ItemExistsError",
    "MemoryStore",
    "NullNotifier",
    "RedisStore",
    "RedisStreamNotifier",
    "Row",
    "RowOptions",
    "RowSummary",
    "generate_row_id",
    "get_cart_manager",
]
