"""Cart manager service over a key-value store."""
import threading
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from . import config
from .config import Events
from .errors import (
    InstanceError,
    InvalidItemError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidRowIdError,
    ItemExistsError,
)
from .events import Notifier, NullNotifier
from .logging import get_logger, sanitize_id_for_logging
from .models import Cart, Row, generate_row_id
from .money import is_numeric, to_decimal, to_quantity
from .schemas import CartSummary
from .store import MemoryStore, RedisStore, Store

logger = get_logger(__name__)

REQUIRED_FIELDS = ("id", "quantity", "price")
DERIVED_FIELDS = ("rowid", "subtotal")

Item = Mapping[str, Any]


class DuplicatePolicy(str, Enum):
    """What ``add`` does when the derived row id is already in the cart."""
    MERGE = "merge"
    REJECT = "reject"


class InstanceLocks:
    """Re-entrant lock per store key, shared by every manager built from one root."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def __call__(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock


def _check_instance(name: Optional[str]) -> str:
    if not name or not isinstance(name, str) or not name.strip():
        raise InstanceError()
    return name


def _check_quantity(value: Any, allow_non_positive: bool = False) -> int:
    if not is_numeric(value):
        raise InvalidQuantityError()
    quantity = to_quantity(value)
    if quantity is None or (quantity < 1 and not allow_non_positive):
        raise InvalidQuantityError()
    return quantity


def _check_price(value: Any) -> Decimal:
    if not is_numeric(value):
        raise InvalidPriceError()
    price = to_decimal(value)
    if price < 0:
        raise InvalidPriceError()
    return price


def _check_item_id(value: Any) -> Union[str, int]:
    if isinstance(value, bool) or not isinstance(value, (str, int)) or value == "":
        raise InvalidItemError()
    return value


def _check_options(value: Any) -> dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidItemError("Item options must be a mapping")
    return dict(value)


def _check_derived(data: Mapping[str, Any]) -> None:
    derived = [key for key in DERIVED_FIELDS if key in data]
    if derived:
        raise InvalidItemError(f"Derived fields cannot be set: {', '.join(derived)}")


class CartManager:
    """
    Manages named shopping carts in a key-value store.

    Features:
    - Rows keyed by a digest of item id and options
    - Merge or reject duplicate adds
    - Before/after notifications for every mutation
    - Per-instance locking around each read-modify-write
    """

    def __init__(
        self,
        store: Optional[Store] = None,
        notifier: Optional[Notifier] = None,
        instance: str = config.DEFAULT_INSTANCE,
        duplicate_policy: Union[DuplicatePolicy, str, None] = None,
        locks: Optional[InstanceLocks] = None,
    ):
        self.store = store if store is not None else MemoryStore()
        self.notifier = notifier if notifier is not None else NullNotifier()
        self.duplicate_policy = DuplicatePolicy(duplicate_policy or config.DUPLICATE_POLICY)
        self._instance = _check_instance(instance)
        self._locks = locks if locks is not None else InstanceLocks()

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    @property
    def instance(self) -> str:
        return self._instance

    def set_instance(self, name: Optional[str]) -> "CartManager":
        """Switch the active instance. Returns self so calls can be chained."""
        self._instance = _check_instance(name)
        return self

    def with_instance(self, name: Optional[str]) -> "CartManager":
        """New manager bound to ``name``, sharing store, notifier, policy and locks."""
        return CartManager(
            store=self.store,
            notifier=self.notifier,
            instance=_check_instance(name),
            duplicate_policy=self.duplicate_policy,
            locks=self._locks,
        )

    @property
    def key(self) -> str:
        return config.cart_key(self._instance)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, data: Union[Item, list, tuple]) -> Union[Row, list[Row]]:
        """
        Add one item (a mapping) or a batch (a list or tuple of mappings).

        The whole batch is validated before anything is written, and written
        in a single store round-trip.

        Returns:
            The resulting Row, or a list of Rows for a batch
        """
        if isinstance(data, Mapping):
            return self._add_items([data])[0]
        if isinstance(data, (list, tuple)) and data:
            return self._add_items(list(data))
        raise InvalidItemError()

    def update(self, rowid: str, attribute: Any) -> Optional[Row]:
        """
        Update a row with a new quantity or a mapping of attributes.

        A quantity of zero or less removes the row. Options are merged into
        the existing options rather than replacing them. Changing ``id`` or
        ``options`` moves the row to the row id derived from the new values;
        if another row already holds that id, ItemExistsError is raised and
        nothing is written.

        Returns:
            The updated Row, or None if the row was removed
        """
        with self._locks(self.key):
            cart = self._load()
            if rowid not in cart:
                raise InvalidRowIdError(rowid)

            if isinstance(attribute, Mapping):
                changes = self._normalize_changes(attribute)
            else:
                changes = {"quantity": _check_quantity(attribute, allow_non_positive=True)}

            removing = "quantity" in changes and changes["quantity"] <= 0
            new_rowid = rowid if removing else self._derive_row_id(cart[rowid], changes)
            if new_rowid != rowid and new_rowid in cart:
                raise ItemExistsError(new_rowid)

            self._fire(Events.UPDATING, (rowid, dict(attribute) if isinstance(attribute, Mapping) else attribute))

            if removing:
                removed = self._remove_row(cart, rowid)
                self._fire(Events.UPDATED, removed)
                return None

            row = cart[rowid]
            row.apply(changes)
            if new_rowid != rowid:
                cart.rekey(rowid, new_rowid)
            self._save(cart)
            logger.debug(f"Updated row {sanitize_id_for_logging(rowid)} in {self._instance}")

            self._fire(Events.UPDATED, row)
            return row

    def remove(self, rowid: str) -> Row:
        """Remove a row. The (possibly empty) cart stays stored."""
        with self._locks(self.key):
            cart = self._load()
            if rowid not in cart:
                raise InvalidRowIdError(rowid)
            return self._remove_row(cart, rowid)

    def destroy(self) -> None:
        """Delete the stored cart and its metadata for the active instance."""
        with self._locks(self.key):
            cart = self._load()
            self._fire(Events.DESTROYING, cart)

            self.store.forget(self.key)
            self.store.forget(config.metadata_key(self._instance))
            logger.debug(f"Destroyed cart instance {sanitize_id_for_logging(self._instance)}")

            self._fire(Events.DESTROYED, self._instance)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, rowid: str) -> Optional[Row]:
        """Row by id, or None."""
        return self._load().get(rowid)

    def content(self) -> Cart:
        """Current cart snapshot. Empty when nothing is stored."""
        return self._load()

    def total(self) -> Decimal:
        """Sum of every row subtotal as a Decimal."""
        return self._load().total

    def count(self, all_items: bool = True) -> int:
        """Units in the cart, or the number of rows when ``all_items`` is False."""
        cart = self._load()
        return cart.total_items if all_items else len(cart)

    def search(self, criteria: Mapping[str, Any]) -> Optional[list[str]]:
        """
        Row ids whose row matches every criteria field exactly.

        ``options`` takes a nested mapping matched against the row options.

        Returns:
            Matching row ids in cart order, or None if nothing matches
        """
        if not criteria:
            return None
        return self._load().search(criteria) or None

    def summary(self) -> CartSummary:
        """Cart summary for API responses."""
        return CartSummary.from_cart(self._instance, self._load())

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def set_metadata(self, key: str, value: Any) -> None:
        """
        Store side-channel data (shipping, coupon...) under a dotted path.

        Intermediate levels are created as needed; a scalar in the way is
        replaced by a mapping.
        """
        parts = self._metadata_path(key)
        meta_key = config.metadata_key(self._instance)

        with self._locks(self.key):
            metadata = self.store.get(meta_key) or {}
            node = metadata
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = node[part] = {}
                node = child
            node[parts[-1]] = dict(value) if isinstance(value, Mapping) else value
            self.store.put(meta_key, metadata)

    def get_metadata(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Value at a dotted path, the whole mapping when key is None, or default."""
        metadata = self.store.get(config.metadata_key(self._instance)) or {}
        if key is None:
            return metadata

        node: Any = metadata
        for part in self._metadata_path(key):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    @staticmethod
    def _metadata_path(key: str) -> list[str]:
        parts = key.split(".") if isinstance(key, str) else []
        if not parts or any(not part for part in parts):
            raise ValueError(f"Invalid metadata key: {key!r}")
        return parts

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self) -> Cart:
        data = self.store.get(self.key)
        return Cart.from_dict(data) if data else Cart()

    def _save(self, cart: Cart) -> None:
        self.store.put(self.key, cart.to_dict())

    def _fire(self, event: str, payload: Any = None) -> None:
        try:
            self.notifier.fire(event, payload)
        except Exception as e:
            logger.warning(f"Notifier failed on {event}: {e}", exc_info=True)

    def _normalize_item(self, item: Any) -> dict:
        """Validate an item descriptor and return clean row fields."""
        if not isinstance(item, Mapping) or not item:
            raise InvalidItemError()
        for field in REQUIRED_FIELDS:
            if item.get(field) is None or item.get(field) == "":
                raise InvalidItemError()

        item_id = _check_item_id(item["id"])
        quantity = _check_quantity(item["quantity"])
        price = _check_price(item["price"])
        _check_derived(item)
        options = _check_options(item.get("options"))

        attributes = {
            key: value for key, value in item.items()
            if key not in ("id", "name", "quantity", "price", "options")
        }
        return {
            "id": item_id,
            "name": item.get("name") or "",
            "quantity": quantity,
            "price": price,
            "options": options,
            "attributes": attributes,
        }

    def _normalize_changes(self, attributes: Mapping[str, Any]) -> dict:
        """Validate a partial update mapping."""
        _check_derived(attributes)
        changes = dict(attributes)
        if "quantity" in changes:
            changes["quantity"] = _check_quantity(changes["quantity"], allow_non_positive=True)
        if "price" in changes:
            changes["price"] = _check_price(changes["price"])
        if "options" in changes:
            changes["options"] = _check_options(changes["options"])
        if "id" in changes:
            changes["id"] = _check_item_id(changes["id"])
        return changes

    @staticmethod
    def _derive_row_id(row: Row, changes: Mapping[str, Any]) -> str:
        """Row id the row will have once ``changes`` are applied."""
        if "id" not in changes and "options" not in changes:
            return row.rowid
        options = row.options.merge(changes.get("options") or {})
        return generate_row_id(changes.get("id", row.id), options)

    def _add_items(self, items: list) -> list[Row]:
        normalized = [self._normalize_item(item) for item in items]

        with self._locks(self.key):
            cart = self._load()
            rowids = [generate_row_id(fields["id"], fields["options"]) for fields in normalized]

            if self.duplicate_policy is DuplicatePolicy.REJECT:
                seen = set(cart)
                for rowid in rowids:
                    if rowid in seen:
                        raise ItemExistsError(rowid)
                    seen.add(rowid)

            for item in items:
                self._fire(Events.ADDING, item)

            touched: list[Row] = []
            for fields, rowid in zip(normalized, rowids):
                if rowid in cart:
                    row = cart[rowid]
                    row.apply({"quantity": row.quantity + fields["quantity"]})
                else:
                    row = Row(rowid=rowid, **fields)
                    cart[rowid] = row
                touched.append(row)

            self._save(cart)
            logger.debug(f"Added {len(touched)} row(s) to {sanitize_id_for_logging(self._instance)}")

            for row in touched:
                self._fire(Events.ADDED, (row, cart))
            return touched

    def _remove_row(self, cart: Cart, rowid: str) -> Row:
        row = cart[rowid]
        self._fire(Events.REMOVING, row)

        del cart[rowid]
        self._save(cart)
        logger.debug(f"Removed row {sanitize_id_for_logging(rowid)} from {self._instance}")

        self._fire(Events.REMOVED, (row, cart))
        return row


# Singleton instance
_cart_manager: Optional[CartManager] = None


def get_cart_manager() -> CartManager:
    """Get CartManager singleton. Uses Redis when Upstash credentials are configured."""
    global _cart_manager
    if _cart_manager is None:
        if config.UPSTASH_REDIS_REST_URL and config.UPSTASH_REDIS_REST_TOKEN:
            _cart_manager = CartManager(store=RedisStore())
        else:
            _cart_manager = CartManager()
    return _cart_manager
