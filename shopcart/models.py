"""Cart models with Decimal-based pricing and content-derived row ids."""
import hashlib
import json
from collections.abc import Iterator, Mapping, MutableMapping
from decimal import Decimal
from typing import Any, Optional, Union

from .money import is_numeric, multiply, to_decimal

ItemId = Union[str, int]

# Attributes every row carries; anything else a caller supplies is kept as an extra
ROW_FIELDS = ("rowid", "id", "name", "quantity", "price", "options", "subtotal")
DECIMAL_FIELDS = ("price", "subtotal")


def canonical_options(options: Optional[Mapping[str, Any]]) -> str:
    """Serialize options with keys sorted so equal mappings give equal text."""
    if not options:
        return ""
    return json.dumps(
        {str(key): options[key] for key in sorted(options, key=str)},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


def generate_row_id(item_id: ItemId, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Derive the row id for an item and its options.

    The id is the SHA-1 hex digest of ``str(item_id)`` followed by the
    canonical JSON of the options (keys sorted, compact separators). With no
    options only the item id is hashed. Callers may recompute it to address
    a row they did not add themselves.
    """
    payload = f"{item_id}{canonical_options(options)}"
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


class RowOptions(Mapping):
    """Options selected for a row (size, colour, condition...)."""

    def __init__(self, items: Optional[Mapping[str, Any]] = None):
        self._items: dict[str, Any] = dict(items or {})

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"RowOptions({self._items!r})"

    def search(self, criteria: Mapping[str, Any]) -> bool:
        """True when every criteria key is present with an equal value."""
        if not criteria:
            return False
        return all(key in self._items and self._items[key] == value for key, value in criteria.items())

    def merge(self, changes: Mapping[str, Any]) -> "RowOptions":
        """Return new options with ``changes`` laid over the current values."""
        merged = dict(self._items)
        merged.update(changes)
        return RowOptions(merged)

    def to_dict(self) -> dict:
        return dict(self._items)


class Row:
    """Single line item in the cart."""

    def __init__(
        self,
        rowid: str,
        id: ItemId,
        quantity: int,
        price: Union[Decimal, int, float, str],
        name: str = "",
        options: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ):
        self.rowid = rowid
        self.id = id
        self.name = name
        self.quantity = int(quantity)
        self.price = to_decimal(price)
        self.options = options if isinstance(options, RowOptions) else RowOptions(options)
        self.attributes: dict[str, Any] = dict(attributes or {})

    @property
    def subtotal(self) -> Decimal:
        """Quantity times unit price."""
        return multiply(self.price, self.quantity)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a row field or caller supplied attribute by name."""
        if key in ROW_FIELDS:
            return getattr(self, key)
        return self.attributes.get(key, default)

    def apply(self, attributes: Mapping[str, Any]) -> None:
        """
        Apply a partial update in place.

        ``options`` are merged key by key; other known fields are replaced and
        unknown keys land in the extra attributes. Values are expected to be
        validated by the caller.
        """
        for key, value in attributes.items():
            if key == "options":
                self.options = self.options.merge(value or {})
            elif key == "quantity":
                self.quantity = int(value)
            elif key == "price":
                self.price = to_decimal(value)
            elif key in ("id", "name"):
                setattr(self, key, value)
            else:
                self.attributes[key] = value

    def search(self, criteria: Mapping[str, Any]) -> bool:
        """True when the row matches every field in ``criteria`` exactly."""
        if not criteria:
            return False
        for key, expected in criteria.items():
            if key == "options":
                if not isinstance(expected, Mapping) or not self.options.search(expected):
                    return False
            elif key in DECIMAL_FIELDS:
                if not is_numeric(expected) or self.get(key) != to_decimal(expected):
                    return False
            elif key not in ROW_FIELDS and key not in self.attributes:
                return False
            elif self.get(key) != expected:
                return False
        return True

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "rowid": self.rowid,
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price": str(self.price),
            "options": self.options.to_dict(),
            "subtotal": str(self.subtotal),
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Row":
        """Create from dictionary."""
        return cls(
            rowid=data["rowid"],
            id=data["id"],
            name=data.get("name", ""),
            quantity=int(data["quantity"]),
            price=to_decimal(data["price"]),
            options=data.get("options") or {},
            attributes=data.get("attributes") or {},
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Row(rowid={self.rowid!r}, id={self.id!r}, quantity={self.quantity}, price={self.price})"


class Cart(MutableMapping):
    """Ordered mapping of row id to Row for one cart instance."""

    def __init__(self, rows: Optional[Mapping[str, Row]] = None):
        self._rows: dict[str, Row] = dict(rows or {})

    def __getitem__(self, rowid: str) -> Row:
        return self._rows[rowid]

    def __setitem__(self, rowid: str, row: Row) -> None:
        self._rows[rowid] = row

    def __delitem__(self, rowid: str) -> None:
        del self._rows[rowid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"Cart({list(self._rows)!r})"

    @property
    def is_empty(self) -> bool:
        return not self._rows

    def rekey(self, old: str, new: str) -> None:
        """Move a row to a new id, keeping its position in the cart."""
        self._rows = {(new if rowid == old else rowid): row for rowid, row in self._rows.items()}
        self._rows[new].rowid = new

    def first(self) -> Optional[Row]:
        """First row in insertion order, if any."""
        return next(iter(self._rows.values()), None)

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(row.quantity for row in self._rows.values())

    @property
    def total(self) -> Decimal:
        """Sum of row subtotals."""
        return sum((row.subtotal for row in self._rows.values()), Decimal("0"))

    def search(self, criteria: Mapping[str, Any]) -> list[str]:
        """Row ids matching ``criteria``, in cart order."""
        if not criteria:
            return []
        return [rowid for rowid, row in self._rows.items() if row.search(criteria)]

    def to_dict(self) -> dict:
        """Convert to dictionary for storage. Rows are a list to keep order in JSON."""
        return {"rows": [row.to_dict() for row in self._rows.values()]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cart":
        """Create from dictionary."""
        rows = [Row.from_dict(item) for item in data.get("rows", [])]
        return cls({row.rowid: row for row in rows})
