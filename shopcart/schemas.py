"""Response models for host frameworks rendering a cart."""
from decimal import Decimal
from typing import Any, List, Union

from pydantic import BaseModel, Field

from .models import Cart, Row
from .money import round_money


class RowSummary(BaseModel):
    """Single row as exposed to API clients."""
    rowid: str
    id: Union[str, int]
    name: str = ""
    quantity: int
    price: Decimal
    subtotal: Decimal
    options: dict[str, Any] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Row) -> "RowSummary":
        return cls(
            rowid=row.rowid,
            id=row.id,
            name=row.name,
            quantity=row.quantity,
            price=row.price,
            subtotal=row.subtotal,
            options=row.options.to_dict(),
            attributes=dict(row.attributes),
        )


class CartSummary(BaseModel):
    """Cart summary response."""
    instance: str
    is_empty: bool
    total_items: int = 0
    row_count: int = 0
    total: Decimal = Decimal("0.00")
    rows: List[RowSummary] = Field(default_factory=list)

    @classmethod
    def from_cart(cls, instance: str, cart: Cart) -> "CartSummary":
        return cls(
            instance=instance,
            is_empty=cart.is_empty,
            total_items=cart.total_items,
            row_count=len(cart),
            total=round_money(cart.total),
            rows=[RowSummary.from_row(row) for row in cart.values()],
        )
