"""
Cart Errors

Every error raised by shopcart derives from CartError. Default messages are
kept as constants to avoid string duplication.
"""

ERROR_INSTANCE = "A cart instance name must be a non-empty string"
ERROR_INVALID_ITEM = "Item is missing one of the required fields: id, quantity, price"
ERROR_INVALID_QUANTITY = "Item quantity must be a positive whole number"
ERROR_INVALID_PRICE = "Item price must be a non-negative number"
ERROR_INVALID_ROW_ID = "Row id does not exist in the current cart instance"
ERROR_ITEM_EXISTS = "An item was given to be added to the cart that already exists"


class CartError(Exception):
    """Base class for cart errors."""

    default_message = "Cart error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InstanceError(CartError):
    """Empty or missing instance name."""

    default_message = ERROR_INSTANCE


class InvalidItemError(CartError):
    """Item descriptor is missing required fields."""

    default_message = ERROR_INVALID_ITEM


class InvalidQuantityError(CartError):
    """Quantity is not numeric."""

    default_message = ERROR_INVALID_QUANTITY


class InvalidPriceError(CartError):
    """Price is not numeric."""

    default_message = ERROR_INVALID_PRICE


class InvalidRowIdError(CartError):
    """Row id is not present in the active cart."""

    default_message = ERROR_INVALID_ROW_ID

    def __init__(self, row_id: str | None = None, message: str | None = None):
        self.row_id = row_id
        super().__init__(message)


class ItemExistsError(CartError):
    """Duplicate add under the reject policy."""

    default_message = ERROR_ITEM_EXISTS

    def __init__(self, row_id: str | None = None, message: str | None = None):
        self.row_id = row_id
        super().__init__(message)
