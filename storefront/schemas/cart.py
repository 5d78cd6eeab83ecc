# storefront/schemas/cart.py
from enum import Enum

from pydantic import field_validator
from sqlmodel import SQLModel, Field


class CartItemSnapshot(SQLModel):
    """
    Product display data captured at add-to-cart time.

    Prices are integers in minor currency units (e.g. cents).
    The snapshot is never re-fetched, so later catalog price changes
    do not alter lines already in a cart.
    """

    product_id: str = Field(min_length=1)
    name: str
    unit_price_minor: int = Field(ge=0)
    original_unit_price_minor: int | None = Field(default=None, ge=0)
    image_url: str = ""
    category: str = ""
    variant_size: str | None = None
    variant_color: str | None = None

    @field_validator("variant_size", "variant_color")
    @classmethod
    def blank_variant_is_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def variant_key(self) -> tuple[str, str | None, str | None]:
        """Uniqueness key of a line within one cart."""
        return (self.product_id, self.variant_size, self.variant_color)


class CartLine(CartItemSnapshot):
    """
    Canonical cart line shared by the local and remote stores.

    line_id:
      - local: "<product_id>|<size>|<color>" composite
      - remote: store-assigned row id
    """

    line_id: str
    quantity: int = Field(ge=1)

    @property
    def line_total_minor(self) -> int:
        return self.unit_price_minor * self.quantity


class CartStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"


class CartView(SQLModel):
    """
    Result of a cart read.

    `loading` is distinct from an empty cart so callers never flash an
    empty-cart UI while the account cart is still being resolved.
    total_minor and item_count come from the same `lines` snapshot.
    """

    status: CartStatus = CartStatus.READY
    lines: list[CartLine] = []

    @property
    def is_loading(self) -> bool:
        return self.status is CartStatus.LOADING

    @property
    def total_minor(self) -> int:
        return sum(line.line_total_minor for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    status: CartStatus
    items: list[CartLine]
    item_count: int
    total_minor: int

    @classmethod
    def from_view(cls, view: CartView) -> "CartSummary":
        return cls(
            status=view.status,
            items=view.lines,
            item_count=view.item_count,
            total_minor=view.total_minor,
        )


class CartItemAdd(SQLModel):
    """
    Payload for adding to cart.
    """

    item: CartItemSnapshot
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart line.

    Zero or negative is accepted: signed-in carts delete the line,
    guest carts ignore the request.
    """

    quantity: int
