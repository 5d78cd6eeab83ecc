# storefront/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class CartItem(SQLModel, table=True):
    """
    Shopping cart entry for a signed-in user.

    One user cannot have 2 rows for the same product variant.
    A product without a size/color stores "" so the unique constraint
    still applies (NULLs never collide in SQL unique indexes).
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "product_id",
            "variant_size",
            "variant_color",
            name="uq_cart_items_user_variant",
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    product_id: str = Field(index=True)

    variant_size: str = ""
    variant_color: str = ""

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    # Snapshot of product display data when the line was created
    name: str
    unit_price_minor: int = Field(description="Price in minor units when added to cart")
    original_unit_price_minor: int | None = None
    image_url: str = ""
    category: str = ""

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
