# storefront/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session, select

from storefront.models.cart import CartItem


class CartRepository:
    """
    Data access layer for cart_items.

    Pure DB operations; ownership rules live in the remote cart store.
    """

    # Get items for a user, arrival order
    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at)
        )
        return list(session.exec(stmt).all())

    def get_variant(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: str,
        variant_size: str,
        variant_color: str,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
            CartItem.variant_size == variant_size,
            CartItem.variant_color == variant_color,
        )
        return session.exec(stmt).first()

    def get_by_id(self, session: Session, item_id: uuid.UUID) -> CartItem | None:
        return session.get(CartItem, item_id)

    # CRUD
    def create(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def update(self, session: Session, item: CartItem) -> CartItem:
        item.updated_at = datetime.now(timezone.utc)
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_user_cart(self, session: Session, user_id: uuid.UUID) -> int:
        """Delete every row of the user in one commit; returns the row count."""
        rows = self.list_for_user(session, user_id)
        for row in rows:
            session.delete(row)
        session.commit()
        return len(rows)
