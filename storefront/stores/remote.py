# storefront/stores/remote.py
import logging
import uuid

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.engine import Engine
from sqlmodel import Session

from storefront.core.errors import NotFoundError
from storefront.models.cart import CartItem
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.cart import CartItemSnapshot, CartLine

logger = logging.getLogger(__name__)


# ---- Row shape <-> CartLine ----


def line_from_row(row: CartItem) -> CartLine:
    return CartLine(
        line_id=str(row.id),
        product_id=row.product_id,
        name=row.name,
        unit_price_minor=row.unit_price_minor,
        original_unit_price_minor=row.original_unit_price_minor,
        image_url=row.image_url,
        category=row.category,
        quantity=row.quantity,
        variant_size=row.variant_size or None,
        variant_color=row.variant_color or None,
    )


def row_from_snapshot(
    user_id: uuid.UUID, item: CartItemSnapshot, quantity: int
) -> CartItem:
    return CartItem(
        user_id=user_id,
        product_id=item.product_id,
        variant_size=item.variant_size or "",
        variant_color=item.variant_color or "",
        quantity=quantity,
        name=item.name,
        unit_price_minor=item.unit_price_minor,
        original_unit_price_minor=item.original_unit_price_minor,
        image_url=item.image_url,
        category=item.category,
    )


class RemoteCartStore:
    """
    Cart lines keyed by durable user identity.

    Responsibilities:
      - resolve the identity-provider user id to a provisioned User row
      - enforce ownership on every mutation (no cross-account tampering)
      - one line per (user, product, size, color)

    Every operation opens its own Session and runs on the threadpool,
    so the event loop never blocks on database I/O.
    """

    def __init__(
        self,
        engine: Engine,
        cart_repo: CartRepository | None = None,
        user_repo: UserRepository | None = None,
    ):
        self.engine = engine
        self.cart_repo = cart_repo or CartRepository()
        self.user_repo = user_repo or UserRepository()

    # ---- internal helpers ----

    def _require_user(self, session: Session, auth_id: str) -> User:
        user = self.user_repo.get_by_auth_id(session, auth_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _owned_row(self, session: Session, user: User, line_id: str) -> CartItem:
        try:
            row_id = uuid.UUID(line_id)
        except ValueError:
            row_id = None
        row = self.cart_repo.get_by_id(session, row_id) if row_id else None
        if row is None or row.user_id != user.id:
            raise NotFoundError("Cart item not found or does not belong to this user")
        return row

    # ---- sync bodies ----

    def _fetch(self, auth_id: str) -> list[CartLine]:
        with Session(self.engine) as session:
            user = self.user_repo.get_by_auth_id(session, auth_id)
            if user is None:
                # Profile provisioning may lag sign-in by a round trip.
                return []
            return [line_from_row(r) for r in self.cart_repo.list_for_user(session, user.id)]

    def _upsert_line(
        self, auth_id: str, candidate: CartItemSnapshot, quantity_delta: int
    ) -> CartLine:
        with Session(self.engine) as session:
            user = self._require_user(session, auth_id)
            existing = self.cart_repo.get_variant(
                session,
                user.id,
                candidate.product_id,
                candidate.variant_size or "",
                candidate.variant_color or "",
            )
            if existing:
                existing.quantity += quantity_delta
                row = self.cart_repo.update(session, existing)
            else:
                row = self.cart_repo.create(
                    session, row_from_snapshot(user.id, candidate, quantity_delta)
                )
            return line_from_row(row)

    def _set_quantity(self, auth_id: str, line_id: str, quantity: int) -> CartLine | None:
        with Session(self.engine) as session:
            user = self._require_user(session, auth_id)
            row = self._owned_row(session, user, line_id)
            if quantity <= 0:
                self.cart_repo.delete(session, row)
                return None
            row.quantity = quantity
            return line_from_row(self.cart_repo.update(session, row))

    def _remove_line(self, auth_id: str, line_id: str) -> None:
        with Session(self.engine) as session:
            user = self._require_user(session, auth_id)
            self.cart_repo.delete(session, self._owned_row(session, user, line_id))

    def _clear(self, auth_id: str) -> int:
        with Session(self.engine) as session:
            user = self._require_user(session, auth_id)
            return self.cart_repo.clear_user_cart(session, user.id)

    # ---- public operations ----

    async def fetch(self, user_id: str) -> list[CartLine]:
        """All lines of the user in arrival order; [] if the user has no record yet."""
        return await run_in_threadpool(self._fetch, user_id)

    async def upsert_line(
        self, user_id: str, candidate: CartItemSnapshot, quantity_delta: int
    ) -> CartLine:
        """
        Increment the matching variant line, or insert it with quantity_delta.

        Raises:
            NotFoundError: if user_id has no provisioned profile.
        """
        return await run_in_threadpool(self._upsert_line, user_id, candidate, quantity_delta)

    async def set_quantity(
        self, user_id: str, line_id: str, quantity: int
    ) -> CartLine | None:
        """
        Patch the quantity; quantity <= 0 deletes the line and returns None.

        Raises:
            NotFoundError: unknown user, or the line is not owned by user_id.
        """
        return await run_in_threadpool(self._set_quantity, user_id, line_id, quantity)

    async def remove_line(self, user_id: str, line_id: str) -> None:
        await run_in_threadpool(self._remove_line, user_id, line_id)

    async def clear(self, user_id: str) -> None:
        """Delete every line of the user in a single commit."""
        removed = await run_in_threadpool(self._clear, user_id)
        logger.info("Cleared %d cart line(s) for user %s", removed, user_id)
