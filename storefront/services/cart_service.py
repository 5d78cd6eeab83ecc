# storefront/services/cart_service.py
import asyncio
import logging
from enum import Enum

from storefront.core.identity import IdentityBoundary
from storefront.core.errors import MergeAbortedError
from storefront.schemas.cart import (
    CartItemSnapshot,
    CartLine,
    CartStatus,
    CartSummary,
    CartView,
)
from storefront.stores.local import LocalCartStore, local_line_id
from storefront.stores.remote import RemoteCartStore

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = set(CartItemSnapshot.model_fields)


class SessionPhase(str, Enum):
    """
    Sign-in lifecycle of one cart session.

    UNKNOWN -> GUEST -> MERGING -> SIGNED_IN
    MERGING is entered once per transition to an authenticated identity
    and left for SIGNED_IN when the merge completes or aborts.
    """

    UNKNOWN = "unknown"
    GUEST = "guest"
    MERGING = "merging"
    SIGNED_IN = "signed_in"


class CartReconciliationService:
    """
    Single cart API over the guest (local) and account (remote) stores.

    Responsibilities:
      - route every operation to the store matching the sign-in state
      - merge the guest cart into the account cart once per sign-in
      - keep one line per (product, size, color)
      - compute totals fresh from one snapshot

    Mutations and the merge run under one lock, so a session never has
    two writes against its cart in flight.
    """

    def __init__(
        self,
        identity: IdentityBoundary,
        local_store: LocalCartStore,
        remote_store: RemoteCartStore,
        *,
        require_sign_in_for_add: bool = False,
        sign_in_message: str | None = None,
    ):
        self.identity = identity
        self.local_store = local_store
        self.remote_store = remote_store
        self.require_sign_in_for_add = require_sign_in_for_add
        self.sign_in_message = sign_in_message

        self.phase = SessionPhase.UNKNOWN
        self._session_user_id: str | None = None
        self._merge_complete = False
        self._lock = asyncio.Lock()

    # ---- session state ----

    def _in_sync(self) -> bool:
        if self.identity.is_signed_in:
            return (
                self.phase is SessionPhase.SIGNED_IN
                and self._session_user_id == self.identity.user_id
            )
        return self.phase is SessionPhase.GUEST

    async def _ensure_synced(self) -> None:
        if not self._in_sync():
            await self.sync_identity()

    def _signed_in_user(self) -> str | None:
        if self.identity.is_signed_in:
            return self.identity.user_id
        return None

    async def sync_identity(self) -> SessionPhase:
        """
        Advance the session state machine from the identity boundary.

          - signed out: GUEST, and the next sign-in starts a new session
          - signed in, merge pending: MERGING, then SIGNED_IN
          - signed in, merge done: SIGNED_IN

        A failed merge is logged and retried on the next call.
        """
        if not self.identity.is_signed_in:
            if self.phase is not SessionPhase.GUEST:
                logger.debug("Cart session %s -> guest", self.phase.value)
            self.phase = SessionPhase.GUEST
            self._session_user_id = None
            self._merge_complete = False
            return self.phase

        user_id = self.identity.user_id
        if user_id != self._session_user_id:
            self._session_user_id = user_id
            self._merge_complete = False

        if self.phase is SessionPhase.MERGING:
            return self.phase

        if not self._merge_complete:
            self.phase = SessionPhase.MERGING
            try:
                await self.merge_guest_cart(user_id)
                self._merge_complete = True
            except MergeAbortedError as exc:
                logger.warning("Merge deferred for user %s: %s", user_id, exc.message)
            finally:
                self.phase = SessionPhase.SIGNED_IN
        else:
            self.phase = SessionPhase.SIGNED_IN
        return self.phase

    async def merge_guest_cart(self, user_id: str) -> int:
        """
        Move every guest line into the account cart.

        Steps:
          1. Load local lines; nothing to do if empty.
          2. Upsert them one at a time (line N+1 waits for line N), so two
             lines never race on the remote find-or-create lookup.
          3. Clear the local store once all succeeded.

        Not exactly-once: on failure the already-upserted prefix stays in
        the account cart and the local cart is kept, so a retry adds the
        prefix again. Re-merging identical lines doubles their quantities.

        Returns:
            Number of lines merged.

        Raises:
            MergeAbortedError: an upsert failed; remaining lines skipped.
        """
        async with self._lock:
            lines = await self.local_store.load()
            if not lines:
                return 0

            for index, line in enumerate(lines):
                try:
                    await self.remote_store.upsert_line(user_id, line, line.quantity)
                except Exception as exc:
                    raise MergeAbortedError(
                        merged=index, remaining=len(lines) - index, cause=exc
                    ) from exc

            await self.local_store.clear()
            logger.info("Merged %d guest cart line(s) into user %s", len(lines), user_id)
            return len(lines)

    # ---- reads ----

    async def get_cart(self) -> CartView:
        """
        Current lines of the active cart.

        Returns a LOADING view (not an empty one) while the guest cart is
        being merged into the account.
        """
        if self.phase is SessionPhase.MERGING:
            return CartView(status=CartStatus.LOADING)
        await self._ensure_synced()
        if self.phase is SessionPhase.MERGING:
            return CartView(status=CartStatus.LOADING)

        user_id = self._signed_in_user()
        if user_id is not None:
            lines = await self.remote_store.fetch(user_id)
        else:
            lines = await self.local_store.load()
        return CartView(status=CartStatus.READY, lines=lines)

    async def get_total(self) -> int:
        """Sum of unit_price_minor * quantity, recomputed on every call."""
        return (await self.get_cart()).total_minor

    async def get_item_count(self) -> int:
        """Sum of quantities (not line count), for the cart badge."""
        return (await self.get_cart()).item_count

    async def summary(self) -> CartSummary:
        return CartSummary.from_view(await self.get_cart())

    # ---- mutations ----

    async def add_item(self, item: CartItemSnapshot, quantity: int = 1) -> bool:
        """
        Add `quantity` of an item, merging with an existing variant line.

        When sign-in is required for guests, the visitor is prompted first;
        a dismissed prompt aborts the add.

        Returns:
            True if the item was added, False if the sign-in prompt was dismissed.
        """
        if quantity < 1:
            raise ValueError("quantity must be >= 1")

        if self.require_sign_in_for_add and not self.identity.is_signed_in:
            if not await self.identity.prompt_sign_in(self.sign_in_message):
                logger.info("Add to cart aborted: sign-in dismissed (%s)", item.product_id)
                return False

        await self._ensure_synced()
        async with self._lock:
            user_id = self._signed_in_user()
            if user_id is not None:
                await self.remote_store.upsert_line(user_id, item, quantity)
            else:
                await self._add_local(item, quantity)
        return True

    async def _add_local(self, item: CartItemSnapshot, quantity: int) -> None:
        lines = await self.local_store.load()
        for index, line in enumerate(lines):
            if line.variant_key == item.variant_key:
                lines[index] = line.model_copy(update={"quantity": line.quantity + quantity})
                break
        else:
            lines.append(
                CartLine(
                    line_id=local_line_id(
                        item.product_id, item.variant_size, item.variant_color
                    ),
                    quantity=quantity,
                    **item.model_dump(include=_SNAPSHOT_FIELDS),
                )
            )
        await self.local_store.save(lines)

    async def update_quantity(self, line_id: str, quantity: int) -> None:
        """
        Set a line's quantity.

        Account cart: quantity <= 0 deletes the line.
        Guest cart: quantity < 1 is ignored (no-op); an unknown line id too.
        """
        await self._ensure_synced()
        async with self._lock:
            user_id = self._signed_in_user()
            if user_id is not None:
                await self.remote_store.set_quantity(user_id, line_id, quantity)
                return

            if quantity < 1:
                return
            lines = await self.local_store.load()
            updated = [
                line.model_copy(update={"quantity": quantity})
                if line.line_id == line_id
                else line
                for line in lines
            ]
            await self.local_store.save(updated)

    async def remove_item(self, line_id: str) -> None:
        await self._ensure_synced()
        async with self._lock:
            user_id = self._signed_in_user()
            if user_id is not None:
                await self.remote_store.remove_line(user_id, line_id)
                return

            lines = await self.local_store.load()
            await self.local_store.save([line for line in lines if line.line_id != line_id])

    async def clear(self) -> None:
        await self._ensure_synced()
        async with self._lock:
            user_id = self._signed_in_user()
            if user_id is not None:
                await self.remote_store.clear(user_id)
            else:
                await self.local_store.clear()
