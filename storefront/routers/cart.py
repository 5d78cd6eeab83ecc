# storefront/routers/cart.py
from functools import lru_cache

from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from storefront.core.auth import get_identity
from storefront.core.config import get_settings
from storefront.core.errors import SignInRequiredError
from storefront.core.identity import RequestIdentity
from storefront.database import get_engine
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartSummary
from storefront.services.cart_service import CartReconciliationService
from storefront.stores.blob import BlobStorage, FileBlobStorage, MemoryBlobStorage
from storefront.stores.local import LocalCartStore
from storefront.stores.remote import RemoteCartStore

router = APIRouter(prefix="/cart", tags=["Cart"])

settings = get_settings()


@lru_cache
def get_blob_storage() -> BlobStorage:
    """
    Guest cart slots: files under LOCAL_CART_DIR, else process memory.
    """
    if settings.LOCAL_CART_DIR:
        return FileBlobStorage(settings.LOCAL_CART_DIR)
    return MemoryBlobStorage()


def get_cart_service(
    identity: RequestIdentity = Depends(get_identity),
    db_engine: Engine = Depends(get_engine),
    storage: BlobStorage = Depends(get_blob_storage),
) -> CartReconciliationService:
    """
    Wire one reconciliation service per request.

    A signed-in request that still carries X-Guest-Session gets that guest
    slot as its local store, so the guest cart is merged on first use.
    """
    if identity.guest_session:
        local_store = LocalCartStore(
            storage, key=f"{settings.LOCAL_CART_KEY}:{identity.guest_session}"
        )
    else:
        local_store = LocalCartStore(MemoryBlobStorage(), key=settings.LOCAL_CART_KEY)

    return CartReconciliationService(
        identity,
        local_store,
        RemoteCartStore(db_engine),
        require_sign_in_for_add=settings.REQUIRE_SIGN_IN_FOR_ADD,
        sign_in_message=settings.SIGN_IN_PROMPT_MESSAGE,
    )


@router.get("", response_model=CartSummary)
async def get_my_cart(service: CartReconciliationService = Depends(get_cart_service)):
    """
    Get the current cart summary (account cart if signed in, else guest cart).
    """
    return await service.summary()


@router.post("/items", response_model=CartSummary)
async def add_to_cart(
    payload: CartItemAdd,
    service: CartReconciliationService = Depends(get_cart_service),
):
    """
    Add an item to the cart; same product variant increments its line.

    Returns the updated cart summary.
    401 when guests must sign in before adding.
    """
    added = await service.add_item(payload.item, payload.quantity)
    if not added:
        raise SignInRequiredError(settings.SIGN_IN_PROMPT_MESSAGE)
    return await service.summary()


@router.patch("/items/{line_id}", response_model=CartSummary)
async def update_cart_item(
    line_id: str,
    payload: CartItemUpdate,
    service: CartReconciliationService = Depends(get_cart_service),
):
    """
    Update quantity of a cart line.

    Signed in: quantity <= 0 removes the line. Guest: quantity < 1 is ignored.
    """
    await service.update_quantity(line_id, payload.quantity)
    return await service.summary()


@router.delete("/items/{line_id}", response_model=CartSummary)
async def remove_cart_item(
    line_id: str,
    service: CartReconciliationService = Depends(get_cart_service),
):
    """
    Remove a line from the cart.
    """
    await service.remove_item(line_id)
    return await service.summary()


@router.delete("", response_model=CartSummary)
async def clear_cart(service: CartReconciliationService = Depends(get_cart_service)):
    """
    Clear the entire cart.
    """
    await service.clear()
    return await service.summary()


@router.post("/merge", response_model=CartSummary)
async def merge_guest_cart(service: CartReconciliationService = Depends(get_cart_service)):
    """
    Re-run the identity sync explicitly (e.g. right after sign-in).

    A failed merge is not an error here: the guest cart stays in place and
    the next request retries it.
    """
    await service.sync_identity()
    return await service.summary()
