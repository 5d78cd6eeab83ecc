# storefront/stores/local.py
import json
import logging

from storefront.core.errors import StorageCorruptError
from storefront.schemas.cart import CartLine
from storefront.stores.blob import BlobStorage

logger = logging.getLogger(__name__)


def local_line_id(product_id: str, size: str | None, color: str | None) -> str:
    """Composite id of a guest line: one line per product variant."""
    return "|".join((product_id, size or "", color or ""))


# ---- Local payload shape <-> CartLine ----


def line_to_payload(line: CartLine) -> dict:
    payload = {
        "id": line.line_id,
        "productId": line.product_id,
        "name": line.name,
        "price": line.unit_price_minor,
        "image": line.image_url,
        "category": line.category,
        "quantity": line.quantity,
    }
    if line.original_unit_price_minor is not None:
        payload["originalPrice"] = line.original_unit_price_minor
    if line.variant_size is not None:
        payload["size"] = line.variant_size
    if line.variant_color is not None:
        payload["color"] = line.variant_color
    return payload


def line_from_payload(payload: dict) -> CartLine:
    return CartLine.model_validate(
        {
            "line_id": payload["id"],
            "product_id": payload["productId"],
            "name": payload["name"],
            "unit_price_minor": payload["price"],
            "original_unit_price_minor": payload.get("originalPrice"),
            "image_url": payload.get("image", ""),
            "category": payload.get("category", ""),
            "quantity": payload["quantity"],
            "variant_size": payload.get("size"),
            "variant_color": payload.get("color"),
        }
    )


class LocalCartStore:
    """
    Guest cart persisted as a single JSON array in one blob slot.

    Survives process restarts when backed by FileBlobStorage, never
    survives losing the slot. Methods are async only to match the
    remote store's interface; none of them suspends.
    """

    def __init__(self, storage: BlobStorage, key: str = "cart"):
        self.storage = storage
        self.key = key

    def _read(self) -> str | None:
        try:
            return self.storage.get(self.key)
        except (UnicodeDecodeError, OSError) as exc:
            raise StorageCorruptError(self.key, str(exc)) from exc

    def _parse(self, raw: str) -> list[CartLine]:
        try:
            payloads = json.loads(raw)
            if not isinstance(payloads, list):
                raise TypeError(f"expected a JSON array, got {type(payloads).__name__}")
            return [line_from_payload(p) for p in payloads]
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageCorruptError(self.key, str(exc)) from exc

    async def load(self) -> list[CartLine]:
        """
        Read the persisted lines.

        Never raises for bad data: a corrupt slot is logged and treated as
        an empty cart so shopping is never blocked by local state.
        """
        try:
            raw = self._read()
            if raw is None:
                return []
            return self._parse(raw)
        except StorageCorruptError as exc:
            logger.error("Failed to parse local cart: %s", exc.message)
            return []

    async def save(self, lines: list[CartLine]) -> None:
        """Overwrite the slot with the full current line set."""
        self.storage.put(self.key, json.dumps([line_to_payload(line) for line in lines]))

    async def clear(self) -> None:
        self.storage.delete(self.key)
