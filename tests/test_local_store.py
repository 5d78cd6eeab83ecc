"""Local cart store: guest cart persistence in a single blob slot.

Tests cover:
    - Missing slot reads as an empty cart
    - Stored payload shape (price in minor units, optional fields omitted)
    - Corrupt slot (bad JSON or undecodable file) falls back to an empty
      cart and logs, never raises
    - clear() removes the slot
    - File-backed slots survive a new store instance
"""

import json
import logging

from storefront.schemas.cart import CartLine
from storefront.stores.blob import FileBlobStorage, MemoryBlobStorage
from storefront.stores.local import LocalCartStore, local_line_id


def _line(**overrides) -> CartLine:
    fields = {
        "line_id": local_line_id("p1", "M", "Red"),
        "product_id": "p1",
        "name": "Linen shirt",
        "unit_price_minor": 1299,
        "original_unit_price_minor": 1599,
        "image_url": "https://cdn.example.com/p1.jpg",
        "category": "shirts",
        "quantity": 2,
        "variant_size": "M",
        "variant_color": "Red",
    }
    fields.update(overrides)
    return CartLine(**fields)


async def test_missing_slot_loads_empty(local_store):
    assert await local_store.load() == []


async def test_save_then_load_returns_same_lines(local_store):
    lines = [_line(), _line(line_id="p2||", product_id="p2", variant_size=None, variant_color=None)]
    await local_store.save(lines)
    assert await local_store.load() == lines


async def test_saved_payload_uses_local_shape(blob_storage, local_store):
    await local_store.save([_line(original_unit_price_minor=None, variant_color=None)])

    payload = json.loads(blob_storage.get("cart:guest-1"))
    assert payload == [
        {
            "id": "p1|M|Red",
            "productId": "p1",
            "name": "Linen shirt",
            "price": 1299,
            "image": "https://cdn.example.com/p1.jpg",
            "category": "shirts",
            "quantity": 2,
            "size": "M",
        }
    ]


def test_local_line_id_is_product_variant_composite():
    assert local_line_id("p1", "M", "Red") == "p1|M|Red"
    assert local_line_id("p1", None, None) == "p1||"
    assert local_line_id("p1", None, "Red") != local_line_id("p1", "Red", None)


async def test_invalid_json_loads_empty_and_logs(blob_storage, local_store, caplog):
    blob_storage.put("cart:guest-1", "{not json")

    with caplog.at_level(logging.ERROR, logger="storefront.stores.local"):
        lines = await local_store.load()

    assert lines == []
    assert "Failed to parse local cart" in caplog.text


async def test_non_array_payload_loads_empty(blob_storage, local_store):
    blob_storage.put("cart:guest-1", json.dumps({"id": "p1"}))
    assert await local_store.load() == []


async def test_line_missing_fields_loads_empty(blob_storage, local_store):
    blob_storage.put("cart:guest-1", json.dumps([{"id": "p1", "quantity": 1}]))
    assert await local_store.load() == []


async def test_zero_quantity_line_is_rejected_as_corrupt(blob_storage, local_store):
    payload = [{"id": "p1||", "productId": "p1", "name": "x", "price": 100, "quantity": 0}]
    blob_storage.put("cart:guest-1", json.dumps(payload))
    assert await local_store.load() == []


async def test_clear_removes_slot(blob_storage, local_store):
    await local_store.save([_line()])
    await local_store.clear()

    assert blob_storage.get("cart:guest-1") is None
    assert await local_store.load() == []


async def test_slots_are_isolated_by_key():
    storage = MemoryBlobStorage()
    first = LocalCartStore(storage, key="cart:a")
    second = LocalCartStore(storage, key="cart:b")

    await first.save([_line()])

    assert await second.load() == []


async def test_file_slot_survives_new_store_instance(tmp_path):
    await LocalCartStore(FileBlobStorage(tmp_path), key="cart:abc/1").save([_line()])

    reloaded = LocalCartStore(FileBlobStorage(tmp_path), key="cart:abc/1")

    assert await reloaded.load() == [_line()]
    assert (tmp_path / "cart_abc_1.json").exists()


def test_file_storage_delete_missing_slot_is_noop(tmp_path):
    storage = FileBlobStorage(tmp_path)
    storage.delete("cart:nothing")
    assert storage.get("cart:nothing") is None


async def test_undecodable_file_slot_loads_empty_and_logs(tmp_path, caplog):
    (tmp_path / "cart_g.json").write_bytes(b"\xff\xfe[not utf8")
    store = LocalCartStore(FileBlobStorage(tmp_path), key="cart:g")

    with caplog.at_level(logging.ERROR, logger="storefront.stores.local"):
        assert await store.load() == []

    assert "Failed to parse local cart" in caplog.text
