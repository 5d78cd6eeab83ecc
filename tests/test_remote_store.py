"""Remote cart store: account cart persistence with ownership checks."""

import uuid

import pytest

from storefront.core.errors import NotFoundError


async def test_fetch_unknown_user_returns_empty(remote_store):
    assert await remote_store.fetch("never-signed-in") == []


async def test_upsert_inserts_new_line_with_snapshot(remote_store, provision, make_item):
    provision("u1")

    line = await remote_store.upsert_line(
        "u1", make_item("p1", original_unit_price_minor=1599, variant_size="M"), 2
    )

    assert uuid.UUID(line.line_id)
    assert line.quantity == 2
    assert line.unit_price_minor == 1299
    assert line.original_unit_price_minor == 1599
    assert line.variant_size == "M"
    assert line.variant_color is None
    assert await remote_store.fetch("u1") == [line]


async def test_upsert_increments_matching_variant(remote_store, provision, make_item):
    provision("u1")

    first = await remote_store.upsert_line("u1", make_item("p1", variant_size="M"), 1)
    second = await remote_store.upsert_line("u1", make_item("p1", variant_size="M"), 3)

    assert second.line_id == first.line_id
    assert second.quantity == 4
    assert len(await remote_store.fetch("u1")) == 1


async def test_upsert_keeps_variants_of_one_product_apart(remote_store, provision, make_item):
    provision("u1")

    await remote_store.upsert_line("u1", make_item("p1", variant_size="M", variant_color="Red"), 1)
    await remote_store.upsert_line("u1", make_item("p1", variant_size="L", variant_color="Red"), 1)
    await remote_store.upsert_line("u1", make_item("p1"), 1)

    lines = await remote_store.fetch("u1")
    assert [(l.variant_size, l.variant_color) for l in lines] == [
        ("M", "Red"),
        ("L", "Red"),
        (None, None),
    ]


async def test_upsert_does_not_refresh_price_snapshot(remote_store, provision, make_item):
    provision("u1")

    await remote_store.upsert_line("u1", make_item("p1", price=1299), 1)
    line = await remote_store.upsert_line("u1", make_item("p1", price=999), 1)

    assert line.unit_price_minor == 1299
    assert line.quantity == 2


async def test_upsert_for_unprovisioned_user_fails(remote_store, make_item):
    with pytest.raises(NotFoundError):
        await remote_store.upsert_line("ghost", make_item(), 1)


async def test_fetch_returns_arrival_order(remote_store, provision, make_item):
    provision("u1")
    for product_id in ("p3", "p1", "p2"):
        await remote_store.upsert_line("u1", make_item(product_id), 1)

    assert [l.product_id for l in await remote_store.fetch("u1")] == ["p3", "p1", "p2"]


async def test_set_quantity_patches_line(remote_store, provision, make_item):
    provision("u1")
    line = await remote_store.upsert_line("u1", make_item(), 1)

    updated = await remote_store.set_quantity("u1", line.line_id, 5)

    assert updated.quantity == 5
    assert (await remote_store.fetch("u1"))[0].quantity == 5


@pytest.mark.parametrize("quantity", [0, -3])
async def test_set_quantity_non_positive_deletes(remote_store, provision, make_item, quantity):
    provision("u1")
    line = await remote_store.upsert_line("u1", make_item(), 3)

    assert await remote_store.set_quantity("u1", line.line_id, quantity) is None
    assert await remote_store.fetch("u1") == []


async def test_set_quantity_on_foreign_line_fails(remote_store, provision, make_item):
    provision("owner")
    provision("intruder")
    line = await remote_store.upsert_line("owner", make_item(), 1)

    with pytest.raises(NotFoundError):
        await remote_store.set_quantity("intruder", line.line_id, 9)

    assert (await remote_store.fetch("owner"))[0].quantity == 1


async def test_mutations_with_malformed_line_id_fail(remote_store, provision):
    provision("u1")

    with pytest.raises(NotFoundError):
        await remote_store.set_quantity("u1", "p1|M|Red", 2)
    with pytest.raises(NotFoundError):
        await remote_store.remove_line("u1", str(uuid.uuid4()))


async def test_remove_line_on_foreign_line_fails(remote_store, provision, make_item):
    provision("owner")
    provision("intruder")
    line = await remote_store.upsert_line("owner", make_item(), 1)

    with pytest.raises(NotFoundError):
        await remote_store.remove_line("intruder", line.line_id)

    assert len(await remote_store.fetch("owner")) == 1


async def test_remove_line_deletes(remote_store, provision, make_item):
    provision("u1")
    keep = await remote_store.upsert_line("u1", make_item("p1"), 1)
    drop = await remote_store.upsert_line("u1", make_item("p2"), 1)

    await remote_store.remove_line("u1", drop.line_id)

    assert await remote_store.fetch("u1") == [keep]


async def test_clear_only_touches_own_lines(remote_store, provision, make_item):
    provision("u1")
    provision("u2")
    await remote_store.upsert_line("u1", make_item("p1"), 1)
    await remote_store.upsert_line("u1", make_item("p2"), 1)
    await remote_store.upsert_line("u2", make_item("p1"), 1)

    await remote_store.clear("u1")

    assert await remote_store.fetch("u1") == []
    assert len(await remote_store.fetch("u2")) == 1


async def test_clear_for_unprovisioned_user_fails(remote_store):
    with pytest.raises(NotFoundError):
        await remote_store.clear("ghost")
