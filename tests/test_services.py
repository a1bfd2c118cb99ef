import pytest
from pydantic import ValidationError
from sqlmodel import Session

from looom import database, landing_service, product_service
from looom.errors import BackendError
from looom.models import ProductRow
from looom.product_service import db_row_to_product, product_to_db_row
from looom.schemas import LandingSettingsUpdate, ProductDraft, ProductUpdate
from looom.storage import MemoryStorage
from looom.store import Store

BROKEN_URL = "sqlite:////nonexistent-dir/looom.db"


def _draft(**kw):
    data = dict(name="Ikkat Dupatta", price=899.5, category="Dupattas", colors=["Blue"], tags=["ikkat"])
    data.update(kw)
    return ProductDraft(**data)


# ----- configuration -----

@pytest.mark.parametrize("url,key", [
    ("", ""),
    ("your-database-url", "real-key"),
    ("sqlite:///x.db", "your-anon-key"),
    ("sqlite:///x.db", None),
])
def test_placeholder_values_mean_demo_mode(url, key):
    database.configure(url, key)
    assert not database.is_backend_configured()


def test_engine_refused_in_demo_mode():
    with pytest.raises(BackendError):
        database.get_engine()


def test_connection_check_without_backend():
    result = database.test_backend_connection()
    assert not result.success
    assert result.error


def test_connection_check_against_live_db(live_db):
    assert database.test_backend_connection().success
    assert database.initialize_backend()


def test_unreachable_backend_falls_back():
    database.configure(BROKEN_URL, "key")
    assert not database.test_backend_connection().success
    assert not database.initialize_backend()


# ----- row mapping -----

def test_row_mapping_converts_units_and_stock():
    row = product_to_db_row(_draft(original_price=1200, in_stock=False))
    assert row["price"] == 89950
    assert row["original_price"] == 120000
    assert row["stock"] == 0

    product = db_row_to_product({"id": 7, **row, "rating": 0})
    assert product.id == "7"
    assert product.price == 899.5
    assert product.original_price == 1200
    assert not product.in_stock
    assert product.rating == 4.5


def test_partial_row_only_has_supplied_columns():
    assert product_to_db_row(ProductUpdate(in_stock=True, price=10), partial=True) == {"price": 1000, "stock": 10}


def test_display_images_placeholder():
    product = db_row_to_product(product_to_db_row(_draft()) | {"id": "x"})
    assert product_service.display_images(product) == [product_service.PLACEHOLDER_IMAGE]


# ----- demo mode -----

def test_demo_reads_are_deterministic():
    first, second = product_service.get_products(), product_service.get_products()
    assert first.source == "fallback"
    assert first.error is None
    assert [p.model_dump() for p in first.value] == [p.model_dump() for p in second.value]
    assert product_service.get_product("6").value.in_stock is False
    assert product_service.get_product("nope").value is None


def test_update_with_blank_category_is_refused():
    with pytest.raises(ValidationError):
        ProductUpdate(category="")


def test_demo_writes_are_simulated():
    created = product_service.create_product(_draft())
    assert created.source == "simulated"
    assert created.value.id.startswith("demo_")
    assert product_service.update_product("1", ProductUpdate(price=1)).source == "simulated"
    deleted = product_service.delete_product("1")
    assert (deleted.value, deleted.source) == (True, "simulated")


def test_demo_ids_differ_for_back_to_back_creates():
    ids = {product_service.create_product(_draft()).value.id for _ in range(20)}
    assert len(ids) == 20


def test_demo_subscription_is_noop():
    calls = []
    unsubscribe = product_service.subscribe_to_products(calls.append)
    unsubscribe()
    assert calls == []


def test_demo_landing_settings():
    result = landing_service.get_landing_settings()
    assert result.source == "fallback"
    assert result.value.page_title.startswith("looom.shop")

    updated = landing_service.update_landing_settings(LandingSettingsUpdate(site_name="Looom"))
    assert updated.source == "simulated"
    assert updated.value.site_name == "Looom"
    assert updated.value.cta_text == "Shop Now"


# ----- live backend -----

def test_live_create_read_update_delete(live_db):
    created = product_service.create_product(_draft(original_price=999))
    assert created.source == "live"
    pid = created.value.id

    listed = product_service.get_products()
    assert listed.source == "live"
    assert [p.id for p in listed.value] == [pid]
    assert listed.value[0].price == 899.5

    updated = product_service.update_product(pid, ProductUpdate(in_stock=False, name="Dupatta"))
    assert updated.value.name == "Dupatta"
    assert not updated.value.in_stock
    assert updated.value.original_price == 999

    assert product_service.delete_product(pid).value is True
    assert product_service.delete_product(pid).value is False
    assert product_service.get_products().value == []


def test_live_products_newest_first(live_db):
    a = product_service.create_product(_draft(name="A")).value
    b = product_service.create_product(_draft(name="B")).value
    assert [p.id for p in product_service.get_products().value] == [b.id, a.id]


def test_live_update_of_missing_row(live_db):
    result = product_service.update_product("missing", ProductUpdate(price=10))
    assert (result.value, result.source) == (None, "live")


def test_live_update_with_invalid_values_is_not_committed(live_db):
    pid = product_service.create_product(_draft()).value.id
    with pytest.raises(ValidationError):
        product_service.update_product(pid, ProductUpdate.model_construct(category=""))

    listed = product_service.get_products()
    assert listed.source == "live"
    assert [p.category for p in listed.value] == ["Dupattas"]


def test_live_listing_skips_invalid_rows(live_db):
    good = product_service.create_product(_draft()).value
    with Session(live_db) as session:
        session.add(ProductRow(id="blank", name="", price=10000, category="Kurtas"))
        session.commit()

    listed = product_service.get_products()
    assert listed.source == "live"
    assert listed.error is None
    assert [p.id for p in listed.value] == [good.id]


def test_failing_backend_read_degrades_with_error():
    database.configure(BROKEN_URL, "key")
    result = product_service.get_products()
    assert result.source == "fallback"
    assert result.error
    assert len(result.value) == 6


def test_failing_backend_write_raises():
    database.configure(BROKEN_URL, "key")
    with pytest.raises(BackendError):
        product_service.create_product(_draft())


def test_live_subscription_applies_deltas(live_db):
    seen = []
    unsubscribe = product_service.subscribe_to_products(seen.append, debounce=0)
    try:
        p = product_service.create_product(_draft()).value
        product_service.update_product(p.id, ProductUpdate(featured=True))
        product_service.delete_product(p.id)
    finally:
        unsubscribe()
    assert [len(s) for s in seen] == [1, 1, 0]
    assert seen[1][0].featured


def test_live_landing_upsert(live_db):
    assert landing_service.get_landing_settings().source == "fallback"

    result = landing_service.update_landing_settings(LandingSettingsUpdate(trending_product_ids=["1", "3"]))
    assert result.source == "live"
    assert result.value.trending_product_ids == ["1", "3"]
    assert result.value.site_name == "looom.shop"

    again = landing_service.get_landing_settings()
    assert again.source == "live"
    assert again.value.trending_product_ids == ["1", "3"]


def test_store_against_live_backend(live_db):
    s = Store(MemoryStorage())
    s.initialize_app()
    assert s.state.backend_connected
    assert s.state.products == []

    p = s.create_product(_draft())
    assert s.get_product(p.id) is not None
    assert s.state.products_source == "live"
    assert s.update_product(p.id, ProductUpdate(price=100)).price == 100


def test_live_row_roundtrip_keeps_json_lists(live_db):
    with Session(live_db) as session:
        session.add(ProductRow(id="r1", name="Kurta", price=150000, category="Kurtas",
                               sizes=["M", "L"], stock=3))
        session.commit()
    product = product_service.get_product("r1").value
    assert product.sizes == ["M", "L"]
    assert product.in_stock
