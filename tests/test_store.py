import json
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from pydantic import ValidationError

from looom.errors import InvalidTransition, NotFound
from looom.schemas import Address, Category, CartItem, OrderDraft, PaymentRecord, ProductUpdate, SignupData, Story
from looom.storage import MemoryStorage
from looom.store import PERSISTED_FIELDS, STORE_NAME, Store


def _draft(store, **kw):
    product = store.get_product("2")
    data = dict(
        customer_name="Asha",
        customer_email="asha@example.com",
        customer_phone="9000000000",
        items=[CartItem(product=product, quantity=1, selected_size="Free Size", selected_color="Indigo")],
        total=2094,
        address=Address(street="1 Temple St", city="Hyderabad", state="Telangana", pincode="500001"),
    )
    data.update(kw)
    return OrderDraft(**data)


def test_initialize_in_demo_mode_loads_mock_catalog(store):
    assert store.state.is_initialized
    assert not store.state.backend_connected
    assert [p.id for p in store.state.products] == ["1", "2", "3", "4", "5", "6"]
    assert store.state.products_source == "fallback"
    assert store.state.landing_settings.site_name == "looom.shop"


def test_add_to_cart_merges_same_variant(store):
    saree = store.get_product("1")
    store.add_to_cart(saree, "Free Size", "Maroon", 1)
    store.add_to_cart(saree, "Free Size", "Maroon", 2)
    store.add_to_cart(saree, "Free Size", "Mustard", 1)

    assert len(store.state.cart_items) == 2
    assert store.state.cart_items[0].quantity == 3
    assert store.cart_count() == 4


def test_concurrent_cart_adds_are_not_lost(store):
    saree = store.get_product("1")
    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(200):
            pool.submit(store.add_to_cart, saree, "Free Size", "Maroon", 1)
    assert store.state.cart_items[0].quantity == 200


def test_update_quantity_to_zero_removes_line(store):
    frock = store.get_product("3")
    store.add_to_cart(frock, "M", "Teal", 2)
    store.update_cart_quantity("3", "M", "Teal", 0)
    assert store.state.cart_items == []


def test_checkout_summary_small_cart(store):
    # 1100 subtotal: flat shipping, 5% tax rounded
    kurta = store.get_product("4").model_copy(update={"price": 1100})
    store.add_to_cart(kurta, "M", "Black", 1)
    s = store.checkout_summary()
    assert (s.subtotal, s.shipping, s.tax, s.total) == (1100, 100, 55, 1255)


def test_persistence_is_restricted_to_allow_list(store, storage):
    store.add_to_cart(store.get_product("1"), "Free Size", "Maroon")
    store.set_search_query("silk")
    store.set_mobile_menu_open(True)

    blob = json.loads(storage.get_item(STORE_NAME))
    assert blob["version"] == 0
    assert set(blob["state"]) == set(PERSISTED_FIELDS)
    assert "products" not in blob["state"]
    assert "search_query" not in blob["state"]


def test_load_restores_persisted_fields(storage, clock):
    first = Store(storage, clock=clock)
    first.initialize_app()
    first.add_to_cart(first.get_product("2"), "Free Size", "White", 2)
    first.set_search_query("cotton")

    second = Store(storage, clock=clock).load()
    assert second.cart_count() == 2
    assert second.state.search_query == ""
    assert second.state.products == []


def test_load_ignores_corrupt_blob(clock):
    s = Store(MemoryStorage({STORE_NAME: "{not json"}), clock=clock).load()
    assert s.state.cart_items == []


def test_create_order_sets_tracking_and_notifies(store, clock):
    order_id = store.create_order(_draft(store))
    order = store.get_order_by_id(order_id)

    assert order_id.startswith("ORD")
    assert order.tracking_number == "TRK" + order_id[-6:]
    assert order.estimated_delivery == clock.now + timedelta(days=5)
    assert order.status_history[0].notes == "Order placed successfully"
    assert store.state.notifications[0].order_id == order_id
    assert store.get_unread_notification_count() == 1


def test_order_ids_are_unique_within_one_millisecond(store):
    a = store.create_order(_draft(store))
    b = store.create_order(_draft(store))
    assert a != b


def test_order_ids_stay_unique_across_threads(store):
    draft = _draft(store)
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda _: store.create_order(draft), range(50)))
    assert len(set(ids)) == 50
    assert len(store.state.orders) == 50


def test_create_order_updates_signed_in_user(store):
    store.login("priya@example.com", "secret")
    before = store.state.user
    store.create_order(_draft(store, customer_email="priya@example.com"))
    after = store.state.user
    assert after.total_orders == before.total_orders + 1
    assert after.total_spent == before.total_spent + 2094
    assert after.loyalty_points == before.loyalty_points + 20
    assert len(store.get_user_orders()) == 1


def test_order_moves_through_flow(store, clock):
    order_id = store.create_order(_draft(store))
    for status in ("confirmed", "packed", "shipped", "delivered"):
        store.update_order_status(order_id, status)
    order = store.get_order_by_id(order_id)
    assert order.status == "delivered"
    assert order.delivery_date == clock.now
    assert [h.status for h in order.status_history] == ["pending", "confirmed", "packed", "shipped", "delivered"]


def test_strict_policy_rejects_skipping_ahead(store):
    order_id = store.create_order(_draft(store))
    with pytest.raises(InvalidTransition) as err:
        store.update_order_status(order_id, "shipped")
    assert err.value.current == "pending"
    assert store.get_order_by_id(order_id).status == "pending"


def test_cancelled_order_is_terminal(store):
    order_id = store.create_order(_draft(store))
    store.update_order_status(order_id, "cancelled")
    with pytest.raises(InvalidTransition):
        store.update_order_status(order_id, "confirmed")


def test_permissive_policy_allows_any_known_status(storage, clock):
    s = Store(storage, clock=clock, order_policy="permissive")
    s.initialize_app()
    order_id = s.create_order(_draft(s))
    s.update_order_status(order_id, "delivered")
    s.update_order_status(order_id, "pending")
    assert s.get_order_by_id(order_id).status == "pending"


def test_update_status_of_missing_order(store):
    with pytest.raises(NotFound):
        store.update_order_status("ORD404", "confirmed")


def test_record_payment_marks_order_paid(store):
    order_id = store.create_order(_draft(store, payment_method="upi"))
    payment = store.record_payment(PaymentRecord(order_id=order_id, amount=2094, method="upi",
                                                 status="captured", transaction_id="pay_xyz"))
    order = store.get_order_by_id(order_id)
    assert payment.id.startswith("pay_")
    assert order.payment_status == "completed"
    assert order.transaction_id == "pay_xyz"
    assert store.get_payments_for_order(order_id) == [payment]


def test_notifications_read_and_clear(store):
    store.signup(SignupData(name="Meera", email="Meera@Example.com", password="x", confirm_password="x"))
    store.create_order(_draft(store))
    assert store.get_unread_notification_count() == 2

    store.mark_notification_as_read(store.state.notifications[0].id)
    assert store.get_unread_notification_count() == 1
    store.clear_notifications()
    assert store.get_unread_notification_count() == 0


def test_signup_rejects_mismatched_passwords(store):
    assert not store.signup(SignupData(name="A", email="a@b.c", password="x", confirm_password="y"))
    assert not store.state.is_authenticated


def test_logout_clears_cart_and_user(store):
    store.login("priya@example.com", "secret")
    store.add_to_cart(store.get_product("1"), "Free Size", "Maroon")
    store.logout()
    assert store.state.user is None
    assert store.state.token is None
    assert store.state.cart_items == []


def test_first_address_becomes_default(store):
    store.signup(SignupData(name="Meera", email="m@example.com", password="x", confirm_password="x"))
    first = store.add_address(Address(street="a", city="b", state="c", pincode="1"))
    second = store.add_address(Address(street="d", city="e", state="f", pincode="2"))
    assert first.is_default and not second.is_default

    store.set_default_address(second.id)
    defaults = [a.id for a in store.state.user.addresses if a.is_default]
    assert defaults == [second.id]


def test_wishlist_has_no_duplicates(store):
    store.login("priya@example.com", "secret")
    store.add_to_wishlist("1")
    store.add_to_wishlist("1")
    assert store.state.user.wishlist == ["1"]
    store.remove_from_wishlist("1")
    assert not store.is_in_wishlist("1")


def test_demo_product_update_merges_locally(store):
    from looom.schemas import ProductUpdate

    updated = store.update_product("2", ProductUpdate(price=1999, featured=True))
    assert updated.price == 1999
    assert updated.featured
    assert store.get_product("2").price == 1999


def test_demo_product_delete_drops_from_catalog(store):
    assert store.delete_product("5") is True
    assert store.get_product("5") is None


def test_add_category_derives_slug_and_level(store):
    parent = store.add_category(Category(name="Silk Sarees", parent_id="cat_1", description="Pure silk"))
    child = store.add_category(Category(name="Wedding Silk", parent_id=parent.id))

    assert parent.slug == "silk-sarees"
    assert parent.auto_description == "Pure silk"
    assert parent.level == 1
    assert child.level == 2

    tree = store.category_tree()
    sarees = next(n for n in tree if n.id == "cat_1")
    assert sarees.children[0].id == parent.id
    assert sarees.children[0].children[0].id == child.id


def test_rename_category_reslugs(store):
    store.update_category("cat_2", {"name": "Party Frocks"})
    assert store.get_category("cat_2").slug == "party-frocks"


def test_reorder_stories_renumbers_from_one(store):
    stories = list(reversed(store.state.stories))
    store.reorder_stories(stories)
    assert [s.sort_order for s in store.state.stories] == [1, 2, 3, 4]
    assert store.state.stories[0].id == "story_4"


def test_move_story(store):
    store.move_story("story_1", "down")
    assert [s.id for s in store.state.stories] == ["story_2", "story_1", "story_3", "story_4"]
    store.move_story("story_2", "up")  # already first
    assert [s.sort_order for s in store.state.stories] == [1, 2, 3, 4]


def test_added_story_goes_last(store):
    story = store.add_story(Story(title="Monsoon"))
    assert story.sort_order == 5
    assert story.id.startswith("story_")


def test_only_one_active_theme(store):
    store.set_active_theme("theme_2")
    assert [t.id for t in store.state.themes if t.is_active] == ["theme_2"]
    assert store.active_theme().id == "theme_2"


def test_active_banners_by_position(store):
    assert [b.id for b in store.active_banners()] == ["banner_1"]
    store.update_banner("banner_2", {"is_active": True, "position": "middle"})
    assert [b.id for b in store.active_banners("middle")] == ["banner_2"]


def test_filtered_products_uses_filters_and_search(store):
    store.set_search_query("silk")
    store.set_filters({"price_range": (0, 5000)})
    assert [p.id for p in store.filtered_products(sort_by="price-low")] == ["1"]


def test_in_stock_filter(store):
    assert "6" in [p.id for p in store.filtered_products()]
    store.set_filters({"in_stock": True})
    assert "6" not in [p.id for p in store.filtered_products()]


def test_demo_update_with_blank_category_keeps_catalog(store):
    with pytest.raises(ValidationError):
        store.update_product("1", ProductUpdate.model_construct(category=""))
    assert store.get_product("1").category == "Sarees"


def test_admin_session_round_trip(store, clock):
    assert store.admin_login("admin@looom.shop", "admin123")
    assert store.state.is_admin_authenticated
    assert store.check_admin_session()

    clock.now = clock.now + timedelta(hours=8, seconds=1)
    assert not store.check_admin_session()
    assert not store.state.is_admin_authenticated
