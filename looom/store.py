"""Application state for one storefront session and the actions that change it.

``StoreState`` is the whole tree. Only the fields in ``PERSISTED_FIELDS`` are
written to storage (under ``STORE_NAME``); the catalog loaded from the
backend, UI toggles and filters are rebuilt on every start.

Every action goes through ``Store._set`` so each mutation replaces the state
in one step and the persisted blob is rewritten whenever a persisted field
changed.
"""
import functools
import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field

from . import auth, database, landing_service, product_service
from .catalog import ALL_PRODUCTS, build_category_tree, category_level, filter_products, slugify
from .errors import InvalidTransition, NotFound
from .mock_data import default_banners, default_categories, default_stories, default_themes
from .orders import ORDER_POLICY, STATUS_MESSAGES, compute_totals, transition
from .results import Fetched
from .schemas import (
    Address,
    Banner,
    CartItem,
    Category,
    CategoryNode,
    CheckoutSummary,
    Filter,
    LandingSettings,
    LandingSettingsUpdate,
    Notification,
    NotificationDraft,
    Order,
    OrderDraft,
    OrderStatusUpdate,
    PaymentRecord,
    Product,
    ProductDraft,
    ProductUpdate,
    SignupData,
    Story,
    Theme,
    User,
    UserPreferences,
)

log = logging.getLogger(__name__)

STORE_NAME = "ikkat-store"
STORE_VERSION = 0
ESTIMATED_DELIVERY = timedelta(days=5)

PERSISTED_FIELDS = frozenset({
    "is_authenticated",
    "user",
    "token",
    "refresh_token",
    "cart_items",
    "categories",
    "themes",
    "stories",
    "banners",
    "orders",
    "payments",
    "notifications",
})

M = TypeVar("M", bound=BaseModel)


class StoreState(BaseModel):
    # auth
    is_authenticated: bool = False
    user: Optional[User] = None
    token: Optional[str] = None
    refresh_token: Optional[str] = None
    is_admin_authenticated: bool = False

    # cart
    cart_items: List[CartItem] = Field(default_factory=list)
    cart_open: bool = False

    # catalog
    products: List[Product] = Field(default_factory=list)
    products_source: Optional[str] = None
    categories: List[Category] = Field(default_factory=default_categories)
    themes: List[Theme] = Field(default_factory=default_themes)
    stories: List[Story] = Field(default_factory=default_stories)
    banners: List[Banner] = Field(default_factory=default_banners)
    landing_settings: Optional[LandingSettings] = None
    filters: Filter = Field(default_factory=Filter)
    search_query: str = ""

    # ui
    mobile_menu_open: bool = False
    filter_drawer_open: bool = False

    # admin
    orders: List[Order] = Field(default_factory=list)
    selected_order: Optional[Order] = None
    payments: List[PaymentRecord] = Field(default_factory=list)

    notifications: List[Notification] = Field(default_factory=list)

    backend_connected: bool = False
    is_initialized: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _merge(item: M, updates: dict, now: datetime) -> M:
    merged = item.model_dump()
    merged.update(updates)
    merged["updated_at"] = now
    return type(item).model_validate(merged)


def _updates(updates) -> dict:
    if isinstance(updates, BaseModel):
        return updates.model_dump(exclude_unset=True)
    return dict(updates)


def _renumbered(items: Sequence[M]) -> List[M]:
    return [item.model_copy(update={"sort_order": i}) for i, item in enumerate(items, start=1)]


def _atomic(method):
    """Run a store action under the store lock, start to finish."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class Store:
    def __init__(self, storage, clock: Optional[Callable[[], datetime]] = None,
                 order_policy: Optional[str] = None):
        self.storage = storage
        self.clock = clock or _utcnow
        self.order_policy = order_policy or ORDER_POLICY
        self.state = StoreState()
        self._lock = threading.RLock()
        self._last_id_ms = 0

    # ---------- plumbing ----------

    def _now(self) -> datetime:
        return self.clock()

    def _next_id(self, prefix: str) -> str:
        # timestamp ids, bumped so two creates in the same millisecond differ
        with self._lock:
            ms = auth.epoch_ms(self._now())
            if ms <= self._last_id_ms:
                ms = self._last_id_ms + 1
            self._last_id_ms = ms
        return f"{prefix}{ms}"

    def _set(self, **changes) -> None:
        with self._lock:
            self.state = self.state.model_copy(update=changes)
            if PERSISTED_FIELDS.intersection(changes):
                self._persist()

    def _persist(self) -> None:
        blob = {
            "state": self.state.model_dump(mode="json", include=set(PERSISTED_FIELDS)),
            "version": STORE_VERSION,
        }
        self.storage.set_item(STORE_NAME, json.dumps(blob))

    @_atomic
    def persisted_snapshot(self) -> dict:
        raw = self.storage.get_item(STORE_NAME)
        return json.loads(raw)["state"] if raw else {}

    @_atomic
    def load(self) -> "Store":
        raw = self.storage.get_item(STORE_NAME)
        if not raw:
            return self
        try:
            persisted = json.loads(raw).get("state", {})
            restored = {k: v for k, v in persisted.items() if k in PERSISTED_FIELDS}
            self.state = StoreState.model_validate({**self.state.model_dump(), **restored})
        except ValueError as e:
            log.warning("Discarding unreadable persisted store: %s", e)
        return self

    # ---------- bootstrap ----------

    @_atomic
    def initialize_app(self) -> None:
        if self.state.is_initialized:
            return
        log.info("Initializing app")
        try:
            self._set(backend_connected=database.initialize_backend())
            self.load_products()
            self.load_landing_settings()
        except Exception:
            log.exception("App initialization failed, continuing with what loaded")
        finally:
            self._set(is_initialized=True)

    @_atomic
    def load_products(self) -> Fetched[List[Product]]:
        result = product_service.get_products()
        self._set(products=result.value, products_source=result.source)
        return result

    @_atomic
    def load_landing_settings(self) -> Fetched[LandingSettings]:
        result = landing_service.get_landing_settings()
        self._set(landing_settings=result.value)
        return result

    @_atomic
    def update_landing_settings(self, updates: LandingSettingsUpdate) -> Fetched[LandingSettings]:
        result = landing_service.update_landing_settings(updates)
        self._set(landing_settings=result.value)
        return result

    # ---------- customer auth ----------

    @_atomic
    def login(self, email: str, password: str) -> bool:
        email = (email or "").strip().lower()
        if not email or not password:
            return False
        now = self._now()
        user = User(
            id="user_1",
            name="Priya Sharma",
            email=email,
            phone="+91 9876543210",
            addresses=[Address(id="addr_1", type="home", name="Priya Sharma", street="123 MG Road",
                               city="Bangalore", state="Karnataka", pincode="560001",
                               phone="+91 9876543210", is_default=True)],
            preferences=UserPreferences(favorite_categories=["sarees", "kurtas"]),
            loyalty_points=250,
            total_orders=5,
            total_spent=12500,
            joined_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            last_login_at=now,
            is_verified=True,
        )
        self._sign_in(user)
        self.add_notification(NotificationDraft(
            type="system", title="Welcome back!",
            message=f"Hello {user.name}, welcome back to looom.shop!",
        ))
        return True

    @_atomic
    def signup(self, data: SignupData) -> bool:
        if data.password != data.confirm_password:
            log.warning("Signup failed: passwords do not match")
            return False
        user = User(
            id=self._next_id("user_"),
            name=data.name,
            email=data.email.strip().lower(),
            phone=data.phone,
            loyalty_points=100,
            joined_at=self._now(),
        )
        self._sign_in(user)
        self.add_notification(NotificationDraft(
            type="system", title="Welcome to looom.shop!",
            message=f"Hi {user.name}! Thanks for joining us. You've earned 100 loyalty points!",
        ))
        return True

    def _sign_in(self, user: User) -> None:
        self._set(
            is_authenticated=True,
            user=user,
            token=auth.create_access_token({"sub": user.id, "role": "customer"}),
            refresh_token=auth.create_access_token({"sub": user.id, "role": "refresh"}, timedelta(days=30)),
        )

    @_atomic
    def logout(self) -> None:
        self._set(is_authenticated=False, user=None, token=None, refresh_token=None,
                  cart_items=[], notifications=[])

    @_atomic
    def update_profile(self, updates) -> None:
        user = self.state.user
        if user:
            self._set(user=user.model_validate({**user.model_dump(), **_updates(updates)}))

    @_atomic
    def add_address(self, address: Address) -> Optional[Address]:
        user = self.state.user
        if not user:
            return None
        new = address.model_copy(update={"id": self._next_id("addr_"), "is_default": not user.addresses})
        self._set(user=user.model_copy(update={"addresses": user.addresses + [new]}))
        return new

    @_atomic
    def update_address(self, address_id: str, updates) -> None:
        user = self.state.user
        if user:
            changes = _updates(updates)
            addresses = [a.model_copy(update=changes) if a.id == address_id else a for a in user.addresses]
            self._set(user=user.model_copy(update={"addresses": addresses}))

    @_atomic
    def delete_address(self, address_id: str) -> None:
        user = self.state.user
        if user:
            addresses = [a for a in user.addresses if a.id != address_id]
            self._set(user=user.model_copy(update={"addresses": addresses}))

    @_atomic
    def set_default_address(self, address_id: str) -> None:
        user = self.state.user
        if user:
            addresses = [a.model_copy(update={"is_default": a.id == address_id}) for a in user.addresses]
            self._set(user=user.model_copy(update={"addresses": addresses}))

    # ---------- admin auth ----------

    @_atomic
    def admin_login(self, email: str, password: str) -> bool:
        ok = auth.admin_login(email, password, self.storage, self._now())
        self._set(is_admin_authenticated=ok)
        return ok

    @_atomic
    def check_admin_session(self, now: Optional[datetime] = None) -> bool:
        alive = auth.check_admin_session(self.storage, now or self._now())
        if self.state.is_admin_authenticated != alive:
            self._set(is_admin_authenticated=alive)
        return alive

    @_atomic
    def admin_logout(self) -> None:
        auth.admin_logout(self.storage)
        self._set(is_admin_authenticated=False)

    @_atomic
    def admin_session_watcher(self, interval: float = auth.SESSION_CHECK_INTERVAL) -> auth.AdminSessionWatcher:
        return auth.AdminSessionWatcher(self.check_admin_session, self.admin_logout, interval)

    # ---------- cart ----------

    @_atomic
    def add_to_cart(self, product: Product, size: str, color: str, quantity: int = 1) -> None:
        key = (product.id, size, color)
        items = self.state.cart_items
        if any(item.key == key for item in items):
            items = [item.model_copy(update={"quantity": item.quantity + quantity}) if item.key == key else item
                     for item in items]
        else:
            items = items + [CartItem(product=product, selected_size=size, selected_color=color,
                                      quantity=quantity)]
        self._set(cart_items=items)

    @_atomic
    def remove_from_cart(self, product_id: str, size: str, color: str) -> None:
        key = (product_id, size, color)
        self._set(cart_items=[item for item in self.state.cart_items if item.key != key])

    @_atomic
    def update_cart_quantity(self, product_id: str, size: str, color: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_from_cart(product_id, size, color)
            return
        key = (product_id, size, color)
        self._set(cart_items=[item.model_copy(update={"quantity": quantity}) if item.key == key else item
                              for item in self.state.cart_items])

    @_atomic
    def clear_cart(self) -> None:
        self._set(cart_items=[])

    @_atomic
    def set_cart_open(self, open: bool) -> None:
        self._set(cart_open=open)

    @_atomic
    def cart_count(self) -> int:
        return sum(item.quantity for item in self.state.cart_items)

    @_atomic
    def cart_subtotal(self) -> float:
        return sum(item.product.price * item.quantity for item in self.state.cart_items)

    @_atomic
    def checkout_summary(self) -> CheckoutSummary:
        return compute_totals(self.state.cart_items)

    # ---------- orders ----------

    @_atomic
    def create_order(self, order_data: OrderDraft) -> str:
        now = self._now()
        order_id = self._next_id("ORD")
        order = Order(
            **order_data.model_dump(),
            id=order_id,
            created_at=now,
            updated_at=now,
            tracking_number="TRK" + order_id[-6:],
            estimated_delivery=now + ESTIMATED_DELIVERY,
            status_history=[OrderStatusUpdate(status=order_data.status, timestamp=now,
                                              notes="Order placed successfully")],
        )
        self._set(orders=self.state.orders + [order])

        user = self.state.user
        if user:
            self._set(user=user.model_copy(update={
                "total_orders": user.total_orders + 1,
                "total_spent": user.total_spent + order_data.total,
                "loyalty_points": user.loyalty_points + int(order_data.total // 100),
            }))

        self.add_notification(NotificationDraft(
            type="order", title="Order Confirmed!",
            message=f"Your order #{order_id} has been confirmed and is being processed.",
            order_id=order_id,
        ))
        log.info("Order %s created, total %.2f", order_id, order_data.total)
        return order_id

    @_atomic
    def get_user_orders(self) -> List[Order]:
        user = self.state.user
        if not user:
            return []
        mine = [o for o in self.state.orders if o.customer_email.lower() == user.email.lower()]
        return sorted(mine, key=lambda o: o.created_at, reverse=True)

    @_atomic
    def get_order_by_id(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.state.orders if o.id == order_id), None)

    @_atomic
    def update_order_status(self, order_id: str, status: str, notes: Optional[str] = None) -> Order:
        order = self.get_order_by_id(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        move = transition(order.status, status, self.order_policy)
        if not move.ok:
            raise InvalidTransition(order.status, status, move.error)

        now = self._now()
        changes = {
            "status": status,
            "updated_at": now,
            "status_history": order.status_history + [
                OrderStatusUpdate(status=status, timestamp=now, notes=notes or f"Order {status}")
            ],
        }
        if status == "delivered":
            changes["delivery_date"] = now
        updated = order.model_copy(update=changes)
        self._set(orders=[updated if o.id == order_id else o for o in self.state.orders])
        if self.state.selected_order and self.state.selected_order.id == order_id:
            self._set(selected_order=updated)

        self.add_notification(NotificationDraft(
            type="order", title="Order Update",
            message=STATUS_MESSAGES.get(status, f"Order status updated to {status}"),
            order_id=order_id,
        ))
        log.info("Order %s moved %s -> %s", order_id, move.current, status)
        return updated

    @_atomic
    def set_orders(self, orders: List[Order]) -> None:
        self._set(orders=list(orders))

    @_atomic
    def set_selected_order(self, order: Optional[Order]) -> None:
        self._set(selected_order=order)

    # ---------- payments ----------

    @_atomic
    def record_payment(self, payment: PaymentRecord) -> PaymentRecord:
        order = self.get_order_by_id(payment.order_id)
        if order is None:
            raise NotFound(f"Order {payment.order_id} not found")
        payment = payment.model_copy(update={
            "id": payment.id or self._next_id("pay_"),
            "created_at": payment.created_at or self._now(),
        })
        self._set(payments=self.state.payments + [payment])

        order_status = {"captured": "completed", "authorized": "processing",
                        "failed": "failed", "refunded": "refunded"}.get(payment.status)
        if order_status:
            updated = order.model_copy(update={
                "payment_status": order_status,
                "payment_id": payment.id,
                "transaction_id": payment.transaction_id or order.transaction_id,
                "updated_at": self._now(),
            })
            self._set(orders=[updated if o.id == order.id else o for o in self.state.orders])
        return payment

    @_atomic
    def get_payments_for_order(self, order_id: str) -> List[PaymentRecord]:
        return [p for p in self.state.payments if p.order_id == order_id]

    # ---------- wishlist ----------

    @_atomic
    def add_to_wishlist(self, product_id: str) -> None:
        user = self.state.user
        if user and product_id not in user.wishlist:
            self._set(user=user.model_copy(update={"wishlist": user.wishlist + [product_id]}))

    @_atomic
    def remove_from_wishlist(self, product_id: str) -> None:
        user = self.state.user
        if user:
            self._set(user=user.model_copy(update={"wishlist": [i for i in user.wishlist if i != product_id]}))

    @_atomic
    def is_in_wishlist(self, product_id: str) -> bool:
        user = self.state.user
        return bool(user) and product_id in user.wishlist

    # ---------- notifications ----------

    @_atomic
    def add_notification(self, draft: NotificationDraft) -> Notification:
        notification = Notification(**draft.model_dump(), id=self._next_id("notif_"), created_at=self._now())
        self._set(notifications=[notification] + self.state.notifications)
        return notification

    @_atomic
    def mark_notification_as_read(self, notification_id: str) -> None:
        self._set(notifications=[n.model_copy(update={"is_read": True}) if n.id == notification_id else n
                                 for n in self.state.notifications])

    @_atomic
    def clear_notifications(self) -> None:
        self._set(notifications=[])

    @_atomic
    def get_unread_notification_count(self) -> int:
        return sum(1 for n in self.state.notifications if not n.is_read)

    # ---------- products ----------

    @_atomic
    def set_products(self, products: List[Product]) -> None:
        self._set(products=list(products))

    @_atomic
    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.state.products if p.id == product_id), None)

    @_atomic
    def create_product(self, draft: ProductDraft) -> Product:
        product = product_service.create_product(draft).value
        self._set(products=[product] + self.state.products)
        return product

    @_atomic
    def update_product(self, product_id: str, updates: ProductUpdate) -> Product:
        current = self.get_product(product_id)
        result = product_service.update_product(product_id, updates)
        if result.value is not None:
            product = result.value
        elif result.source == "simulated" and current is not None:
            product = _merge(current, _updates(updates), self._now())
        else:
            raise NotFound(f"Product {product_id} not found")
        if current is None:
            self._set(products=[product] + self.state.products)
        else:
            self._set(products=[product if p.id == product_id else p for p in self.state.products])
        return product

    @_atomic
    def delete_product(self, product_id: str) -> bool:
        result = product_service.delete_product(product_id)
        self._set(products=[p for p in self.state.products if p.id != product_id])
        return result.value

    # ---------- categories ----------

    @_atomic
    def set_categories(self, categories: List[Category]) -> None:
        self._set(categories=list(categories))

    @_atomic
    def add_category(self, category: Category) -> Category:
        now = self._now()
        category = category.model_copy(update={
            "id": category.id or self._next_id("cat_"),
            "slug": category.slug or slugify(category.name),
            "auto_description": category.auto_description or category.description,
            "level": category_level(category.parent_id, self.state.categories),
            "created_at": category.created_at or now,
            "updated_at": now,
        })
        self._set(categories=self.state.categories + [category])
        return category

    @_atomic
    def update_category(self, category_id: str, updates) -> None:
        changes = _updates(updates)
        if "parent_id" in changes:
            changes["level"] = category_level(changes["parent_id"], self.state.categories)
        if "name" in changes and not changes.get("slug"):
            changes["slug"] = slugify(changes["name"])
        now = self._now()
        self._set(categories=[_merge(c, changes, now) if c.id == category_id else c
                              for c in self.state.categories])

    @_atomic
    def delete_category(self, category_id: str) -> None:
        self._set(categories=[c for c in self.state.categories if c.id != category_id])

    @_atomic
    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.state.categories if c.id == category_id), None)

    @_atomic
    def category_tree(self) -> List[CategoryNode]:
        return build_category_tree(self.state.categories)

    # ---------- themes ----------

    @_atomic
    def set_themes(self, themes: List[Theme]) -> None:
        self._set(themes=list(themes))

    @_atomic
    def add_theme(self, theme: Theme) -> Theme:
        now = self._now()
        theme = theme.model_copy(update={
            "id": theme.id or self._next_id("theme_"),
            "slug": theme.slug or slugify(theme.name),
            "sort_order": theme.sort_order or len(self.state.themes) + 1,
            "created_at": theme.created_at or now,
            "updated_at": now,
        })
        self._set(themes=self.state.themes + [theme])
        return theme

    @_atomic
    def update_theme(self, theme_id: str, updates) -> None:
        changes, now = _updates(updates), self._now()
        self._set(themes=[_merge(t, changes, now) if t.id == theme_id else t for t in self.state.themes])

    @_atomic
    def delete_theme(self, theme_id: str) -> None:
        self._set(themes=[t for t in self.state.themes if t.id != theme_id])

    @_atomic
    def set_active_theme(self, theme_id: str) -> None:
        now = self._now()
        self._set(themes=[t.model_copy(update={"is_active": t.id == theme_id, "updated_at": now})
                          for t in self.state.themes])

    @_atomic
    def set_default_theme(self, theme_id: str) -> None:
        now = self._now()
        self._set(themes=[t.model_copy(update={"is_default": t.id == theme_id, "updated_at": now})
                          for t in self.state.themes])

    @_atomic
    def active_theme(self) -> Optional[Theme]:
        themes = self.state.themes
        return next((t for t in themes if t.is_active), None) or next((t for t in themes if t.is_default), None)

    # ---------- stories ----------

    @_atomic
    def set_stories(self, stories: List[Story]) -> None:
        self._set(stories=list(stories))

    @_atomic
    def add_story(self, story: Story) -> Story:
        now = self._now()
        story = story.model_copy(update={
            "id": story.id or self._next_id("story_"),
            "sort_order": story.sort_order or len(self.state.stories) + 1,
            "created_at": story.created_at or now,
            "updated_at": now,
        })
        self._set(stories=self.state.stories + [story])
        return story

    @_atomic
    def update_story(self, story_id: str, updates) -> None:
        changes, now = _updates(updates), self._now()
        self._set(stories=[_merge(s, changes, now) if s.id == story_id else s for s in self.state.stories])

    @_atomic
    def delete_story(self, story_id: str) -> None:
        self._set(stories=[s for s in self.state.stories if s.id != story_id])

    @_atomic
    def reorder_stories(self, stories: Sequence[Story]) -> None:
        self._set(stories=_renumbered(stories))

    @_atomic
    def move_story(self, story_id: str, direction: str) -> None:
        self.reorder_stories(_moved(self.state.stories, story_id, direction))

    @_atomic
    def active_stories(self) -> List[Story]:
        return sorted((s for s in self.state.stories if s.is_active), key=lambda s: s.sort_order)

    # ---------- banners ----------

    @_atomic
    def set_banners(self, banners: List[Banner]) -> None:
        self._set(banners=list(banners))

    @_atomic
    def add_banner(self, banner: Banner) -> Banner:
        now = self._now()
        banner = banner.model_copy(update={
            "id": banner.id or self._next_id("banner_"),
            "sort_order": banner.sort_order or len(self.state.banners) + 1,
            "created_at": banner.created_at or now,
            "updated_at": now,
        })
        self._set(banners=self.state.banners + [banner])
        return banner

    @_atomic
    def update_banner(self, banner_id: str, updates) -> None:
        changes, now = _updates(updates), self._now()
        self._set(banners=[_merge(b, changes, now) if b.id == banner_id else b for b in self.state.banners])

    @_atomic
    def delete_banner(self, banner_id: str) -> None:
        self._set(banners=[b for b in self.state.banners if b.id != banner_id])

    @_atomic
    def reorder_banners(self, banners: Sequence[Banner]) -> None:
        self._set(banners=_renumbered(banners))

    @_atomic
    def move_banner(self, banner_id: str, direction: str) -> None:
        self.reorder_banners(_moved(self.state.banners, banner_id, direction))

    @_atomic
    def active_banners(self, position: Optional[str] = None) -> List[Banner]:
        banners = [b for b in self.state.banners if b.is_active and (position is None or b.position == position)]
        return sorted(banners, key=lambda b: b.sort_order)

    # ---------- listing ----------

    @_atomic
    def set_filters(self, updates) -> None:
        self._set(filters=self.state.filters.model_copy(update=_updates(updates)))

    @_atomic
    def set_search_query(self, query: str) -> None:
        self._set(search_query=query)

    @_atomic
    def filtered_products(self, category: str = ALL_PRODUCTS, sort_by: str = "featured") -> List[Product]:
        f = self.state.filters
        return filter_products(self.state.products, category=category, search=self.state.search_query,
                               price_range=f.price_range, colors=f.colors, sizes=f.sizes, sort_by=sort_by,
                               in_stock_only=f.in_stock)

    # ---------- ui ----------

    @_atomic
    def set_mobile_menu_open(self, open: bool) -> None:
        self._set(mobile_menu_open=open)

    @_atomic
    def set_filter_drawer_open(self, open: bool) -> None:
        self._set(filter_drawer_open=open)


def _moved(items: Sequence[M], item_id: str, direction: str) -> List[M]:
    ordered = sorted(items, key=lambda i: i.sort_order)
    index = next((n for n, i in enumerate(ordered) if i.id == item_id), None)
    if index is None:
        raise NotFound(f"{item_id} not found")
    target = index - 1 if direction == "up" else index + 1
    if 0 <= target < len(ordered):
        ordered[index], ordered[target] = ordered[target], ordered[index]
    return ordered
