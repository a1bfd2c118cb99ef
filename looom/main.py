import logging
import os
from typing import List, Optional

import anyio
from fastapi import Body, Depends, FastAPI, Form, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_snake

from . import database, product_service, reports
from .auth import (
    ADMIN_SESSION_TTL,
    SEED_ADMIN_EMAIL,
    SEED_ADMIN_PASSWORD,
    admin_session_expiry,
    create_access_token,
    ensure_admin_user,
    get_current_admin,
)
from .catalog import ALL_PRODUCTS, SORT_OPTIONS, can_nest_under, curated, featured_products, filter_products
from .errors import BackendError, InvalidTransition, NotFound
from .feed import ProductChange, feed
from .orders import next_statuses
from .recs import recommend_for_product
from .schemas import (
    Address,
    Banner,
    CamelModel,
    Category,
    CategoryNode,
    CheckoutSummary,
    LandingSettings,
    LandingSettingsUpdate,
    Order,
    OrderDraft,
    OrderStatus,
    PaymentMethodType,
    PaymentDraft,
    PaymentRecord,
    Product,
    ProductDraft,
    ProductUpdate,
    SignupData,
    Story,
    Theme,
)
from .storage import JsonFileStorage
from .store import Store
from .ws import hub

log = logging.getLogger(__name__)

STATE_FILE = os.getenv("LOOOM_STATE_FILE", "./looom-state.json")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

app = FastAPI(title="looom.shop")
store = Store(JsonFileStorage(STATE_FILE)).load()
_watcher = None


def get_store() -> Store:
    return store


def require_admin(admin: dict = Depends(get_current_admin), store: Store = Depends(get_store)):
    if not store.check_admin_session():
        raise HTTPException(status_code=401, detail="Admin session expired")
    return admin


def _push_to_sockets(change: ProductChange):
    if not hub.active:
        return
    try:
        anyio.from_thread.run(hub.broadcast, change.as_message())
    except RuntimeError as e:
        log.warning("Could not push product change %s to websockets: %s", change.product_id, e)


feed.listen(_push_to_sockets)


@app.on_event("startup")
def on_startup():
    global _watcher
    logging.basicConfig(level=LOG_LEVEL)
    store.initialize_app()
    if store.state.backend_connected and SEED_ADMIN_EMAIL:
        ensure_admin_user(SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD)
    _watcher = store.admin_session_watcher()
    _watcher.start()


@app.on_event("shutdown")
def on_shutdown():
    if _watcher is not None:
        _watcher.stop()


@app.exception_handler(BackendError)
async def backend_error(request: Request, exc: BackendError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(InvalidTransition)
async def invalid_transition(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={
        "detail": str(exc), "current": exc.current, "allowed": next_statuses(exc.current),
    })


@app.exception_handler(NotFound)
async def not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _snake(body: dict, model) -> dict:
    fields = model.model_fields
    out = {}
    for key, value in body.items():
        name = key if key in fields else to_snake(key)
        if name in fields and name != "id":
            out[name] = value
    return out


def _apply(action, *args):
    try:
        return action(*args)
    except ValidationError as e:
        raise HTTPException(422, str(e))


def _ordered_by_ids(items, ids: List[str]):
    by_id = {i.id: i for i in items}
    unknown = [i for i in ids if i not in by_id]
    if unknown:
        raise HTTPException(400, f"Unknown ids: {', '.join(unknown)}")
    listed = set(ids)
    rest = sorted((i for i in items if i.id not in listed), key=lambda i: i.sort_order)
    return [by_id[i] for i in ids] + rest


# ----------- HEALTH -----------
@app.get("/")
def home(store: Store = Depends(get_store)):
    return {"name": "looom.shop", "mode": "live" if store.state.backend_connected else "demo"}


@app.get("/api/health")
def health():
    result = database.test_backend_connection()
    return {"configured": database.is_backend_configured(), "connected": result.success, "error": result.error}


# ----------- CATALOG -----------
@app.get("/api/products", response_model=List[Product])
def list_products(
    category: str = ALL_PRODUCTS,
    sort: str = "featured",
    q: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    colors: List[str] = Query(default=[]),
    sizes: List[str] = Query(default=[]),
    in_stock: Optional[bool] = None,
    store: Store = Depends(get_store),
):
    if sort not in SORT_OPTIONS:
        raise HTTPException(400, f"Unknown sort {sort!r}")
    f = store.state.filters
    low, high = f.price_range
    return filter_products(
        store.state.products,
        category=category,
        search=store.state.search_query if q is None else q,
        price_range=(low if min_price is None else min_price, high if max_price is None else max_price),
        colors=colors or f.colors,
        sizes=sizes or f.sizes,
        sort_by=sort,
        in_stock_only=f.in_stock if in_stock is None else in_stock,
    )


@app.get("/api/products/featured", response_model=List[Product])
def list_featured(limit: int = 8, store: Store = Depends(get_store)):
    return featured_products(store.state.products, limit)


@app.get("/api/products/{pid}", response_model=Product)
def product_page(pid: str, store: Store = Depends(get_store)):
    product = store.get_product(pid) or product_service.get_product(pid).value
    if not product:
        raise HTTPException(404, "Product not found")
    return product


@app.get("/api/products/{pid}/recommendations", response_model=List[Product])
def product_recommendations(pid: str, n: int = 4, store: Store = Depends(get_store)):
    return recommend_for_product(store.state.products, pid, n=n)


class FilterUpdate(CamelModel):
    category: Optional[List[str]] = None
    price_range: Optional[List[float]] = Field(None, min_length=2, max_length=2)
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    in_stock: Optional[bool] = None
    search_query: Optional[str] = None


@app.put("/api/filters")
def update_filters(body: FilterUpdate, store: Store = Depends(get_store)):
    changes = body.model_dump(exclude_unset=True, exclude={"search_query"})
    if "price_range" in changes:
        changes["price_range"] = tuple(changes["price_range"])
    store.set_filters(changes)
    if body.search_query is not None:
        store.set_search_query(body.search_query)
    return {"filters": store.state.filters, "searchQuery": store.state.search_query}


@app.get("/api/categories", response_model=List[Category])
def list_categories(active_only: bool = False, store: Store = Depends(get_store)):
    cats = sorted(store.state.categories, key=lambda c: (c.level, c.sort_order))
    return [c for c in cats if c.is_active or not active_only]


@app.get("/api/categories/tree", response_model=List[CategoryNode])
def category_tree(store: Store = Depends(get_store)):
    return store.category_tree()


@app.get("/api/themes", response_model=List[Theme])
def list_themes(store: Store = Depends(get_store)):
    return sorted(store.state.themes, key=lambda t: t.sort_order)


@app.get("/api/themes/active", response_model=Optional[Theme])
def current_theme(store: Store = Depends(get_store)):
    return store.active_theme()


@app.get("/api/stories", response_model=List[Story])
def list_stories(store: Store = Depends(get_store)):
    return store.active_stories()


@app.get("/api/banners", response_model=List[Banner])
def list_banners(position: Optional[str] = None, store: Store = Depends(get_store)):
    return store.active_banners(position)


@app.get("/api/landing", response_model=LandingSettings)
def landing(store: Store = Depends(get_store)):
    if store.state.landing_settings is None:
        store.load_landing_settings()
    return store.state.landing_settings


@app.get("/api/landing/sections")
def landing_sections(store: Store = Depends(get_store)):
    settings = store.state.landing_settings or store.load_landing_settings().value
    products = store.state.products
    categories = {c.id: c for c in store.state.categories}
    return {
        "featured": featured_products(products) if settings.show_featured_products else [],
        "bestSelling": curated(products, settings.best_selling_product_ids),
        "trending": curated(products, settings.trending_product_ids),
        "popularCategories": [categories[i] for i in settings.popular_category_ids if i in categories],
    }


# ----------- CART -----------
class CartLine(BaseModel):
    product_id: str
    size: str = ""
    color: str = ""
    quantity: int = 1


def _cart(store: Store):
    return {"items": store.state.cart_items, "count": store.cart_count(), "summary": store.checkout_summary()}


@app.get("/api/cart")
def get_cart(store: Store = Depends(get_store)):
    return _cart(store)


@app.post("/api/cart")
def add_to_cart(line: CartLine, store: Store = Depends(get_store)):
    if line.quantity < 1:
        raise HTTPException(400, "Quantity must be at least 1")
    product = store.get_product(line.product_id)
    if not product:
        raise HTTPException(404, "Product not found")
    store.add_to_cart(product, line.size, line.color, line.quantity)
    return _cart(store)


@app.patch("/api/cart")
def update_cart(line: CartLine, store: Store = Depends(get_store)):
    store.update_cart_quantity(line.product_id, line.size, line.color, line.quantity)
    return _cart(store)


@app.delete("/api/cart/{product_id}")
def remove_from_cart(product_id: str, size: str = "", color: str = "", store: Store = Depends(get_store)):
    store.remove_from_cart(product_id, size, color)
    return _cart(store)


@app.delete("/api/cart")
def clear_cart(store: Store = Depends(get_store)):
    store.clear_cart()
    return _cart(store)


class UiToggles(CamelModel):
    cart_open: Optional[bool] = None
    mobile_menu_open: Optional[bool] = None
    filter_drawer_open: Optional[bool] = None


@app.put("/api/ui")
def set_ui(body: UiToggles, store: Store = Depends(get_store)):
    if body.cart_open is not None:
        store.set_cart_open(body.cart_open)
    if body.mobile_menu_open is not None:
        store.set_mobile_menu_open(body.mobile_menu_open)
    if body.filter_drawer_open is not None:
        store.set_filter_drawer_open(body.filter_drawer_open)
    s = store.state
    return UiToggles(cart_open=s.cart_open, mobile_menu_open=s.mobile_menu_open,
                     filter_drawer_open=s.filter_drawer_open)


# ----------- CHECKOUT -----------
class CheckoutRequest(CamelModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: str = Field(..., min_length=1)
    address: Address
    payment_method: PaymentMethodType = "cod"
    notes: Optional[str] = None


@app.get("/api/checkout/summary", response_model=CheckoutSummary)
def checkout_summary(store: Store = Depends(get_store)):
    return store.checkout_summary()


@app.post("/api/orders", status_code=201)
def place_order(body: CheckoutRequest, store: Store = Depends(get_store)):
    if not store.state.cart_items:
        raise HTTPException(400, "Cart is empty")
    summary = store.checkout_summary()
    draft = OrderDraft(
        **body.model_dump(),
        items=store.state.cart_items,
        total=summary.total,
        payment_status="pending",
    )
    order_id = store.create_order(draft)
    store.clear_cart()
    return {"orderId": order_id, "summary": summary}


@app.get("/api/orders/mine", response_model=List[Order])
def my_orders(store: Store = Depends(get_store)):
    if not store.state.is_authenticated:
        raise HTTPException(401, "Not authenticated")
    return store.get_user_orders()


@app.get("/api/orders/{order_id}", response_model=Order)
def track_order(order_id: str, store: Store = Depends(get_store)):
    order = store.get_order_by_id(order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    return order


@app.post("/api/orders/{order_id}/payments", response_model=PaymentRecord, status_code=201)
def record_payment(order_id: str, payment: PaymentDraft, store: Store = Depends(get_store)):
    return store.record_payment(PaymentRecord(order_id=order_id, **payment.model_dump()))


# ----------- CUSTOMER AUTH -----------
@app.post("/api/login")
def api_login(email: str = Form(...), password: str = Form(...), store: Store = Depends(get_store)):
    if not store.login(email, password):
        raise HTTPException(400, "Invalid credentials")
    return {"access_token": store.state.token, "token_type": "bearer"}


@app.post("/api/signup")
def api_signup(data: SignupData, store: Store = Depends(get_store)):
    if not store.signup(data):
        raise HTTPException(400, "Passwords do not match")
    return {"access_token": store.state.token, "token_type": "bearer"}


@app.post("/api/logout")
def api_logout(store: Store = Depends(get_store)):
    store.logout()
    return {"ok": True}


@app.get("/api/me")
def me(store: Store = Depends(get_store)):
    if not store.state.is_authenticated:
        raise HTTPException(401, "Not authenticated")
    return store.state.user


@app.post("/api/me/addresses", status_code=201)
def add_address(address: Address, store: Store = Depends(get_store)):
    created = store.add_address(address)
    if created is None:
        raise HTTPException(401, "Not authenticated")
    return created


@app.post("/api/wishlist/{pid}")
def add_to_wishlist(pid: str, store: Store = Depends(get_store)):
    store.add_to_wishlist(pid)
    return {"inWishlist": store.is_in_wishlist(pid)}


@app.delete("/api/wishlist/{pid}")
def remove_from_wishlist(pid: str, store: Store = Depends(get_store)):
    store.remove_from_wishlist(pid)
    return {"inWishlist": store.is_in_wishlist(pid)}


@app.get("/api/notifications")
def notifications(store: Store = Depends(get_store)):
    return {"items": store.state.notifications, "unread": store.get_unread_notification_count()}


@app.post("/api/notifications/{nid}/read")
def read_notification(nid: str, store: Store = Depends(get_store)):
    store.mark_notification_as_read(nid)
    return {"unread": store.get_unread_notification_count()}


@app.delete("/api/notifications")
def clear_notifications(store: Store = Depends(get_store)):
    store.clear_notifications()
    return {"unread": 0}


# ----------- ADMIN -----------
@app.post("/api/admin/login")
def admin_login(username: str = Form(...), password: str = Form(...), store: Store = Depends(get_store)):
    if not store.admin_login(username, password):
        raise HTTPException(400, "Invalid credentials")
    token = create_access_token({"sub": username.strip().lower(), "role": "admin"}, ADMIN_SESSION_TTL)
    return {"access_token": token, "token_type": "bearer", "expires_at": admin_session_expiry(store.storage)}


@app.post("/api/admin/logout")
def admin_logout(admin: dict = Depends(get_current_admin), store: Store = Depends(get_store)):
    store.admin_logout()
    return {"ok": True}


@app.get("/api/admin/session")
def admin_session(store: Store = Depends(get_store)):
    alive = store.check_admin_session()
    return {"authenticated": alive, "expiresAt": admin_session_expiry(store.storage) if alive else None}


@app.get("/api/admin/dashboard")
def admin_dashboard(admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    s = store.state
    return reports.dashboard_stats(s.orders, s.products, s.payments, store.clock().date())


# products
@app.post("/api/admin/products", response_model=Product, status_code=201)
def admin_create_product(draft: ProductDraft, admin: dict = Depends(require_admin),
                         store: Store = Depends(get_store)):
    return store.create_product(draft)


@app.patch("/api/admin/products/{pid}", response_model=Product)
def admin_update_product(pid: str, updates: ProductUpdate, admin: dict = Depends(require_admin),
                         store: Store = Depends(get_store)):
    return _apply(store.update_product, pid, updates)


@app.delete("/api/admin/products/{pid}")
def admin_delete_product(pid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return {"ok": store.delete_product(pid)}


@app.post("/api/admin/products/reload", response_model=List[Product])
def admin_reload_products(admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return store.load_products().value


@app.get("/api/admin/products/export", response_class=PlainTextResponse)
def admin_export_products(admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return PlainTextResponse(reports.products_csv(store.state.products), media_type="text/csv")


# categories
def _check_parent(store: Store, parent_id: Optional[str]):
    if not parent_id:
        return
    parent = store.get_category(parent_id)
    if parent is None:
        raise HTTPException(400, "Parent category not found")
    if not can_nest_under(parent):
        raise HTTPException(400, "Categories can only be nested two levels deep")


@app.post("/api/admin/categories", response_model=Category, status_code=201)
def admin_create_category(category: Category, admin: dict = Depends(require_admin),
                          store: Store = Depends(get_store)):
    _check_parent(store, category.parent_id)
    return store.add_category(category)


@app.patch("/api/admin/categories/{cid}", response_model=Category)
def admin_update_category(cid: str, body: dict = Body(...), admin: dict = Depends(require_admin),
                          store: Store = Depends(get_store)):
    if not store.get_category(cid):
        raise HTTPException(404, "Category not found")
    changes = _snake(body, Category)
    if changes.get("parent_id") == cid:
        raise HTTPException(400, "A category cannot be its own parent")
    if "parent_id" in changes:
        _check_parent(store, changes["parent_id"])
    _apply(store.update_category, cid, changes)
    return store.get_category(cid)


@app.delete("/api/admin/categories/{cid}")
def admin_delete_category(cid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    store.delete_category(cid)
    return {"ok": True}


# themes
def _theme(store: Store, tid: str) -> Theme:
    theme = next((t for t in store.state.themes if t.id == tid), None)
    if theme is None:
        raise HTTPException(404, "Theme not found")
    return theme


@app.post("/api/admin/themes", response_model=Theme, status_code=201)
def admin_create_theme(theme: Theme, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return store.add_theme(theme)


@app.patch("/api/admin/themes/{tid}", response_model=Theme)
def admin_update_theme(tid: str, body: dict = Body(...), admin: dict = Depends(require_admin),
                       store: Store = Depends(get_store)):
    _theme(store, tid)
    _apply(store.update_theme, tid, _snake(body, Theme))
    return _theme(store, tid)


@app.delete("/api/admin/themes/{tid}")
def admin_delete_theme(tid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    store.delete_theme(tid)
    return {"ok": True}


@app.post("/api/admin/themes/{tid}/activate", response_model=Theme)
def admin_activate_theme(tid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    _theme(store, tid)
    store.set_active_theme(tid)
    return _theme(store, tid)


@app.post("/api/admin/themes/{tid}/default", response_model=Theme)
def admin_default_theme(tid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    _theme(store, tid)
    store.set_default_theme(tid)
    return _theme(store, tid)


# stories & banners
class Reorder(BaseModel):
    ids: List[str]


def _story(store: Store, sid: str) -> Story:
    story = next((s for s in store.state.stories if s.id == sid), None)
    if story is None:
        raise HTTPException(404, "Story not found")
    return story


def _banner(store: Store, bid: str) -> Banner:
    banner = next((b for b in store.state.banners if b.id == bid), None)
    if banner is None:
        raise HTTPException(404, "Banner not found")
    return banner


@app.get("/api/admin/stories", response_model=List[Story])
def admin_list_stories(admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return sorted(store.state.stories, key=lambda s: s.sort_order)


@app.post("/api/admin/stories", response_model=Story, status_code=201)
def admin_create_story(story: Story, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return store.add_story(story)


@app.patch("/api/admin/stories/{sid}", response_model=Story)
def admin_update_story(sid: str, body: dict = Body(...), admin: dict = Depends(require_admin),
                       store: Store = Depends(get_store)):
    _story(store, sid)
    _apply(store.update_story, sid, _snake(body, Story))
    return _story(store, sid)


@app.delete("/api/admin/stories/{sid}")
def admin_delete_story(sid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    store.delete_story(sid)
    return {"ok": True}


@app.post("/api/admin/stories/reorder", response_model=List[Story])
def admin_reorder_stories(body: Reorder, admin: dict = Depends(require_admin),
                          store: Store = Depends(get_store)):
    store.reorder_stories(_ordered_by_ids(store.state.stories, body.ids))
    return store.state.stories


@app.post("/api/admin/stories/{sid}/move", response_model=List[Story])
def admin_move_story(sid: str, direction: str = Query(..., pattern="^(up|down)$"),
                     admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    store.move_story(sid, direction)
    return store.state.stories


@app.get("/api/admin/banners", response_model=List[Banner])
def admin_list_banners(admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return sorted(store.state.banners, key=lambda b: b.sort_order)


@app.post("/api/admin/banners", response_model=Banner, status_code=201)
def admin_create_banner(banner: Banner, admin: dict = Depends(require_admin),
                        store: Store = Depends(get_store)):
    return store.add_banner(banner)


@app.patch("/api/admin/banners/{bid}", response_model=Banner)
def admin_update_banner(bid: str, body: dict = Body(...), admin: dict = Depends(require_admin),
                        store: Store = Depends(get_store)):
    _banner(store, bid)
    _apply(store.update_banner, bid, _snake(body, Banner))
    return _banner(store, bid)


@app.delete("/api/admin/banners/{bid}")
def admin_delete_banner(bid: str, admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    store.delete_banner(bid)
    return {"ok": True}


@app.post("/api/admin/banners/reorder", response_model=List[Banner])
def admin_reorder_banners(body: Reorder, admin: dict = Depends(require_admin),
                          store: Store = Depends(get_store)):
    store.reorder_banners(_ordered_by_ids(store.state.banners, body.ids))
    return store.state.banners


@app.post("/api/admin/banners/{bid}/move", response_model=List[Banner])
def admin_move_banner(bid: str, direction: str = Query(..., pattern="^(up|down)$"),
                      admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    store.move_banner(bid, direction)
    return store.state.banners


# orders
class StatusChange(BaseModel):
    status: OrderStatus
    notes: Optional[str] = None


@app.get("/api/admin/orders", response_model=List[Order])
def admin_orders(status: Optional[OrderStatus] = None, admin: dict = Depends(require_admin),
                 store: Store = Depends(get_store)):
    orders = [o for o in store.state.orders if status is None or o.status == status]
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


@app.get("/api/admin/orders/export", response_class=PlainTextResponse)
def admin_export_orders(admin: dict = Depends(require_admin), store: Store = Depends(get_store)):
    return PlainTextResponse(reports.orders_csv(store.state.orders), media_type="text/csv")


@app.get("/api/admin/orders/{order_id}")
def admin_order_detail(order_id: str, admin: dict = Depends(require_admin),
                       store: Store = Depends(get_store)):
    order = store.get_order_by_id(order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    store.set_selected_order(order)
    return {"order": order, "payments": store.get_payments_for_order(order_id),
            "nextStatuses": next_statuses(order.status)}


@app.patch("/api/admin/orders/{order_id}/status", response_model=Order)
def admin_update_order_status(order_id: str, body: StatusChange, admin: dict = Depends(require_admin),
                              store: Store = Depends(get_store)):
    return store.update_order_status(order_id, body.status, body.notes)


# landing page
@app.put("/api/admin/landing", response_model=LandingSettings)
def admin_update_landing(updates: LandingSettingsUpdate, admin: dict = Depends(require_admin),
                         store: Store = Depends(get_store)):
    return store.update_landing_settings(updates).value


# ----------- WebSocket -----------
@app.websocket("/ws/products")
async def products_ws(ws: WebSocket):
    await hub.connect(ws)
    try:
        while True:
            await ws.receive_text()  # heartbeat
    except WebSocketDisconnect:
        hub.disconnect(ws)
