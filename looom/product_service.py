"""Product reads and writes against the backend, with demo-mode fallbacks.

Reads never raise: without a backend they answer from the static catalog,
and a failing backend degrades to the same catalog with the error attached.
Writes without a backend are simulated; a failing backend raises
``BackendError`` so the admin UI can show the failure.
"""
import logging
import threading
import time
from typing import Callable, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .database import get_engine, is_backend_configured
from .errors import BackendError
from .feed import ProductChange, ProductSubscription, feed
from .mock_data import PLACEHOLDER_IMAGE, mock_products
from .models import ProductRow, utcnow
from .results import Fetched
from .schemas import Product, ProductDraft, ProductUpdate

log = logging.getLogger(__name__)

DEFAULT_STOCK = 10
DEFAULT_RATING = 4.5

_demo_id_lock = threading.Lock()
_last_demo_ms = 0

# view-model field -> column it feeds
_COLUMN_SOURCES = {
    "name": "name",
    "price": "price",
    "original_price": "original_price",
    "category": "category",
    "description": "description",
    "images": "images",
    "sizes": "sizes",
    "colors": "colors",
    "stock": "in_stock",
    "featured": "featured",
    "rating": "rating",
    "review_count": "review_count",
    "tags": "tags",
    "supports_feeding_friendly": "supports_feeding_friendly",
    "is_stitched_dress": "is_stitched_dress",
}


def to_paise(rupees: float) -> int:
    return int(round(rupees * 100))


def _rating(value) -> float:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return DEFAULT_RATING
    return rating or DEFAULT_RATING


def db_row_to_product(row: Union[ProductRow, dict]) -> Product:
    data = row if isinstance(row, dict) else row.model_dump()
    original = data.get("original_price")
    return Product(
        id=str(data["id"]),
        name=data["name"],
        price=data["price"] / 100,
        original_price=original / 100 if original else None,
        category=data.get("category") or "",
        description=data.get("description") or "",
        images=list(data.get("images") or []),
        sizes=list(data.get("sizes") or []),
        colors=list(data.get("colors") or []),
        in_stock=(data.get("stock") or 0) > 0,
        featured=bool(data.get("featured")),
        rating=_rating(data.get("rating")),
        review_count=data.get("review_count") or 0,
        tags=list(data.get("tags") or []),
        supports_feeding_friendly=bool(data.get("supports_feeding_friendly")),
        is_stitched_dress=bool(data.get("is_stitched_dress")),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


def product_to_db_row(product: Union[Product, ProductDraft, ProductUpdate, dict], partial: bool = False) -> dict:
    """Map a view model onto column values.

    With ``partial`` only the columns whose source field was supplied are
    returned, so an update never resets columns it did not mention.
    """
    if isinstance(product, dict):
        data = product
    else:
        data = product.model_dump(exclude_unset=partial)
    original = data.get("original_price")
    row = {
        "name": data.get("name") or "",
        "price": to_paise(data.get("price") or 0),
        "original_price": to_paise(original) if original else None,
        "category": data.get("category") or "",
        "description": data.get("description") or "",
        "images": list(data.get("images") or []),
        "sizes": list(data.get("sizes") or []),
        "colors": list(data.get("colors") or []),
        "stock": DEFAULT_STOCK if data.get("in_stock", True) else 0,
        "featured": bool(data.get("featured")),
        "rating": data.get("rating") or DEFAULT_RATING,
        "review_count": data.get("review_count") or 0,
        "tags": list(data.get("tags") or []),
        "supports_feeding_friendly": bool(data.get("supports_feeding_friendly")),
        "is_stitched_dress": bool(data.get("is_stitched_dress")),
    }
    if partial:
        row = {col: value for col, value in row.items() if _COLUMN_SOURCES[col] in data}
    return row


def display_images(product: Product) -> List[str]:
    return product.images or [PLACEHOLDER_IMAGE]


def get_products() -> Fetched[List[Product]]:
    if not is_backend_configured():
        log.info("Using mock catalog, backend not configured")
        return Fetched(mock_products(), "fallback")

    log.info("Fetching products from backend")
    try:
        with Session(get_engine()) as session:
            rows = session.exec(select(ProductRow).order_by(ProductRow.created_at.desc())).all()
            products = []
            for row in rows:
                try:
                    products.append(db_row_to_product(row))
                except ValidationError as e:
                    log.warning("Skipping product %s with invalid data: %s", row.id, e)
    except SQLAlchemyError as e:
        log.error("Error fetching products: %s", e)
        log.info("Falling back to mock catalog")
        return Fetched(mock_products(), "fallback", str(e))
    log.info("Loaded %d products from backend", len(products))
    return Fetched(products, "live")


def get_product(product_id: str) -> Fetched[Optional[Product]]:
    if not is_backend_configured():
        match = next((p for p in mock_products() if p.id == product_id), None)
        return Fetched(match, "fallback")
    try:
        with Session(get_engine()) as session:
            row = session.get(ProductRow, product_id)
            product = db_row_to_product(row) if row else None
    except (SQLAlchemyError, ValidationError) as e:
        log.error("Error fetching product %s: %s", product_id, e)
        return Fetched(None, "fallback", str(e))
    return Fetched(product, "live")


def _demo_id() -> str:
    global _last_demo_ms
    with _demo_id_lock:
        ms = int(time.time() * 1000)
        if ms <= _last_demo_ms:
            ms = _last_demo_ms + 1
        _last_demo_ms = ms
    return "demo_%d" % ms


def create_product(draft: ProductDraft) -> Fetched[Product]:
    if not is_backend_configured():
        log.info("Demo mode: product creation simulated")
        now = utcnow()
        product = Product(
            id=_demo_id(),
            created_at=now,
            updated_at=now,
            **draft.model_dump(),
        )
        return Fetched(product, "simulated")

    log.info("Creating product %s", draft.name)
    try:
        with Session(get_engine()) as session:
            row = ProductRow(**product_to_db_row(draft))
            session.add(row)
            session.commit()
            session.refresh(row)
            product = db_row_to_product(row)
    except SQLAlchemyError as e:
        log.error("Error creating product: %s", e)
        raise BackendError(f"Could not create product: {e}") from e
    log.info("Product created: %s", product.id)
    feed.publish(ProductChange("insert", product.id, product))
    return Fetched(product, "live")


def update_product(product_id: str, updates: ProductUpdate) -> Fetched[Optional[Product]]:
    if not is_backend_configured():
        log.info("Demo mode: product update simulated")
        return Fetched(None, "simulated")

    log.info("Updating product %s", product_id)
    try:
        with Session(get_engine()) as session:
            row = session.get(ProductRow, product_id)
            if row is None:
                return Fetched(None, "live")
            for column, value in product_to_db_row(updates, partial=True).items():
                setattr(row, column, value)
            row.updated_at = utcnow()
            # raises ValidationError before anything is committed
            db_row_to_product(row)
            session.add(row)
            session.commit()
            session.refresh(row)
            product = db_row_to_product(row)
    except SQLAlchemyError as e:
        log.error("Error updating product %s: %s", product_id, e)
        raise BackendError(f"Could not update product {product_id}: {e}") from e
    feed.publish(ProductChange("update", product.id, product))
    return Fetched(product, "live")


def delete_product(product_id: str) -> Fetched[bool]:
    if not is_backend_configured():
        log.info("Demo mode: product deletion simulated")
        return Fetched(True, "simulated")

    log.info("Deleting product %s", product_id)
    try:
        with Session(get_engine()) as session:
            row = session.get(ProductRow, product_id)
            if row is not None:
                session.delete(row)
                session.commit()
    except SQLAlchemyError as e:
        log.error("Error deleting product %s: %s", product_id, e)
        raise BackendError(f"Could not delete product {product_id}: {e}") from e
    if row is not None:
        feed.publish(ProductChange("delete", product_id))
    return Fetched(row is not None, "live")


def subscribe_to_products(callback: Callable[[List[Product]], None],
                          debounce: Optional[float] = None) -> Callable[[], None]:
    if not is_backend_configured():
        return lambda: None

    subscription = ProductSubscription(get_products().value, callback, debounce)
    stop = feed.listen(subscription.apply)

    def unsubscribe():
        stop()
        subscription.close()
    return unsubscribe
