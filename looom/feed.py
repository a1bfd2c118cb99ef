"""In-process change feed for the products table.

The product service publishes one ``ProductChange`` per committed write.
Subscribers keep their own snapshot keyed by product id and apply each change
as a delta; bursts are collapsed into one callback per debounce window.
"""
import logging
import threading
from dataclasses import dataclass
from os import getenv
from typing import Callable, Dict, List, Literal, Optional

from .schemas import Product

log = logging.getLogger(__name__)

FEED_DEBOUNCE = float(getenv("LOOOM_FEED_DEBOUNCE", "0.25"))


@dataclass
class ProductChange:
    kind: Literal["insert", "update", "delete"]
    product_id: str
    product: Optional[Product] = None

    def as_message(self) -> dict:
        return {
            "type": "product_" + self.kind,
            "product_id": self.product_id,
            "product": self.product.model_dump(mode="json", by_alias=True) if self.product else None,
        }


class ProductFeed:
    def __init__(self):
        self._listeners: List[Callable[[ProductChange], None]] = []
        self._lock = threading.Lock()

    def listen(self, listener: Callable[[ProductChange], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def stop():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return stop

    def publish(self, change: ProductChange) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                log.exception("Product feed listener failed on %s %s", change.kind, change.product_id)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


feed = ProductFeed()


class ProductSubscription:
    def __init__(self, initial: List[Product], callback: Callable[[List[Product]], None],
                 debounce: Optional[float] = None):
        self._snapshot: Dict[str, Product] = {p.id: p for p in initial}
        self._callback = callback
        self._debounce = FEED_DEBOUNCE if debounce is None else debounce
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._closed = False

    def apply(self, change: ProductChange) -> None:
        with self._lock:
            if self._closed:
                return
            if change.kind == "delete":
                self._snapshot.pop(change.product_id, None)
            elif change.kind == "insert" and change.product is not None:
                # newest first, like the initial fetch
                self._snapshot = {change.product_id: change.product, **self._snapshot}
            elif change.product is not None:
                self._snapshot[change.product_id] = change.product
        self._schedule()

    def _schedule(self) -> None:
        if self._debounce <= 0:
            self.flush()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        with self._lock:
            self._timer = None
            if self._closed:
                return
            products = list(self._snapshot.values())
        self._callback(products)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
