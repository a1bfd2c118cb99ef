import math
from dataclasses import dataclass
from os import getenv
from typing import Iterable, Optional

from .schemas import CartItem, CheckoutSummary

FREE_SHIPPING_ABOVE = 2000
SHIPPING_FEE = 100
TAX_RATE = 0.05

# "strict" rejects moves outside ORDER_TRANSITIONS, "permissive" lets an admin
# set any status.
ORDER_POLICY = getenv("LOOOM_ORDER_POLICY", "strict")

TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})
ORDER_TRANSITIONS = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"packed", "cancelled"}),
    "packed": frozenset({"shipped", "cancelled"}),
    "shipped": frozenset({"delivered", "cancelled"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}

STATUS_MESSAGES = {
    "confirmed": "Your order has been confirmed!",
    "packed": "Your order is packed and ready to ship!",
    "shipped": "Your order is on its way!",
    "delivered": "Your order has been delivered!",
    "cancelled": "Your order has been cancelled.",
}


@dataclass
class Transition:
    ok: bool
    current: str
    target: str
    error: Optional[str] = None


def transition(current: str, target: str, policy: Optional[str] = None) -> Transition:
    policy = policy or ORDER_POLICY
    if target not in ORDER_TRANSITIONS:
        return Transition(False, current, target, f"Unknown order status {target!r}")
    if policy == "permissive":
        return Transition(True, current, target)
    if target in ORDER_TRANSITIONS.get(current, ()):
        return Transition(True, current, target)
    if current in TERMINAL_STATUSES:
        return Transition(False, current, target, f"Order is already {current}")
    return Transition(False, current, target, f"Cannot move order from {current} to {target}")


def next_statuses(current: str):
    return sorted(ORDER_TRANSITIONS.get(current, ()), key=lambda s: (s == "cancelled", s))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_totals(items: Iterable[CartItem]) -> CheckoutSummary:
    subtotal = sum(item.product.price * item.quantity for item in items)
    shipping = 0 if subtotal > FREE_SHIPPING_ABOVE else SHIPPING_FEE
    tax = round_half_up(subtotal * TAX_RATE)
    return CheckoutSummary(subtotal=subtotal, shipping=shipping, tax=tax, total=subtotal + shipping + tax)
