from __future__ import annotations

import math
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bistro.constants import TIP_KINDS, TIP_PERCENTAGE
from bistro.services.totals import CartLine, DiscountState, OrderTotals, TipSpec, compute_totals


def _non_negative(v: float) -> float:
    v = float(v)
    return v if math.isfinite(v) and v > 0 else 0.0


@dataclass
class Cart:
    id: str
    lines: List[CartLine] = field(default_factory=list)
    tip: TipSpec = field(default_factory=TipSpec)
    discounts: DiscountState = field(default_factory=DiscountState)
    note: str = ""
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    def _find(self, line_id: int) -> Optional[CartLine]:
        for ln in self.lines:
            if ln.id == line_id:
                return ln
        return None

    def add_line(self, line_id: int, name: str, unit_price: float, category: Optional[str] = None) -> CartLine:
        with self.lock:
            # same product -> bump quantity
            ln = self._find(line_id)
            if ln is not None:
                ln.quantity += 1
                return ln
            ln = CartLine(id=line_id, name=name, unit_price=_non_negative(unit_price), quantity=1, category=category)
            self.lines.append(ln)
            return ln

    def update_quantity(self, line_id: int, quantity: int) -> None:
        with self.lock:
            ln = self._find(line_id)
            if ln is not None:
                ln.quantity = max(0, int(quantity))
            self.lines = [x for x in self.lines if x.quantity > 0]

    def remove_line(self, line_id: int) -> None:
        with self.lock:
            self.lines = [x for x in self.lines if x.id != line_id]

    def clear(self) -> None:
        with self.lock:
            self.lines = []
            self.tip = TipSpec(kind=TIP_PERCENTAGE, value=0.0)
            self.discounts = DiscountState()
            self.note = ""

    def set_tip(self, kind: str, value: float) -> None:
        if kind not in TIP_KINDS:
            raise ValueError(f"tip kind must be one of: {', '.join(TIP_KINDS)}")
        with self.lock:
            self.tip = TipSpec(kind=kind, value=_non_negative(value))

    def set_manual_discount(self, amount: float) -> None:
        with self.lock:
            self.discounts.manual_discount = _non_negative(amount)

    def set_coupon_discount(self, amount: float, code: Optional[str] = None) -> None:
        with self.lock:
            self.discounts.coupon_discount = _non_negative(amount)
            self.discounts.coupon_code = (code or "").strip().upper() or None

    def set_note(self, note: str) -> None:
        with self.lock:
            self.note = note.strip()

    @property
    def total_items(self) -> int:
        return sum(ln.quantity for ln in self.lines)

    @property
    def totals(self) -> OrderTotals:
        with self.lock:
            return compute_totals(self.lines, self.tip, self.discounts)

    def to_dict(self, decimals: int = 2) -> Dict[str, Any]:
        with self.lock:
            return {
                "id": self.id,
                "items": [
                    {
                        "id": ln.id,
                        "name": ln.name,
                        "price": ln.unit_price,
                        "quantity": ln.quantity,
                        "category": ln.category,
                        "line_total": round(ln.line_total, decimals),
                    }
                    for ln in self.lines
                ],
                "total_items": self.total_items,
                "tip": {"kind": self.tip.kind, "value": self.tip.value},
                "discounts": {
                    "manual": self.discounts.manual_discount,
                    "coupon": self.discounts.coupon_discount,
                    "coupon_code": self.discounts.coupon_code,
                },
                "note": self.note,
                "totals": self.totals.rounded(decimals),
            }


CARTS: Dict[str, Cart] = {}  # cart_id -> cart
_CARTS_LOCK = threading.Lock()


def new_cart(register: bool = True) -> Cart:
    """Open a cart. Unregistered carts are throwaway (e.g. an anonymous page view)."""
    cart = Cart(id=uuid.uuid4().hex)
    if register:
        with _CARTS_LOCK:
            CARTS[cart.id] = cart
    return cart


def get_cart(cart_id: str) -> Optional[Cart]:
    return CARTS.get(cart_id)


def drop_cart(cart_id: str) -> bool:
    with _CARTS_LOCK:
        return CARTS.pop(cart_id, None) is not None
