from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from bistro.constants import TAX_RATE, TIP_PERCENTAGE


@dataclass
class CartLine:
    id: int
    name: str
    unit_price: float
    quantity: int
    category: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass
class TipSpec:
    kind: str = TIP_PERCENTAGE  # percentage / amount
    value: float = 0.0


@dataclass
class DiscountState:
    manual_discount: float = 0.0
    coupon_discount: float = 0.0
    coupon_code: Optional[str] = None


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    tax_amount: float
    amount_before_tip: float
    tip_amount: float
    total: float

    def rounded(self, decimals: int = 2) -> dict[str, float]:
        return {
            "subtotal": round(self.subtotal, decimals),
            "tax_amount": round(self.tax_amount, decimals),
            "amount_before_tip": round(self.amount_before_tip, decimals),
            "tip_amount": round(self.tip_amount, decimals),
            "total": round(self.total, decimals),
        }


def compute_totals(lines: Iterable[CartLine], tip: TipSpec, discounts: DiscountState) -> OrderTotals:
    """
    subtotal -> tax -> discounts (floored at 0) -> tip.

    A percentage tip is taken from the discounted amount; a fixed tip is
    added as is, even when the discounts have already floored the order at 0.
    Inputs are expected to be non-negative.
    """
    subtotal = sum(ln.unit_price * ln.quantity for ln in lines if ln.quantity > 0)
    tax_amount = subtotal * TAX_RATE
    amount_before_tip = max(
        0.0,
        subtotal + tax_amount - discounts.manual_discount - discounts.coupon_discount,
    )

    if tip.kind == TIP_PERCENTAGE:
        tip_amount = amount_before_tip * tip.value / 100
    else:
        tip_amount = tip.value

    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        amount_before_tip=amount_before_tip,
        tip_amount=tip_amount,
        total=amount_before_tip + tip_amount,
    )
