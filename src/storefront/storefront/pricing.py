"""Order totals derived from cart contents.

Totals are recomputed from the cart on every call and never cached. Amounts
stay unrounded internally; `format_amount` rounds to two decimals only where
they are shown or sent.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from .models import CartItem

SERVICE_FEE_RATE = 0.20


class OrderTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: float = 0.0
    service_fee: float = 0.0
    total: float = 0.0

    def formatted(self) -> dict[str, str]:
        """Return the totals as two-decimal strings keyed by wire name."""
        return {
            "subtotal": format_amount(self.subtotal),
            "serviceFee": format_amount(self.service_fee),
            "total": format_amount(self.total),
        }


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def compute_subtotal(cart_items: Iterable[CartItem]) -> float:
    return sum((item.line_total for item in cart_items), 0.0)


def compute_totals(cart_items: Iterable[CartItem]) -> OrderTotals:
    """Derive subtotal, service fee and grand total for the given cart items."""
    subtotal = compute_subtotal(cart_items)
    service_fee = subtotal * SERVICE_FEE_RATE
    return OrderTotals(
        subtotal=subtotal,
        service_fee=service_fee,
        total=subtotal + service_fee,
    )
