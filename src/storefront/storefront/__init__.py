"""Restaurant pre-order storefront: menu loading, cart and checkout."""

from .cart import Cart
from .checkout import CheckoutWorkflow
from .enums import Availability, CartEvent, CheckoutPhase, LoadStatus
from .menu_loader import MenuLoader, filter_available
from .models import (
    CartItem,
    CheckoutDetails,
    MenuCategory,
    MenuItem,
    MenuLoadResult,
    SubmissionResult,
)
from .pricing import SERVICE_FEE_RATE, OrderTotals, compute_totals
from .session import StorefrontSession
from .submitter import OrderSubmitter, build_order_payload

__all__ = [
    "Availability",
    "Cart",
    "CartEvent",
    "CartItem",
    "CheckoutDetails",
    "CheckoutPhase",
    "CheckoutWorkflow",
    "LoadStatus",
    "MenuCategory",
    "MenuItem",
    "MenuLoadResult",
    "MenuLoader",
    "OrderSubmitter",
    "OrderTotals",
    "SERVICE_FEE_RATE",
    "StorefrontSession",
    "SubmissionResult",
    "build_order_payload",
    "compute_totals",
    "filter_available",
]
