"""Storefront session wiring menu, cart and checkout together.

This is what a front end talks to. It owns one of each component and
connects them through callbacks: cart events open the panel, and a placed
order clears the cart.
"""

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from .cart import Cart
from .checkout import CheckoutWorkflow
from .config import Settings
from .enums import CartEvent
from .menu_loader import MenuLoader
from .models import CartItem, MenuItem, MenuLoadResult
from .pricing import OrderTotals, compute_totals
from .submitter import OrderSubmitter


class StorefrontSession:
    def __init__(
        self,
        loader: MenuLoader,
        submitter: OrderSubmitter,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.menu = loader
        self.cart = Cart()
        self.checkout = CheckoutWorkflow(
            submitter, on_order_placed=self.cart.clear, clock=clock
        )
        self.cart.subscribe(self._on_cart_event)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorefrontSession":
        return cls(
            MenuLoader(settings.menu_script_url, timeout=settings.request_timeout),
            OrderSubmitter(settings.order_script_url, timeout=settings.request_timeout),
        )

    def _on_cart_event(self, event: CartEvent) -> None:
        if event is CartEvent.OPEN_REQUESTED:
            self.checkout.open_panel()

    async def load_menu(self) -> MenuLoadResult:
        return await self.menu.load()

    def find_item(self, item_id: str) -> MenuItem | None:
        for category in self.menu.categories:
            for item in category.items:
                if item.item_id == item_id:
                    return item
        return None

    def add_to_cart(self, item_id: str) -> CartItem | None:
        item = self.find_item(item_id)
        if item is None:
            logger.warning("add_to_cart: no menu item with id {!r}", item_id)
            return None
        return self.cart.add(item)

    @property
    def badge_count(self) -> int:
        return self.cart.item_count

    def totals(self) -> OrderTotals:
        return compute_totals(self.cart.items)

    def open_cart(self) -> None:
        self.checkout.open_panel()

    def close_cart(self) -> None:
        self.checkout.close_panel()

    def begin_checkout(self) -> bool:
        return self.checkout.begin_checkout(self.cart.items)

    async def submit_order(self) -> bool:
        return await self.checkout.submit(self.cart.items)

    def close(self) -> None:
        self.cart.unsubscribe(self._on_cart_event)
        self.menu.close()
