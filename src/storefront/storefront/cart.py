"""In-memory cart store.

Holds at most one CartItem per menu item id. Listeners are told about every
change through CartEvent values; adding an item additionally asks whoever
renders the cart to bring it into view.
"""

from collections.abc import Callable

from loguru import logger

from .enums import CartEvent
from .models import CartItem, MenuItem

CartListener = Callable[[CartEvent], None]


class Cart:
    def __init__(self) -> None:
        self._entries: dict[str, CartItem] = {}
        self._listeners: list[CartListener] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[CartItem]:
        """Snapshot of the entries in the order they were first added."""
        return [entry.model_copy() for entry in self._entries.values()]

    @property
    def item_count(self) -> int:
        return sum(entry.quantity for entry in self._entries.values())

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def get(self, item_id: str) -> CartItem | None:
        entry = self._entries.get(item_id)
        return entry.model_copy() if entry else None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._entries

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, item: MenuItem) -> CartItem:
        """Add one unit of `item`, merging with an existing entry."""
        new_entry = CartItem(item=item, quantity=1)
        existing = self._entries.get(item.item_id)
        entry = existing + new_entry if existing else new_entry
        self._entries[item.item_id] = entry
        logger.debug("cart.add: {} now x{}", item.name, entry.quantity)
        self._emit(CartEvent.CHANGED)
        self._emit(CartEvent.OPEN_REQUESTED)
        return entry.model_copy()

    def remove(self, item_id: str) -> None:
        if self._entries.pop(item_id, None) is None:
            return
        logger.debug("cart.remove: {}", item_id)
        self._emit(CartEvent.CHANGED)

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set the quantity exactly; zero or less removes the entry."""
        if quantity <= 0:
            self.remove(item_id)
            return
        entry = self._entries.get(item_id)
        if entry is None:
            return
        entry.quantity = quantity
        logger.debug("cart.update_quantity: {} -> {}", item_id, quantity)
        self._emit(CartEvent.CHANGED)

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("cart.clear")
        self._emit(CartEvent.CHANGED)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: CartListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: CartListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: CartEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
