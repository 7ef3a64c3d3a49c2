"""Checkout workflow for the cart panel.

Phases:
    BROWSING -> COLLECTING_DETAILS -> SUBMITTING -> SUCCEEDED | FAILED

FAILED -> COLLECTING_DETAILS (retry) is the only step backwards. SUCCEEDED
(acknowledge) and COLLECTING_DETAILS (cancel) return to BROWSING. Opening or
closing the panel resets the workflow to BROWSING and discards any details.

The workflow never touches the cart directly: it is handed the cart items for
each step and reports a placed order through ``on_order_placed``.
"""

from collections.abc import Callable, Iterable
from datetime import datetime

from loguru import logger

from .enums import CheckoutPhase
from .models import CartItem, CheckoutDetails, SubmissionResult
from .pricing import compute_totals
from .submitter import OrderSubmitter

MISSING_DETAILS_NOTICE = "Please fill in all your details."
PAST_PICKUP_NOTICE = "Please choose a pickup time that is not in the past."
EMPTY_CART_NOTICE = "Your cart is empty. Add some items from the menu to get started."

_TRANSITIONS: dict[CheckoutPhase, set[CheckoutPhase]] = {
    CheckoutPhase.BROWSING: {CheckoutPhase.COLLECTING_DETAILS},
    CheckoutPhase.COLLECTING_DETAILS: {CheckoutPhase.BROWSING, CheckoutPhase.SUBMITTING},
    CheckoutPhase.SUBMITTING: {CheckoutPhase.SUCCEEDED, CheckoutPhase.FAILED},
    CheckoutPhase.SUCCEEDED: {CheckoutPhase.BROWSING},
    CheckoutPhase.FAILED: {CheckoutPhase.COLLECTING_DETAILS},
}


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class CheckoutWorkflow:
    """State machine behind the cart panel.

    Args:
        submitter: Sends the order once details are complete.
        on_order_placed: Called after a successful dispatch, typically to
            clear the cart.
        clock: Returns the current local time; used for the pickup minimum.
    """

    def __init__(
        self,
        submitter: OrderSubmitter,
        on_order_placed: Callable[[], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._submitter = submitter
        self._on_order_placed = on_order_placed
        self._clock = clock
        self._session = 0
        self._in_flight = False

        self.phase = CheckoutPhase.BROWSING
        self.details: CheckoutDetails | None = None
        self.notice: str | None = None
        self.last_result: SubmissionResult | None = None
        self.is_open = False

    @property
    def is_submitting(self) -> bool:
        return self._in_flight

    # ------------------------------------------------------------------
    # Panel
    # ------------------------------------------------------------------

    def open_panel(self) -> None:
        if self.is_open:
            return
        self.is_open = True
        self._reset()

    def close_panel(self) -> None:
        self.is_open = False
        self._reset()

    def _reset(self) -> None:
        # Anything still in flight belongs to the previous session
        self._session += 1
        if self.phase is not CheckoutPhase.BROWSING:
            logger.info("Checkout reset: {} -> {}", self.phase, CheckoutPhase.BROWSING)
        self.phase = CheckoutPhase.BROWSING
        self.details = None
        self.notice = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin_checkout(self, cart_items: Iterable[CartItem]) -> bool:
        if not list(cart_items):
            logger.warning("Checkout rejected: cart is empty")
            self.notice = EMPTY_CART_NOTICE
            return False
        if not self._transition(CheckoutPhase.COLLECTING_DETAILS):
            return False
        self._start_details()
        return True

    def cancel(self) -> bool:
        if self.phase is not CheckoutPhase.COLLECTING_DETAILS:
            return self._reject("cancel")
        self._transition(CheckoutPhase.BROWSING)
        self.details = None
        self.notice = None
        return True

    def retry(self) -> bool:
        if self.phase is not CheckoutPhase.FAILED:
            return self._reject("retry")
        self._transition(CheckoutPhase.COLLECTING_DETAILS)
        self._start_details()
        return True

    def acknowledge(self) -> bool:
        if self.phase is not CheckoutPhase.SUCCEEDED:
            return self._reject("acknowledge")
        self._transition(CheckoutPhase.BROWSING)
        return True

    def fill_details(
        self,
        customer_name: str | None = None,
        customer_email: str | None = None,
        customer_phone: str | None = None,
        pickup_time: datetime | str | None = None,
    ) -> bool:
        """Update the details draft; fields left as None are kept."""
        if self.phase is not CheckoutPhase.COLLECTING_DETAILS or self.details is None:
            return self._reject("fill_details")
        updates = {
            "customer_name": customer_name,
            "customer_email": customer_email,
            "customer_phone": customer_phone,
            "pickup_time": pickup_time,
        }
        for field, value in updates.items():
            if value is not None:
                setattr(self.details, field, value)
        return True

    def minimum_pickup_time(self) -> datetime:
        """Earliest pickup time accepted right now, to the minute."""
        return _local_naive(self._clock()).replace(second=0, microsecond=0)

    def validate_details(self) -> str | None:
        """Return a notice describing what blocks submission, or None."""
        details = self.details
        if details is None or details.missing_fields():
            return MISSING_DETAILS_NOTICE
        if _local_naive(details.pickup_time) < self.minimum_pickup_time():
            return PAST_PICKUP_NOTICE
        return None

    async def submit(self, cart_items: Iterable[CartItem]) -> bool:
        """Validate the details and dispatch the order.

        Returns True when the order went out. Validation problems leave the
        workflow collecting details with ``notice`` set.
        """
        if self._in_flight:
            logger.warning("Checkout submit ignored: a submission is already in flight")
            return False
        if self.phase is not CheckoutPhase.COLLECTING_DETAILS:
            return self._reject("submit")

        items = list(cart_items)
        if not items:
            self.notice = EMPTY_CART_NOTICE
            return False
        notice = self.validate_details()
        if notice:
            logger.info("Checkout details incomplete: {}", notice)
            self.notice = notice
            return False

        details = self.details
        totals = compute_totals(items)
        session = self._session
        self._transition(CheckoutPhase.SUBMITTING)
        self.notice = None
        self._in_flight = True
        try:
            result = await self._submitter.submit(items, details, totals)
        finally:
            self._in_flight = False

        # The order left either way, so the cart goes even if the panel moved on
        if result.success and self._on_order_placed is not None:
            self._on_order_placed()

        if session != self._session:
            logger.info("Submission finished after the checkout was reset; not updating")
            return result.success

        self.last_result = result
        self.details = None
        if result.success:
            self._transition(CheckoutPhase.SUCCEEDED)
        else:
            self.notice = result.message
            self._transition(CheckoutPhase.FAILED)
        return result.success

    def _start_details(self) -> None:
        self.details = CheckoutDetails()
        self.notice = None

    def _transition(self, target: CheckoutPhase) -> bool:
        if target not in _TRANSITIONS[self.phase]:
            logger.warning("Invalid checkout transition: {} -> {}", self.phase, target)
            return False
        logger.info("Checkout {} -> {}", self.phase, target)
        self.phase = target
        return True

    def _reject(self, action: str) -> bool:
        logger.warning("Checkout {} not allowed while {}", action, self.phase)
        return False
