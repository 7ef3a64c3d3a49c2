"""Order submission to the remote form-processing script.

The order endpoint gives no usable answer: its response is opaque to the
storefront, so a request that goes out without a transport error counts as
submitted. The endpoint may still have rejected it. Staff confirm pre-orders
manually, which is the only real acknowledgement.
"""

import json
from collections.abc import Iterable

import httpx

from .logging import order_logger
from .models import CartItem, CheckoutDetails, SubmissionResult
from .pricing import OrderTotals

PICKUP_TIME_FORMAT = "%Y-%m-%dT%H:%M"
SUBMIT_ERROR = "We couldn't submit your pre-order. Please try again or call us directly."


def build_order_payload(
    cart_items: Iterable[CartItem],
    details: CheckoutDetails,
    totals: OrderTotals,
) -> dict[str, str]:
    """Flatten cart, customer details and totals into form fields."""
    if details.pickup_time is None:
        raise ValueError("pickup_time is required to build an order payload")

    order_details = [
        {"name": item.name, "quantity": item.quantity, "priceValue": item.unit_price}
        for item in cart_items
    ]
    return {
        "customerName": details.customer_name,
        "customerEmail": details.customer_email,
        "customerPhone": details.customer_phone,
        "pickupTime": details.pickup_time.strftime(PICKUP_TIME_FORMAT),
        "orderDetails": json.dumps(order_details),
        **totals.formatted(),
    }


class OrderSubmitter:
    """Posts pre-orders as multipart form data.

    Args:
        url: Address of the order script.
        client: Optional shared ``httpx.AsyncClient``. When omitted a client is
            opened per submission.
        timeout: Request timeout in seconds for the per-submission client.
    """

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.url = url
        self._client = client
        self._timeout = timeout

    async def submit(
        self,
        cart_items: Iterable[CartItem],
        details: CheckoutDetails,
        totals: OrderTotals,
    ) -> SubmissionResult:
        payload = build_order_payload(cart_items, details, totals)
        # (None, value) parts make httpx send plain multipart fields
        files = {name: (None, value) for name, value in payload.items()}

        try:
            if self._client is not None:
                response = await self._client.post(self.url, files=files)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.url, files=files)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            order_logger().error(
                "Order for {} ({}) not sent: {}",
                details.customer_name,
                details.customer_phone,
                exc,
            )
            return SubmissionResult(success=False, message=SUBMIT_ERROR, payload=payload)

        # The status is only logged; it never decides the outcome
        order_logger().info(
            "Order dispatched for {} ({}), pickup {}, total {}, HTTP {}; awaiting manual confirmation",
            details.customer_name,
            details.customer_phone,
            payload["pickupTime"],
            payload["total"],
            response.status_code,
        )
        return SubmissionResult(success=True, payload=payload)
