"""Shared pytest fixtures for storefront tests."""

import json
from datetime import datetime

import httpx
import pytest

from storefront.cart import Cart
from storefront.models import MenuItem, SubmissionResult


# Half a minute past noon, so minute truncation is observable
NOW = datetime(2026, 10, 19, 12, 0, 30)

MENU_DATA = [
    {
        "title": "Pizza",
        "items": [
            {
                "id": "p1",
                "name": "Margherita",
                "description": "Tomato, fior di latte, basil",
                "price": "$12.50",
                "priceValue": 12.5,
                "image": "img/margherita.jpg",
                "status": "Available",
            },
            {
                "id": "p2",
                "name": "Diavola",
                "price": "$14.00",
                "priceValue": 14,
                "status": "Sold Out",
            },
        ],
    },
    {
        "title": "Desserts",
        "items": [
            {"id": "d1", "name": "Tiramisu", "priceValue": 6, "status": "Sold Out"},
        ],
    },
    {
        "title": "Drinks",
        "items": [
            {"id": "b1", "name": "Chinotto", "priceValue": 3.5},
        ],
    },
]


class FakeSubmitter:
    """Stands in for OrderSubmitter; records every call."""

    def __init__(self, success: bool = True, gate=None):
        self.success = success
        self.gate = gate
        self.calls = []

    async def submit(self, cart_items, details, totals) -> SubmissionResult:
        self.calls.append((list(cart_items), details, totals))
        if self.gate is not None:
            await self.gate.wait()
        if self.success:
            return SubmissionResult(success=True)
        return SubmissionResult(success=False, message="Could not submit")


@pytest.fixture
def jsonp():
    """Build a callback-script response answering the request's callback."""

    def respond(request: httpx.Request, body: dict, status_code: int = 200) -> httpx.Response:
        callback = request.url.params["callback"]
        return httpx.Response(
            status_code,
            text=f"{callback}({json.dumps(body)});",
            headers={"content-type": "application/javascript"},
        )

    return respond


@pytest.fixture
def margherita() -> MenuItem:
    return MenuItem(id="p1", name="Margherita", priceValue=12.5)


@pytest.fixture
def chinotto() -> MenuItem:
    return MenuItem(id="b1", name="Chinotto", priceValue=3.5)


@pytest.fixture
def cart() -> Cart:
    """A fresh empty cart."""
    return Cart()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def menu_data() -> list[dict]:
    return json.loads(json.dumps(MENU_DATA))


@pytest.fixture
def make_submitter():
    """Factory for FakeSubmitter instances."""
    return FakeSubmitter
