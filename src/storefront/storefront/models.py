from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Availability, LoadStatus

_SOLD_OUT_KEYS = {"soldout"}


class MenuItem(BaseModel):
    """A dish as served by the remote menu source.

    Wire keys follow the menu endpoint (`id`, `priceValue`); Python code uses
    the field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item_id: str = Field(alias="id")
    name: str
    description: str = ""
    price: str | None = None  # Display label, e.g. "$12.50"
    price_value: float = Field(alias="priceValue", ge=0)
    image: str = ""
    status: Availability = Availability.AVAILABLE

    @field_validator("item_id", mode="before")
    @classmethod
    def coerce_item_id(cls, value: Any) -> Any:
        # Spreadsheet-backed sources send numeric ids
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Availability:
        """Anything that is not a sold-out flag counts as available."""
        if isinstance(value, Availability):
            return value
        if value is None:
            return Availability.AVAILABLE
        key = str(value).strip().lower().replace("_", "").replace(" ", "")
        if key in _SOLD_OUT_KEYS:
            return Availability.SOLD_OUT
        return Availability.AVAILABLE

    @property
    def is_available(self) -> bool:
        return self.status is Availability.AVAILABLE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MenuItem):
            return NotImplemented
        return self.item_id == other.item_id

    def __hash__(self) -> int:
        return hash(self.item_id)


class MenuCategory(BaseModel):
    title: str
    items: list[MenuItem] = Field(default_factory=list)


class MenuResponse(BaseModel):
    """Body handed to the menu callback by the remote script."""

    status: str
    data: list[MenuCategory] | None = None
    message: str | None = None


class MenuLoadResult(BaseModel):
    status: LoadStatus
    data: list[MenuCategory] = Field(default_factory=list)
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.SUCCESS


class CartItem(BaseModel):
    """A menu item in the cart together with how many were ordered."""

    model_config = ConfigDict(validate_assignment=True)

    item: MenuItem
    quantity: int = Field(default=1, ge=1)

    @property
    def item_id(self) -> str:
        return self.item.item_id

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def unit_price(self) -> float:
        return self.item.price_value

    @property
    def line_total(self) -> float:
        return self.item.price_value * self.quantity

    def __add__(self, other: object) -> "CartItem":
        if not isinstance(other, CartItem) or other.item_id != self.item_id:
            return NotImplemented
        return CartItem(item=self.item, quantity=self.quantity + other.quantity)


class CheckoutDetails(BaseModel):
    """Customer details typed into the checkout form.

    Starts out blank; the checkout workflow decides when it is complete.
    """

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    pickup_time: datetime | None = None

    @field_validator("pickup_time")
    @classmethod
    def to_local_wall_time(cls, value: datetime | None) -> datetime | None:
        """Pickup times are kept as naive local wall-clock times."""
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone().replace(tzinfo=None)

    def missing_fields(self) -> list[str]:
        missing = [
            field
            for field in ("customer_name", "customer_email", "customer_phone")
            if not getattr(self, field)
        ]
        if self.pickup_time is None:
            missing.append("pickup_time")
        return missing


class SubmissionResult(BaseModel):
    success: bool
    message: str | None = None
    payload: dict[str, str] = Field(default_factory=dict)
