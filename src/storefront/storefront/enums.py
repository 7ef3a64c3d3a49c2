from enum import StrEnum


class Availability(StrEnum):
    AVAILABLE = "Available"
    SOLD_OUT = "Sold Out"


class CheckoutPhase(StrEnum):
    BROWSING = "browsing"
    COLLECTING_DETAILS = "collecting-details"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CartEvent(StrEnum):
    CHANGED = "changed"
    OPEN_REQUESTED = "open-requested"


class LoadStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
