"""Menu loading from the remote menu script.

The menu endpoint answers with a script payload of the form
``<callback>({"status": ..., ...});``. Each load registers a uniquely named
handler for the duration of its request only and always drops it again,
whatever the outcome.
"""

import json
import re
import time
import uuid
from collections.abc import Callable, Iterable
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .enums import LoadStatus
from .models import MenuCategory, MenuLoadResult, MenuResponse

CALLBACK_PREFIX = "jsonp_callback_menu"
DEFAULT_LOAD_ERROR = "Failed to load the menu."
TRANSPORT_ERROR = "An error occurred while trying to fetch the menu."

# `/**/` is the guard prefix some JSONP servers emit before the call
_SCRIPT_PATTERN = re.compile(
    r"^\s*(?:/\*\*/\s*)?([A-Za-z_$][\w$]*)\s*\((.*)\)\s*;?\s*$", re.DOTALL
)

ResponseHandler = Callable[[dict[str, Any]], MenuLoadResult]


class MalformedMenuResponse(Exception):
    """The menu endpoint answered with something that is not a menu callback."""


class MenuState(BaseModel):
    categories: list[MenuCategory] = Field(default_factory=list)
    is_loading: bool = False
    error: str | None = None


def filter_available(categories: Iterable[MenuCategory]) -> list[MenuCategory]:
    """Drop sold-out items, then drop categories left without items."""
    available = []
    for category in categories:
        items = [item for item in category.items if item.is_available]
        if items:
            available.append(MenuCategory(title=category.title, items=items))
    return available


def parse_script_payload(script: str) -> tuple[str, dict[str, Any]]:
    """Split a callback script into (callback name, decoded argument).

    Raises:
        MalformedMenuResponse: not a single callback invocation, the argument
            is not JSON, or the object carries no ``status``.
    """
    match = _SCRIPT_PATTERN.match(script)
    if not match:
        raise MalformedMenuResponse("The menu response was not a callback script.")
    callback_name, body = match.groups()
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedMenuResponse("The menu response contained invalid JSON.") from exc
    if not isinstance(payload, dict) or "status" not in payload:
        raise MalformedMenuResponse("The menu response did not include a status.")
    return callback_name, payload


class MenuLoader:
    """Fetches the categorized menu and tracks loading/error state.

    Args:
        url: Address of the menu script.
        client: Optional shared ``httpx.AsyncClient``. When omitted a client is
            opened per load.
        timeout: Request timeout in seconds for the per-load client.
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
        self._handlers: dict[str, ResponseHandler] = {}
        self._generation = 0
        self._closed = False
        self.state = MenuState()

    @property
    def categories(self) -> list[MenuCategory]:
        return self.state.categories

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def pending_callbacks(self) -> tuple[str, ...]:
        """Names of response handlers currently registered."""
        return tuple(self._handlers)

    def build_params(self, callback_name: str) -> dict[str, str]:
        return {
            "action": "getMenu",
            "callback": callback_name,
            # Cache buster, epoch milliseconds
            "t": str(int(time.time() * 1000)),
        }

    async def load(self) -> MenuLoadResult:
        """Run one fetch/filter cycle and return its terminal result.

        Never raises for remote or transport problems; those end in an
        error result and an error state.
        """
        if self._closed:
            raise RuntimeError("MenuLoader has been closed")

        self._generation += 1
        generation = self._generation
        callback_name = f"{CALLBACK_PREFIX}_{uuid.uuid4().hex[:12]}"
        self._handlers[callback_name] = self._handle_response
        self.state = MenuState(is_loading=True)
        logger.info("Loading menu (callback={})", callback_name)

        try:
            script = await self._fetch(callback_name)
            name, payload = parse_script_payload(script)
            handler = self._handlers.get(name)
            if handler is None:
                raise MalformedMenuResponse(
                    f"The menu response answered an unknown callback ({name})."
                )
            result = handler(payload)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Menu request failed: {}", exc)
            result = MenuLoadResult(status=LoadStatus.ERROR, message=TRANSPORT_ERROR)
        except MalformedMenuResponse as exc:
            logger.warning("Malformed menu response: {}", exc)
            result = MenuLoadResult(status=LoadStatus.ERROR, message=str(exc))
        finally:
            self._handlers.pop(callback_name, None)

        self._apply(result, generation)
        return result

    def close(self) -> None:
        """Discard the loader; responses still in flight are ignored."""
        self._closed = True
        self._handlers.clear()

    async def _fetch(self, callback_name: str) -> str:
        params = self.build_params(callback_name)
        if self._client is not None:
            response = await self._client.get(self.url, params=params)
        else:
            # Apps Script deployments answer through a redirect
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            ) as client:
                response = await client.get(self.url, params=params)
        response.raise_for_status()
        return response.text

    def _handle_response(self, payload: dict[str, Any]) -> MenuLoadResult:
        try:
            response = MenuResponse.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Menu payload failed validation: {}", exc)
            raise MalformedMenuResponse("The menu data could not be read.") from exc

        if response.status == LoadStatus.SUCCESS and response.data is not None:
            categories = filter_available(response.data)
            logger.info(
                "Menu loaded: {} categories, {} items",
                len(categories),
                sum(len(c.items) for c in categories),
            )
            return MenuLoadResult(status=LoadStatus.SUCCESS, data=categories)

        message = response.message or DEFAULT_LOAD_ERROR
        logger.warning("Menu source reported an error: {}", message)
        return MenuLoadResult(status=LoadStatus.ERROR, message=message)

    def _apply(self, result: MenuLoadResult, generation: int) -> None:
        if self._closed or generation != self._generation:
            logger.debug("Discarding stale menu response (generation {})", generation)
            return
        if result.ok:
            self.state = MenuState(categories=result.data)
        else:
            self.state = MenuState(error=result.message)
