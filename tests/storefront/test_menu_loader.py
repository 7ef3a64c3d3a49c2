"""Tests for menu loading over the callback-script endpoint.

HTTP is served by httpx.MockTransport; no network calls are made.
"""

import asyncio

import httpx
import pytest

from storefront.enums import Availability, LoadStatus
from storefront.menu_loader import (
    CALLBACK_PREFIX,
    DEFAULT_LOAD_ERROR,
    TRANSPORT_ERROR,
    MalformedMenuResponse,
    MenuLoader,
    filter_available,
    parse_script_payload,
)
from storefront.models import MenuCategory, MenuItem

MENU_URL = "https://menu.example.test/exec"


def run_loads(handler, times: int = 1):
    """Create a loader on a mock transport and load `times` times."""

    async def scenario():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            loader = MenuLoader(MENU_URL, client=client)
            results = [await loader.load() for _ in range(times)]
            return loader, results

    return asyncio.run(scenario())


class TestSuccessfulLoad:
    def test_sold_out_items_and_empty_categories_are_dropped(self, jsonp, menu_data):
        loader, [result] = run_loads(
            lambda request: jsonp(request, {"status": "success", "data": menu_data})
        )
        assert result.status is LoadStatus.SUCCESS
        assert [c.title for c in result.data] == ["Pizza", "Drinks"]
        assert [i.item_id for i in result.data[0].items] == ["p1"]
        assert loader.categories == result.data
        assert loader.is_loading is False
        assert loader.error is None

    def test_item_fields_are_read_from_wire_names(self, jsonp, menu_data):
        loader, _ = run_loads(
            lambda request: jsonp(request, {"status": "success", "data": menu_data})
        )
        margherita = loader.categories[0].items[0]
        assert margherita.name == "Margherita"
        assert margherita.price == "$12.50"
        assert margherita.price_value == 12.5
        assert margherita.image == "img/margherita.jpg"

    def test_request_carries_action_callback_and_cache_buster(self, jsonp, menu_data):
        seen = []

        def handler(request):
            seen.append(request)
            return jsonp(request, {"status": "success", "data": menu_data})

        run_loads(handler, times=2)
        params = [request.url.params for request in seen]
        assert all(p["action"] == "getMenu" for p in params)
        assert all(p["callback"].startswith(CALLBACK_PREFIX) for p in params)
        assert all(p["t"].isdigit() for p in params)
        assert params[0]["callback"] != params[1]["callback"]

    def test_no_handlers_left_registered(self, jsonp, menu_data):
        loader, _ = run_loads(
            lambda request: jsonp(request, {"status": "success", "data": menu_data}),
            times=3,
        )
        assert loader.pending_callbacks == ()


class TestFailedLoad:
    def test_remote_error_message_is_surfaced(self, jsonp):
        loader, [result] = run_loads(
            lambda request: jsonp(request, {"status": "error", "message": "Sheet offline"})
        )
        assert result.status is LoadStatus.ERROR
        assert result.message == "Sheet offline"
        assert loader.error == "Sheet offline"
        assert loader.categories == []

    def test_remote_error_without_message_uses_default(self, jsonp):
        loader, _ = run_loads(lambda request: jsonp(request, {"status": "error"}))
        assert loader.error == DEFAULT_LOAD_ERROR

    def test_success_without_data_is_an_error(self, jsonp):
        loader, _ = run_loads(lambda request: jsonp(request, {"status": "success"}))
        assert loader.error == DEFAULT_LOAD_ERROR

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        loader, [result] = run_loads(handler)
        assert result.message == TRANSPORT_ERROR
        assert loader.is_loading is False
        assert loader.pending_callbacks == ()

    def test_unusable_url_ends_in_error_state(self, jsonp, menu_data):
        """A stray newline from a .env file must not leave the menu loading."""

        async def scenario():
            transport = httpx.MockTransport(
                lambda request: jsonp(request, {"status": "success", "data": menu_data})
            )
            async with httpx.AsyncClient(transport=transport) as client:
                loader = MenuLoader(MENU_URL + "\n", client=client)
                result = await loader.load()
                return loader, result

        loader, result = asyncio.run(scenario())
        assert result.status is LoadStatus.ERROR
        assert loader.error == TRANSPORT_ERROR
        assert loader.is_loading is False
        assert loader.pending_callbacks == ()

    def test_http_error_status(self):
        loader, _ = run_loads(lambda request: httpx.Response(500, text="oops"))
        assert loader.error == TRANSPORT_ERROR

    def test_missing_status_is_malformed(self, jsonp):
        loader, _ = run_loads(lambda request: jsonp(request, {"data": []}))
        assert loader.error == "The menu response did not include a status."
        assert loader.is_loading is False

    def test_unknown_callback_is_malformed(self):
        loader, [result] = run_loads(
            lambda request: httpx.Response(200, text='someoneElse({"status": "success", "data": []})')
        )
        assert result.status is LoadStatus.ERROR
        assert "unknown callback" in result.message

    def test_invalid_item_data_is_malformed(self, jsonp):
        bad = [{"title": "Pizza", "items": [{"id": "p1", "name": "Margherita", "priceValue": -1}]}]
        loader, _ = run_loads(lambda request: jsonp(request, {"status": "success", "data": bad}))
        assert loader.error == "The menu data could not be read."

    def test_load_after_error_runs_again(self, jsonp, menu_data):
        responses = iter(
            [{"status": "error", "message": "later"}, {"status": "success", "data": menu_data}]
        )
        loader, results = run_loads(lambda request: jsonp(request, next(responses)), times=2)
        assert [r.status for r in results] == [LoadStatus.ERROR, LoadStatus.SUCCESS]
        assert loader.error is None
        assert len(loader.categories) == 2


class TestTeardown:
    def test_response_after_close_is_ignored(self, jsonp, menu_data):
        async def scenario():
            started = asyncio.Event()
            release = asyncio.Event()

            async def handler(request):
                started.set()
                await release.wait()
                return jsonp(request, {"status": "success", "data": menu_data})

            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                loader = MenuLoader(MENU_URL, client=client)
                task = asyncio.create_task(loader.load())
                await started.wait()
                loader.close()
                release.set()
                await task
                return loader

        loader = asyncio.run(scenario())
        assert loader.categories == []
        assert loader.pending_callbacks == ()

    def test_superseded_load_does_not_overwrite_newer_menu(self, jsonp, menu_data):
        """An older load finishing last keeps the newer load's menu."""

        async def scenario():
            first_started = asyncio.Event()
            release_first = asyncio.Event()
            calls = []

            async def handler(request):
                calls.append(request)
                if len(calls) == 1:
                    first_started.set()
                    await release_first.wait()
                    return jsonp(request, {"status": "error", "message": "stale"})
                return jsonp(request, {"status": "success", "data": menu_data})

            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                loader = MenuLoader(MENU_URL, client=client)
                older = asyncio.create_task(loader.load())
                await first_started.wait()
                newer = await loader.load()
                release_first.set()
                stale = await older
                return loader, stale, newer

        loader, stale, newer = asyncio.run(scenario())
        assert stale.status is LoadStatus.ERROR
        assert newer.status is LoadStatus.SUCCESS
        assert loader.error is None
        assert [c.title for c in loader.categories] == ["Pizza", "Drinks"]
        assert loader.is_loading is False
        assert loader.pending_callbacks == ()

    def test_closed_loader_refuses_to_load(self):
        loader = MenuLoader(MENU_URL)
        loader.close()
        with pytest.raises(RuntimeError):
            asyncio.run(loader.load())


class TestHelpers:
    def test_parse_script_payload_accepts_guard_prefix(self):
        name, payload = parse_script_payload('/**/ cb_1({"status": "success"})')
        assert name == "cb_1"
        assert payload == {"status": "success"}

    @pytest.mark.parametrize(
        "script",
        ["not a script", 'cb({"status": oops})', 'cb(["status"])'],
    )
    def test_parse_script_payload_rejects_garbage(self, script):
        with pytest.raises(MalformedMenuResponse):
            parse_script_payload(script)

    @pytest.mark.parametrize("raw", ["Sold Out", "SOLD OUT", "sold_out", "SoldOut"])
    def test_sold_out_spellings(self, raw):
        item = MenuItem(id="x", name="X", priceValue=1, status=raw)
        assert item.status is Availability.SOLD_OUT

    @pytest.mark.parametrize("raw", ["Available", "", None, "Limited"])
    def test_other_statuses_are_available(self, raw):
        assert MenuItem(id="x", name="X", priceValue=1, status=raw).is_available

    def test_numeric_ids_become_strings(self):
        assert MenuItem(id=7, name="X", priceValue=1).item_id == "7"

    def test_filter_available_keeps_order(self):
        a = MenuItem(id="a", name="A", priceValue=1)
        b = MenuItem(id="b", name="B", priceValue=1, status="Sold Out")
        c = MenuItem(id="c", name="C", priceValue=1)
        categories = [
            MenuCategory(title="One", items=[c, b, a]),
            MenuCategory(title="Two", items=[b]),
        ]
        result = filter_available(categories)
        assert [cat.title for cat in result] == ["One"]
        assert [i.item_id for i in result[0].items] == ["c", "a"]
