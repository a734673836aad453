"""Tests for the Bot API client and the endpoint pool.

The client runs against an in-process aiohttp server.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pinned_clock.client import ApiError, BotClient, Endpoint, EndpointPool

TOKEN = "123456:SECRET-token"
DATE = "Mon, 19 Oct 2026 10:00:05 GMT"


def make_app(responders):
    """App serving /bot{token}/{method} from a {method: handler} map."""
    app = web.Application()
    app["calls"] = []

    async def dispatch(request):
        method = request.match_info["method"]
        request.app["calls"].append((request.match_info["token"], method, dict(request.query)))
        return await responders[method](request)

    app.router.add_get("/bot{token}/{method}", dispatch)
    return app


def run_against(app, scenario, timeout=2.0):
    async def go():
        async with TestServer(app) as server:
            endpoint = Endpoint(token=TOKEN, api_url=str(server.make_url("/")))
            async with BotClient(timeout=timeout) as client:
                return await scenario(client, endpoint)

    return asyncio.run(go())


def json_reply(payload, status=200):
    async def handler(request):
        return web.json_response(payload, status=status, headers={"Date": DATE})
    return handler


# ---- Endpoint / pool ---------------------------------------------------------

def test_endpoint_url_and_repr():
    ep = Endpoint(token=TOKEN, api_url="https://api.example.org/")
    assert ep.url("getChat") == f"https://api.example.org/bot{TOKEN}/getChat"
    assert ep.bot_id == "123456"
    assert "SECRET" not in repr(ep)
    assert ep.redact(f"GET /bot{TOKEN}/x") == "GET /bot123456:***/x"


def test_pool_round_robin_order():
    pool = EndpointPool.from_tokens(["1:a", "2:b", "3:c"])
    got = [pool.next_endpoint().token for _ in range(7)]
    assert got == ["1:a", "2:b", "3:c", "1:a", "2:b", "3:c", "1:a"]
    assert pool.cursor == 1


def test_pool_single_entry():
    pool = EndpointPool.from_tokens(["1:a"])
    assert {pool.next_endpoint() for _ in range(5)} == {pool[0]}
    assert pool.cursor == 0


def test_pool_rejects_empty():
    with pytest.raises(ValueError):
        EndpointPool([])


# ---- editMessageText ---------------------------------------------------------

def test_edit_message_success():
    app = make_app({
        "editMessageText": json_reply({"ok": True, "result": {"message_id": 42, "edit_date": 1792404005}}),
    })

    async def scenario(client, endpoint):
        return await client.edit_message_text(endpoint, "@chan", 42, "hello")

    outcome = run_against(app, scenario)
    assert outcome.edit_date == 1792404005
    assert outcome.date_header == DATE
    assert outcome.sent_at <= outcome.completed_at <= outcome.parsed_at
    assert outcome.received_at.tzinfo is not None

    token, method, query = app["calls"][0]
    assert token == TOKEN
    assert method == "editMessageText"
    assert query == {"chat_id": "@chan", "message_id": "42", "text": "hello", "parse_mode": "MarkdownV2"}


@pytest.mark.parametrize("payload, status", [
    ({"ok": False, "error_code": 400, "description": "Bad Request"}, 200),
    ({"ok": True}, 200),
    ({"ok": True, "result": {"message_id": 42}}, 200),
    ({"ok": True, "result": True}, 200),
    ({"ok": False, "description": "Too Many Requests"}, 429),
    ({"ok": False}, 500),
])
def test_edit_message_failures(payload, status):
    app = make_app({"editMessageText": json_reply(payload, status=status)})

    async def scenario(client, endpoint):
        with pytest.raises(ApiError):
            await client.edit_message_text(endpoint, "@chan", 42, "hello")

    run_against(app, scenario)


def test_edit_message_malformed_body():
    async def garbage(request):
        return web.Response(text="<html>gateway</html>", content_type="text/html")

    app = make_app({"editMessageText": garbage})

    async def scenario(client, endpoint):
        with pytest.raises(ApiError, match="malformed"):
            await client.edit_message_text(endpoint, "@chan", 42, "hello")

    run_against(app, scenario)


def test_edit_message_timeout():
    async def slow(request):
        await asyncio.sleep(0.6)
        return web.json_response({"ok": True, "result": {"edit_date": 1}})

    app = make_app({"editMessageText": slow})

    async def scenario(client, endpoint):
        with pytest.raises(ApiError, match="transport"):
            await client.edit_message_text(endpoint, "@chan", 42, "hello")

    run_against(app, scenario, timeout=0.1)


def test_transport_error_hides_token():
    async def go():
        async with BotClient(timeout=2.0) as client:
            endpoint = Endpoint(token=TOKEN, api_url="http://127.0.0.1:1")
            with pytest.raises(ApiError) as info:
                await client.edit_message_text(endpoint, "@chan", 42, "hello")
            return str(info.value)

    message = asyncio.run(go())
    assert "SECRET" not in message


def test_call_before_connect():
    async def go():
        client = BotClient()
        with pytest.raises(ApiError, match="not connected"):
            await client.edit_message_text(Endpoint(token=TOKEN), "@chan", 42, "hello")

    asyncio.run(go())


# ---- getChat -----------------------------------------------------------------

def test_resolve_pinned_message():
    app = make_app({
        "getChat": json_reply({"ok": True, "result": {"id": -100, "pinned_message": {"message_id": 77}}}),
    })

    async def scenario(client, endpoint):
        return await client.resolve_pinned_message(endpoint, "-100")

    assert run_against(app, scenario) == 77
    assert app["calls"][0][2] == {"chat_id": "-100"}


def test_resolve_without_pinned_message():
    app = make_app({"getChat": json_reply({"ok": True, "result": {"id": -100}})})

    async def scenario(client, endpoint):
        with pytest.raises(ApiError, match="no pinned message"):
            await client.resolve_pinned_message(endpoint, "-100")

    run_against(app, scenario)


def test_error_status_with_undecodable_body():
    async def bad_gateway(request):
        return web.Response(
            body=b"\xff\xfe\xfa gateway", status=502, headers={"Content-Type": "text/plain; charset=utf-8"}
        )

    app = make_app({"editMessageText": bad_gateway})

    async def scenario(client, endpoint):
        with pytest.raises(ApiError, match="status 502"):
            await client.edit_message_text(endpoint, "@chan", 42, "hello")

    run_against(app, scenario)
