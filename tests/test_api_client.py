"""Stacks API client against a local aiohttp server."""

from __future__ import annotations

import asyncio

import pytest
from aiohttp import test_utils, web

from stackspay.api_client import StacksApiClient
from stackspay.config import ClientConfig
from stackspay.encoding import from_hex, to_hex
from stackspay.errors import TransportFailure
from stackspay.test_accounts import ALICE, CONTRACT_ADDRESS, CONTRACT_NAME
from stackspay.types import SomeCV, StringUtf8CV, UIntCV


def _app(received: list) -> web.Application:
    async def call_read(request: web.Request) -> web.Response:
        body = await request.json()
        received.append((request.match_info["function"], body))
        if request.match_info["function"] == "get-missing":
            return web.json_response({"okay": False, "cause": "Unchecked(NoSuchPublicFunction)"})
        if request.match_info["function"] == "get-broken":
            return web.Response(status=500, text="internal error")
        if request.match_info["function"] == "get-garbled":
            return web.Response(text="<html>")
        return web.json_response({"okay": True, "result": to_hex(UIntCV(7))})

    async def map_entry(request: web.Request) -> web.Response:
        key = from_hex(await request.json())
        received.append((request.match_info["map"], key))
        return web.json_response({"data": to_hex(SomeCV(StringUtf8CV("savers-1")))})

    async def info(request: web.Request) -> web.Response:
        return web.json_response({"stacks_tip_height": 123456, "burn_block_height": 900})

    app = web.Application()
    app.router.add_post("/v2/contracts/call-read/{address}/{name}/{function}", call_read)
    app.router.add_post("/v2/map_entry/{address}/{name}/{map}", map_entry)
    app.router.add_get("/v2/info", info)
    return app


def _run(scenario):
    """Run `scenario(client)` against a fresh local server."""
    received: list = []

    async def _main():
        server = test_utils.TestServer(_app(received))
        await server.start_server()
        try:
            config = ClientConfig(request_timeout=5)
            async with StacksApiClient(config, base_url=str(server.make_url("/"))) as client:
                return await scenario(client)
        finally:
            await server.close()

    return asyncio.run(_main()), received


def test_call_read_only_posts_hex_arguments() -> None:
    async def scenario(client):
        return await client.call_read_only(
            CONTRACT_ADDRESS, CONTRACT_NAME, "get-group", [StringUtf8CV("circle")], ALICE
        )

    result, received = _run(scenario)

    assert result == UIntCV(7)
    ((function, body),) = received
    assert function == "get-group"
    assert body["sender"] == ALICE
    assert body["arguments"] == [to_hex(StringUtf8CV("circle"))]


@pytest.mark.parametrize("function", ["get-missing", "get-broken", "get-garbled"])
def test_call_read_only_failures(function) -> None:
    async def scenario(client):
        with pytest.raises(TransportFailure) as info:
            await client.call_read_only(CONTRACT_ADDRESS, CONTRACT_NAME, function, [], ALICE)
        return info.value

    error, _ = _run(scenario)
    if function == "get-missing":
        assert error.payload["cause"] == "Unchecked(NoSuchPublicFunction)"
    if function == "get-broken":
        assert "HTTP 500" in error.message
        assert error.payload == "internal error"


def test_map_entry_and_block_height() -> None:
    async def scenario(client):
        entry = await client.get_map_entry(CONTRACT_ADDRESS, CONTRACT_NAME, "public_group_index", UIntCV(0))
        height = await client.get_block_height()
        return entry, height

    (entry, height), received = _run(scenario)

    assert entry == SomeCV(StringUtf8CV("savers-1"))
    assert height == 123456
    assert received == [("public_group_index", UIntCV(0))]


def test_unconnected_client_fails_cleanly() -> None:
    client = StacksApiClient(ClientConfig(), base_url="http://127.0.0.1:9")
    with pytest.raises(TransportFailure):
        asyncio.run(client.get_block_height())
