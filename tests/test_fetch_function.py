"""Tests for the Azure Function entry point."""

from __future__ import annotations

import json
from urllib.parse import quote

import azure.functions as func
import httpx
import pytest
from respx import MockRouter

from Fetch import main

BOOKMARKS_URL = "https://links.example.com/api/bookmarks/"


def make_request(method: str = "GET", target: str | None = BOOKMARKS_URL, headers: dict | None = None) -> func.HttpRequest:
    url = "https://relay.example.net/api/fetch"
    params = {}
    if target is not None:
        url += "?url=" + quote(target, safe="")
        params["url"] = target
    return func.HttpRequest(method=method, url=url, headers=headers or {}, params=params, body=b"")


@pytest.mark.asyncio
async def test_preflight(respx_mock: MockRouter) -> None:
    resp = await main(make_request("OPTIONS"))

    assert resp.status_code == 200
    assert resp.get_body() == b""
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert resp.headers["Access-Control-Allow-Methods"] == "GET, OPTIONS"
    assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization, x-linkding-token"
    # azure.functions falls back to text/plain when no mimetype is given
    assert resp.mimetype == "text/plain"
    assert len(respx_mock.calls) == 0


@pytest.mark.asyncio
async def test_missing_target_is_rejected() -> None:
    resp = await main(make_request(target=None))

    assert resp.status_code == 400
    assert resp.mimetype == "application/json"
    assert json.loads(resp.get_body()) == {"error": "Parâmetro url inválido"}


@pytest.mark.asyncio
async def test_envelope_and_mirrored_status(respx_mock: MockRouter) -> None:
    route = respx_mock.get(BOOKMARKS_URL).mock(
        return_value=httpx.Response(404, json={"detail": "Not found."})
    )

    resp = await main(make_request(headers={"x-linkding-token": "abc123"}))

    assert resp.status_code == 404
    assert resp.mimetype == "application/json"
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert json.loads(resp.get_body()) == {
        "contentType": "application/json",
        "body": '{"detail":"Not found."}',
    }
    assert route.calls.last.request.headers["Authorization"] == "Token abc123"


@pytest.mark.asyncio
async def test_upstream_failure_is_reported_not_raised(respx_mock: MockRouter) -> None:
    respx_mock.get(BOOKMARKS_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

    resp = await main(make_request())

    assert resp.status_code == 500
    assert json.loads(resp.get_body()) == {"error": "timed out"}
