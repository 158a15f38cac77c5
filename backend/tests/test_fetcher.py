"""
Tests for the default httpx fetcher
"""
import httpx
import pytest

from conftest import always_verify
from wormhole import TransportError, create_dynamic_component
from wormhole.components.contracts import FetchRequest
from wormhole.services.fetcher import HttpFetcher


def make_transport(status_code=200, text="exports.default = lambda: 1", headers=None):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, text=text, headers=headers or {})

    return httpx.MockTransport(handler), seen


@pytest.mark.asyncio
async def test_fetch_returns_text_payload():
    transport, seen = make_transport(headers={"X-Signature": "abc"})
    fetch = HttpFetcher(timeout=5, transport=transport)

    response = await fetch(FetchRequest(url="http://sources.test/hello.py"))

    assert response.data == "exports.default = lambda: 1"
    assert response.status_code == 200
    assert response.headers["x-signature"] == "abc"
    assert seen[0].method == "GET"


@pytest.mark.asyncio
async def test_http_errors_raise():
    transport, _ = make_transport(status_code=404, text="missing")
    fetch = HttpFetcher(timeout=5, transport=transport)

    with pytest.raises(httpx.HTTPStatusError):
        await fetch(FetchRequest(url="http://sources.test/missing.py"))


@pytest.mark.asyncio
async def test_http_errors_become_transport_errors():
    transport, _ = make_transport(status_code=500, text="broken")
    context = create_dynamic_component(
        fetch=HttpFetcher(timeout=5, transport=transport),
        verify=always_verify,
    )

    with pytest.raises(TransportError) as exc_info:
        await context.open({"uri": "http://sources.test/broken.py"})
    assert "500" in str(exc_info.value)


def test_timeout_defaults_to_settings():
    from wormhole.core.config import get_settings

    assert HttpFetcher().timeout == get_settings().fetch_timeout_seconds
