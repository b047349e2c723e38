from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from edge_kv import fetch as fetch_module
from edge_kv.errors import InvalidInputError, NoFetchAvailableError
from edge_kv.fetch import FetchResponse, body_bytes, fetch_url, headers, status, text


def _transport(requests: list[httpx.Request] | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.path == "/missing":
            return httpx.Response(404, text="not here")
        return httpx.Response(
            200,
            headers=[
                ("Content-Type", "text/plain; charset=utf-8"),
                ("Set-Cookie", "a=1"),
                ("Set-Cookie", "b=2"),
            ],
            content="héllo".encode(),
        )

    return httpx.MockTransport(handler)


class _FakeAiohttpResponse:
    status = 201
    url = "https://example.com/poly"
    charset = "latin-1"
    headers = SimpleNamespace(items=lambda: [("X-Runtime", "poly")])

    async def read(self) -> bytes:
        return "café".encode("latin-1")

    async def __aenter__(self) -> "_FakeAiohttpResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return


class _FakeClientSession:
    requests: list[tuple[str, str, dict[str, str]]] = []

    async def __aenter__(self) -> "_FakeClientSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return

    def request(self, method: str, url: str, headers: dict[str, str]) -> _FakeAiohttpResponse:
        self.requests.append((method, url, headers))
        return _FakeAiohttpResponse()


@pytest.mark.asyncio
async def test_fetch_url_reads_status_headers_and_body() -> None:
    response = await fetch_url("https://example.com/ok", transport=_transport())

    assert status(response) == 200
    assert headers(response)["content-type"] == "text/plain; charset=utf-8"
    assert headers(response)["set-cookie"] == "a=1, b=2"
    assert body_bytes(response) == "héllo".encode()
    assert text(response) == "héllo"


@pytest.mark.asyncio
async def test_fetch_url_returns_error_statuses_without_raising() -> None:
    response = await fetch_url("https://example.com/missing", transport=_transport())

    assert status(response) == 404
    assert text(response) == "not here"


@pytest.mark.asyncio
async def test_fetch_url_forwards_method_and_headers() -> None:
    requests: list[httpx.Request] = []
    _ = await fetch_url(
        "https://example.com/ok",
        method="POST",
        headers={"Authorization": "Bearer t"},
        transport=_transport(requests),
    )

    assert requests[0].method == "POST"
    assert requests[0].headers["authorization"] == "Bearer t"


@pytest.mark.asyncio
async def test_fetch_url_transport_errors_are_raised(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        msg = "refused"
        raise httpx.ConnectError(msg, request=request)

    with pytest.raises(httpx.ConnectError):
        _ = await fetch_url("https://example.com/", transport=httpx.MockTransport(handler))
    assert "Fetch error for https://example.com/" in caplog.text


@pytest.mark.asyncio
async def test_fetch_url_uses_aiohttp_when_httpx_is_absent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fetch_module, "httpx", None)
    monkeypatch.setattr(fetch_module, "aiohttp", SimpleNamespace(ClientSession=_FakeClientSession))

    response = await fetch_url("https://example.com/poly", headers={"Accept": "*/*"})

    assert fetch_module.available_client() == "aiohttp"
    assert _FakeClientSession.requests[-1] == ("GET", "https://example.com/poly", {"Accept": "*/*"})
    assert status(response) == 201
    assert headers(response) == {"x-runtime": "poly"}
    assert text(response) == "café"


@pytest.mark.asyncio
async def test_fetch_url_without_any_client_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(fetch_module, "httpx", None)
    monkeypatch.setattr(fetch_module, "aiohttp", None)

    with pytest.raises(NoFetchAvailableError, match="no HTTP client available"):
        _ = await fetch_url("https://example.com/")


@pytest.mark.parametrize("helper", [status, headers, body_bytes, text])
@pytest.mark.parametrize("candidate", [None, "response", {"status": 200}, httpx.Response(200)])
def test_helpers_reject_non_responses(helper: Any, candidate: Any) -> None:
    with pytest.raises(InvalidInputError, match="expected a FetchResponse"):
        helper(candidate)


def test_headers_returns_a_copy() -> None:
    response = FetchResponse(url="https://example.com", status=200, headers={"a": "1"})

    copied = headers(response)
    copied["a"] = "2"
    assert headers(response) == {"a": "1"}


def test_text_falls_back_to_utf8_for_unknown_charset() -> None:
    response = FetchResponse(url="u", status=200, content="ok ✓".encode(), encoding="not-a-charset")

    assert text(response) == "ok ✓"
