"""Integration tests for the ficalter HTTP server.

The aiohttp application is served in-process and the upstream is replaced by a
fetcher returning canned content, so every test exercises the full
middleware, query parsing, filtering and serialization path.
"""

import asyncio
from typing import Any, Optional

import pytest
from aiohttp.test_utils import TestClient, TestServer

from ficalter.api.server import _serve, make_app
from ficalter.calendar import parse_ics
from ficalter.core import http_client
from ficalter.fetcher import UpstreamFetcher, UpstreamFetchError, UpstreamStatusError

pytestmark = pytest.mark.integration

UPSTREAM_URL = "https://calendar.example.com/team.ics"


class StaticFetcher(UpstreamFetcher):
    """Fetcher serving fixed content or raising a fixed error."""

    def __init__(self, content: bytes = b"", error: Optional[Exception] = None) -> None:
        super().__init__({})
        self.content = content
        self.error = error
        self.urls: list[str] = []

    async def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.content


def _config(**overrides: Any) -> dict[str, Any]:
    config: dict[str, Any] = {"upstream_url": UPSTREAM_URL}
    config.update(overrides)
    return config


def _summaries(body: bytes) -> list[Optional[str]]:
    return [child.get("SUMMARY") for child in parse_ics(body).children]


@pytest.fixture
async def make_client():
    clients: list[TestClient] = []

    async def _make(fetcher: UpstreamFetcher, **config: Any) -> TestClient:
        client = TestClient(TestServer(make_app(_config(**config), fetcher=fetcher)))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()


class TestCalendarEndpoint:
    """Tests for GET /."""

    async def test_get_when_no_params_then_everything_kept(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        fetcher = StaticFetcher(sample_ics_mixed)
        client = await make_client(fetcher)

        resp = await client.get("/")

        assert resp.status == 200
        assert parse_ics(await resp.read()) == parse_ics(sample_ics_mixed)
        assert fetcher.urls == [UPSTREAM_URL]

    async def test_get_when_served_then_calendar_and_no_cache_headers(
        self, make_client, sample_ics_minimal: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_minimal))

        resp = await client.get("/")

        assert resp.headers["Content-Type"] == "text/calendar; charset=utf-8"
        assert resp.headers["Cache-Control"] == "no-cache, no-store, max-age=0, must-revalidate"
        assert resp.headers["Pragma"] == "no-cache"
        assert resp.headers["Expires"] == "Thu, 01 Jan 1970 00:00:00 GMT"

    async def test_get_when_include_and_default_false_then_only_matches(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed))

        resp = await client.get("/", params={"include": "standup", "default": "false"})

        assert resp.status == 200
        assert _summaries(await resp.read()) == ["Team Standup", "Weekly standup review"]

    async def test_get_when_include_repeated_then_any_token_matches(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed))

        resp = await client.get("/?include=doctor&include=milk&default=FALSE")

        assert _summaries(await resp.read()) == ["Doctor Visit", "Buy milk"]

    async def test_get_when_exclude_then_matching_children_dropped(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed))

        resp = await client.get("/?exclude=standup")

        assert _summaries(await resp.read()) == [None, "Doctor Visit", "Buy milk"]

    async def test_get_when_insensitive_false_then_case_sensitive(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed))

        resp = await client.get("/?include=standup&default=false&insensitive=false")

        assert _summaries(await resp.read()) == ["Weekly standup review"]

    async def test_get_when_default_not_literal_true_then_treated_as_false(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed))

        resp = await client.get("/?default=yes")

        assert _summaries(await resp.read()) == []

    async def test_get_when_fold_width_configured_then_output_folded(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed), fold_width=20)

        resp = await client.get("/")
        body = await resp.read()

        assert max(len(line) for line in body.split(b"\r\n")) <= 21
        assert parse_ics(body) == parse_ics(sample_ics_mixed)

    async def test_get_when_selector_configured_then_filters_on_it(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed), selector="UID")

        resp = await client.get("/?include=3@&default=false")

        assert _summaries(await resp.read()) == ["Weekly standup review"]

    async def test_get_when_client_accepts_gzip_then_response_compressed(
        self, make_client, sample_ics_mixed: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_mixed))

        resp = await client.get("/", headers={"Accept-Encoding": "gzip"})

        assert resp.headers["Content-Encoding"] == "gzip"
        assert parse_ics(await resp.read()) == parse_ics(sample_ics_mixed)


class TestUpstreamFailures:
    """Upstream problems surface as 502 Bad Gateway."""

    async def test_get_when_upstream_unreachable_then_502(self, make_client) -> None:
        client = await make_client(StaticFetcher(error=UpstreamFetchError("Network error: refused")))

        resp = await client.get("/")

        assert resp.status == 502
        assert await resp.text() == "upstream calendar unavailable"

    async def test_get_when_upstream_status_error_then_502(self, make_client) -> None:
        client = await make_client(StaticFetcher(error=UpstreamStatusError("Status 404", 404)))

        resp = await client.get("/")

        assert resp.status == 502

    async def test_get_when_upstream_fails_then_502_echoes_request_id(self, make_client) -> None:
        client = await make_client(StaticFetcher(error=UpstreamStatusError("Status 500", 500)))

        resp = await client.get("/", headers={"X-Request-ID": "abc"})

        assert resp.status == 502
        assert resp.headers["X-Request-ID"] == "abc"

    @pytest.mark.parametrize(
        "body",
        [
            b"BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nEND:VTODO\r\nEND:VCALENDAR\r\n",
            b"BEGIN:VCALENDAR\nEND:VCALENDAR\n",
            b"BEGIN:VEVENT\r\nEND:VEVENT\r\n",
            b"<html>not a calendar</html>",
        ],
    )
    async def test_get_when_upstream_malformed_then_502(self, make_client, body: bytes) -> None:
        client = await make_client(StaticFetcher(body))

        resp = await client.get("/")

        assert resp.status == 502
        assert await resp.text() == "upstream calendar is malformed"


class TestServerRouting:
    """Tests for the remaining routes and middlewares."""

    async def test_get_when_unknown_path_then_404(self, make_client, sample_ics_minimal: bytes) -> None:
        fetcher = StaticFetcher(sample_ics_minimal)
        client = await make_client(fetcher)

        resp = await client.get("/other.ics")

        assert resp.status == 404
        assert fetcher.urls == []

    async def test_post_when_root_then_method_not_allowed(
        self, make_client, sample_ics_minimal: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_minimal))

        resp = await client.post("/")

        assert resp.status == 405

    async def test_healthz_when_called_then_ok_without_fetching(
        self, make_client, sample_ics_minimal: bytes
    ) -> None:
        fetcher = StaticFetcher(sample_ics_minimal)
        client = await make_client(fetcher)

        resp = await client.get("/healthz")

        assert resp.status == 200
        assert await resp.json() == {"status": "ok", "upstream_configured": True}
        assert fetcher.urls == []

    async def test_get_when_request_id_sent_then_echoed(
        self, make_client, sample_ics_minimal: bytes
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_minimal))

        resp = await client.get("/", headers={"X-Request-ID": "trace-1"})

        assert resp.headers["X-Request-ID"] == "trace-1"

    async def test_get_when_real_ip_header_then_logged_as_client(
        self, make_client, sample_ics_minimal: bytes, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = await make_client(StaticFetcher(sample_ics_minimal))

        with caplog.at_level("INFO", logger="ficalter.api.routes"):
            await client.get("/", headers={"X-Real-IP": "198.51.100.23"})

        assert "Calendar request from 198.51.100.23" in caplog.text


class TestMakeApp:
    """Tests for application construction."""

    def test_make_app_when_no_upstream_then_raises(self) -> None:
        with pytest.raises(ValueError, match="No upstream URL"):
            make_app({})

    def test_make_app_when_fold_width_not_positive_then_raises(self) -> None:
        with pytest.raises(ValueError, match="fold_width"):
            make_app(_config(fold_width=0))


class TestServeLifecycle:
    """Tests for the runner loop with an externally owned stop event."""

    async def test_serve_when_stop_event_set_then_starts_and_cleans_up(self) -> None:
        stop_event = asyncio.Event()
        stop_event.set()

        await _serve(_config(server_bind="127.0.0.1", server_port=0), stop_event)

        assert http_client._shared_clients == {}
