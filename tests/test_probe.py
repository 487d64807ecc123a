import asyncio
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from conftest import ScriptedTargets
from link_monitor.probe import (
    HttpError,
    NetworkError,
    Success,
    classify_response,
    probe_target,
)

URL = "https://target.test/"


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def test_classify_response():
    assert classify_response(httpx.Response(204)) == Success()
    assert classify_response(httpx.Response(302)) == Success()
    assert classify_response(httpx.Response(404)) == HttpError(404, "Not Found")
    assert HttpError(503, "Service Unavailable").describe() == "HTTP 503 Service Unavailable"
    assert NetworkError("ConnectError: boom").describe() == "network/other error"


@pytest.mark.asyncio
async def test_success_on_last_attempt():
    targets = ScriptedTargets({URL: [httpx.ConnectError, 500, 200]})
    sleep = SleepRecorder()
    async with targets.client() as client:
        result = await probe_target(client, URL, 3, 2.0, sleep=sleep)
    assert result == Success()
    assert targets.calls[URL] == 3
    assert sleep.delays == [2.0, 2.0]


@pytest.mark.asyncio
async def test_first_success_stops_retrying():
    targets = ScriptedTargets({URL: [200]})
    sleep = SleepRecorder()
    async with targets.client() as client:
        result = await probe_target(client, URL, 5, 1.0, sleep=sleep)
    assert result == Success()
    assert targets.calls[URL] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_last_attempt_http_error_wins():
    targets = ScriptedTargets({URL: [httpx.ConnectTimeout, 503]})
    sleep = SleepRecorder()
    async with targets.client() as client:
        result = await probe_target(client, URL, 2, 0.5, sleep=sleep)
    assert result == HttpError(503, "Service Unavailable")
    assert targets.calls[URL] == 2
    assert sleep.delays == [0.5]


@pytest.mark.asyncio
async def test_last_attempt_network_error_wins():
    targets = ScriptedTargets({URL: [500, 500, httpx.ConnectError]})
    async with targets.client() as client:
        result = await probe_target(client, URL, 3, 0, sleep=SleepRecorder())
    assert isinstance(result, NetworkError)
    assert "ConnectError" in result.error
    # the budget is never exceeded
    assert targets.calls[URL] == 3


@pytest.mark.asyncio
async def test_single_attempt_budget():
    targets = ScriptedTargets({URL: [httpx.ReadTimeout]})
    sleep = SleepRecorder()
    async with targets.client() as client:
        result = await probe_target(client, URL, 1, 2.0, sleep=sleep)
    assert isinstance(result, NetworkError)
    assert targets.calls[URL] == 1
    assert sleep.delays == []


class _TrickleHandler(BaseHTTPRequestHandler):
    """Sends 200 headers right away, then one body byte every 0.5s."""

    def log_message(self, format, *args):  # noqa: A002
        return

    def do_GET(self):  # noqa: N802
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", "20")
        self.end_headers()
        try:
            for _ in range(20):
                self.wfile.write(b"x")
                self.wfile.flush()
                time.sleep(0.5)
        except OSError:
            return


@pytest.fixture
def trickle_server_url():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _TrickleHandler)
    httpd.daemon_threads = True
    host, port = httpd.server_address
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://{host}:{port}/"
    finally:
        httpd.shutdown()
        thread.join(timeout=5)
        httpd.server_close()


@pytest.mark.asyncio
async def test_slow_body_does_not_hold_attempt(trickle_server_url):
    async with httpx.AsyncClient(timeout=1.0) as client:
        started = time.monotonic()
        result = await probe_target(client, trickle_server_url, 1, 0, timeout=1.0)
        elapsed = time.monotonic() - started
    assert result == Success()
    assert elapsed < 1.0


@pytest.mark.asyncio
async def test_request_deadline_bounds_attempt():
    async def stall(request):
        await asyncio.sleep(3600)
        return httpx.Response(200)

    sleep = SleepRecorder()
    async with httpx.AsyncClient(transport=httpx.MockTransport(stall)) as client:
        result = await asyncio.wait_for(
            probe_target(client, URL, 2, 0, timeout=0.05, sleep=sleep), timeout=2
        )
    assert isinstance(result, NetworkError)
    assert result.describe() == "network/other error"
    assert sleep.delays == [0]


@pytest.mark.asyncio
async def test_invalid_url_is_network_error():
    targets = ScriptedTargets({})
    async with targets.client() as client:
        result = await probe_target(client, "http://a.test:abc/", 2, 0, sleep=SleepRecorder())
    assert isinstance(result, NetworkError)
    assert "InvalidURL" in result.error
