from __future__ import annotations

from collections import defaultdict

import httpx
import pytest

from link_monitor.outage_logger import OutageLogger


class DummyLogger(OutageLogger):
    def __init__(self):
        self.logged = []

    def log_outage(self, ts, target, result):  # type: ignore[override]
        self.logged.append(("outage", target, result.describe()))

    def log_restored(self, ts, downtime=None):  # type: ignore[override]
        self.logged.append(("restored", downtime))


class ScriptedTargets:
    """Fake targets answering from a per-URL script.

    Each script entry is a status code or an exception class. The last entry
    repeats once the script runs out.
    """

    def __init__(self, script):
        self.script = {url: list(steps) for url, steps in script.items()}
        self.calls = defaultdict(int)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        steps = self.script[url]
        step = steps[min(self.calls[url], len(steps) - 1)]
        self.calls[url] += 1
        if isinstance(step, type) and issubclass(step, Exception):
            raise step("scripted failure", request=request)
        return httpx.Response(step)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def dummy_logger():
    return DummyLogger()
