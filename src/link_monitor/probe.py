from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class HttpError:
    status: int
    reason: str

    def describe(self) -> str:
        return f"HTTP {self.status} {self.reason}".rstrip()


@dataclass(frozen=True)
class NetworkError:
    # Kept for diagnostics; timeouts, DNS and refused connections all land here.
    error: str = ""

    def describe(self) -> str:
        return "network/other error"


CheckResult = Union[Success, HttpError, NetworkError]


def is_success_status(status: int) -> bool:
    return 200 <= status < 400


def classify_response(response: httpx.Response) -> CheckResult:
    if is_success_status(response.status_code):
        return Success()
    return HttpError(response.status_code, response.reason_phrase)


def classify_exception(exc: Exception) -> NetworkError:
    return NetworkError(f"{type(exc).__name__}: {exc}")


async def fetch_status(
    client: httpx.AsyncClient, target: str, timeout: Optional[float]
) -> httpx.Response:
    """GET ``target`` reading only the status line and headers.

    ``timeout`` bounds the whole request, not each socket operation.
    """

    async def _head_only() -> httpx.Response:
        async with client.stream("GET", target) as response:
            return response

    return await asyncio.wait_for(_head_only(), timeout)


async def probe_target(
    client: httpx.AsyncClient,
    target: str,
    max_retries: int,
    retry_delay: float,
    timeout: Optional[float] = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> CheckResult:
    """Probe a single target with up to ``max_retries`` requests.

    The first success wins. Otherwise the last attempt of the budget decides
    the outcome: an HTTP response yields HttpError from that response, a
    transport failure yields NetworkError. No request is made beyond the
    budget, and ``retry_delay`` is only waited between attempts. Each
    attempt is cut off after ``timeout`` seconds.
    """
    result: CheckResult = NetworkError("no attempt made")
    for attempt in range(1, max_retries + 1):
        try:
            response = await fetch_status(client, target, timeout)
        except TimeoutError:
            result = NetworkError(f"no response within {timeout}s")
            logger.debug(
                "Request to target '%s' timed out (attempt %d/%d)", target, attempt, max_retries
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            result = classify_exception(e)
            logger.debug(
                "Request to target '%s' failed (attempt %d/%d): %s",
                target,
                attempt,
                max_retries,
                result.error,
            )
        else:
            result = classify_response(response)
            if isinstance(result, Success):
                return result
            logger.debug(
                "Request to target '%s' returned unsuccessful status %s (attempt %d/%d)",
                target,
                result.describe(),
                attempt,
                max_retries,
            )
        if attempt < max_retries:
            await sleep(retry_delay)
    return result
