from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, TypeVar

import httpx
import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mc_decompile import __version__

from .fs import new_tmp_path, safe_unlink

T = TypeVar("T")

# Mojang's CDN and the Fabric maven answer these while a file is propagating.
TRANSIENT_STATUSES = frozenset({408, 429, 500, 502, 503, 504})

log = structlog.get_logger(__name__)


class HttpFetchError(RuntimeError):
    """A GET did not produce a usable 200 response."""


class HttpStatusError(HttpFetchError):
    """Final status for a URL. 404 is how a missing document is detected."""

    def __init__(self, *, url: str, status_code: int, body: str | None = None) -> None:
        msg = f"HTTP {status_code} for {url}"
        if body:
            msg += f" (body: {body})"
        super().__init__(msg)
        self.url = url
        self.status_code = status_code


class HttpRetriesExceeded(HttpFetchError):
    def __init__(self, *, url: str, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(f"GET {url} failed after {attempts} attempt(s): {last_error}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class _TransientStatus(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, HttpStatusError) and exc.status_code == 404


def make_http_client(
    *,
    timeout: httpx.Timeout | float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    if timeout is None:
        timeout = httpx.Timeout(connect=10.0, read=60.0, write=60.0, pool=10.0)
    return httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": f"mc-decompile/{__version__}"},
        transport=transport,
    )


def _retrying(url: str, max_attempts: int) -> Retrying:
    def _before_sleep(state) -> None:
        exc = state.outcome.exception() if state.outcome else None
        log.warning(
            "http.retry",
            url=url,
            attempt=state.attempt_number,
            sleep_s=state.next_action.sleep if state.next_action else None,
            error=repr(exc),
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.5, max=4.0),
        retry=retry_if_exception_type((httpx.TransportError, _TransientStatus)),
        before_sleep=_before_sleep,
    )


def _check_status(resp: httpx.Response, url: str) -> None:
    if resp.status_code == 200:
        return
    if resp.status_code in TRANSIENT_STATUSES:
        raise _TransientStatus(resp.status_code)
    body = resp.read()[:200].decode("utf-8", errors="replace").strip()
    raise HttpStatusError(url=url, status_code=resp.status_code, body=body or None)


def fetch(
    client: httpx.Client,
    url: str,
    handle: Callable[[httpx.Response], T],
    *,
    max_attempts: int = 1,
) -> T:
    """
    GET `url` and pass the streaming 200 response to `handle`.

    Transport errors and TRANSIENT_STATUSES are retried up to `max_attempts`
    (1 means no retry) and end as HttpRetriesExceeded. Any other status raises
    HttpStatusError at once. Errors raised by `handle` propagate unchanged.
    """
    try:
        for attempt in _retrying(url, max_attempts):
            with attempt:
                with client.stream("GET", url) as resp:
                    _check_status(resp, url)
                    return handle(resp)
    except RetryError as e:
        last = e.last_attempt.exception()
        raise HttpRetriesExceeded(
            url=url, attempts=e.last_attempt.attempt_number, last_error=last
        ) from last
    raise AssertionError("unreachable")


def _read_json(resp: httpx.Response) -> Any:
    resp.read()
    return resp.json()


def _read_text(resp: httpx.Response) -> str:
    resp.read()
    return resp.text


def get_json(client: httpx.Client, url: str, *, max_attempts: int = 1) -> Any:
    """Decoding errors surface as ValueError."""
    return fetch(client, url, _read_json, max_attempts=max_attempts)


def get_text(client: httpx.Client, url: str, *, max_attempts: int = 1) -> str:
    return fetch(client, url, _read_text, max_attempts=max_attempts)


def download_to(
    client: httpx.Client,
    *,
    url: str,
    dest: Path,
    max_attempts: int = 1,
    chunk_bytes: int = 1024 * 128,
) -> int:
    """
    Download `url` to `dest` via a sibling temp file, replacing any existing file.
    Returns bytes written. On failure `dest` is left as it was.
    """
    dest = Path(dest)
    tmp = new_tmp_path(dest)

    def _write(resp: httpx.Response) -> int:
        total = 0
        with tmp.open("wb") as f:
            for chunk in resp.iter_bytes(chunk_size=chunk_bytes):
                f.write(chunk)
                total += len(chunk)
            f.flush()
            os.fsync(f.fileno())
        return total

    try:
        n = fetch(client, url, _write, max_attempts=max_attempts)
        tmp.replace(dest)
        log.debug("http.downloaded", url=url, dest=str(dest), bytes=n)
        return n
    finally:
        safe_unlink(tmp)
