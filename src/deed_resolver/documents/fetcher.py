from __future__ import annotations

import logging
import os.path
import random
import time
import urllib.parse
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import requests
from requests.cookies import RequestsCookieJar

from deed_resolver.errors import DownloadFailure, InvalidDocumentFormat, SuspectPayload
from deed_resolver.settings import Settings, get_settings


logger = logging.getLogger("deed_resolver.documents")

_DEFAULT_UA = "DeedResolver/1.0"

RETRY_STATUS = {429, 500, 502, 503, 504}

MAGIC_BYTES = {
    "pdf": (b"%PDF",),
    "png": (b"\x89PNG",),
    "tiff": (b"II*\x00", b"MM\x00*"),
    "jpeg": (b"\xff\xd8\xff",),
}

DOCUMENT_FORMATS = tuple(MAGIC_BYTES)

MIME_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "tiff": "image/tiff",
    "jpeg": "image/jpeg",
}

_EXTENSIONS = {
    ".pdf": "pdf",
    ".png": "png",
    ".tif": "tiff",
    ".tiff": "tiff",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
}


class RetryConfig:
    def __init__(self, retries=2, base_delay=0.5, factor=2.0, jitter=0.1):
        self.retries = retries
        self.base_delay = base_delay
        self.factor = factor
        self.jitter = jitter


def compute_backoff_delays(retries, base_delay=0.5, factor=2.0, jitter=0.1, rand_fn=None):
    delays = []
    current = base_delay
    rand_fn = rand_fn or random.random
    for _ in range(retries):
        noise = (rand_fn() * 2 - 1) * jitter
        delays.append(max(0.0, current + noise))
        current *= factor
    return delays


def sniff_format(body: bytes) -> Optional[str]:
    head = bytes(body[:8]) if body else b""
    for fmt, signatures in MAGIC_BYTES.items():
        if any(head.startswith(sig) for sig in signatures):
            return fmt
    return None


def detect_format(body: bytes, expected: Iterable[str] = DOCUMENT_FORMATS, url: str = "") -> str:
    """Return the format named by the leading magic bytes.

    Raises ``InvalidDocumentFormat`` (with the raw body attached) when the
    bytes match none of ``expected``; an HTML error page served in place of a
    deed is the usual culprit.
    """

    expected = tuple(expected)
    fmt = sniff_format(body)
    if fmt is None or fmt not in expected:
        head = bytes(body[:8]).hex(" ") if body else "<empty>"
        raise InvalidDocumentFormat(
            f"Expected {'/'.join(expected)} document, leading bytes were {head}",
            body=body,
            url=url,
        )
    return fmt


def infer_mime_type(fmt: Optional[str] = None, url: Optional[str] = None) -> Optional[str]:
    if fmt:
        return MIME_TYPES.get(fmt)
    if url:
        path = urllib.parse.urlparse(url).path
        ext = os.path.splitext(path)[1].lower()
        if ext in _EXTENSIONS:
            return MIME_TYPES[_EXTENSIONS[ext]]
    return None


def validate_document(
    body: bytes,
    expected: Iterable[str] = DOCUMENT_FORMATS,
    min_bytes: int = 1024,
    url: str = "",
) -> str:
    fmt = detect_format(body, expected, url=url)
    if len(body) < min_bytes:
        raise SuspectPayload(
            f"{fmt} body is only {len(body)} bytes (minimum {min_bytes})",
            body=body,
            url=url,
        )
    return fmt


Cookies = Union[Dict[str, str], List[Dict[str, Any]]]


def cookie_jar(cookies: Optional[Cookies]) -> Optional[RequestsCookieJar]:
    """Jar for a download request.

    Browser cookies (dicts with ``name``, ``value``, ``domain``, ``path``) keep
    their domain and are only sent to matching hosts. A plain ``{name: value}``
    mapping is sent to every host.
    """

    if not cookies:
        return None
    jar = RequestsCookieJar()
    if isinstance(cookies, dict):
        for name, value in cookies.items():
            jar.set(name, value)
        return jar
    for cookie in cookies:
        jar.set(
            cookie["name"],
            cookie["value"],
            domain=cookie.get("domain") or "",
            path=cookie.get("path") or "/",
            secure=bool(cookie.get("secure", False)),
        )
    return jar


class DocumentFetcher:
    """Byte-exact document downloads over a shared ``requests.Session``.

    Transport errors and retryable statuses are retried with exponential
    backoff; validation failures are raised immediately.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", _DEFAULT_UA)
        self.retry_config = retry_config or RetryConfig(retries=self.settings.download_retries)
        self.sleep_fn = sleep_fn

    def _get(self, url: str, cookies: Optional[Cookies]) -> bytes:
        jar = cookie_jar(cookies)
        cfg = self.retry_config
        delays = compute_backoff_delays(cfg.retries, cfg.base_delay, cfg.factor, cfg.jitter)
        last_error: Optional[DownloadFailure] = None
        for attempt in range(len(delays) + 1):
            try:
                resp = self.session.get(url, cookies=jar, timeout=self.settings.download_timeout)
            except requests.RequestException as exc:
                last_error = DownloadFailure(url, str(exc))
            else:
                if resp.status_code in RETRY_STATUS:
                    last_error = DownloadFailure(url, f"HTTP {resp.status_code}", status=resp.status_code)
                elif resp.status_code >= 400:
                    raise DownloadFailure(url, f"HTTP {resp.status_code}", status=resp.status_code)
                else:
                    return resp.content
            if attempt < len(delays):
                logger.warning("Download attempt %d for %s failed (%s); retrying", attempt + 1, url, last_error)
                self.sleep_fn(delays[attempt])
        raise last_error

    def fetch(
        self,
        url: str,
        cookies: Optional[Cookies] = None,
        expected: Iterable[str] = DOCUMENT_FORMATS,
    ) -> bytes:
        body = self._get(url, cookies)
        validate_document(body, expected, min_bytes=self.settings.min_document_bytes, url=url)
        return body

    def close(self) -> None:
        self.session.close()
