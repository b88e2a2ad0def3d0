from __future__ import annotations

from typing import Iterable, Optional


class DeedResolverError(Exception):
    """Base class for every failure the resolution pipeline reports.

    ``retryable`` marks transient failures. Only the stage that owns the
    failure retries it (navigation inside the adapter, downloads inside the
    fetcher); everything else is surfaced to the caller as-is.
    """

    retryable = False

    @property
    def error_type(self) -> str:
        return type(self).__name__


class UnsupportedJurisdiction(DeedResolverError):
    def __init__(self, county: str = "", state: str = "", raw: str = ""):
        self.county = county
        self.state = state
        where = ", ".join(p for p in (county, state) if p) or "unknown jurisdiction"
        super().__init__(f'No portal adapter for "{where}"')


class NavigationTimeout(DeedResolverError):
    retryable = True

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Navigation to {url} did not complete within {timeout:g}s")


class SelectorNotFound(DeedResolverError):
    def __init__(self, portal: str, selector: str, field: Optional[str] = None):
        self.portal = portal
        self.selector = selector
        self.field = field
        target = f"field '{field}' " if field else ""
        super().__init__(
            f"{portal}: {target}selector '{selector}' not found (portal layout changed?)"
        )


class ExtractionFailure(DeedResolverError):
    def __init__(self, fields: Iterable[str], record=None):
        self.fields = list(fields)
        self.record = record
        super().__init__(f"Could not extract required field(s): {', '.join(self.fields)}")


class DocumentValidationError(DeedResolverError):
    def __init__(self, message: str, body: bytes = b"", url: str = ""):
        self.body = body or b""
        self.url = url
        super().__init__(message)

    @property
    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class InvalidDocumentFormat(DocumentValidationError):
    pass


class SuspectPayload(DocumentValidationError):
    pass


class DownloadFailure(DeedResolverError):
    retryable = True

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(f"Download of {url} failed: {reason}")


class DocumentNotFound(DeedResolverError):
    def __init__(self, message: str = "No document candidate found on the result page"):
        super().__init__(message)


class AddressTimeout(DeedResolverError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Address resolution exceeded {timeout:g}s")
