from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def split_street(search_term: str) -> Tuple[str, str]:
    """Split ``"6409 winding arch"`` into ``("6409", "winding arch")``."""

    head, _, rest = (search_term or "").strip().partition(" ")
    if head.isdigit():
        return head, rest.strip()
    return "", (search_term or "").strip()


@dataclass
class Address:
    raw: str
    search_term: str
    county: str = ""
    state: str = ""

    @property
    def street_number(self) -> str:
        return split_street(self.search_term)[0]

    @property
    def street_name(self) -> str:
        return split_street(self.search_term)[1]


@dataclass
class ParcelRecord:
    parcel_id: Optional[str] = None
    owner_name: Optional[str] = None
    effective_date: Optional[str] = None
    mailing_address: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None

    def has_ownership(self) -> bool:
        return bool(self.owner_name and self.effective_date)


@dataclass
class DocumentReference:
    viewer_url: str
    resolved_file_url: Optional[str] = None
    mime_type: Optional[str] = None
    strategy: str = "iframe"
    hint: Optional[str] = None
    href: Optional[str] = None

    @property
    def fetchable(self) -> bool:
        return bool(self.resolved_file_url)


@dataclass
class FrameSnapshot:
    url: str
    text: str = ""
    html: str = ""


@dataclass
class PortalSearchOutcome:
    text: str
    page: FrameSnapshot
    frames: List[FrameSnapshot] = field(default_factory=list)
    fields: Dict[str, str] = field(default_factory=dict)
    cookies: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ScrapeResult:
    address: str
    parcel_id: Optional[str] = None
    owner_name: Optional[str] = None
    effective_date: Optional[str] = None
    mailing_address: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    document_bytes: Optional[bytes] = None
    document_url: Optional[str] = None
    document_mime_type: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def merge_record(self, record: ParcelRecord) -> None:
        for name in ("parcel_id", "owner_name", "effective_date", "mailing_address"):
            value = getattr(record, name)
            if value:
                setattr(self, name, value)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "parcel_id": self.parcel_id,
            "owner_name": self.owner_name,
            "effective_date": self.effective_date,
            "mailing_address": self.mailing_address,
            "county": self.county,
            "state": self.state,
            "document_base64": (
                base64.b64encode(self.document_bytes).decode("ascii")
                if self.document_bytes
                else None
            ),
            "document_url": self.document_url,
            "document_mime_type": self.document_mime_type,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass
class BatchSummary:
    total: int
    successful: int
    failed: int

    @classmethod
    def from_results(cls, results: List[ScrapeResult]) -> "BatchSummary":
        successful = sum(1 for r in results if r.ok)
        return cls(total=len(results), successful=successful, failed=len(results) - successful)

    def to_dict(self) -> dict:
        return {"total": self.total, "successful": self.successful, "failed": self.failed}


@dataclass
class BatchRun:
    results: List[ScrapeResult]
    summary: BatchSummary

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "results": [r.to_dict() for r in self.results],
        }
