from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deed_resolver.models import BatchSummary, ScrapeResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScrapeRequest(CamelModel):
    addresses: List[str] = Field(default_factory=list)
    county: Optional[str] = None
    state: Optional[str] = None
    include_documents: bool = False


class ScrapeResultModel(CamelModel):
    address: str
    parcel_id: Optional[str] = None
    owner_name: Optional[str] = None
    effective_date: Optional[str] = None
    mailing_address: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    document_base64: Optional[str] = None
    document_url: Optional[str] = None
    document_mime_type: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_result(cls, result: ScrapeResult, include_document: bool = True) -> "ScrapeResultModel":
        data = result.to_dict()
        if not include_document:
            data["document_base64"] = None
        return cls(**data)


class SummaryModel(CamelModel):
    total: int
    successful: int
    failed: int

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> "SummaryModel":
        return cls(**summary.to_dict())


class ScrapeResponse(CamelModel):
    success: bool
    summary: SummaryModel
    data: List[ScrapeResultModel] = Field(default_factory=list)


class DeedDownloadRequest(CamelModel):
    address: str
    county: Optional[str] = None
    state: Optional[str] = None


class DownloadModel(CamelModel):
    pdf_base64: str
    content_type: str
    url: Optional[str] = None


class DeedDownloadResponse(CamelModel):
    success: bool
    download: Optional[DownloadModel] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    record: Optional[ScrapeResultModel] = None
    duration: Optional[str] = None


class JurisdictionModel(CamelModel):
    slug: str
    county: str
    state: str
    portal: str
    supports_documents: bool
    notes: str = ""


class CountiesResponse(CamelModel):
    success: bool = True
    counties: List[JurisdictionModel] = Field(default_factory=list)
