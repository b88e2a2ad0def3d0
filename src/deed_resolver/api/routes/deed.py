from __future__ import annotations

import base64
import time

from fastapi import APIRouter

from deed_resolver.api.routes import scrape as scrape_routes
from deed_resolver.api.schemas import (
    DeedDownloadRequest,
    DeedDownloadResponse,
    DownloadModel,
    ScrapeResultModel,
)


router = APIRouter(tags=["deed"])


@router.post("/deed/download", response_model=DeedDownloadResponse, response_model_exclude_none=True)
async def download_deed(req: DeedDownloadRequest):
    address = (req.address or "").strip()
    if not address:
        return scrape_routes.bad_request("Missing required parameter: address")

    started = time.monotonic()
    async with scrape_routes.get_orchestrator() as orchestrator:
        result = await orchestrator.resolve_one(
            address, county=req.county, state=req.state, want_document=True
        )
    duration = f"{time.monotonic() - started:.2f}s"
    record = ScrapeResultModel.from_result(result, include_document=False)

    if result.document_bytes:
        return DeedDownloadResponse(
            success=True,
            download=DownloadModel(
                pdf_base64=base64.b64encode(result.document_bytes).decode("ascii"),
                content_type=result.document_mime_type or "application/pdf",
                url=result.document_url,
            ),
            record=record,
            duration=duration,
        )
    return DeedDownloadResponse(
        success=False,
        error=result.error or "No document found",
        error_type=result.error_type or "DocumentNotFound",
        record=record,
        duration=duration,
    )
