from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from deed_resolver.api.schemas import ScrapeRequest, ScrapeResponse, ScrapeResultModel, SummaryModel
from deed_resolver.pipeline import PipelineOrchestrator
from deed_resolver.settings import get_settings


logger = logging.getLogger("deed_resolver.api")

router = APIRouter(tags=["scrape"])


def get_orchestrator() -> PipelineOrchestrator:
    return PipelineOrchestrator(settings=get_settings())


def bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@router.post("/scrape", response_model=ScrapeResponse)
async def scrape(req: ScrapeRequest):
    max_batch = get_settings().max_batch_size
    if not req.addresses:
        return bad_request("addresses must be a non-empty list")
    if len(req.addresses) > max_batch:
        return bad_request(f"At most {max_batch} addresses per request (got {len(req.addresses)})")

    logger.info("Scrape request for %d address(es)", len(req.addresses))
    async with get_orchestrator() as orchestrator:
        batch = await orchestrator.run(
            req.addresses,
            county=req.county,
            state=req.state,
            want_documents=req.include_documents,
        )
    return ScrapeResponse(
        success=True,
        summary=SummaryModel.from_summary(batch.summary),
        data=[ScrapeResultModel.from_result(r) for r in batch.results],
    )
