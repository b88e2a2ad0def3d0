from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from deed_resolver.documents.fetcher import DocumentFetcher, infer_mime_type, sniff_format
from deed_resolver.documents.locator import fetchable, locate
from deed_resolver.errors import (
    AddressTimeout,
    DeedResolverError,
    DocumentNotFound,
    DocumentValidationError,
    DownloadFailure,
    ExtractionFailure,
)
from deed_resolver.extract import extract
from deed_resolver.jurisdiction_router import JurisdictionRouter
from deed_resolver.models import BatchRun, BatchSummary, PortalSearchOutcome, ScrapeResult
from deed_resolver.normalize import parse_address
from deed_resolver.settings import Settings, get_settings


logger = logging.getLogger("deed_resolver.pipeline")


def _record_error(result: ScrapeResult, exc: BaseException) -> None:
    result.error = str(exc) or type(exc).__name__
    result.error_type = exc.error_type if isinstance(exc, DeedResolverError) else type(exc).__name__


class PipelineOrchestrator:
    """Resolves batches of addresses into ScrapeResults.

    Without an explicit ``session_factory`` or ``router`` the orchestrator
    owns a Playwright ``SessionPool``. Without an explicit ``fetcher`` it owns
    the fetcher's HTTP session. Release both with ``aclose()`` (or use
    the orchestrator as an async context manager). ``run_sync`` does this
    for you.
    """

    def __init__(
        self,
        session_factory: Optional[Callable] = None,
        settings: Optional[Settings] = None,
        router: Optional[JurisdictionRouter] = None,
        fetcher: Optional[DocumentFetcher] = None,
    ):
        self.settings = settings or get_settings()
        self._pool = None
        if router is None:
            if session_factory is None:
                from deed_resolver.browser.playwright_session import SessionPool

                self._pool = SessionPool(self.settings)
                session_factory = self._pool.session
            router = JurisdictionRouter(session_factory, settings=self.settings)
        self.router = router
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or DocumentFetcher(self.settings)

    async def aclose(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()
        if self._pool is not None:
            await self._pool.close()

    async def __aenter__(self) -> "PipelineOrchestrator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def run(
        self,
        addresses: Sequence[str],
        county: Optional[str] = None,
        state: Optional[str] = None,
        want_documents: Optional[bool] = None,
        on_result: Optional[Callable[[int, ScrapeResult], None]] = None,
    ) -> BatchRun:
        want = self.settings.include_documents if want_documents is None else want_documents
        semaphore = asyncio.Semaphore(self.settings.concurrency)

        async def bounded(index: int, raw: str) -> ScrapeResult:
            async with semaphore:
                result = await self._resolve(raw, county, state, want)
            if on_result is not None:
                on_result(index, result)
            return result

        results: List[ScrapeResult] = list(
            await asyncio.gather(*(bounded(i, raw) for i, raw in enumerate(addresses)))
        )
        summary = BatchSummary.from_results(results)
        logger.info(
            "Batch finished: %d total, %d successful, %d failed",
            summary.total,
            summary.successful,
            summary.failed,
        )
        return BatchRun(results=results, summary=summary)

    def run_sync(self, addresses: Sequence[str], **kwargs) -> BatchRun:
        async def _go() -> BatchRun:
            try:
                return await self.run(addresses, **kwargs)
            finally:
                await self.aclose()

        return asyncio.run(_go())

    async def resolve_one(
        self,
        address: str,
        county: Optional[str] = None,
        state: Optional[str] = None,
        want_document: bool = True,
    ) -> ScrapeResult:
        return await self._resolve(address, county, state, want_document)

    async def _resolve(
        self,
        raw: str,
        county: Optional[str],
        state: Optional[str],
        want_document: bool,
    ) -> ScrapeResult:
        result = ScrapeResult(address=raw)
        timeout = self.settings.address_timeout
        try:
            await asyncio.wait_for(self._pipeline(result, county, state, want_document), timeout=timeout)
        except asyncio.TimeoutError:
            _record_error(result, AddressTimeout(timeout))
        except DeedResolverError as exc:
            _record_error(result, exc)
        except Exception as exc:
            logger.exception("Unexpected error while resolving an address")
            _record_error(result, exc)
        if result.ok:
            logger.info("Resolved parcel %s (%s, %s)", result.parcel_id, result.county, result.state)
        else:
            logger.info("Resolution failed: %s: %s", result.error_type, result.error)
        return result

    async def _pipeline(
        self,
        result: ScrapeResult,
        county: Optional[str],
        state: Optional[str],
        want_document: bool,
    ) -> None:
        address = parse_address(result.address, county=county, state=state)
        entry, adapter = self.router.resolve(address)
        result.county = entry["county"].replace("_", " ").title()
        result.state = entry["state"]

        outcome = await adapter.search(address.search_term)

        extraction_error = None
        try:
            record = extract(
                outcome.text,
                known_parcel_id=outcome.fields.get("parcel_id"),
                required=adapter.required_fields,
                county=result.county,
                state=result.state,
            )
        except ExtractionFailure as exc:
            extraction_error = exc
            record = exc.record
        if record is not None:
            result.merge_record(record)

        if want_document:
            try:
                if not entry["supports_documents"]:
                    raise DocumentNotFound(f"{entry['portal']} does not serve deed documents")
                await self._attach_document(result, outcome, adapter.frame_patterns)
            except DeedResolverError as exc:
                if extraction_error is None:
                    raise
                logger.info("Document stage also failed: %s", exc.error_type)
        if extraction_error is not None:
            raise extraction_error

    async def _attach_document(
        self,
        result: ScrapeResult,
        outcome: PortalSearchOutcome,
        frame_patterns: Sequence[str] = (),
    ) -> None:
        refs = locate(outcome.page, outcome.frames, frame_patterns)
        last_error: Optional[DeedResolverError] = None
        for ref in fetchable(refs):
            try:
                body = await asyncio.to_thread(self.fetcher.fetch, ref.resolved_file_url, outcome.cookies)
            except (DownloadFailure, DocumentValidationError) as exc:
                logger.info("Candidate %s rejected: %s", ref.strategy, exc.error_type)
                last_error = exc
                continue
            result.document_bytes = body
            result.document_url = ref.resolved_file_url
            result.document_mime_type = infer_mime_type(sniff_format(body)) or ref.mime_type
            return
        if last_error is not None:
            raise last_error
        hints = [r.hint for r in refs if r.strategy == "action" and r.hint]
        if hints:
            raise DocumentNotFound(
                "No fetchable document URL; page offers: " + ", ".join(hints[:3])
            )
        raise DocumentNotFound()
