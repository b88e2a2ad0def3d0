from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from deed_resolver.browser.base import (
    BrowserSession,
    Frame,
    click,
    click_matching_link,
    fill,
    find_frame,
    page_html,
    page_text,
    read_text,
    select_mode,
    submit_form,
    wait_until,
)
from deed_resolver.errors import NavigationTimeout, SelectorNotFound
from deed_resolver.models import FrameSnapshot, PortalSearchOutcome, split_street
from deed_resolver.normalize import normalize_text
from deed_resolver.settings import Settings, get_settings


logger = logging.getLogger("deed_resolver.portals")


class WorkflowState(enum.Enum):
    NAVIGATING = "navigating"
    SETTLING = "settling"
    SELECTING_MODE = "selecting-mode"
    FILLING = "filling"
    SUBMITTING = "submitting"
    WAITING_FOR_RESULTS = "waiting-for-results"
    DONE = "done"


@dataclass(frozen=True)
class PortalConfig:
    """Everything that differs between two portals' search workflows.

    ``field_selectors`` maps the names returned by
    ``PortalAdapter.field_values`` to CSS selectors. Frame patterns are
    substrings of the frame URL.
    """

    name: str
    search_url: str
    field_selectors: Dict[str, str]
    settle_seconds: float = 3.0
    ready_markers: Tuple[str, ...] = ()
    mode_selector: Optional[str] = None
    mode_label: str = ""
    submit_selector: Optional[str] = None
    form_selector: Optional[str] = None
    results_markers: Tuple[str, ...] = ()
    results_timeout: float = 15.0
    search_frame_pattern: Optional[str] = None
    results_frame_pattern: Optional[str] = None
    result_link_pattern: Optional[str] = None
    detail_markers: Tuple[str, ...] = ()
    parcel_id_selector: Optional[str] = None
    required_fields: Tuple[str, ...] = ()


def _contains_any(text: str, markers) -> bool:
    haystack = normalize_text(text)
    return any(normalize_text(m) in haystack for m in markers)


class PortalAdapter:
    """Runs one portal's search workflow inside a scoped browsing session.

    Subclasses set ``config`` and, where the portal splits the address over
    several inputs, override ``field_values``.
    """

    config: PortalConfig

    def __init__(self, session_factory: Callable, settings: Optional[Settings] = None):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.state: Optional[WorkflowState] = None
        self.history: List[WorkflowState] = []

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return self.config.required_fields

    @property
    def frame_patterns(self) -> Tuple[str, ...]:
        """URL patterns of the frames hosting this portal's search app."""
        cfg = self.config
        return tuple(dict.fromkeys(p for p in (cfg.search_frame_pattern, cfg.results_frame_pattern) if p))

    def field_values(self, term: str) -> Dict[str, str]:
        return {"search": term}

    def _enter(self, state: WorkflowState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("%s: %s", self.name, state.value)

    async def search(self, term: str) -> PortalSearchOutcome:
        self.history = []
        async with self.session_factory() as session:
            return await self._run(session, term)

    async def _run(self, session: BrowserSession, term: str) -> PortalSearchOutcome:
        cfg = self.config

        self._enter(WorkflowState.NAVIGATING)
        await self._navigate(session)

        self._enter(WorkflowState.SETTLING)
        await wait_until(lambda: self._is_ready(session), cfg.settle_seconds)
        target = self._search_target(session)

        if cfg.mode_selector:
            self._enter(WorkflowState.SELECTING_MODE)
            if not await self._until(lambda: select_mode(target, cfg.mode_selector, cfg.mode_label)):
                raise SelectorNotFound(cfg.name, cfg.mode_selector, field="mode")

        self._enter(WorkflowState.FILLING)
        for field_name, value in self.field_values(term).items():
            selector = cfg.field_selectors.get(field_name)
            if selector is None:
                raise SelectorNotFound(cfg.name, "<unmapped>", field=field_name)
            if not await self._until(lambda: fill(target, selector, value)):
                raise SelectorNotFound(cfg.name, selector, field=field_name)

        self._enter(WorkflowState.SUBMITTING)
        await self._submit(target)

        self._enter(WorkflowState.WAITING_FOR_RESULTS)
        if cfg.results_markers:
            found = await wait_until(
                lambda: self._has_markers(session, cfg.results_markers), cfg.results_timeout
            )
            if not found:
                logger.info("%s: results markers not seen within %gs", cfg.name, cfg.results_timeout)
        fields: Dict[str, str] = {}
        if cfg.result_link_pattern:
            opened = await self._open_first_result(session)
            if opened:
                fields["parcel_id"] = opened

        fields.update(await self._read_fields(session))
        outcome = await self._snapshot(session, fields)
        self._enter(WorkflowState.DONE)
        return outcome

    async def _navigate(self, session: BrowserSession) -> None:
        retries = max(0, self.settings.nav_retries)
        for attempt in range(retries + 1):
            try:
                await session.navigate(self.config.search_url, self.settings.navigation_timeout)
                return
            except NavigationTimeout:
                if attempt >= retries:
                    raise
                logger.warning(
                    "%s: navigation timed out (attempt %d/%d), retrying",
                    self.name,
                    attempt + 1,
                    retries + 1,
                )

    async def _is_ready(self, session: BrowserSession) -> bool:
        cfg = self.config
        target: Frame = session
        if cfg.search_frame_pattern:
            frame = find_frame(session, cfg.search_frame_pattern)
            if frame is None:
                return False
            target = frame
        if not cfg.ready_markers:
            return bool((await page_text(target)).strip())
        return _contains_any(await page_text(target), cfg.ready_markers)

    def _search_target(self, session: BrowserSession) -> Frame:
        pattern = self.config.search_frame_pattern
        if not pattern:
            return session
        frame = find_frame(session, pattern)
        if frame is None:
            raise SelectorNotFound(self.config.name, f"iframe[src*='{pattern}']", field="search_frame")
        return frame

    async def _until(self, action) -> bool:
        # Elements can appear late (tabs, autocomplete lists); the settle
        # duration bounds how long an interaction is retried.
        return await wait_until(action, self.config.settle_seconds)

    async def _submit(self, target: Frame) -> None:
        cfg = self.config
        if cfg.submit_selector:
            if not await self._until(lambda: click(target, cfg.submit_selector)):
                raise SelectorNotFound(cfg.name, cfg.submit_selector, field="submit")
        elif cfg.form_selector:
            if not await self._until(lambda: submit_form(target, cfg.form_selector)):
                raise SelectorNotFound(cfg.name, cfg.form_selector, field="submit")

    def _results_frames(self, session: BrowserSession) -> List[Frame]:
        pattern = self.config.results_frame_pattern
        if not pattern:
            return []
        return [f for f in session.frames() if pattern in (f.url or "")]

    async def _has_markers(self, session: BrowserSession, markers) -> bool:
        if _contains_any(await page_text(session), markers):
            return True
        for frame in self._results_frames(session):
            if _contains_any(await page_text(frame), markers):
                return True
        return False

    async def _open_first_result(self, session: BrowserSession) -> Optional[str]:
        """Click the first result whose text matches ``result_link_pattern``.

        Returns the clicked text (the portal's parcel or account number) or
        None when no row matched.
        """

        cfg = self.config
        targets: List[Frame] = self._results_frames(session) + [session]
        for target in targets:
            clicked = await click_matching_link(target, cfg.result_link_pattern)
            if clicked:
                logger.debug("%s: opened result %s", cfg.name, clicked)
                if cfg.detail_markers:
                    await wait_until(
                        lambda: self._has_markers(session, cfg.detail_markers), cfg.results_timeout
                    )
                return clicked.strip()
        logger.info("%s: no result row matched %s", cfg.name, cfg.result_link_pattern)
        return None

    async def _read_fields(self, session: BrowserSession) -> Dict[str, str]:
        selector = self.config.parcel_id_selector
        if not selector:
            return {}
        for target in [session] + self._results_frames(session):
            value = await read_text(target, selector)
            if value:
                return {"parcel_id": value.strip()}
        return {}

    async def _snapshot(self, session: BrowserSession, fields: Dict[str, str]) -> PortalSearchOutcome:
        page = FrameSnapshot(url=session.url, text=await page_text(session), html=await page_html(session))
        frames = []
        for frame in self._results_frames(session):
            frames.append(FrameSnapshot(url=frame.url, text=await page_text(frame), html=await page_html(frame)))
        if self.config.results_frame_pattern and not frames:
            logger.info("%s: results frame '%s' absent", self.name, self.config.results_frame_pattern)
        text = "\n".join([page.text] + [f.text for f in frames])
        return PortalSearchOutcome(
            text=text,
            page=page,
            frames=frames,
            fields=fields,
            cookies=await session.cookies(),
        )


class SplitStreetAdapter(PortalAdapter):
    """Portals that take the street number and street name in separate inputs."""

    def field_values(self, term: str) -> Dict[str, str]:
        number, name = split_street(term)
        return {"street_number": number, "street_name": name}
