from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from deed_resolver.errors import NavigationTimeout
from deed_resolver.settings import Settings, get_settings


logger = logging.getLogger("deed_resolver.browser")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)


class PlaywrightFrame:
    def __init__(self, frame):
        self._frame = frame

    @property
    def url(self) -> str:
        return self._frame.url

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._frame.evaluate(script, arg)


class PlaywrightSession:
    """One browser context + page behind the browsing protocol."""

    def __init__(self, context, page):
        self._context = context
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def navigate(self, url: str, timeout: float) -> None:
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(url, timeout) from exc

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    def frames(self) -> List[PlaywrightFrame]:
        return [PlaywrightFrame(f) for f in self._page.frames if f is not self._page.main_frame]

    async def cookies(self) -> List[Dict[str, Any]]:
        keep = ("name", "value", "domain", "path", "secure")
        return [{k: c[k] for k in keep if k in c} for c in await self._context.cookies()]

    async def close(self) -> None:
        await self._context.close()


class SessionPool:
    """Bounded pool of browsing sessions sharing one browser process.

    ``session()`` is the session factory handed to the router and adapters.
    At most ``settings.concurrency`` sessions are open at once; each one is a
    fresh browser context closed when its ``async with`` block exits.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._semaphore = asyncio.Semaphore(self.settings.concurrency)
        self._lock = asyncio.Lock()
        self._playwright = None
        self._browser = None

    async def _ensure_browser(self):
        async with self._lock:
            if self._browser is None:
                self._playwright = await async_playwright().start()
                logger.info("Launching chromium (headless=%s)", self.settings.headless)
                self._browser = await self._playwright.chromium.launch(
                    headless=self.settings.headless,
                    args=["--no-sandbox", "--disable-dev-shm-usage"],
                )
        return self._browser

    @asynccontextmanager
    async def session(self) -> AsyncIterator[PlaywrightSession]:
        async with self._semaphore:
            browser = await self._ensure_browser()
            context = await browser.new_context(user_agent=USER_AGENT, accept_downloads=True)
            page = await context.new_page()
            wrapped = PlaywrightSession(context, page)
            try:
                yield wrapped
            finally:
                await wrapped.close()

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
            if self._playwright is not None:
                await self._playwright.stop()
            self._browser = None
            self._playwright = None

    async def __aenter__(self) -> "SessionPool":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
