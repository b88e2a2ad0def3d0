import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from deed_resolver.browser.playwright_session import PlaywrightSession
from deed_resolver.errors import NavigationTimeout


class _Page:
    url = "https://portal.test/"
    main_frame = object()

    def __init__(self):
        self.frames = [self.main_frame]
        self.goto_calls = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        raise PlaywrightTimeoutError("Timeout 5000ms exceeded")


class _Context:
    def __init__(self):
        self.closed = False

    async def cookies(self):
        return [
            {"name": "sid", "value": "abc", "domain": "portal.test", "path": "/", "expires": -1, "httpOnly": True},
            {"name": "lang", "value": "en", "domain": ".portal.test", "path": "/", "secure": False},
        ]

    async def close(self):
        self.closed = True


def test_goto_timeout_maps_to_navigation_timeout():
    page = _Page()
    session = PlaywrightSession(_Context(), page)
    with pytest.raises(NavigationTimeout) as excinfo:
        asyncio.run(session.navigate("https://portal.test/search", 5.0))
    assert excinfo.value.url == "https://portal.test/search"
    assert page.goto_calls == [("https://portal.test/search", "domcontentloaded", 5000.0)]


def test_cookies_frames_and_close():
    context = _Context()
    session = PlaywrightSession(context, _Page())
    assert asyncio.run(session.cookies()) == [
        {"name": "sid", "value": "abc", "domain": "portal.test", "path": "/"},
        {"name": "lang", "value": "en", "domain": ".portal.test", "path": "/", "secure": False},
    ]
    assert session.frames() == []
    asyncio.run(session.close())
    assert context.closed is True
