import os
import re
import socket
import sys
import urllib.request
from contextlib import asynccontextmanager
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC = REPO_ROOT / "src"
FIXTURES = Path(__file__).resolve().parent / "fixtures"

# Prefer repo sources over any installed package.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from deed_resolver.browser import base as scripts  # noqa: E402
from deed_resolver.errors import NavigationTimeout  # noqa: E402
from deed_resolver.settings import reset_settings_cache  # noqa: E402


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0]
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)
    monkeypatch.setattr(
        urllib.request,
        "urlopen",
        lambda *args, **kwargs: (_ for _ in ()).throw(
            RuntimeError("Network access blocked in tests")
        ),
    )


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for key in list(os.environ):
        if key.startswith("DEED_RESOLVER_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


def read_fixture(name):
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeFrame:
    """Scripted stand-in for a page or frame.

    ``selectors`` lists the elements present. Submitting swaps in
    ``results`` and following a result link swaps in ``detail``; each is a
    ``(text, html)`` pair.
    """

    def __init__(self, url="https://portal.test/search", text="", html="", selectors=(),
                 links=(), values=None, results=None, detail=None, submit_on=None):
        self.url = url
        self.text = text
        self.html = html
        self.selectors = set(selectors)
        self.links = list(links)
        self.values = dict(values or {})
        self.results = results
        self.detail = detail
        self.submit_on = submit_on
        self.filled = {}
        self.clicked = []
        self.modes = []

    def _show(self, view):
        if view is not None:
            self.text, self.html = view

    async def evaluate(self, script, arg=None):
        if script == scripts.TEXT_SCRIPT:
            return self.text
        if script == scripts.HTML_SCRIPT:
            return self.html
        if script == scripts.FILL_SCRIPT:
            if arg["selector"] not in self.selectors:
                return False
            self.filled[arg["selector"]] = arg["value"]
            return True
        if script == scripts.SELECT_MODE_SCRIPT:
            if arg["selector"] not in self.selectors:
                return False
            self.modes.append(arg["label"])
            return True
        if script in (scripts.CLICK_SCRIPT, scripts.SUBMIT_FORM_SCRIPT):
            if arg["selector"] not in self.selectors:
                return False
            self.clicked.append(arg["selector"])
            if self.submit_on is None or arg["selector"] == self.submit_on:
                self._show(self.results)
            return True
        if script == scripts.CLICK_MATCHING_LINK_SCRIPT:
            for link in self.links:
                if re.search(arg["pattern"], link):
                    self.clicked.append(link)
                    self._show(self.detail)
                    return link
            return None
        if script == scripts.READ_TEXT_SCRIPT:
            return self.values.get(arg["selector"])
        raise AssertionError(f"unexpected script: {script[:40]}")


class FakeSession(FakeFrame):
    def __init__(self, child_frames=(), cookies=None, nav_failures=0, **kwargs):
        super().__init__(**kwargs)
        self.child_frames = list(child_frames)
        self.jar = list(cookies or [])
        self.nav_failures = nav_failures
        self.navigations = []
        self.closed = False

    async def navigate(self, url, timeout):
        self.navigations.append(url)
        if self.nav_failures > 0:
            self.nav_failures -= 1
            raise NavigationTimeout(url, timeout)

    def frames(self):
        return list(self.child_frames)

    async def cookies(self):
        return [dict(c) for c in self.jar]

    async def close(self):
        self.closed = True


class FakeSessionFactory:
    def __init__(self, build):
        self.build = build
        self.sessions = []

    @asynccontextmanager
    async def __call__(self):
        session = self.build()
        self.sessions.append(session)
        try:
            yield session
        finally:
            await session.close()


@pytest.fixture
def fake_browser():
    return FakeFrame, FakeSession, FakeSessionFactory


@pytest.fixture
def load_fixture():
    return read_fixture
