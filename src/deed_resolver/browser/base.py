from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol


class Frame(Protocol):
    """One navigable document (the page itself or an embedded frame)."""

    @property
    def url(self) -> str: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...


class BrowserSession(Protocol):
    """What the resolution core needs from a browser.

    Sessions are handed out by a session factory as async context managers;
    leaving the context closes the session.
    """

    @property
    def url(self) -> str: ...

    async def navigate(self, url: str, timeout: float) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    def frames(self) -> List[Frame]: ...

    async def cookies(self) -> List[Dict[str, Any]]: ...

    async def close(self) -> None: ...


# Page scripts. Each is a function expression taking a single argument so
# any protocol implementation can evaluate it with ``evaluate(script, arg)``.

TEXT_SCRIPT = "() => (document.body ? document.body.innerText : '')"

HTML_SCRIPT = "() => document.documentElement ? document.documentElement.outerHTML : ''"

FILL_SCRIPT = """(args) => {
  const el = document.querySelector(args.selector);
  if (!el) return false;
  el.focus();
  el.value = args.value;
  el.dispatchEvent(new Event('input', { bubbles: true }));
  el.dispatchEvent(new Event('change', { bubbles: true }));
  return true;
}"""

CLICK_SCRIPT = """(args) => {
  const el = document.querySelector(args.selector);
  if (!el) return false;
  el.click();
  return true;
}"""

SELECT_MODE_SCRIPT = """(args) => {
  const candidates = Array.from(document.querySelectorAll(args.selector));
  const wanted = (args.label || '').toLowerCase();
  for (const el of candidates) {
    const label = ((el.parentElement && el.parentElement.textContent) || el.textContent || el.value || '').toLowerCase();
    if (!wanted || label.includes(wanted)) {
      el.click();
      return true;
    }
  }
  return false;
}"""

SUBMIT_FORM_SCRIPT = """(args) => {
  const form = document.querySelector(args.selector);
  if (!form) return false;
  if (typeof form.requestSubmit === 'function') form.requestSubmit();
  else form.submit();
  return true;
}"""

CLICK_MATCHING_LINK_SCRIPT = """(args) => {
  const pattern = new RegExp(args.pattern);
  const nodes = Array.from(document.querySelectorAll('a, td, button'));
  for (const node of nodes) {
    const text = (node.textContent || '').trim();
    if (pattern.test(text)) {
      const target = node.querySelector('a') || node;
      target.click();
      return text;
    }
  }
  return null;
}"""

READ_TEXT_SCRIPT = """(args) => {
  const el = document.querySelector(args.selector);
  return el ? (el.innerText || el.textContent || '').trim() : null;
}"""


async def page_text(frame: Frame) -> str:
    return (await frame.evaluate(TEXT_SCRIPT)) or ""


async def page_html(frame: Frame) -> str:
    return (await frame.evaluate(HTML_SCRIPT)) or ""


async def fill(frame: Frame, selector: str, value: str) -> bool:
    return bool(await frame.evaluate(FILL_SCRIPT, {"selector": selector, "value": value}))


async def click(frame: Frame, selector: str) -> bool:
    return bool(await frame.evaluate(CLICK_SCRIPT, {"selector": selector}))


async def select_mode(frame: Frame, selector: str, label: str = "") -> bool:
    return bool(await frame.evaluate(SELECT_MODE_SCRIPT, {"selector": selector, "label": label}))


async def submit_form(frame: Frame, selector: str) -> bool:
    return bool(await frame.evaluate(SUBMIT_FORM_SCRIPT, {"selector": selector}))


async def click_matching_link(frame: Frame, pattern: str) -> Optional[str]:
    return await frame.evaluate(CLICK_MATCHING_LINK_SCRIPT, {"pattern": pattern})


async def read_text(frame: Frame, selector: str) -> Optional[str]:
    return await frame.evaluate(READ_TEXT_SCRIPT, {"selector": selector})


def find_frame(session: BrowserSession, pattern: str) -> Optional[Frame]:
    for frame in session.frames():
        if pattern and pattern in (frame.url or ""):
            return frame
    return None


async def wait_until(
    condition: Callable[[], Awaitable[bool]],
    timeout: float,
    interval: float = 0.25,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll ``condition`` until it holds or ``timeout`` seconds pass.

    Returns whether the condition was met. Exceptions raised by the
    condition propagate.
    """

    deadline = clock() + max(0.0, timeout)
    while True:
        if await condition():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        await asyncio.sleep(min(interval, remaining))
