from deed_resolver.browser.base import BrowserSession, Frame, wait_until

__all__ = ["BrowserSession", "Frame", "wait_until"]
