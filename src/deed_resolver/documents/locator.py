from __future__ import annotations

import re
import urllib.parse
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from deed_resolver.documents.fetcher import infer_mime_type
from deed_resolver.models import DocumentReference, FrameSnapshot


_FILE_PARAM_RE = re.compile(r"[?&#]file=([^&#]+)")

CHROME_HOSTS = (
    "google.com/recaptcha",
    "recaptcha.net",
    "hcaptcha.com",
    "challenges.cloudflare.com",
    "google-analytics.com",
    "googletagmanager.com",
    "doubleclick.net",
    "facebook.com/tr",
)

ACTION_WORDS = ("download", "pdf", "print", "view")

_ACTION_SELECTOR = (
    "button, a, [role=button], input[type=button], input[type=submit], input[type=image]"
)


def _is_absolute(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


def _origin(url: str) -> str:
    parsed = urllib.parse.urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve_viewer_url(url: str) -> Optional[str]:
    """Resolve the raw file behind a ``...viewer?file=<path>`` URL.

    The ``file`` value is URL-decoded and any query string it carries is
    dropped. A root-relative path resolves against the origin of ``url``.
    """

    match = _FILE_PARAM_RE.search(url or "")
    if not match:
        return None
    target = urllib.parse.unquote(match.group(1)).split("?")[0].strip()
    if not target:
        return None
    if target.startswith("/"):
        return _origin(url) + target
    return urllib.parse.urljoin(url, target)


def is_chrome(src: str, page_url: str, frame_patterns: Iterable[str] = ()) -> bool:
    """True for frames that are page furniture rather than a document.

    ``frame_patterns`` are the portal's own search/results frame URL
    patterns; those frames host the search app, not a deed.
    """

    value = (src or "").strip()
    lowered = value.lower()
    if not value or lowered == "about:blank" or lowered.startswith("javascript:"):
        return True
    if value.rstrip("/") == (page_url or "").rstrip("/"):
        return True
    if any(pattern and pattern in value for pattern in frame_patterns):
        return True
    return any(host in lowered for host in CHROME_HOSTS)


def _soup(snapshot: FrameSnapshot) -> BeautifulSoup:
    return BeautifulSoup(snapshot.html or "", "html.parser")


def _frame_sources(snapshot: FrameSnapshot) -> List[str]:
    out = []
    for node in _soup(snapshot).select("iframe[src], frame[src], embed[src], object[data]"):
        src = node.get("src") or node.get("data") or ""
        out.append(urllib.parse.urljoin(snapshot.url or "", src.strip()))
    return out


def _viewer_refs(snapshots: Iterable[FrameSnapshot]) -> List[DocumentReference]:
    refs = []
    for snap in snapshots:
        for candidate in [snap.url] + _frame_sources(snap):
            resolved = resolve_viewer_url(candidate)
            if resolved and _is_absolute(resolved):
                refs.append(
                    DocumentReference(
                        viewer_url=candidate,
                        resolved_file_url=resolved,
                        mime_type=infer_mime_type(url=resolved),
                        strategy="viewer_param",
                    )
                )
    return refs


def _iframe_refs(
    snapshots: Iterable[FrameSnapshot], frame_patterns: Iterable[str] = ()
) -> List[DocumentReference]:
    frame_patterns = tuple(frame_patterns)
    refs = []
    for snap in snapshots:
        for src in _frame_sources(snap):
            if "file=" in src or is_chrome(src, snap.url, frame_patterns):
                continue
            if not _is_absolute(src):
                continue
            refs.append(
                DocumentReference(
                    viewer_url=snap.url,
                    resolved_file_url=src,
                    mime_type=infer_mime_type(url=src),
                    strategy="iframe",
                )
            )
    return refs


def _action_refs(snapshots: Iterable[FrameSnapshot]) -> List[DocumentReference]:
    refs = []
    for snap in snapshots:
        for node in _soup(snap).select(_ACTION_SELECTOR):
            label = node.get_text(" ", strip=True) or node.get("value") or node.get("aria-label") or ""
            lowered = label.lower()
            if not any(word in lowered for word in ACTION_WORDS):
                continue
            href = node.get("href")
            if href and not href.lower().startswith("javascript:"):
                href = urllib.parse.urljoin(snap.url or "", href)
            else:
                href = None
            refs.append(
                DocumentReference(
                    viewer_url=snap.url,
                    resolved_file_url=None,
                    strategy="action",
                    hint=label.strip(),
                    href=href,
                )
            )
    return refs


def locate(
    page: FrameSnapshot,
    frames: Optional[List[FrameSnapshot]] = None,
    frame_patterns: Iterable[str] = (),
) -> List[DocumentReference]:
    """Document candidates for a result page, most specific first.

    Viewer ``file=`` parameters come first, then plain iframe sources, then
    labeled download/print/view controls (hints only, never fetched). Frames
    whose URL contains one of ``frame_patterns`` are never candidates.
    """

    snapshots = [page] + list(frames or [])
    ordered = _viewer_refs(snapshots) + _iframe_refs(snapshots, frame_patterns) + _action_refs(snapshots)
    seen = set()
    out = []
    for ref in ordered:
        key = ref.resolved_file_url or (ref.strategy, ref.hint, ref.href)
        if key in seen:
            continue
        seen.add(key)
        out.append(ref)
    return out


def fetchable(refs: Iterable[DocumentReference]) -> List[DocumentReference]:
    return [r for r in refs if r.fetchable]
