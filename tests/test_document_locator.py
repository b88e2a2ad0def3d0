from deed_resolver.documents.locator import is_chrome, locate, resolve_viewer_url
from deed_resolver.models import FrameSnapshot


PAGE_URL = "https://records.example-county.gov/web/search/results"
DOC_URL = (
    "https://records.example-county.gov/web/document/servepdf/"
    "SCALED-DOC210S270.1.pdf/2024114785.pdf"
)


def test_viewer_param_drops_nested_query():
    viewer = (
        "https://selfservice.or.occompt.com/ssweb/pdfjs/web/viewer.html?"
        "file=/web/document/servepdf/SCALED-DOC210S270.1.pdf/2024114785.pdf"
        "?index=1&allowDownload=true"
    )
    assert resolve_viewer_url(viewer) == (
        "https://selfservice.or.occompt.com/web/document/servepdf/"
        "SCALED-DOC210S270.1.pdf/2024114785.pdf"
    )


def test_viewer_param_absolute_and_missing():
    assert resolve_viewer_url("https://a.test/v?file=https%3A%2F%2Fb.test%2Fx.pdf") == "https://b.test/x.pdf"
    assert resolve_viewer_url("https://a.test/v?page=1") is None


def test_chrome_frames_are_ignored():
    assert is_chrome("about:blank", PAGE_URL)
    assert is_chrome("javascript:void(0)", PAGE_URL)
    assert is_chrome(PAGE_URL, PAGE_URL)
    assert is_chrome("https://www.google.com/recaptcha/api2/anchor", PAGE_URL)
    assert not is_chrome("https://images.example-county.gov/DocImage.aspx?id=1", PAGE_URL)


def test_locate_orders_by_specificity(load_fixture):
    page = FrameSnapshot(url=PAGE_URL, text="", html=load_fixture("viewer_page.html"))
    refs = locate(page, [])

    assert [r.strategy for r in refs] == ["viewer_param", "iframe", "action", "action"]
    assert refs[0].resolved_file_url == DOC_URL
    assert refs[0].mime_type == "application/pdf"
    assert refs[1].resolved_file_url == "https://images.example-county.gov/DocImage.aspx?id=778899"
    assert refs[2].resolved_file_url is None
    assert refs[2].hint == "Print"
    assert refs[3].hint == "Download PDF"
    assert refs[3].href == "https://records.example-county.gov/web/document/123/download"


def test_locate_reads_frame_urls_and_dedupes():
    viewer = "https://records.example-county.gov/web/viewer.html?file=%2Fdocs%2Fdeed.pdf"
    page = FrameSnapshot(url=PAGE_URL, html=f'<iframe src="{viewer}"></iframe>')
    frame = FrameSnapshot(url=viewer, html="<html><body>PDF</body></html>")
    refs = locate(page, [frame])
    assert len(refs) == 1
    assert refs[0].resolved_file_url == "https://records.example-county.gov/docs/deed.pdf"


def test_locate_empty_page():
    assert locate(FrameSnapshot(url=PAGE_URL, html="<html><body>No results</body></html>")) == []


def test_portal_search_frame_is_not_a_document():
    page = FrameSnapshot(
        url="https://hcad.org/property-search/property-search",
        html='<iframe id="parentIframe" src="https://testsearch.hcad.org/?x=1"></iframe>',
    )
    results = FrameSnapshot(url="https://testsearch.hcad.org/?x=1", html="<table></table>")
    assert [r.resolved_file_url for r in locate(page, [results])] == ["https://testsearch.hcad.org/?x=1"]
    assert locate(page, [results], frame_patterns=("testsearch.hcad",)) == []
    assert is_chrome("https://testsearch.hcad.org/?x=1", page.url, ("testsearch.hcad",))
