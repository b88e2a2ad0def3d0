from deed_resolver.documents.fetcher import DocumentFetcher, detect_format, infer_mime_type
from deed_resolver.documents.locator import locate

__all__ = ["DocumentFetcher", "detect_format", "infer_mime_type", "locate"]
