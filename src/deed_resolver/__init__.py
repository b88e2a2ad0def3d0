"""Package initializer for `deed_resolver`."""

from .models import BatchRun, ParcelRecord, ScrapeResult
from .pipeline import PipelineOrchestrator

__all__ = ["BatchRun", "ParcelRecord", "PipelineOrchestrator", "ScrapeResult"]
