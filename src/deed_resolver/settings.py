from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return max(minimum, value)


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = float(str(raw).strip())
    except ValueError:
        return default
    return max(minimum, value)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for one resolver process.

    Every value can be overridden with a ``DEED_RESOLVER_*`` environment
    variable. Instances are immutable; use ``with_overrides`` to derive a
    per-run variant (the CLI does this for ``--concurrency``/``--timeout``).
    """

    concurrency: int = 2
    address_timeout: float = 180.0
    navigation_timeout: float = 60.0
    nav_retries: int = 1
    headless: bool = True
    max_batch_size: int = 10
    min_document_bytes: int = 1024
    download_timeout: float = 30.0
    download_retries: int = 2
    include_documents: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            concurrency=_env_int("DEED_RESOLVER_CONCURRENCY", 2, minimum=1),
            address_timeout=_env_float("DEED_RESOLVER_ADDRESS_TIMEOUT_S", 180.0, minimum=1.0),
            navigation_timeout=_env_float("DEED_RESOLVER_NAV_TIMEOUT_S", 60.0, minimum=1.0),
            nav_retries=_env_int("DEED_RESOLVER_NAV_RETRIES", 1),
            headless=_env_bool("DEED_RESOLVER_HEADLESS", True),
            max_batch_size=_env_int("DEED_RESOLVER_MAX_BATCH", 10, minimum=1),
            min_document_bytes=_env_int("DEED_RESOLVER_MIN_DOCUMENT_BYTES", 1024),
            download_timeout=_env_float("DEED_RESOLVER_DOWNLOAD_TIMEOUT_S", 30.0, minimum=1.0),
            download_retries=_env_int("DEED_RESOLVER_DOWNLOAD_RETRIES", 2),
            include_documents=_env_bool("DEED_RESOLVER_INCLUDE_DOCUMENTS", False),
        )

    def with_overrides(self, **changes) -> "Settings":
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()
