from __future__ import annotations

from typing import Dict, Optional, Type

from deed_resolver.portals.base import PortalAdapter
from deed_resolver.portals.durham import DurhamAdapter
from deed_resolver.portals.fulton import FultonAdapter
from deed_resolver.portals.guilford import GuilfordAdapter
from deed_resolver.portals.harris import HarrisAdapter
from deed_resolver.portals.mecklenburg import MecklenburgAdapter
from deed_resolver.portals.orange import OrangeAdapter
from deed_resolver.portals.wake import WakeAdapter


def _norm(name: str) -> str:
    return (name or "").strip().lower().replace("_", " ")


_REGISTRY: Dict[str, Type[PortalAdapter]] = {
    _norm(cls.config.name): cls
    for cls in (
        DurhamAdapter,
        FultonAdapter,
        GuilfordAdapter,
        HarrisAdapter,
        MecklenburgAdapter,
        OrangeAdapter,
        WakeAdapter,
    )
}


def get_adapter_class(key: str) -> Optional[Type[PortalAdapter]]:
    return _REGISTRY.get(_norm(key))


def supported_adapters() -> list:
    return sorted(_REGISTRY.keys())
