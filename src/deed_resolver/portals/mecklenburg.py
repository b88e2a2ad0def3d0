from __future__ import annotations

from deed_resolver.portals.base import PortalAdapter, PortalConfig


# Polaris has no search button: typing opens an autocomplete list and picking
# the first suggestion loads the parcel card.
MECKLENBURG_CONFIG = PortalConfig(
    name="mecklenburg",
    search_url="https://polaris3g.mecklenburgcountync.gov/",
    settle_seconds=4.0,
    field_selectors={
        "search": 'input[placeholder*="address"], input[placeholder*="Address"], input[type="text"]',
    },
    submit_selector='ul.bg-lienzo li div.hover\\:cursor-pointer, [role="option"], .autocomplete-item',
    results_markers=("parcel id", "deeds and sale price"),
    results_timeout=15.0,
    parcel_id_selector="[data-parcel-id], .parcel-id",
    required_fields=("parcel_id",),
)


class MecklenburgAdapter(PortalAdapter):
    config = MECKLENBURG_CONFIG
