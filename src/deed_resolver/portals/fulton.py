from __future__ import annotations

from deed_resolver.portals.base import PortalConfig, SplitStreetAdapter


# iasWorld common search. Parcel ids read "17 0036 LL0847" and are picked up
# from the page text when the detail view does not label them.
FULTON_CONFIG = PortalConfig(
    name="fulton",
    search_url="https://iaspublicaccess.fultoncountyga.gov/search/commonsearch.aspx?mode=realprop",
    settle_seconds=3.0,
    ready_markers=("address",),
    field_selectors={"street_number": "#inpNumber", "street_name": "#inpStreet"},
    submit_selector="#btSearch",
    results_markers=("parcel", "no records"),
    results_timeout=15.0,
    result_link_pattern=r"^\d{2}\s+\d{4}\s+[A-Za-z0-9]{6}$",
    detail_markers=("owner",),
    required_fields=("parcel_id",),
)


class FultonAdapter(SplitStreetAdapter):
    config = FULTON_CONFIG
