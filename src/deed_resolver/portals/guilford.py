from __future__ import annotations

from deed_resolver.portals.base import PortalConfig, SplitStreetAdapter


GUILFORD_CONFIG = PortalConfig(
    name="guilford",
    search_url="https://lrcpwa.ncptscloud.com/guilford/",
    settle_seconds=5.0,
    ready_markers=("location address",),
    mode_selector="#locationaddress, a[href*='locationaddress']",
    mode_label="location address",
    field_selectors={
        "street_number": "#ctl00_ContentPlaceHolder1_StreetNumberTextBox",
        "street_name": "#ctl00_ContentPlaceHolder1_StreetNameTextBox",
    },
    form_selector="form",
    results_markers=("parcel", "no records"),
    results_timeout=30.0,
    result_link_pattern=r"^\d{3,}$",
    detail_markers=("deed",),
    required_fields=("parcel_id",),
)


class GuilfordAdapter(SplitStreetAdapter):
    config = GUILFORD_CONFIG
