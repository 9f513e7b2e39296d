"""Record assembly: defaults, closed enumerations and the name gate."""

from __future__ import annotations

from typing import Any

from amenity_parser.common.constants import UNSPECIFIED
from amenity_parser.common.districts import DistrictTable
from amenity_parser.common.models import AmenityRecord, Category, Status
from amenity_parser.pipeline.fields import clean_name
from amenity_parser.pipeline.settings import ExtractionSettings


def _resolve_district(fields: dict[str, Any], districts: DistrictTable) -> str:
    district = districts.normalise(fields.get("district"))
    if district != UNSPECIFIED:
        return district
    district = districts.find_in_text(fields.get("description"))
    if district != UNSPECIFIED:
        return district
    if districts.default:
        return districts.normalise(districts.default)
    return UNSPECIFIED


def assemble_record(
    fields: dict[str, Any],
    *,
    source_label: str,
    settings: ExtractionSettings,
    districts: DistrictTable,
) -> AmenityRecord | None:
    """Build a record from a sparse field map, or None when it has no usable name."""
    raw_name = fields.get("name")
    if not raw_name:
        return None
    name = clean_name(str(raw_name), settings)
    if not name:
        return None

    district = _resolve_district(fields, districts)
    start_date, end_date = fields.get("dates") or (None, None)

    return AmenityRecord(
        name=name,
        source_label=source_label,
        coordinates=districts.coordinates_for(district),
        address=fields.get("address") or UNSPECIFIED,
        district=district,
        category=Category.normalise(fields.get("category", Category.OTHER)),
        status=Status.normalise(fields.get("status", Status.ACTIVE)),
        description=fields.get("description"),
        budget=fields.get("budget"),
        contractor=fields.get("contractor"),
        customer=fields.get("customer"),
        start_date=start_date,
        end_date=end_date,
        region=fields.get("region") or settings.default_region,
        photos=tuple(fields.get("photos") or ()),
        has_photo_hint=bool(fields.get("has_photo_hint", False)),
        has_map_hint=bool(fields.get("has_map_hint", False)),
    )
