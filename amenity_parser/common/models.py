"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from amenity_parser.common.constants import UNSPECIFIED


class Category(str, Enum):
    PARK = "park"
    SQUARE = "square"
    PLAYGROUND = "playground"
    SPORTS_GROUND = "sports ground"
    EMBANKMENT = "embankment"
    BOULEVARD = "boulevard"
    PLAZA = "plaza"
    FOUNTAIN = "fountain"
    MONUMENT = "monument"
    BUS_STOP = "bus stop"
    OTHER = "other"

    @classmethod
    def normalise(cls, value: object) -> "Category":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class Status(str, Enum):
    ACTIVE = "active"
    UNDER_CONSTRUCTION = "under-construction"
    PLANNED = "planned"
    CLOSED = "closed"

    @classmethod
    def normalise(cls, value: object) -> "Status":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ACTIVE


@dataclass(frozen=True)
class DocumentLink:
    url: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RecordBlock:
    """Contiguous lines attributed to one candidate record."""

    start_index: int
    lines: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.lines)


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


def _budget_to_json(value: Decimal | None) -> int | float | None:
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class AmenityRecord:
    name: str
    source_label: str
    coordinates: Coordinates
    address: str = UNSPECIFIED
    district: str = UNSPECIFIED
    category: Category = Category.OTHER
    status: Status = Status.ACTIVE
    description: str | None = None
    budget: Decimal | None = None
    contractor: str | None = None
    customer: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    region: str | None = None
    photos: tuple[str, ...] = field(default_factory=tuple)
    has_photo_hint: bool = False
    has_map_hint: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "district": self.district,
            "category": self.category.value,
            "status": self.status.value,
            "description": self.description,
            "coordinates": self.coordinates.to_dict(),
            "budget": _budget_to_json(self.budget),
            "contractor": self.contractor,
            "customer": self.customer,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "region": self.region,
            "photos": list(self.photos),
            "hasPhotoHint": self.has_photo_hint,
            "hasMapHint": self.has_map_hint,
            "sourceLabel": self.source_label,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AmenityRecord":
        coordinates = payload.get("coordinates") or {}
        budget = payload.get("budget")
        return cls(
            name=payload["name"],
            source_label=payload["sourceLabel"],
            coordinates=Coordinates(lat=float(coordinates["lat"]), lng=float(coordinates["lng"])),
            address=payload.get("address") or UNSPECIFIED,
            district=payload.get("district") or UNSPECIFIED,
            category=Category.normalise(payload.get("category")),
            status=Status.normalise(payload.get("status")),
            description=payload.get("description"),
            budget=Decimal(str(budget)) if budget is not None else None,
            contractor=payload.get("contractor"),
            customer=payload.get("customer"),
            start_date=payload.get("startDate"),
            end_date=payload.get("endDate"),
            region=payload.get("region"),
            photos=tuple(payload.get("photos") or ()),
            has_photo_hint=bool(payload.get("hasPhotoHint", False)),
            has_map_hint=bool(payload.get("hasMapHint", False)),
        )
