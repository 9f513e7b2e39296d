"""District name normalisation and district-to-coordinate lookup."""

from __future__ import annotations

import re
from dataclasses import dataclass

from amenity_parser.common.constants import UNSPECIFIED
from amenity_parser.common.models import Coordinates

_DISTRICT_SUFFIX_RE = re.compile(r"\s*(район[а-яё]*|р-н\.?)\s*$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
# "<adjective> район" in any case form, e.g. "в Центральном районе".
_DISTRICT_PHRASE_RE = re.compile(r"([А-ЯЁа-яё]+)\s+(?:район[а-яё]*|р-н)", re.IGNORECASE)


@dataclass(frozen=True)
class DistrictTable:
    known: dict[str, Coordinates]
    city_center: Coordinates
    default: str | None = None

    @classmethod
    def from_config(cls, districts_config: dict) -> "DistrictTable":
        known = {
            str(name): Coordinates(lat=float(coords["lat"]), lng=float(coords["lng"]))
            for name, coords in districts_config["known"].items()
        }
        center = districts_config["city_center"]
        default = districts_config.get("default")
        return cls(
            known=known,
            city_center=Coordinates(lat=float(center["lat"]), lng=float(center["lng"])),
            default=str(default) if default else None,
        )

    def normalise(self, value: str | None) -> str:
        """Map free text to a known district name or the unspecified sentinel.

        Idempotent: the output is always either a known name or the sentinel,
        and both map to themselves.
        """
        if value is None:
            return UNSPECIFIED
        cleaned = _WHITESPACE_RE.sub(" ", value).strip()
        cleaned = _DISTRICT_SUFFIX_RE.sub("", cleaned).strip()
        if not cleaned:
            return UNSPECIFIED
        lowered = cleaned.lower()
        for name in self.known:
            if lowered == name.lower():
                return name
        for name in self.known:
            if name.lower() in lowered:
                return name
        return UNSPECIFIED

    def find_in_line(self, line: str) -> str | None:
        lowered = line.lower()
        for name in self.known:
            if name.lower() in lowered:
                return name
        return None

    def find_in_text(self, text: str | None) -> str:
        """Look for "<district> район" phrasing, tolerating case endings."""
        if not text:
            return UNSPECIFIED
        for match in _DISTRICT_PHRASE_RE.finditer(text):
            word = match.group(1).lower()
            for name in self.known:
                # Stem without the adjective ending: "Центральн" matches "Центральном".
                stem = name.lower()[:-2]
                if word.startswith(stem):
                    return name
        return UNSPECIFIED

    def coordinates_for(self, district: str | None) -> Coordinates:
        if district and district in self.known:
            return self.known[district]
        return self.city_center
