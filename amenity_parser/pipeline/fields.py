"""Per-field line classifiers and extractors.

Each field is scanned independently over the whole block: one line may feed
several fields (an address line that also names a district), and each field
keeps its own first-match-wins order. Absence of a match is a normal sparse
result, never an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Protocol, Sequence

from amenity_parser.common.districts import DistrictTable
from amenity_parser.common.models import Category, Status
from amenity_parser.pipeline.settings import UNIT_SCALES, BudgetSettings, ExtractionSettings

_DATE_RE = re.compile(r"(?<!\d)(\d{2})\.(\d{2})\.(\d{4})(?!\d)")
_BUDGET_RE = re.compile(
    r"^(?P<label>[^\d]*?)"
    r"(?P<number>\d{1,3}(?:[ \u00a0]\d{3})+|\d+)(?:,(?P<fraction>\d+))?"
    r"\s*(?P<unit>млн|миллион[а-яё]*|тыс[а-яё]*)?\.?"
    r"\s*(?P<currency>руб[а-яё]*\.?|₽)?\s*$",
    re.IGNORECASE,
)
_ADDRESS_LABEL_RE = re.compile(r"^адрес\s*:?\s*", re.IGNORECASE)
_PUBLIC_TERRITORY_RE = re.compile(r"общественная\s+территория,?\s*", re.IGNORECASE)
_PHOTO_URL_RE = re.compile(r"https?://\S+?\.(?:jpe?g|png|webp)\b", re.IGNORECASE)
_REGION_SPACING_RE = re.compile(r"^г\.\s*")


@dataclass(frozen=True)
class FieldMatch:
    value: Any
    consumed: frozenset[int] = frozenset()


class FieldStrategy(Protocol):
    field: str

    def scan(self, lines: Sequence[str]) -> FieldMatch | None: ...


@dataclass(frozen=True)
class FirstMatchStrategy:
    """A classifier/extractor pair; the first line yielding a value wins."""

    field: str
    classify: Callable[[str], bool]
    extract: Callable[[str], Any]

    def scan(self, lines: Sequence[str]) -> FieldMatch | None:
        for index, line in enumerate(lines):
            if not self.classify(line):
                continue
            value = self.extract(line)
            if value is None or value == "":
                continue
            return FieldMatch(value=value, consumed=frozenset({index}))
        return None


@dataclass(frozen=True)
class KeywordLookupStrategy:
    """Maps the block's lowercased text to a value by ordered keyword lookup."""

    field: str
    keywords: tuple[tuple[str, str], ...]
    normalise: Callable[[str], Any]
    fallback: Any

    def scan(self, lines: Sequence[str]) -> FieldMatch | None:
        text = " ".join(lines).lower()
        for keyword, value in self.keywords:
            if keyword in text:
                return FieldMatch(value=self.normalise(value))
        return FieldMatch(value=self.fallback)


@dataclass(frozen=True)
class KeywordHintStrategy:
    field: str
    keywords: tuple[str, ...]

    def scan(self, lines: Sequence[str]) -> FieldMatch | None:
        text = " ".join(lines).lower()
        if any(keyword in text for keyword in self.keywords):
            return FieldMatch(value=True)
        return None


class DatesStrategy:
    field = "dates"

    def scan(self, lines: Sequence[str]) -> FieldMatch | None:
        dates: list[str] = []
        consumed: set[int] = set()
        for index, line in enumerate(lines):
            found = extract_dates(line)
            if found:
                dates.extend(found)
                consumed.add(index)
        if not dates:
            return None
        end = dates[1] if len(dates) > 1 else dates[0]
        return FieldMatch(value=(dates[0], end), consumed=frozenset(consumed))


class PhotoUrlStrategy:
    field = "photos"

    def scan(self, lines: Sequence[str]) -> FieldMatch | None:
        urls: list[str] = []
        consumed: set[int] = set()
        for index, line in enumerate(lines):
            found = _PHOTO_URL_RE.findall(line)
            if found:
                urls.extend(url for url in found if url not in urls)
                consumed.add(index)
        if not urls:
            return None
        return FieldMatch(value=tuple(urls), consumed=frozenset(consumed))


def extract_dates(line: str) -> list[str]:
    """Return every DD.MM.YYYY date in the line as ISO YYYY-MM-DD, in order."""
    out: list[str] = []
    for day, month, year in _DATE_RE.findall(line):
        try:
            out.append(date(int(year), int(month), int(day)).isoformat())
        except ValueError:
            continue
    return out


def parse_budget(line: str, settings: BudgetSettings) -> Decimal | None:
    match = _BUDGET_RE.match(line.strip())
    if not match:
        return None

    label = re.sub(r"[\s:,.\-]+", " ", match.group("label")).strip().lower()
    if label and not any(label.startswith(word) for word in settings.label_words):
        return None

    digits = re.sub(r"\D", "", match.group("number"))
    fraction = match.group("fraction")
    unit = (match.group("unit") or "").lower()
    currency = match.group("currency")

    value = Decimal(f"{digits}.{fraction}") if fraction else Decimal(digits)

    if unit.startswith(("млн", "миллион")):
        return value * UNIT_SCALES["million"]
    if unit.startswith("тыс"):
        return value * UNIT_SCALES["thousand"]
    if fraction:
        # A bare decimal-comma figure is a cell of the budget column.
        return value if currency else value * settings.column_scale
    if currency:
        return value

    low, high = settings.year_range
    if len(digits) == 4 and low <= int(digits) <= high:
        return None
    if value < settings.min_plain_value:
        return None
    return value


def is_name_noise(line: str, settings: ExtractionSettings) -> bool:
    return any(pattern.search(line) for pattern in settings.name_noise_patterns)


def clean_name(line: str, settings: ExtractionSettings) -> str:
    name = line.strip()
    for pattern in settings.name_prefixes:
        name = pattern.sub("", name, count=1).strip()
    return name.strip(" ,;:-")


def is_address(line: str, settings: ExtractionSettings) -> bool:
    return any(token.search(line) for token in settings.address_tokens)


def clean_address(line: str) -> str:
    address = _ADDRESS_LABEL_RE.sub("", line.strip())
    address = _PUBLIC_TERRITORY_RE.sub("", address)
    return address.strip(" ,;:-")


def clean_region(line: str, settings: ExtractionSettings) -> str | None:
    match = settings.region_pattern.search(line)
    if not match:
        return None
    return _REGION_SPACING_RE.sub("г.", match.group(0))


def build_default_strategies(settings: ExtractionSettings, districts: DistrictTable) -> list[FieldStrategy]:
    def _name(line: str) -> str | None:
        name = clean_name(line, settings)
        return name if len(name) >= settings.min_name_length else None

    return [
        FirstMatchStrategy(
            field="name",
            classify=lambda line: not is_name_noise(line, settings),
            extract=_name,
        ),
        FirstMatchStrategy(
            field="address",
            classify=lambda line: is_address(line, settings),
            extract=clean_address,
        ),
        FirstMatchStrategy(
            field="district",
            classify=lambda line: districts.find_in_line(line) is not None,
            extract=districts.find_in_line,
        ),
        FirstMatchStrategy(
            field="region",
            classify=lambda line: settings.region_pattern.search(line) is not None,
            extract=lambda line: clean_region(line, settings),
        ),
        FirstMatchStrategy(
            field="budget",
            classify=lambda line: any(ch.isdigit() for ch in line),
            extract=lambda line: parse_budget(line, settings.budget),
        ),
        DatesStrategy(),
        FirstMatchStrategy(
            field="customer",
            classify=lambda line: settings.customer_marker.search(line) is not None,
            extract=str.strip,
        ),
        FirstMatchStrategy(
            field="contractor",
            classify=lambda line: settings.contractor_marker.search(line) is not None,
            extract=str.strip,
        ),
        KeywordLookupStrategy(
            field="category",
            keywords=settings.category_keywords,
            normalise=Category.normalise,
            fallback=Category.OTHER,
        ),
        KeywordLookupStrategy(
            field="status",
            keywords=settings.status_keywords,
            normalise=Status.normalise,
            fallback=Status.ACTIVE,
        ),
        PhotoUrlStrategy(),
        KeywordHintStrategy(field="has_photo_hint", keywords=settings.photo_hint_keywords),
        KeywordHintStrategy(field="has_map_hint", keywords=settings.map_hint_keywords),
    ]


def build_description(lines: Sequence[str], consumed: set[int], settings: ExtractionSettings) -> str | None:
    residual = [
        line
        for index, line in enumerate(lines)
        if index not in consumed
        and len(line) > settings.min_description_length
        and clean_name(line, settings)
    ]
    if not residual:
        return None
    return " ".join(residual)


def extract_fields(
    lines: Sequence[str],
    strategies: Sequence[FieldStrategy],
    settings: ExtractionSettings,
) -> dict[str, Any]:
    """Run every strategy over the block and return the sparse field map."""
    fields: dict[str, Any] = {}
    consumed: set[int] = set()
    for strategy in strategies:
        match = strategy.scan(lines)
        if match is None:
            continue
        fields[strategy.field] = match.value
        consumed.update(match.consumed)

    description = build_description(lines, consumed, settings)
    if description:
        fields["description"] = description
    return fields
