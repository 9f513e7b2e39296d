"""Compiled extraction settings built from the `extraction` config section."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

from amenity_parser.pipeline.segmentation import StartSignature

UNIT_SCALES = {
    "million": Decimal(1_000_000),
    "thousand": Decimal(1_000),
    "unit": Decimal(1),
}


def _marker_pattern(markers: list[str]) -> re.Pattern:
    parts = []
    for marker in markers:
        escaped = re.escape(marker)
        # Abbreviations must stand alone; words may be inflected.
        parts.append(rf"(?<!\w){escaped}(?!\w)" if marker.isupper() else rf"(?<!\w){escaped}")
    return re.compile("|".join(parts))


@dataclass(frozen=True)
class BudgetSettings:
    column_scale: Decimal
    min_plain_value: Decimal
    year_range: tuple[int, int]
    label_words: tuple[str, ...]


@dataclass(frozen=True)
class ExtractionSettings:
    signature: StartSignature
    max_block_lines: int
    min_block_lines: int
    min_name_length: int
    min_description_length: int
    default_region: str | None
    region_pattern: re.Pattern
    name_noise_patterns: tuple[re.Pattern, ...]
    name_prefixes: tuple[re.Pattern, ...]
    address_tokens: tuple[re.Pattern, ...]
    contractor_marker: re.Pattern
    customer_marker: re.Pattern
    budget: BudgetSettings
    category_keywords: tuple[tuple[str, str], ...]
    status_keywords: tuple[tuple[str, str], ...]
    photo_hint_keywords: tuple[str, ...]
    map_hint_keywords: tuple[str, ...]

    @classmethod
    def from_config(cls, cfg: dict) -> "ExtractionSettings":
        budget_cfg = cfg["budget"]
        low, high = budget_cfg["year_range"]
        return cls(
            signature=StartSignature.from_config(cfg["start_signature"]),
            max_block_lines=int(cfg["max_block_lines"]),
            min_block_lines=int(cfg["min_block_lines"]),
            min_name_length=int(cfg["min_name_length"]),
            min_description_length=int(cfg["min_description_length"]),
            default_region=cfg.get("default_region"),
            region_pattern=re.compile(cfg.get("region_pattern", r"г\.\s*[А-ЯЁ][а-яё\-]+")),
            name_noise_patterns=tuple(re.compile(p, re.IGNORECASE) for p in cfg["name_noise_patterns"]),
            name_prefixes=tuple(re.compile(p, re.IGNORECASE) for p in cfg["name_prefixes"]),
            address_tokens=tuple(re.compile(rf"(?<!\w)(?:{p})", re.IGNORECASE) for p in cfg["address_tokens"]),
            contractor_marker=_marker_pattern(cfg["contractor_markers"]),
            customer_marker=_marker_pattern(cfg["customer_markers"]),
            budget=BudgetSettings(
                column_scale=UNIT_SCALES[budget_cfg["column_unit"]],
                min_plain_value=Decimal(str(budget_cfg["min_plain_value"])),
                year_range=(int(low), int(high)),
                label_words=tuple(str(w).lower() for w in budget_cfg.get("label_words", [])),
            ),
            category_keywords=tuple((str(k).lower(), str(v)) for k, v in cfg["category_keywords"]),
            status_keywords=tuple((str(k).lower(), str(v)) for k, v in cfg["status_keywords"]),
            photo_hint_keywords=tuple(str(k).lower() for k in cfg.get("photo_hint_keywords", [])),
            map_hint_keywords=tuple(str(k).lower() for k in cfg.get("map_hint_keywords", [])),
        )
