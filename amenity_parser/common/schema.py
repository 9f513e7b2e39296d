"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

import re

from amenity_parser.common.errors import ConfigError

TOP_LEVEL_KEYS = {"source", "extraction", "districts", "store", "output"}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_patterns_compile(patterns: list[str], ctx: str) -> None:
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"Invalid regular expression in {ctx}: {pattern!r} ({exc})") from exc


def _assert_keyword_pairs(pairs: list, ctx: str) -> None:
    if not isinstance(pairs, list):
        raise ConfigError(f"{ctx} must be a list of [keyword, value] pairs")
    for idx, pair in enumerate(pairs):
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ConfigError(f"{ctx}[{idx}] must be a [keyword, value] pair")


def _validate_retry(retry: dict, ctx: str) -> None:
    if not isinstance(retry, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    _assert_no_unknown_keys(retry, {"max_attempts", "multiplier", "max_wait", "jitter"}, ctx, allow_unknown=False)
    attempts = retry.get("max_attempts", 1)
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise ConfigError(f"{ctx}.max_attempts must be an integer >= 1")
    for key in ("multiplier", "max_wait", "jitter"):
        value = retry.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigError(f"{ctx}.{key} must be a non-negative number")


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_required_keys(cfg, TOP_LEVEL_KEYS, "pipeline config")
    _assert_no_unknown_keys(cfg, TOP_LEVEL_KEYS, "pipeline config", allow_unknown)

    _assert_required_keys(
        cfg["source"],
        {"name", "page_url", "base_url", "verify_tls", "document_extensions", "keywords", "domain_keywords"},
        "source",
    )
    if "retry" in cfg["source"]:
        _validate_retry(cfg["source"]["retry"], "source.retry")

    extraction = cfg["extraction"]
    _assert_required_keys(
        extraction,
        {
            "start_signature",
            "max_block_lines",
            "min_block_lines",
            "min_name_length",
            "min_description_length",
            "name_noise_patterns",
            "name_prefixes",
            "address_tokens",
            "contractor_markers",
            "customer_markers",
            "budget",
            "category_keywords",
            "status_keywords",
        },
        "extraction",
    )
    _assert_required_keys(extraction["start_signature"], {"record_token", "region_token"}, "extraction.start_signature")
    _assert_patterns_compile(
        [extraction["start_signature"]["record_token"], extraction["start_signature"]["region_token"]],
        "extraction.start_signature",
    )
    _assert_patterns_compile(extraction["name_noise_patterns"], "extraction.name_noise_patterns")
    _assert_patterns_compile(extraction["name_prefixes"], "extraction.name_prefixes")
    _assert_patterns_compile(extraction["address_tokens"], "extraction.address_tokens")
    _assert_required_keys(extraction["budget"], {"column_unit", "min_plain_value", "year_range"}, "extraction.budget")
    if extraction["budget"]["column_unit"] not in ("million", "thousand", "unit"):
        raise ConfigError("extraction.budget.column_unit must be one of: million, thousand, unit")
    _assert_keyword_pairs(extraction["category_keywords"], "extraction.category_keywords")
    _assert_keyword_pairs(extraction["status_keywords"], "extraction.status_keywords")

    if int(extraction["min_block_lines"]) > int(extraction["max_block_lines"]):
        raise ConfigError("extraction.min_block_lines must not exceed extraction.max_block_lines")

    _assert_required_keys(cfg["districts"], {"city_center", "known"}, "districts")
    _assert_required_keys(cfg["districts"]["city_center"], {"lat", "lng"}, "districts.city_center")
    if not isinstance(cfg["districts"]["known"], dict) or not cfg["districts"]["known"]:
        raise ConfigError("districts.known must be a non-empty mapping")
    for name, coords in cfg["districts"]["known"].items():
        _assert_required_keys(coords, {"lat", "lng"}, f"districts.known.{name}")

    _assert_required_keys(cfg["store"], {"base_url", "timeout_seconds", "request_delay_seconds"}, "store")
    _assert_required_keys(cfg["output"], {"records_filename"}, "output")

    return cfg
