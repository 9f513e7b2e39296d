"""Canonical JSON export of assembled records."""

from __future__ import annotations

from pathlib import Path

from amenity_parser.common.errors import StageError
from amenity_parser.common.fs import read_json, write_json
from amenity_parser.common.models import AmenityRecord


def records_path(output_config: dict, data_dir: Path) -> Path:
    return data_dir / "out" / output_config["records_filename"]


def write_records_json(path: Path, records: list[AmenityRecord]) -> Path:
    write_json(path, [record.to_dict() for record in records])
    return path


def read_records_json(path: Path) -> list[AmenityRecord]:
    if not path.exists():
        raise StageError(f"Missing records file: {path}")
    return [AmenityRecord.from_dict(item) for item in read_json(path)]
