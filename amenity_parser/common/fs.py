"""Filesystem helpers."""

from __future__ import annotations

import json
import re
from pathlib import Path

_UNSAFE_FILENAME_RE = re.compile(r"[^\w\-]+", re.UNICODE)


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")


def read_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def safe_filename(title: str, *, suffix: str = ".pdf", max_length: int = 80) -> str:
    stem = _UNSAFE_FILENAME_RE.sub("_", title.strip().lower()).strip("_")
    stem = stem[:max_length].rstrip("_") or "document"
    return f"{stem}{suffix}"
