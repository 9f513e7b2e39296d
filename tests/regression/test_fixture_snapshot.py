from __future__ import annotations

import json
from pathlib import Path

import pytest

from amenity_parser.common.config_loader import load_pipeline_config
from amenity_parser.pipeline.export import write_records_json
from amenity_parser.pipeline.extraction import ExtractionPipeline


class FixtureTextExtractor:
    def extract_lines(self, path: Path) -> list[str]:
        return Path("tests/fixtures/documents/objects_lines.txt").read_text(encoding="utf-8").splitlines()


@pytest.mark.regression
def test_fixture_records_match_snapshot(tmp_path: Path):
    pipeline = ExtractionPipeline.from_config(load_pipeline_config(Path("config")), text_extractor=FixtureTextExtractor())

    result = pipeline.process_document(tmp_path / "objects_2025.pdf", "objects_2025.pdf")
    out_path = write_records_json(tmp_path / "records.json", result.records)

    actual = json.loads(out_path.read_text(encoding="utf-8"))
    expected = json.loads(Path("tests/fixtures/expected/amenity_records.json").read_text(encoding="utf-8"))
    assert actual == expected
