"""Extraction composition: lines -> blocks -> field maps -> records."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from amenity_parser.common.constants import UNSPECIFIED
from amenity_parser.common.districts import DistrictTable
from amenity_parser.common.errors import BoundaryNotFoundError, PipelineError, StageError
from amenity_parser.common.fs import read_json, write_json
from amenity_parser.common.logging import log_event
from amenity_parser.common.models import AmenityRecord, RecordBlock
from amenity_parser.harvest.document_fetch import DocumentFetcher
from amenity_parser.harvest.runner import manifest_path
from amenity_parser.pipeline.assembly import assemble_record
from amenity_parser.pipeline.export import records_path, write_records_json
from amenity_parser.pipeline.fields import FieldStrategy, build_default_strategies, extract_fields
from amenity_parser.pipeline.segmentation import segment_records
from amenity_parser.pipeline.settings import ExtractionSettings
from amenity_parser.pipeline.text import PdfPlumberTextExtractor, TextExtractor

logger = logging.getLogger(__name__)

REPORTED_FIELDS = (
    "name",
    "address",
    "district",
    "category",
    "status",
    "description",
    "budget",
    "contractor",
    "customer",
    "startDate",
    "endDate",
    "region",
    "photos",
)


@dataclass
class ExtractionResult:
    source_label: str
    records: list[AmenityRecord] = field(default_factory=list)
    block_count: int = 0
    discarded_count: int = 0
    rejected_count: int = 0
    status: str = "ok"
    error_code: str | None = None

    def to_report(self) -> dict:
        return {
            "source_label": self.source_label,
            "status": self.status,
            "error_code": self.error_code,
            "blocks": self.block_count,
            "discarded_blocks": self.discarded_count,
            "rejected_records": self.rejected_count,
            "records": len(self.records),
        }


class ExtractionPipeline:
    def __init__(
        self,
        settings: ExtractionSettings,
        districts: DistrictTable,
        *,
        text_extractor: TextExtractor | None = None,
        strategies: Sequence[FieldStrategy] | None = None,
        fetcher: DocumentFetcher | None = None,
    ) -> None:
        self.settings = settings
        self.districts = districts
        self.text_extractor = text_extractor or PdfPlumberTextExtractor()
        self.strategies = list(strategies) if strategies is not None else build_default_strategies(settings, districts)
        self.fetcher = fetcher

    @classmethod
    def from_config(cls, cfg: dict, **kwargs) -> "ExtractionPipeline":
        return cls(
            ExtractionSettings.from_config(cfg["extraction"]),
            DistrictTable.from_config(cfg["districts"]),
            **kwargs,
        )

    def build_record(self, block: RecordBlock, source_label: str) -> AmenityRecord | None:
        fields = extract_fields(block.lines, self.strategies, self.settings)
        return assemble_record(
            fields,
            source_label=source_label,
            settings=self.settings,
            districts=self.districts,
        )

    def extract_lines(self, lines: Sequence[str], source_label: str) -> ExtractionResult:
        """Raises BoundaryNotFoundError when the document has no table."""
        segmentation = segment_records(
            lines,
            self.settings.signature,
            max_block_lines=self.settings.max_block_lines,
            min_block_lines=self.settings.min_block_lines,
        )
        result = ExtractionResult(
            source_label=source_label,
            block_count=len(segmentation.blocks),
            discarded_count=len(segmentation.discarded),
        )
        for block in segmentation.blocks:
            record = self.build_record(block, source_label)
            if record is None:
                result.rejected_count += 1
                logger.debug("rejected block at line %d: no usable name", block.start_index)
                continue
            result.records.append(record)
        return result

    def process_document(self, path: Path, source_label: str) -> ExtractionResult:
        started = time.monotonic()
        lines = self.text_extractor.extract_lines(path)
        try:
            result = self.extract_lines(lines, source_label)
        except BoundaryNotFoundError as exc:
            log_event(
                logger,
                f"no table found in {path.name}",
                level=logging.WARNING,
                stage="extract",
                document=source_label,
                event="BOUNDARY_NOT_FOUND",
                status="warning",
                rows_in=len(lines),
                error_code=exc.error_code,
            )
            return ExtractionResult(source_label=source_label, status="no_table", error_code=exc.error_code)

        log_event(
            logger,
            f"extracted {len(result.records)} records from {path.name}",
            stage="extract",
            document=source_label,
            event="DOCUMENT_EXTRACTED",
            status="ok",
            rows_in=result.block_count,
            rows_out=len(result.records),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    def process_url(self, url: str, title: str | None = None) -> ExtractionResult:
        if self.fetcher is None:
            raise PipelineError("No document fetcher configured")
        path = self.fetcher.fetch(url)
        return self.process_document(path, title or url)


def compute_fill_rates(records: list[AmenityRecord]) -> list[dict]:
    rows = [record.to_dict() for record in records]
    total = len(rows)
    stats = []
    for column in REPORTED_FIELDS:
        filled = sum(1 for row in rows if row.get(column) not in ("", None, [], UNSPECIFIED))
        fill_percent = 0.0 if total == 0 else round((filled / total) * 100, 2)
        stats.append({"column": column, "filled": filled, "null": total - filled, "fill_percent": fill_percent})
    return stats


def extract_report_path(data_dir: Path) -> Path:
    return data_dir / "out" / "reports" / "extract_report.json"


def write_extract_report(data_dir: Path, run_id: str, results: list[ExtractionResult]) -> Path:
    records = [record for result in results for record in result.records]
    payload = {
        "run_id": run_id,
        "counts": {
            "documents": len(results),
            "blocks": sum(result.block_count for result in results),
            "discarded_blocks": sum(result.discarded_count for result in results),
            "rejected_records": sum(result.rejected_count for result in results),
            "records": len(records),
        },
        "documents": [result.to_report() for result in results],
        "fill_rates": compute_fill_rates(records),
        "errors": [
            f"{result.source_label}: {result.error_code}" for result in results if result.status == "error"
        ],
        "warnings": [
            f"{result.source_label}: {result.error_code}" for result in results if result.status == "no_table"
        ],
    }
    path = extract_report_path(data_dir)
    write_json(path, payload)
    return path


def _manifest_documents(cfg: dict, data_dir: Path) -> list[dict]:
    path = manifest_path(data_dir, cfg["source"]["name"])
    if not path.exists():
        raise StageError(f"Missing fetch manifest: {path}")
    return [entry for entry in read_json(path)["documents"] if entry["status"] == "ok"]


def run_extract(
    cfg: dict,
    data_dir: Path,
    run_id: str,
    pipeline: ExtractionPipeline | None = None,
    documents: list[dict] | None = None,
) -> list[AmenityRecord]:
    pipeline = pipeline or ExtractionPipeline.from_config(cfg)
    if documents is None:
        documents = _manifest_documents(cfg, data_dir)

    results: list[ExtractionResult] = []
    for entry in documents:
        label = entry.get("title") or entry["url"]
        try:
            results.append(pipeline.process_document(Path(entry["path"]), label))
        except Exception as exc:
            error_code = getattr(exc, "error_code", "TEXT_EXTRACTION_ERROR")
            log_event(
                logger,
                f"extraction failed for {label}: {exc}",
                level=logging.ERROR,
                stage="extract",
                document=label,
                event="EXTRACT_FAIL",
                status="error",
                error_code=error_code,
            )
            results.append(ExtractionResult(source_label=label, status="error", error_code=error_code))

    records = [record for result in results for record in result.records]
    write_records_json(records_path(cfg["output"], data_dir), records)
    write_extract_report(data_dir, run_id, results)

    if results and all(result.status == "error" for result in results):
        raise StageError(f"Text extraction failed for all {len(results)} documents")
    return records
