"""Output sink: forward records to the catalog store with per-record accounting."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from amenity_parser.common.catalog_store import CatalogStoreClient
from amenity_parser.common.errors import StageError, StoreConflictError, StoreError
from amenity_parser.common.fs import write_json
from amenity_parser.common.logging import log_event
from amenity_parser.common.models import AmenityRecord
from amenity_parser.pipeline.export import read_records_json, records_path

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    uploaded: int = 0
    skipped: int = 0
    failed: int = 0
    results: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "counts": {"uploaded": self.uploaded, "skipped": self.skipped, "failed": self.failed},
            "results": self.results,
        }


def upload_records(
    records: list[AmenityRecord],
    store: CatalogStoreClient,
    *,
    delay_seconds: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> UploadOutcome:
    """Create each record in the store.

    A failed connectivity probe raises StoreUnavailableError before any record
    is attempted. After that, conflicts count as skipped and other store
    errors as failed; neither stops the batch.
    """
    store.probe()

    outcome = UploadOutcome()
    for index, record in enumerate(records):
        if index and delay_seconds:
            sleep(delay_seconds)
        entry = {"name": record.name, "address": record.address}
        try:
            entry["id"] = store.create(record)
            entry["status"] = "uploaded"
            outcome.uploaded += 1
        except StoreConflictError as exc:
            entry["status"] = "skipped"
            entry["detail"] = exc.detail
            outcome.skipped += 1
        except StoreError as exc:
            entry["status"] = "failed"
            entry["error_code"] = exc.error_code
            entry["detail"] = exc.detail
            outcome.failed += 1
            log_event(
                logger,
                f"upload failed for {record.name}: {exc.detail}",
                level=logging.WARNING,
                stage="upload",
                event="RECORD_FAIL",
                status="error",
                error_code=exc.error_code,
            )
        outcome.results.append(entry)

    log_event(
        logger,
        f"uploaded {outcome.uploaded}, skipped {outcome.skipped}, failed {outcome.failed}",
        stage="upload",
        event="UPLOAD_DONE",
        status="ok" if not outcome.failed else "partial",
        rows_in=len(records),
        rows_out=outcome.uploaded,
    )
    return outcome


def upload_report_path(data_dir: Path) -> Path:
    return data_dir / "out" / "reports" / "upload_report.json"


def run_upload(
    cfg: dict,
    data_dir: Path,
    run_id: str,
    store: CatalogStoreClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> UploadOutcome:
    records = read_records_json(records_path(cfg["output"], data_dir))
    owns_store = store is None
    store = store or CatalogStoreClient.from_config(cfg["store"])
    try:
        outcome = upload_records(
            records,
            store,
            delay_seconds=float(cfg["store"].get("request_delay_seconds", 0.1)),
            sleep=sleep,
        )
    finally:
        if owns_store:
            store.close()

    write_json(upload_report_path(data_dir), {"run_id": run_id, **outcome.to_dict()})
    if records and outcome.failed == len(records):
        raise StageError(f"All {len(records)} records failed to upload")
    return outcome


def clear_catalog(
    store: CatalogStoreClient,
    *,
    page_size: int = 1000,
    delay_seconds: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """Delete every record the store lists; individual delete failures are counted."""
    store.probe()
    objects = store.list_objects(limit=page_size)
    deleted = 0
    failed = 0
    for index, item in enumerate(objects):
        if index and delay_seconds:
            sleep(delay_seconds)
        try:
            store.delete(str(item["id"]))
            deleted += 1
        except StoreError as exc:
            failed += 1
            log_event(
                logger,
                f"delete failed for {item.get('name', item['id'])}: {exc.detail}",
                level=logging.WARNING,
                stage="clear",
                event="DELETE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
    log_event(logger, f"cleared {deleted} catalog records", stage="clear", event="CLEAR_DONE", status="ok", rows_out=deleted)
    return {"listed": len(objects), "deleted": deleted, "failed": failed}
