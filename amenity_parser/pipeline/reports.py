"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from amenity_parser.common.fs import read_json, write_json
from amenity_parser.harvest.runner import manifest_path


def _read_optional(path: Path) -> dict | None:
    if not path.exists():
        return None
    return read_json(path)


def write_run_summary(data_dir: Path, run_id: str, run_date: str, source_name: str, stages: tuple[str, ...]) -> Path:
    reports_dir = data_dir / "out" / "reports"
    manifest = _read_optional(manifest_path(data_dir, source_name))
    extract_report = _read_optional(reports_dir / "extract_report.json")
    upload_report = _read_optional(reports_dir / "upload_report.json")

    totals = {
        "documents": 0,
        "documents_failed": 0,
        "extracted": 0,
        "rejected": 0,
        "uploaded": 0,
        "skipped": 0,
        "failed": 0,
    }
    warnings: list[str] = []
    errors: list[str] = []

    if manifest is not None:
        totals["documents"] = int(manifest.get("document_count", 0))
        totals["documents_failed"] = int(manifest.get("failed_count", 0))
        if totals["documents_failed"]:
            warnings.append(f"{totals['documents_failed']} documents failed to fetch")
    elif "fetch" in stages:
        errors.append("fetch manifest missing")

    if extract_report is not None:
        counts = extract_report.get("counts", {})
        totals["extracted"] = int(counts.get("records", 0))
        totals["rejected"] = int(counts.get("rejected_records", 0))
        warnings.extend(extract_report.get("warnings", []))
        errors.extend(extract_report.get("errors", []))
    elif "extract" in stages:
        errors.append("extract report missing")

    if upload_report is not None:
        counts = upload_report.get("counts", {})
        totals["uploaded"] = int(counts.get("uploaded", 0))
        totals["skipped"] = int(counts.get("skipped", 0))
        totals["failed"] = int(counts.get("failed", 0))
        if totals["failed"]:
            warnings.append(f"{totals['failed']} records failed to upload")
    elif "upload" in stages:
        errors.append("upload report missing")

    status = "success"
    if errors:
        status = "error"
    elif warnings:
        status = "partial"

    summary_path = reports_dir / "run_summary.json"
    payload = {
        "run_id": run_id,
        "run_date": run_date,
        "status": status,
        "source": source_name,
        "stages": list(stages),
        "totals": totals,
        "warning_count": len(warnings),
        "error_count": len(errors),
        "warnings": warnings,
        "errors": errors,
    }
    write_json(summary_path, payload)
    return summary_path
