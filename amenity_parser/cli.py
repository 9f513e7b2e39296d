"""CLI entrypoint for the amenity catalog PDF extraction pipeline."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from amenity_parser.common.catalog_store import CatalogStoreClient
from amenity_parser.common.config_loader import load_pipeline_config
from amenity_parser.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, STAGES
from amenity_parser.common.errors import PipelineError
from amenity_parser.common.logging import build_logger, log_event
from amenity_parser.common.time_utils import generate_run_id, parse_run_date
from amenity_parser.discovery.document_discover import record_single_document, run_discovery
from amenity_parser.harvest.runner import run_fetch
from amenity_parser.pipeline.extraction import run_extract
from amenity_parser.pipeline.reports import write_run_summary
from amenity_parser.pipeline.upload import clear_catalog, run_upload


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "all", "clear"])
    parser.add_argument("--url", default=None, help="process a single document instead of the listing page")
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def execute_stage(stage: str, cfg: dict, data_dir: Path, run_id: str, url: str | None = None):
    if stage == "discover":
        if url:
            record_single_document(cfg["source"], data_dir, run_id, url)
        else:
            run_discovery(cfg["source"], data_dir, run_id)
    elif stage == "fetch":
        run_fetch(cfg["source"], data_dir, run_id)
    elif stage == "extract":
        run_extract(cfg, data_dir, run_id)
    elif stage == "upload":
        run_upload(cfg, data_dir, run_id)
    else:
        raise ValueError(f"Unknown stage: {stage}")


def run_clear(cfg: dict) -> int:
    store_cfg = cfg["store"]
    with CatalogStoreClient.from_config(store_cfg) as store:
        result = clear_catalog(
            store,
            page_size=int(store_cfg.get("page_size", 1000)),
            delay_seconds=float(store_cfg.get("clear_delay_seconds", 0.05)),
        )
    return EXIT_PARTIAL if result["failed"] else EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = parse_run_date(args.run_date)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    cfg = load_pipeline_config(config_dir, overlay_config_dir=overlay_config_dir)

    if args.command == "clear":
        return run_clear(cfg)

    stages = STAGES if args.command == "all" else (args.command,)
    had_partial_failure = False

    for stage in stages:
        log_event(logger, "stage start", stage=stage, event="STAGE_START", status="ok")
        try:
            execute_stage(stage, cfg, data_dir, run_id, url=args.url)
        except PipelineError as exc:
            had_partial_failure = True
            log_event(
                logger,
                f"stage {stage} failed: {exc}",
                stage=stage,
                event="STAGE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            if exc.error_code == "CONTRACT_ERROR":
                return EXIT_HARD_FAIL
            if args.strict:
                return EXIT_HARD_FAIL
        except Exception as exc:
            had_partial_failure = True
            log_event(
                logger,
                f"unexpected failure in stage {stage}: {exc}",
                stage=stage,
                event="STAGE_FAIL",
                status="error",
                error_code="UNEXPECTED_ERROR",
            )
            if args.strict:
                return EXIT_HARD_FAIL
        log_event(logger, "stage end", stage=stage, event="STAGE_END", status="ok")

    write_run_summary(data_dir, run_id=run_id, run_date=run_date, source_name=cfg["source"]["name"], stages=stages)
    if had_partial_failure:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
