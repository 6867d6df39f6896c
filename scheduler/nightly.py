"""Nightly scheduler: pulls Garmin wellness data for the export layer.

Usage:
    python -m scheduler.nightly --once      # single run (for cron)
    python -m scheduler.nightly --daemon    # APScheduler loop

Each run writes ``garmin_metrics.jsonl`` and ``garmin_wellness.jsonl``
into ``SYNC_OUTPUT_DIR``, one JSON record per line.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from garmin_extractor import GarminClient, GarminSettings, LoginBlocked
from garmin_extractor.exceptions import GarminAuthError

from scheduler.config import (
    ENV_FILE,
    METRICS_DAYS,
    NIGHTLY_HOUR,
    NIGHTLY_MINUTE,
    OUTPUT_DIR,
    WELLNESS_DAYS,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def write_jsonl(path: Path, records: Iterable[dict]) -> int:
    """Write *records* to *path*, one per line; returns the count."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record) + "\n")
            count += 1
    return count


def nightly_job(client: GarminClient | None = None, output_dir: Path = OUTPUT_DIR) -> bool:
    """Execute one sync cycle: authenticate, pull metrics and samples."""
    logger.info("Starting nightly Garmin sync")

    # 1. Connect to Garmin
    if client is None:
        settings = GarminSettings.from_env(ENV_FILE)
        if not settings.is_configured and not settings.garth_token and not settings.session_cookie:
            logger.error("Garmin is not configured; set GARMIN_USERNAME/GARMIN_PASSWORD")
            return False
        client = GarminClient(settings)

    try:
        display_name = client.establish()
    except LoginBlocked as exc:
        logger.error("%s Set GARMIN_GARTH_TOKEN or GARMIN_SESSION_COOKIE instead.", exc)
        return False
    except GarminAuthError as exc:
        logger.error("Failed to connect to Garmin: %s", exc)
        return False
    logger.info("Connected to Garmin as %s", display_name or "<unknown profile>")

    # 2. Daily metrics
    metrics = client.get_metrics_for_last_days(METRICS_DAYS)
    written = write_jsonl(output_dir / "garmin_metrics.jsonl", (m.to_dict() for m in metrics))
    logger.info("Wrote %d daily metric records", written)

    # 3. Stress / heart-rate samples
    samples = client.get_wellness_samples_for_last_days(WELLNESS_DAYS)
    written = write_jsonl(output_dir / "garmin_wellness.jsonl", (s.to_dict() for s in samples))
    logger.info("Wrote %d stress/HR samples", written)

    logger.info("Nightly sync complete")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Garmin wellness nightly sync")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--once", action="store_true", help="Run once and exit")
    group.add_argument("--daemon", action="store_true", help="Run as APScheduler daemon")
    args = parser.parse_args()

    if args.once:
        nightly_job()
    else:
        from apscheduler.schedulers.blocking import BlockingScheduler

        scheduler = BlockingScheduler()
        scheduler.add_job(
            nightly_job,
            "cron",
            hour=NIGHTLY_HOUR,
            minute=NIGHTLY_MINUTE,
            id="nightly_job",
        )
        logger.info(
            "Scheduler started, nightly sync at %02d:%02d",
            NIGHTLY_HOUR,
            NIGHTLY_MINUTE,
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
