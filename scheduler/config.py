"""Environment-variable-based configuration for the nightly sync."""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILE: Path = Path(os.environ.get("GARMIN_ENV_FILE", ".env"))
METRICS_DAYS: int = int(os.environ.get("SYNC_METRICS_DAYS", "7"))
WELLNESS_DAYS: int = int(os.environ.get("SYNC_WELLNESS_DAYS", "2"))
OUTPUT_DIR: Path = Path(os.environ.get("SYNC_OUTPUT_DIR", "data")).expanduser()
NIGHTLY_HOUR: int = int(os.environ.get("SCHEDULER_HOUR", "21"))
NIGHTLY_MINUTE: int = int(os.environ.get("SCHEDULER_MINUTE", "0"))
