# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fiwarelab/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(run_id)s | %(message)s"


class RunIdFilter(logging.Filter):
    """Stamps every record with a short form of the run id."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id
        self.short = run_id[:8]

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.short
        return True


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "fiwarelab",
    verbose: bool = False,
    run_id: str | None = None,
) -> tuple[logging.Logger, str, Path]:
    """
    One run = one log file plus console output, both tagged with the run id
    that the session events also carry.

    File: ~/.fiwarelab/logs/<name>-<ts>-<run_id>.log, always DEBUG (request
    lines, token re-checks). Console: INFO, DEBUG with --verbose.
    """
    run_id = run_id or str(uuid.uuid4())

    if base_dir is None:
        base_dir = Path.home() / ".fiwarelab" / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for old in list(logger.handlers):
        old.close()
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    run_filter = RunIdFilter(run_id)

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.DEBUG)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in (fh, ch):
        handler.setFormatter(formatter)
        handler.addFilter(run_filter)
        logger.addHandler(handler)

    logger.debug("run_id=%s log_file=%s", run_id, log_path)
    return logger, run_id, log_path
