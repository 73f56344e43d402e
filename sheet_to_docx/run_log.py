"""
Run log: one append-only CSV file per outcome category.

    created_<ts>.csv   Application,Path,Properties
    existing_<ts>.csv  Application,Path,StatusUpdated
    errors_<ts>.csv    Application,Error
"""

import csv
import datetime
import logging
import os
from typing import List, Optional

from .model import STATUS_DONE, AlreadyExists, Created, Failed, RunSummary

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

LOG_HEADERS = {
    "created": ["Application", "Path", "Properties"],
    "existing": ["Application", "Path", "StatusUpdated"],
    "errors": ["Application", "Error"],
}


def format_properties(applied_fields) -> str:
    return "; ".join(f"{name}={value}" for name, value in applied_fields)


class RunLog:
    """Routes each outcome to its category file."""

    def __init__(self, log_dir: str, timestamp: Optional[str] = None):
        self.log_dir = log_dir
        self.timestamp = timestamp or datetime.datetime.now().strftime(TIMESTAMP_FORMAT)
        os.makedirs(log_dir, exist_ok=True)
        self.paths = {
            kind: os.path.join(log_dir, f"{kind}_{self.timestamp}.csv")
            for kind in LOG_HEADERS
        }
        self._files = {}
        self._writers = {}
        for kind, path in self.paths.items():
            is_new = not os.path.exists(path) or os.path.getsize(path) == 0
            f = open(path, "a", newline="", encoding="utf-8")
            self._files[kind] = f
            self._writers[kind] = csv.writer(f)
            if is_new:
                self._writers[kind].writerow(LOG_HEADERS[kind])
                f.flush()

    def record(self, outcome):
        if isinstance(outcome, Created):
            kind = "created"
            fields = [outcome.identity, outcome.path,
                      format_properties(outcome.applied_fields)]
        elif isinstance(outcome, AlreadyExists):
            kind = "existing"
            fields = [outcome.identity, outcome.path,
                      STATUS_DONE if outcome.status_updated else "No"]
        elif isinstance(outcome, Failed):
            kind = "errors"
            fields = [outcome.identity, outcome.reason]
        else:
            raise TypeError(f"Unknown outcome type: {type(outcome).__name__}")
        self._writers[kind].writerow(fields)
        self._files[kind].flush()

    def close(self):
        for f in self._files.values():
            f.close()
        self._files = {}
        self._writers = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def summary_lines(summary: RunSummary) -> List[str]:
    return [
        f"{'Documents created:':<28}{summary.created}",
        f"{'Documents already present:':<28}{summary.existing}",
        f"{'Errors:':<28}{summary.failed}",
        f"{'Total rows processed:':<28}{summary.total}",
    ]


def log_summary(summary: RunSummary, run_log: Optional[RunLog] = None):
    logger.info("=" * 50)
    for line in summary_lines(summary):
        logger.info(line)
    if run_log is not None:
        logger.info(f"Logs written to: {run_log.log_dir}")
    logger.info("=" * 50)
