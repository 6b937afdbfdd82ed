"""
Report service — partitions outcomes and writes the failure report.

The report is a CSV with header NFD,Amount,Error and one row per failed
outcome. It is only written when at least one payment failed.
"""
import csv
import logging
from pathlib import Path
from typing import Iterable

from domain.constants import REPORT_HEADER
from exceptions import ReportWriteError
from models import Outcome

logger = logging.getLogger(__name__)


def partition(outcomes: Iterable[Outcome]) -> tuple[list[Outcome], list[Outcome]]:
    """Split outcomes into (confirmed, failed), keeping their relative order."""
    confirmed: list[Outcome] = []
    failed: list[Outcome] = []
    for outcome in outcomes:
        (confirmed if outcome.success else failed).append(outcome)
    return confirmed, failed


def report_rows(failed: Iterable[Outcome]) -> list[tuple[str, int, str]]:
    return [(o.request.handle, o.request.amount, o.error or "") for o in failed]


def write_report(failed: list[Outcome], path: str | Path) -> Path:
    """
    Write failed outcomes to a CSV file.

    Raises:
        ReportWriteError if the file cannot be written
    """
    path = Path(path)
    rows = report_rows(failed)
    try:
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(REPORT_HEADER)
            writer.writerows(rows)
    except OSError as e:
        raise ReportWriteError(f"Could not write failure report to {path}: {e}")

    logger.info(f"Failed transactions have been written to {path} ({len(rows)} rows)")
    return path
