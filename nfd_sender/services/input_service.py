"""
Input service — reads the payment list.

The file has no header: one `handle,amount` row per payment. Blank lines
are skipped and a leading UTF-8 BOM is ignored. Any unreadable file or
invalid row is fatal, so a batch never starts from a partially understood
list.
"""
import csv
import io
import logging
import re
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from exceptions import InputFileError
from models import PaymentRequest

logger = logging.getLogger(__name__)

# ASCII digits only: no sign, underscores or other numerals
_AMOUNT_RE = re.compile(r"[0-9]+")


def parse_payment_rows(lines: Iterable[str]) -> list[PaymentRequest]:
    """
    Parse CSV lines into PaymentRequests.

    Raises:
        InputFileError on a malformed row (with its line number)
    """
    payments = []
    for line_number, row in enumerate(csv.reader(lines), start=1):
        if not row or all(not field.strip() for field in row):
            continue
        if len(row) < 2:
            raise InputFileError("expected 'handle,amount'", line_number)

        handle, raw_amount = row[0].strip(), row[1].strip()
        if not _AMOUNT_RE.fullmatch(raw_amount):
            raise InputFileError(f"amount {raw_amount!r} is not a base-10 integer", line_number)
        amount = int(raw_amount)

        try:
            payments.append(PaymentRequest(handle=handle, amount=amount))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InputFileError(errors, line_number)
    return payments


def read_payments(path: str | Path) -> list[PaymentRequest]:
    """Read and validate the payment list at `path`."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InputFileError(f"Error reading {path}: {e}")

    payments = parse_payment_rows(io.StringIO(content))
    logger.info(f"Loaded {len(payments)} payment(s) from {path}")
    return payments
