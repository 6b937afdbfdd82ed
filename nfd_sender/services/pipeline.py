"""
Batch pipeline — wires the stages together.

    payments -> NFD resolve (throttled, sequential) -> sign
             -> submit (bounded concurrency) -> partition -> report

Resolution and signing failures drop the payment (logged, kept in
BatchResult.dropped). Submission failures become failed Outcomes. Only a
report write failure propagates to the caller.
"""
import logging
from pathlib import Path
from typing import Optional, Sequence

from exceptions import ResolutionError, SigningError
from models import BatchResult, PaymentRequest, SignedGroup
from services.nfd_service import NfdClient
from services.report_service import partition, write_report
from services.signing_service import sign_group
from services.submission_service import SubmissionCoordinator

logger = logging.getLogger(__name__)


class BatchPipeline:
    """Runs one payment batch end to end."""

    def __init__(
        self,
        *,
        resolver: NfdClient,
        private_key: str,
        coordinator: Optional[SubmissionCoordinator],
        report_path: str | Path,
        dry_run: bool = False,
    ):
        if coordinator is None and not dry_run:
            raise ValueError("a SubmissionCoordinator is required unless dry_run is set")
        self._resolver = resolver
        self._private_key = private_key
        self._coordinator = coordinator
        self._report_path = report_path
        self._dry_run = dry_run

    async def prepare(
        self, payments: Sequence[PaymentRequest]
    ) -> tuple[list[SignedGroup], list[tuple[PaymentRequest, str]]]:
        """Resolve and sign every payment, one at a time."""
        signed: list[SignedGroup] = []
        dropped: list[tuple[PaymentRequest, str]] = []

        for payment in payments:
            try:
                group = await self._resolver.fetch_group(payment)
            except ResolutionError as e:
                logger.error(f"Dropping {payment.handle}: {e.message}")
                dropped.append((payment, e.message))
                continue

            try:
                signed.append(sign_group(group, self._private_key))
            except SigningError as e:
                logger.error(f"Dropping {payment.handle}: {e.message}")
                dropped.append((payment, e.message))

        logger.info(f"Prepared {len(signed)} group(s), dropped {len(dropped)}")
        return signed, dropped

    async def run(self, payments: Sequence[PaymentRequest]) -> BatchResult:
        """
        Process a batch.

        Raises:
            ReportWriteError if failures occurred and the report could not be written
        """
        logger.info(f"Processing {len(payments)} payment(s)")
        signed, dropped = await self.prepare(payments)

        if self._dry_run:
            for group in signed:
                logger.info(
                    f"[dry run] would send {group.request.amount} to "
                    f"{group.request.handle} ({len(group.blobs)} txn(s), {group.first_tx_id})"
                )
            return BatchResult(dropped=dropped, signed_count=len(signed))

        outcomes = await self._coordinator.submit_all(signed)
        confirmed, failed = partition(outcomes)
        logger.info(
            f"Batch complete: {len(confirmed)} confirmed, {len(failed)} failed, "
            f"{len(dropped)} dropped"
        )

        result = BatchResult(
            outcomes=outcomes,
            confirmed=confirmed,
            failed=failed,
            dropped=dropped,
            signed_count=len(signed),
        )
        if failed:
            result.report_path = str(write_report(failed, self._report_path))
        return result
