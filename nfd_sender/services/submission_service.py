"""
Submission service — sends signed groups to algod and tracks confirmation.

Each group moves PENDING -> SUBMITTED -> CONFIRMED or FAILED. SUBMITTED is
entered as the group is handed to algod, so a send the node rejects still
passes through it on the way to FAILED. A group waiting on the semaphore
stays PENDING.

Groups are submitted concurrently under a semaphore; a concurrency of 1
gives strictly sequential submission. Failures are captured as Outcomes and
never cancel sibling submissions.
"""
import asyncio
import logging
from typing import Iterable, Optional

from algorand_client import AlgorandClient
from domain.enums import FailureKind, GroupState
from exceptions import SubmissionError
from models import Outcome, PaymentRequest, RetryPolicy, SignedGroup
from services.async_executor import get_executor, run_blocking

logger = logging.getLogger(__name__)

# Deterministic rejections: resubmitting the same bytes cannot succeed
_NON_RETRYABLE = {FailureKind.INSUFFICIENT_BALANCE, FailureKind.INVALID_SIGNATURE}


def classify_error(error_msg: str) -> FailureKind:
    """Classify an algod error message into a FailureKind."""
    lower = error_msg.lower()

    if "insufficient balance" in lower or "below min" in lower or "overspend" in lower:
        return FailureKind.INSUFFICIENT_BALANCE
    elif "invalid signature" in lower or "should have been authorized" in lower:
        return FailureKind.INVALID_SIGNATURE
    elif "already in ledger" in lower:
        return FailureKind.ALREADY_IN_LEDGER
    elif "transaction pool" in lower and "full" in lower:
        return FailureKind.POOL_FULL
    elif "not confirmed after" in lower or "timeout" in lower:
        return FailureKind.TIMEOUT
    else:
        return FailureKind.REJECTED


class SubmissionCoordinator:
    """Submits signed groups and turns each into exactly one Outcome."""

    def __init__(
        self,
        ledger: AlgorandClient,
        *,
        confirmation_rounds: int = 4,
        concurrency: int = 4,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._ledger = ledger
        self._confirmation_rounds = confirmation_rounds
        self._concurrency = concurrency
        self._retry_policy = retry_policy or RetryPolicy()
        self._semaphore: Optional[asyncio.Semaphore] = None
        # first tx id -> state
        self.states: dict[str, GroupState] = {}
        # first tx id -> every state entered, in order
        self.history: dict[str, list[GroupState]] = {}

    def _transition(self, group: SignedGroup, state: GroupState) -> None:
        self.states[group.first_tx_id] = state
        self.history.setdefault(group.first_tx_id, []).append(state)
        logger.debug(f"{group.request.handle} [{group.first_tx_id}] -> {state.value}")

    def _failed(
        self,
        request: PaymentRequest,
        group: SignedGroup,
        err: SubmissionError,
        tx_id: Optional[str] = None,
    ) -> Outcome:
        kind = err.kind or classify_error(err.message)
        self._transition(group, GroupState.FAILED)
        logger.error(f"❌ {request.handle} ({request.amount}) failed [{kind.value}]: {err.message}")
        return Outcome(
            request=request,
            success=False,
            tx_id=tx_id,
            error=err.message or kind.value,
            failure_kind=kind,
        )

    async def _send(self, group: SignedGroup) -> str:
        """Submit the raw group, retrying per the policy."""
        policy = self._retry_policy
        for attempt in range(policy.attempts):
            if attempt:
                await asyncio.sleep(policy.delay(attempt))
            try:
                return await run_blocking(self._ledger.send_raw_group, list(group.blobs))
            except SubmissionError as e:
                kind = e.kind or classify_error(e.message)
                if kind is FailureKind.ALREADY_IN_LEDGER:
                    # An earlier attempt (or run) got it in; just wait on it
                    logger.info(f"{group.request.handle}: group already in ledger")
                    return group.first_tx_id
                if kind in _NON_RETRYABLE or attempt == policy.attempts - 1:
                    e.kind = kind
                    raise
                logger.warning(
                    f"Submit failed for {group.request.handle} "
                    f"(attempt {attempt + 1}/{policy.attempts}): {e.message}"
                )

    async def submit(self, request: PaymentRequest, group: SignedGroup) -> Outcome:
        """
        Submit one signed group and wait for confirmation.

        Returns:
            Outcome with success=True and the confirmed round, or
            success=False and the node's error message
        """
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._concurrency)
        # one worker per group in flight; a confirmation wait holds its thread
        get_executor(self._concurrency)

        self._transition(group, GroupState.PENDING)
        async with self._semaphore:
            self._transition(group, GroupState.SUBMITTED)
            try:
                tx_id = await self._send(group)
            except SubmissionError as e:
                return self._failed(request, group, e)

            try:
                confirmed_round = await run_blocking(
                    self._ledger.wait_for_confirmation, tx_id, self._confirmation_rounds
                )
            except SubmissionError as e:
                return self._failed(request, group, e, tx_id=tx_id)

            self._transition(group, GroupState.CONFIRMED)
            logger.info(
                f"✅ {request.handle} ({request.amount}) confirmed in round "
                f"{confirmed_round}: {tx_id}"
            )
            return Outcome(
                request=request,
                success=True,
                tx_id=tx_id,
                confirmed_round=confirmed_round,
            )

    async def submit_all(self, groups: Iterable[SignedGroup]) -> list[Outcome]:
        """Submit all groups concurrently and wait for every outcome."""
        groups = list(groups)
        logger.info(
            f"Submitting {len(groups)} group(s) (concurrency={self._concurrency})"
        )
        return list(await asyncio.gather(
            *(self.submit(group.request, group) for group in groups)
        ))
