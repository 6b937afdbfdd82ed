"""
Pydantic models for the payment pipeline stages.
"""
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.enums import FailureKind


class StageModel(BaseModel):
    """Shared base: pipeline values are immutable once built."""
    model_config = ConfigDict(frozen=True)


# ── Input ───────────────────────────────────────────────────────────

class PaymentRequest(StageModel):
    """One (handle, amount) row from the payment list."""
    handle: str = Field(
        ...,
        min_length=1,
        description="NFD name of the recipient, e.g. 'alice.algo'",
    )
    amount: int = Field(
        ...,
        gt=0,
        description="Amount in base units of the payout asset",
    )

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class RetryPolicy(StageModel):
    """Retry settings shared by the resolver and the submission coordinator."""
    max_retries: int = Field(default=0, ge=0)
    backoff_seconds: float = Field(default=1.0, ge=0)

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def delay(self, attempt: int) -> float:
        """Linear backoff before retry number `attempt` (1-based)."""
        return self.backoff_seconds * attempt


# ── Stage outputs ───────────────────────────────────────────────────

class TransactionGroup(StageModel):
    """Unsigned transactions returned by the NFD API for one payment, in order."""
    request: PaymentRequest
    txns: List[bytes] = Field(..., min_length=1)


class SignedGroup(StageModel):
    """Signed msgpack blobs, same length and order as the source group."""
    request: PaymentRequest
    blobs: List[bytes] = Field(..., min_length=1)
    tx_ids: List[str] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_lengths(self):
        if len(self.blobs) != len(self.tx_ids):
            raise ValueError("blobs and tx_ids must have the same length")
        return self

    @property
    def first_tx_id(self) -> str:
        return self.tx_ids[0]


class Outcome(StageModel):
    """Final result of submitting one payment's group."""
    request: PaymentRequest
    success: bool
    tx_id: Optional[str] = None
    confirmed_round: Optional[int] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None

    @model_validator(mode="after")
    def _check_consistency(self):
        if self.success and self.confirmed_round is None:
            raise ValueError("a successful outcome needs a confirmed round")
        if not self.success and not self.error:
            raise ValueError("a failed outcome needs an error message")
        return self


class BatchResult(BaseModel):
    """Summary of one batch run."""
    outcomes: List[Outcome] = Field(default_factory=list)
    confirmed: List[Outcome] = Field(default_factory=list)
    failed: List[Outcome] = Field(default_factory=list)
    dropped: List[Tuple[PaymentRequest, str]] = Field(default_factory=list)
    signed_count: int = 0
    report_path: Optional[str] = None
