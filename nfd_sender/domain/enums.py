"""
Domain enums (minimal set used for clarity in services).
"""

from enum import Enum


class GroupState(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class FailureKind(str, Enum):
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    ALREADY_IN_LEDGER = "ALREADY_IN_LEDGER"
    POOL_FULL = "POOL_FULL"
    TIMEOUT = "TIMEOUT"
    REJECTED = "REJECTED"
