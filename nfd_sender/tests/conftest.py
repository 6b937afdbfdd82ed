"""
Pytest configuration and shared fixtures for batch sender tests.

Provides a throwaway Algorand account, builders for real (offline) algosdk
transactions, a mocked algod wrapper and an httpx.MockTransport-based NFD
API.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import base64
import json
from typing import Callable
from urllib.parse import unquote
from unittest.mock import MagicMock

import httpx
import pytest
from algosdk import account, encoding, transaction

from algorand_client import AlgorandClient
from models import PaymentRequest
from services.nfd_service import NfdClient
from services.throttle import ThrottleGate

GENESIS_HASH = base64.b64encode(b"\x01" * 32).decode()


# ── Account Fixtures ─────────────────────────────────────────────────


@pytest.fixture
def wallet() -> dict:
    """A freshly generated account: {'address', 'private_key'}."""
    private_key, address = account.generate_account()
    return {"address": address, "private_key": private_key}


@pytest.fixture
def receiver_address() -> str:
    _, address = account.generate_account()
    return address


# ── Transaction Builders ─────────────────────────────────────────────


def suggested_params() -> transaction.SuggestedParams:
    return transaction.SuggestedParams(
        fee=1000,
        first=1000,
        last=2000,
        gh=GENESIS_HASH,
        gen="testnet-v1.0",
        flat_fee=True,
    )


def encode_txn(txn) -> bytes:
    """msgpack bytes of an algosdk transaction object."""
    return base64.b64decode(encoding.msgpack_encode(txn))


def decode_signed(blob: bytes) -> transaction.SignedTransaction:
    return encoding.msgpack_decode(base64.b64encode(blob).decode())


@pytest.fixture
def make_payment_txn(wallet, receiver_address) -> Callable[..., transaction.PaymentTxn]:
    """Factory for unsigned payment transactions from the test wallet."""
    def _make(amount: int = 1_000, note: bytes | None = None):
        return transaction.PaymentTxn(
            sender=wallet["address"],
            sp=suggested_params(),
            receiver=receiver_address,
            amt=amount,
            note=note,
        )
    return _make


@pytest.fixture
def make_group(make_payment_txn) -> Callable[[int], list]:
    """Factory for an atomic group of `size` payment transactions."""
    def _make(size: int = 2):
        txns = [make_payment_txn(amount=1_000 + i) for i in range(size)]
        if size > 1:
            txns = transaction.assign_group_id(txns)
        return txns
    return _make


# ── Payment Fixtures ─────────────────────────────────────────────────


@pytest.fixture
def alice() -> PaymentRequest:
    return PaymentRequest(handle="alice.algo", amount=1_000_000)


@pytest.fixture
def bob() -> PaymentRequest:
    return PaymentRequest(handle="bob.algo", amount=250)


# ── Mock Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def mock_ledger():
    """Mock algod wrapper: every group submits and confirms at round 100."""
    ledger = MagicMock(spec=AlgorandClient)
    ledger.send_raw_group.return_value = "TEST_TX_ID"
    ledger.wait_for_confirmation.return_value = 100
    return ledger


def nfd_response(txn_blobs: list[bytes], *, double_encoded: bool = False) -> httpx.Response:
    """Build a sendTo response carrying the given unsigned transactions."""
    pairs = [["u", base64.b64encode(blob).decode()] for blob in txn_blobs]
    body = json.dumps(json.dumps(pairs)) if double_encoded else json.dumps(pairs)
    return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})


@pytest.fixture
def nfd_api():
    """
    Programmable fake NFD API.

    Set `routes[handle]` to an httpx.Response, an exception instance, or a
    list of either (consumed one per call). Every request is recorded in
    `calls` as (handle, json_body).
    """
    class FakeNfdApi:
        def __init__(self):
            self.routes: dict = {}
            self.calls: list[tuple[str, dict]] = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
            handle = unquote(raw_path.rsplit("/", 1)[-1])
            self.calls.append((handle, json.loads(request.content)))
            result = self.routes.get(handle)
            if isinstance(result, list):
                result = result.pop(0)
            if result is None:
                return httpx.Response(404, json={"message": f"{handle} not found"})
            if isinstance(result, Exception):
                raise result
            return result

        @property
        def transport(self) -> httpx.MockTransport:
            return httpx.MockTransport(self.handler)

    return FakeNfdApi()


@pytest.fixture
def make_nfd_client(nfd_api, wallet):
    """Factory for an NfdClient wired to the fake API with no throttle delay."""
    def _make(**kwargs) -> NfdClient:
        kwargs.setdefault("throttle", ThrottleGate(0))
        kwargs.setdefault("asset_id", 1285225688)
        kwargs.setdefault("sender", wallet["address"])
        kwargs.setdefault("base_url", "https://api.test.nf.domains")
        kwargs.setdefault("transport", nfd_api.transport)
        return NfdClient(**kwargs)

    return _make
