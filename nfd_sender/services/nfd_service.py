"""
NFD Service — fetches unsigned vault transfer groups from the NFD API.

POST /nfd/vault/sendTo/{name} returns the transactions needed to send an
asset to the vault behind an NFD, as a JSON array of [type, base64-txn]
pairs. The type tag is dropped; only the decoded bytes (in order) are kept.

Every call goes through the shared ThrottleGate. The pipeline awaits one
fetch before starting the next, so the resolver stage runs sequentially.
"""
import asyncio
import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from domain.constants import NFD_API_BASE_URL, NFD_SEND_TO_PATH
from exceptions import ResolutionError
from models import PaymentRequest, RetryPolicy, TransactionGroup
from services.throttle import ThrottleGate
from utils.validators import validate_base64

logger = logging.getLogger(__name__)


class _RetryableError(Exception):
    """Internal marker for failures worth another attempt."""
    pass


def decode_transaction_pairs(payload: Any) -> list[bytes]:
    """
    Turn a sendTo response body into raw transaction bytes.

    The API sometimes returns the array JSON-encoded inside a JSON string,
    so a str payload is parsed a second time.

    Raises:
        ValueError if the payload is not a non-empty list of [type, b64] pairs
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Response is not a JSON array: {e}")

    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of transactions, got {type(payload).__name__}")
    if not payload:
        raise ValueError("Response contained no transactions")

    txns = []
    for i, item in enumerate(payload):
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ValueError(f"Transaction {i} is not a [type, txn] pair")
        _type, txn_b64 = item
        if not isinstance(txn_b64, str):
            raise ValueError(f"Transaction {i} payload is not a string")
        txns.append(validate_base64(txn_b64))
    return txns


class NfdClient:
    """
    Throttled client for the NFD vault sendTo endpoint.

    Usage:
        async with NfdClient(throttle=gate, asset_id=..., sender=...) as nfd:
            group = await nfd.fetch_group(request)
    """

    def __init__(
        self,
        *,
        throttle: ThrottleGate,
        asset_id: int,
        sender: str,
        base_url: str = NFD_API_BASE_URL,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._throttle = throttle
        self._asset_id = asset_id
        self._sender = sender
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._retry_policy = retry_policy or RetryPolicy()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "NfdClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def build_payload(self, request: PaymentRequest) -> dict:
        """JSON body for sendTo; the sender must already be opted in to the asset."""
        return {
            "amount": request.amount,
            "assets": [self._asset_id],
            "sender": self._sender,
            "optInOnly": False,
        }

    async def fetch_group(self, request: PaymentRequest) -> TransactionGroup:
        """
        Fetch the unsigned transaction group for one payment.

        Raises:
            ResolutionError on network errors, non-2xx responses or a
            malformed body. Never raises anything else for a single payment.
        """
        policy = self._retry_policy
        last_error = ""

        for attempt in range(policy.attempts):
            if attempt:
                delay = policy.delay(attempt)
                logger.warning(
                    f"Retrying {request.handle} in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{policy.attempts}): {last_error}"
                )
                await asyncio.sleep(delay)
            try:
                body = await self._post(request)
            except _RetryableError as e:
                last_error = str(e)
                continue

            try:
                txns = decode_transaction_pairs(body)
            except ValueError as e:
                raise ResolutionError(request.handle, str(e))

            logger.info(f"Resolved {request.handle}: {len(txns)} txn(s)")
            return TransactionGroup(request=request, txns=txns)

        raise ResolutionError(request.handle, last_error)

    async def _post(self, request: PaymentRequest) -> Any:
        """One throttled POST. Returns the decoded JSON body."""
        # quoted as a single path segment
        path = NFD_SEND_TO_PATH.format(handle=quote(request.handle, safe=""))

        await self._throttle.acquire()
        try:
            response = await self.client.post(
                path,
                json=self.build_payload(request),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Error fetching transactions for {request.handle}: {e!r}")
            raise _RetryableError(f"{type(e).__name__}: {e}")

        if response.status_code == 429 or response.status_code >= 500:
            logger.error(f"NFD API returned {response.status_code} for {request.handle}")
            raise _RetryableError(f"HTTP {response.status_code}: {response.text[:200]}")

        if not response.is_success:
            logger.error(f"NFD API returned {response.status_code} for {request.handle}")
            raise ResolutionError(
                request.handle, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ResolutionError(request.handle, f"Response is not valid JSON: {e}")
