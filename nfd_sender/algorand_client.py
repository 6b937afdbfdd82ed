"""
Algorand node wrapper used by the submission coordinator.

All methods are synchronous (algosdk is blocking); the coordinator runs them
through services.async_executor. Every node failure is re-raised as
SubmissionError so one bad group can never escape its own outcome.
"""
import base64
import logging

from algosdk import error as algo_error
from algosdk import transaction
from algosdk.v2client import algod

from domain.enums import FailureKind
from exceptions import SubmissionError

logger = logging.getLogger(__name__)


class AlgorandClient:
    """Thin wrapper around algod for raw group submission and confirmation."""

    def __init__(self, algod_address: str, algod_token: str = ""):
        self._algod_address = algod_address
        self._algod_token = algod_token
        self._client = None

    @classmethod
    def from_settings(cls, settings) -> "AlgorandClient":
        return cls(settings.algo_algod_url, settings.algo_algod_token)

    def _initialize_client(self):
        """Initialize the Algorand algod client."""
        self._client = algod.AlgodClient(
            algod_token=self._algod_token,
            algod_address=self._algod_address,
        )
        logger.info(f"Algod client configured for {self._algod_address}")

    @property
    def client(self) -> algod.AlgodClient:
        """Get the algod client instance."""
        if self._client is None:
            self._initialize_client()
        return self._client

    def send_raw_group(self, signed_blobs: list[bytes]) -> str:
        """
        Submit an ordered group of signed transactions as one atomic unit.

        Args:
            signed_blobs: msgpack-encoded SignedTransaction bytes, in group order

        Returns:
            Transaction ID of the first transaction in the group
        """
        combined = b''.join(signed_blobs)
        try:
            # send_raw_transaction expects base64 string (it decodes internally)
            tx_id = self.client.send_raw_transaction(base64.b64encode(combined).decode())
        except Exception as e:
            logger.error(f"Error submitting group ({len(signed_blobs)} txns): {e}")
            raise SubmissionError(str(e))
        logger.info(f"Group submitted: {tx_id}")
        return tx_id

    def wait_for_confirmation(self, tx_id: str, max_rounds: int) -> int:
        """
        Block until the transaction is confirmed or max_rounds pass.

        Returns:
            The confirmed round number
        """
        try:
            result = transaction.wait_for_confirmation(self.client, tx_id, max_rounds)
        except algo_error.ConfirmationTimeoutError as e:
            raise SubmissionError(str(e), kind=FailureKind.TIMEOUT)
        except Exception as e:
            logger.error(f"Error waiting for {tx_id}: {e}")
            raise SubmissionError(str(e))

        confirmed_round = result.get("confirmed-round")
        if not confirmed_round:
            raise SubmissionError(
                f"Transaction {tx_id} not confirmed after {max_rounds} rounds",
                kind=FailureKind.TIMEOUT,
            )
        return confirmed_round
