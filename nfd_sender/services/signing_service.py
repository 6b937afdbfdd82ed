"""
Signing service — decodes unsigned NFD transactions and signs them locally.

A group is an atomic unit: if any transaction fails to decode, or the group
ids disagree, nothing in the group is signed.
"""
import base64
import logging

from algosdk import encoding
from algosdk.transaction import Transaction

from domain.constants import MAX_GROUP_SIZE
from exceptions import SigningError
from models import SignedGroup, TransactionGroup

logger = logging.getLogger(__name__)


def decode_unsigned_txn(raw: bytes, index: int = 0) -> Transaction:
    """
    Decode raw msgpack bytes into an unsigned algosdk Transaction.

    Raises:
        SigningError if the bytes are not an unsigned transaction
    """
    try:
        # msgpack_decode expects the base64 form
        decoded = encoding.msgpack_decode(base64.b64encode(raw).decode())
    except Exception as e:
        raise SigningError(f"Txn {index}: could not decode transaction: {e}")

    if not isinstance(decoded, Transaction):
        raise SigningError(
            f"Txn {index}: expected an unsigned transaction, got {type(decoded).__name__}"
        )
    return decoded


def check_group_ids(txns: list[Transaction]) -> None:
    """All members of a multi-transaction group must share one group id."""
    if len(txns) == 1:
        return
    group_ids = {txn.group for txn in txns}
    if None in group_ids or len(group_ids) != 1:
        raise SigningError(
            f"Group of {len(txns)} transactions does not share a single group id"
        )


def sign_group(group: TransactionGroup, private_key: str) -> SignedGroup:
    """
    Sign every transaction in a group with the same key, in order.

    Args:
        group: Unsigned transactions for one payment
        private_key: Base64 private key of the paying wallet

    Returns:
        SignedGroup with msgpack-encoded SignedTransaction blobs

    Raises:
        SigningError if the group cannot be decoded or signed
    """
    handle = group.request.handle
    if len(group.txns) > MAX_GROUP_SIZE:
        raise SigningError(
            f"{handle}: group has {len(group.txns)} transactions (max {MAX_GROUP_SIZE})"
        )

    txns = [decode_unsigned_txn(raw, i) for i, raw in enumerate(group.txns)]
    check_group_ids(txns)

    blobs = []
    tx_ids = []
    for i, txn in enumerate(txns):
        try:
            signed = txn.sign(private_key)
            blobs.append(base64.b64decode(encoding.msgpack_encode(signed)))
        except Exception as e:
            raise SigningError(f"Txn {i}: signing failed: {e}")
        tx_ids.append(txn.get_txid())
        logger.debug(f"  Txn {i}: {txn.type} {tx_ids[-1]}")

    logger.info(f"Signed {handle}: {len(blobs)} txn(s)")
    return SignedGroup(request=group.request, blobs=blobs, tx_ids=tx_ids)
