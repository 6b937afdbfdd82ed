"""
Tests for the signing service.

Tests: decode_unsigned_txn, check_group_ids, sign_group — order, atomicity,
group id consistency, signature validity.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from algosdk import account, transaction

from exceptions import SigningError
from models import TransactionGroup
from services.signing_service import check_group_ids, decode_unsigned_txn, sign_group
from tests.conftest import decode_signed, encode_txn


class TestDecodeUnsignedTxn:

    @pytest.mark.unit
    def test_decodes_payment(self, make_payment_txn):
        txn = make_payment_txn(amount=1234)
        decoded = decode_unsigned_txn(encode_txn(txn))
        assert isinstance(decoded, transaction.PaymentTxn)
        assert decoded.amt == 1234
        assert decoded.get_txid() == txn.get_txid()

    @pytest.mark.unit
    def test_garbage_raises(self):
        with pytest.raises(SigningError, match="Txn 3"):
            decode_unsigned_txn(b"\x00garbage", 3)

    @pytest.mark.unit
    def test_signed_txn_rejected(self, make_payment_txn, wallet):
        signed = make_payment_txn().sign(wallet["private_key"])
        with pytest.raises(SigningError, match="unsigned"):
            decode_unsigned_txn(encode_txn(signed))


class TestCheckGroupIds:

    @pytest.mark.unit
    def test_single_txn_needs_no_group(self, make_payment_txn):
        check_group_ids([make_payment_txn()])

    @pytest.mark.unit
    def test_matching_group_passes(self, make_group):
        check_group_ids(make_group(3))

    @pytest.mark.unit
    def test_missing_group_id_fails(self, make_payment_txn):
        with pytest.raises(SigningError, match="group id"):
            check_group_ids([make_payment_txn(), make_payment_txn(amount=2)])

    @pytest.mark.unit
    def test_mixed_group_ids_fail(self, make_group):
        first = make_group(2)
        second = make_group(3)
        with pytest.raises(SigningError):
            check_group_ids([first[0], second[1]])


class TestSignGroup:

    @pytest.mark.unit
    def test_preserves_length_and_order(self, make_group, wallet, alice):
        txns = make_group(3)
        group = TransactionGroup(request=alice, txns=[encode_txn(t) for t in txns])

        signed = sign_group(group, wallet["private_key"])

        assert signed.request == alice
        assert len(signed.blobs) == 3
        assert signed.tx_ids == [t.get_txid() for t in txns]
        for blob, original in zip(signed.blobs, txns):
            stx = decode_signed(blob)
            assert stx.get_txid() == original.get_txid()
            assert stx.transaction.group == original.group

    @pytest.mark.unit
    def test_signatures_verify(self, make_payment_txn, wallet, alice):
        txn = make_payment_txn()
        group = TransactionGroup(request=alice, txns=[encode_txn(txn)])

        signed = sign_group(group, wallet["private_key"])
        stx = decode_signed(signed.blobs[0])

        # ed25519 signatures are deterministic
        assert stx.signature == txn.sign(wallet["private_key"]).signature

    @pytest.mark.unit
    def test_one_bad_blob_fails_whole_group(self, make_group, wallet, alice):
        txns = make_group(2)
        group = TransactionGroup(
            request=alice, txns=[encode_txn(txns[0]), b"\xc1not-msgpack"]
        )
        with pytest.raises(SigningError, match="Txn 1"):
            sign_group(group, wallet["private_key"])

    @pytest.mark.unit
    def test_does_not_mutate_input(self, make_group, wallet, alice):
        blobs = [encode_txn(t) for t in make_group(2)]
        group = TransactionGroup(request=alice, txns=list(blobs))
        sign_group(group, wallet["private_key"])
        assert group.txns == blobs

    @pytest.mark.unit
    def test_oversized_group_rejected(self, make_payment_txn, wallet, alice):
        blobs = [encode_txn(make_payment_txn(amount=i + 1)) for i in range(17)]
        with pytest.raises(SigningError, match="max 16"):
            sign_group(TransactionGroup(request=alice, txns=blobs), wallet["private_key"])

    @pytest.mark.unit
    def test_other_key_still_signs(self, make_payment_txn, alice):
        """The signer does not check the sender; the node decides authorisation."""
        other_key, _ = account.generate_account()
        group = TransactionGroup(request=alice, txns=[encode_txn(make_payment_txn())])
        signed = sign_group(group, other_key)
        assert len(signed.blobs) == 1
