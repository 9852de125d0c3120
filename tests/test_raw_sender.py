"""
Unit tests for the raw eth_sendTransaction path.

Tests:
- Hex encoding of quantities
- Pending field resolution (awaitables, callables, concrete values)
- Request assembly: None omitted, zero kept, chainId always present
- Unresolvable target fails before any network call
"""
import asyncio
import sys
import os

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lndy.services.base import MissingContractAddressError, TransactionFieldSet
from lndy.services.raw_sender import (
    parse_quantity,
    resolve_transaction_fields,
    send_raw_transaction,
    to_hex,
)

CONTRACT = "0x" + "cc" * 20
SENDER = "0x" + "aa" * 20
TX_HASH = "0x" + "12" * 32


class RecordingProvider:
    """Provider that records every request and returns a fixed hash."""

    def __init__(self, result=TX_HASH):
        self.result = result
        self.calls = []

    async def request(self, payload):
        self.calls.append(payload)
        return self.result


class TestToHex:
    """Test quantity hex encoding."""

    def test_integers(self):
        assert to_hex(21000) == "0x5208"
        assert to_hex(0) == "0x0"
        assert to_hex(8453) == "0x2105"

    def test_absent_value(self):
        assert to_hex(None) is None

    def test_strings_normalized(self):
        assert to_hex("0xABC") == "0xabc"
        assert to_hex("0x0") == "0x0"

    def test_unprefixed_strings_are_decimal(self):
        """Verify an unprefixed numeric string is read as a decimal number."""
        assert to_hex("21000") == "0x5208"
        assert parse_quantity("5208") == 5208
        with pytest.raises(ValueError):
            to_hex("ff")

    def test_bytes_read_big_endian(self):
        assert to_hex(b"\x01\x02") == "0x102"
        assert parse_quantity(b"\x00\x00") == 0

    def test_rejects_negative_and_bool(self):
        with pytest.raises(ValueError):
            to_hex(-1)
        with pytest.raises(TypeError):
            to_hex(True)


class TestResolveTransactionFields:
    """Test pending field resolution."""

    def test_mixed_pending_and_concrete(self):
        async def estimate():
            return 21000

        async def run():
            transaction = TransactionFieldSet(
                chain_id=8453,
                to=CONTRACT,
                data="0xabcdef",
                value=0,
                gas=estimate,
                nonce=estimate(),
                max_fee_per_gas=lambda: 100,
            )
            return await resolve_transaction_fields(transaction)

        fields = asyncio.run(run())

        assert fields['data'] == "0xabcdef"
        assert fields['value'] == 0
        assert fields['gas'] == 21000
        assert fields['nonce'] == 21000
        assert fields['max_fee_per_gas'] == 100
        assert fields['gas_price'] is None

    def test_fields_resolve_concurrently(self):
        """Verify slow fields overlap rather than run one after another."""
        started = []

        def pending(name):
            async def resolve():
                started.append(name)
                await asyncio.sleep(0.05)
                # Every resolver has started before any finishes
                assert len(started) == 3
                return 1
            return resolve

        async def run():
            transaction = TransactionFieldSet(
                chain_id=1, to=CONTRACT,
                gas=pending('gas'), nonce=pending('nonce'), value=pending('value'),
            )
            return await resolve_transaction_fields(transaction)

        fields = asyncio.run(run())
        assert fields['gas'] == fields['nonce'] == fields['value'] == 1


class TestSendRawTransaction:
    """Test request assembly and submission."""

    def test_request_omits_none_and_keeps_zero(self):
        provider = RecordingProvider()
        transaction = TransactionFieldSet(
            chain_id=8453,
            to=CONTRACT,
            data="0x1234",
            value=0,
            gas=21000,
        )

        result = asyncio.run(send_raw_transaction(transaction, provider, SENDER))

        assert len(provider.calls) == 1
        call = provider.calls[0]
        assert call['method'] == 'eth_sendTransaction'
        request = call['params'][0]
        assert request == {
            'from': SENDER,
            'to': CONTRACT,
            'data': "0x1234",
            'value': "0x0",
            'gas': "0x5208",
            'chainId': "0x2105",
        }
        assert result.transaction_hash == TX_HASH
        assert result.chain_id == 8453

    def test_target_from_contract_reference(self):
        provider = RecordingProvider()
        client = object()
        transaction = TransactionFieldSet(
            chain_id=1, contract={'address': CONTRACT}, data="0x", client=client,
        )

        result = asyncio.run(send_raw_transaction(transaction, provider, SENDER))

        assert provider.calls[0]['params'][0]['to'] == CONTRACT
        assert result.client is client

    def test_missing_target_fails_before_network(self):
        """Verify no request is issued when no address can be resolved."""
        provider = RecordingProvider()
        gas_calls = []

        def gas():
            gas_calls.append(1)
            return 1

        transaction = TransactionFieldSet(chain_id=1, data="0x", gas=gas, contract={})

        with pytest.raises(MissingContractAddressError, match="Missing contract address"):
            asyncio.run(send_raw_transaction(transaction, provider, SENDER))

        assert provider.calls == []
        assert gas_calls == []

    def test_provider_rejection_propagates(self):
        class RejectingProvider:
            async def request(self, payload):
                raise RuntimeError("User rejected the request")

        transaction = TransactionFieldSet(chain_id=1, to=CONTRACT, data="0x")

        with pytest.raises(RuntimeError, match="User rejected"):
            asyncio.run(send_raw_transaction(transaction, RejectingProvider(), SENDER))
