"""
Raw JSON-RPC transaction submission for the embedded wallet.

Resolves every possibly-pending field of a prepared transaction
concurrently, hex-encodes the numeric ones and issues a single
`eth_sendTransaction` through the provider's generic `request` method.
Does not wait for confirmation.
"""

import asyncio
import inspect
from typing import Any, Dict, Optional
import logging

from .base import (
    PENDING_FIELDS,
    MissingContractAddressError,
    SendResult,
    TransactionFieldSet,
)

logger = logging.getLogger(__name__)

# Snake-case field -> JSON-RPC request key, for numeric fields
HEX_FIELDS = {
    'value': 'value',
    'gas': 'gas',
    'gas_price': 'gasPrice',
    'max_fee_per_gas': 'maxFeePerGas',
    'max_priority_fee_per_gas': 'maxPriorityFeePerGas',
    'max_fee_per_blob_gas': 'maxFeePerBlobGas',
    'nonce': 'nonce',
}


def parse_quantity(value: Any) -> Optional[int]:
    """
    Integer value of a transaction quantity; None stays None.

    Strings are hex when 0x-prefixed and decimal otherwise. Bytes are read
    big-endian. Booleans and negative values are rejected.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise TypeError("Cannot use a boolean as a quantity")

    if isinstance(value, str):
        text = value.strip()
        number = int(text, 16) if text[:2] in ("0x", "0X") else int(text, 10)
    elif isinstance(value, (bytes, bytearray)):
        number = int.from_bytes(bytes(value), "big")
    else:
        number = int(value)

    if number < 0:
        raise ValueError(f"Negative quantity {number}")
    return number


def to_hex(value: Any) -> Optional[str]:
    """Lowercase 0x-prefixed hex for a quantity; None stays None."""
    number = parse_quantity(value)
    return None if number is None else hex(number)


def _encode_data(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray)):
        return f"0x{bytes(data).hex()}"
    return data


async def resolve_pending(value: Any) -> Any:
    """Await a pending field: awaitables are awaited, callables called first."""
    if callable(value):
        value = value()
    if inspect.isawaitable(value):
        value = await value
    return value


async def resolve_transaction_fields(transaction: TransactionFieldSet) -> Dict[str, Any]:
    """Resolve every pending field at once, concrete or not."""
    resolved = await asyncio.gather(
        *(resolve_pending(getattr(transaction, name)) for name in PENDING_FIELDS)
    )
    return dict(zip(PENDING_FIELDS, resolved))


def sanitize_request(request: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in request.items() if value is not None}


def build_request(transaction: TransactionFieldSet, fields: Dict[str, Any],
                  to_address: str, from_address: str) -> Dict[str, Any]:
    """Assemble the eth_sendTransaction parameter object."""
    request = {
        'from': from_address,
        'to': to_address,
        'data': _encode_data(fields.get('data')),
    }
    for name, key in HEX_FIELDS.items():
        request[key] = to_hex(fields.get(name))
    request['chainId'] = to_hex(transaction.chain_id)
    request['accessList'] = fields.get('access_list')
    return sanitize_request(request)


async def send_raw_transaction(
    transaction: TransactionFieldSet,
    provider: Any,
    from_address: str,
) -> SendResult:
    """
    Submit one transaction through `provider.request`.

    Raises MissingContractAddressError before any network call when neither
    `to` nor the contract reference yields an address.
    """
    to_address = transaction.target_address()
    if not to_address:
        raise MissingContractAddressError("Missing contract address for embedded wallet transaction")

    fields = await resolve_transaction_fields(transaction)
    request = build_request(transaction, fields, to_address, from_address)
    logger.debug(f"eth_sendTransaction request: {request}")

    transaction_hash = await provider.request({
        'method': 'eth_sendTransaction',
        'params': [request],
    })
    logger.info(f"Submitted transaction {transaction_hash} to {to_address}")

    return SendResult(
        transaction_hash=str(transaction_hash),
        chain_id=transaction.chain_id,
        client=transaction.client,
    )
