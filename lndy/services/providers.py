"""
web3.py-backed transaction backends.

- Web3Provider: exposes the generic `request({"method", "params"})` interface
  over a web3.py async provider, so a node-managed account can stand in for
  the embedded wallet.
- Web3TransactionSubmitter: the standard submission primitive used by the
  browser backend, built on AsyncWeb3.eth.send_transaction.
"""

import asyncio
from typing import Any, Dict, Optional
import logging

from web3 import AsyncWeb3, Web3
from eth_utils import to_checksum_address

from .base import (
    MissingContractAddressError,
    ProviderRPCError,
    SendResult,
    TransactionFieldSet,
    WalletUnavailableError,
    normalize_error,
)
from .raw_sender import parse_quantity, resolve_transaction_fields, sanitize_request

logger = logging.getLogger(__name__)

# Snake-case field -> web3.py TxParams key
TX_PARAM_KEYS = {
    'data': 'data',
    'value': 'value',
    'gas': 'gas',
    'gas_price': 'gasPrice',
    'max_fee_per_gas': 'maxFeePerGas',
    'max_priority_fee_per_gas': 'maxPriorityFeePerGas',
    'max_fee_per_blob_gas': 'maxFeePerBlobGas',
    'nonce': 'nonce',
    'access_list': 'accessList',
}

QUANTITY_KEYS = {'value', 'gas', 'gasPrice', 'maxFeePerGas', 'maxPriorityFeePerGas',
                 'maxFeePerBlobGas', 'nonce'}


class Web3Provider:
    """Generic request interface over a web3.py async provider."""

    def __init__(self, w3: AsyncWeb3):
        self.w3 = w3

    async def request(self, payload: Dict[str, Any]) -> Any:
        method = payload.get('method')
        params = payload.get('params') or []
        if not method:
            raise ProviderRPCError("Request is missing a method", code=-32600)

        response = await self.w3.provider.make_request(method, params)
        error = response.get('error')
        if error:
            if isinstance(error, dict):
                raise ProviderRPCError(
                    error.get('message') or f"{method} failed",
                    code=error.get('code'),
                    data=error.get('data'),
                )
            raise ProviderRPCError(str(error))
        return response.get('result')


class Web3TransactionSubmitter:
    """
    Standard submission primitive over AsyncWeb3.

    `send_transaction` schedules the submission and returns its task; exactly
    one of the callbacks fires when it settles. `is_pending` stays true while
    any submission is in flight.
    """

    def __init__(self, w3: AsyncWeb3, account: Optional[str] = None):
        self.w3 = w3
        self.account = account
        self._in_flight = 0
        self._tasks = set()

    @property
    def is_pending(self) -> bool:
        return self._in_flight > 0

    def send_transaction(self, transaction: TransactionFieldSet, on_success=None, on_error=None) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            error = normalize_error(e)
            logger.warning(f"Browser wallet transaction failed: {error}")
            if on_error is not None:
                on_error(error)
            return None

        self._in_flight += 1
        task = loop.create_task(self._send(transaction, on_success, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def build_params(self, transaction: TransactionFieldSet) -> Dict[str, Any]:
        """Resolve pending fields and build web3.py TxParams."""
        to_address = transaction.target_address()
        if not to_address:
            raise MissingContractAddressError("Missing contract address for browser wallet transaction")

        account = transaction.from_address or self.account or self.w3.eth.default_account
        if not account:
            raise WalletUnavailableError("No browser wallet account connected")

        fields = await resolve_transaction_fields(transaction)
        params = {
            'from': to_checksum_address(account),
            'to': to_checksum_address(to_address),
            'chainId': transaction.chain_id,
        }
        for name, key in TX_PARAM_KEYS.items():
            value = fields.get(name)
            params[key] = parse_quantity(value) if key in QUANTITY_KEYS else value
        return sanitize_request(params)

    async def _send(self, transaction: TransactionFieldSet, on_success, on_error) -> None:
        result = None
        error = None
        try:
            params = await self.build_params(transaction)
            tx_hash = await self.w3.eth.send_transaction(params)
            result = SendResult(
                transaction_hash=Web3.to_hex(tx_hash),
                chain_id=transaction.chain_id,
                client=transaction.client,
            )
            logger.info(f"Submitted transaction {result.transaction_hash}")
        except Exception as e:
            error = normalize_error(e)
            logger.warning(f"Browser wallet transaction failed: {error}")
        finally:
            self._in_flight -= 1

        if error is not None:
            if on_error is not None:
                on_error(error)
        elif on_success is not None:
            on_success(result)
