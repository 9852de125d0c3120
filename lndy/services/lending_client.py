"""
Lending Client

Reusable contract-client handle: one AsyncWeb3 connection used for contract
reads and for preparing contract writes. Built once and never mutated.
"""

from typing import Any, Dict, List, Optional
import logging

from web3 import AsyncWeb3
from eth_utils import to_checksum_address

from ..config.chain_config import CHAIN_ID, LAUNCHER_ADDRESS, RPC_URL
from .base import TransactionFieldSet

logger = logging.getLogger(__name__)


class LendingClient:
    """
    Contract read / prepare primitives for the lending contracts.

    Reads return the raw decoded result (tuple or scalar) untouched; shaping
    it into records is the normalizer's job.
    """

    def __init__(
        self,
        rpc_url: str = RPC_URL,
        chain_id: int = CHAIN_ID,
        launcher_address: Optional[str] = LAUNCHER_ADDRESS,
        w3: Optional[AsyncWeb3] = None,
    ):
        self.chain_id = chain_id
        self.launcher_address = launcher_address or None
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        logger.info(f"LendingClient initialized for chain {chain_id}"
                    f"{' launcher ' + self.launcher_address if self.launcher_address else ''}")

    def contract(self, address: str, abi: List[Dict]):
        return self.w3.eth.contract(address=to_checksum_address(address), abi=abi)

    async def read_contract(self, address: str, abi: List[Dict], function_name: str, *args) -> Any:
        """Call a view function and return its raw decoded output."""
        contract = self.contract(address, abi)
        result = await getattr(contract.functions, function_name)(*args).call()
        logger.debug(f"{function_name}{args} @ {address[:10]}... -> {result!r}")
        return result

    def prepare_contract_call(
        self,
        address: str,
        abi: List[Dict],
        function_name: str,
        *args,
        value: int = 0,
        from_address: Optional[str] = None,
    ) -> TransactionFieldSet:
        """
        Encode a contract write into a transaction descriptor.

        Calldata is encoded now. With a known sender, gas stays pending and is
        estimated only when the descriptor is resolved for submission;
        without one the wallet estimates it.
        """
        contract = self.contract(address, abi)
        data = contract.encode_abi(function_name, args=list(args))
        to_address = contract.address

        async def estimate_gas():
            return await self.w3.eth.estimate_gas({
                'from': to_checksum_address(from_address),
                'to': to_address,
                'data': data,
                'value': value,
            })

        return TransactionFieldSet(
            chain_id=self.chain_id,
            to=to_address,
            data=data,
            value=value,
            gas=estimate_gas if from_address else None,
            contract={'address': to_address, 'function': function_name},
            from_address=from_address,
            client=self,
        )
