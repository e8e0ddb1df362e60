"""
web3.py implementation of the chain client.
Signs locally with a single in-memory key and talks JSON-RPC over HTTP.
"""

from contextlib import contextmanager
from typing import Any, Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from .abi import CONTRACT_ABI
from .client import ChainClient, ContractCall, Receipt
from ..core.errors import ConfirmationTimeoutError, RelayError, RevertError, classify_chain_error


@contextmanager
def chain_errors(stage: str):
    """Translate raw web3 / transport exceptions into relay errors."""
    try:
        yield
    except RelayError:
        raise
    except (Web3Exception, ValueError, OSError, TimeoutError) as e:
        raise classify_chain_error(e, stage) from e


class Web3ChainClient(ChainClient):
    """
    Chain client backed by web3.py.

    The private key is turned into an eth_account LocalAccount at
    construction and is never exposed again.
    """

    def __init__(self, rpc_url: str, contract_address: str, private_key: str,
                 timeout: int = 30, w3: Optional[Web3] = None):
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self._account = Account.from_key(private_key)
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=CONTRACT_ABI
        )

    @property
    def address(self) -> str:
        return self._account.address

    def _function(self, call: ContractCall):
        return getattr(self.contract.functions, call.function)(*call.args)

    def estimate_gas(self, call: ContractCall) -> int:
        with chain_errors("estimate"):
            return int(self._function(call).estimate_gas({"from": self.address}))

    def current_gas_price(self) -> int:
        with chain_errors("gas_price"):
            return int(self.w3.eth.gas_price)

    def pending_nonce(self, address: str) -> int:
        with chain_errors("nonce"):
            return int(self.w3.eth.get_transaction_count(Web3.to_checksum_address(address), "pending"))

    def call(self, read_call: ContractCall) -> Any:
        with chain_errors("read"):
            return self._function(read_call).call()

    def sign_transaction(self, call: ContractCall, gas: int, gas_price: int, nonce: int) -> bytes:
        with chain_errors("sign"):
            tx = self._function(call).build_transaction({
                "from": self.address,
                "gas": gas,
                "gasPrice": gas_price,
                "nonce": nonce,
            })
            signed = self._account.sign_transaction(tx)
            return bytes(signed.raw_transaction)

    def send_signed(self, raw_tx: bytes) -> str:
        with chain_errors("broadcast"):
            tx_hash = self.w3.eth.send_raw_transaction(raw_tx)
            return Web3.to_hex(tx_hash)

    def wait_for_receipt(self, tx_hash: str, timeout: int) -> Receipt:
        with chain_errors("receipt"):
            try:
                raw = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
            except TimeExhausted as e:
                raise ConfirmationTimeoutError(details=str(e), tx_hash=tx_hash) from e

        receipt = Receipt(
            tx_hash=tx_hash,
            block_number=int(raw["blockNumber"]),
            status=int(raw["status"]),
            gas_used=int(raw["gasUsed"])
        )
        if receipt.status == 0:
            raise RevertError(details=f"Transaction {tx_hash} reverted in block {receipt.block_number}",
                              tx_hash=tx_hash)
        return receipt

    def get_balance(self, address: Optional[str] = None) -> int:
        with chain_errors("balance"):
            return int(self.w3.eth.get_balance(Web3.to_checksum_address(address or self.address)))

    def is_connected(self) -> bool:
        return bool(self.w3.is_connected())
