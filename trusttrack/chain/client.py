"""
Chain client capability interface.
The pipelines talk to the blockchain only through this interface; the
signing key never leaves an implementation of it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple


@dataclass(frozen=True)
class ContractCall:
    """A contract function name and its positional arguments."""
    function: str
    args: Tuple[Any, ...] = ()


@dataclass
class Receipt:
    """Mined transaction summary."""
    tx_hash: str
    block_number: int
    status: int
    gas_used: int


def build_add_stage_call(product_id: str, event_id: str, key_value_pairs: List[str],
                         comments: str, media_ref: str) -> ContractCall:
    return ContractCall("addStage", (product_id, event_id, list(key_value_pairs), comments, media_ref))


def build_get_stage_ids_call(product_id: str) -> ContractCall:
    return ContractCall("getStageIds", (product_id,))


def build_get_stage_data_call(product_id: str, event_id: str) -> ContractCall:
    return ContractCall("getStageData", (product_id, event_id))


def build_get_stage_meta_call(product_id: str, event_id: str) -> ContractCall:
    return ContractCall("getStageMeta", (product_id, event_id))


class ChainClient(ABC):
    """
    Abstract base class for blockchain access.
    Implementations block on every call and never retry.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Address of the signing account."""
        pass

    @abstractmethod
    def estimate_gas(self, call: ContractCall) -> int:
        """
        Simulate a state-mutating call from the signing account.

        Raises:
            EstimationError: node predicts the call would fail
            InsufficientFundsError: account cannot cover the simulation
            ConnectivityError: node unreachable
        """
        pass

    @abstractmethod
    def current_gas_price(self) -> int:
        pass

    @abstractmethod
    def pending_nonce(self, address: str) -> int:
        """Next nonce including pending transactions. Raises ConnectivityError."""
        pass

    @abstractmethod
    def call(self, read_call: ContractCall) -> Any:
        """Execute a read-only call. Raises ReadError on revert or malformed data."""
        pass

    @abstractmethod
    def sign_transaction(self, call: ContractCall, gas: int, gas_price: int, nonce: int) -> bytes:
        """Build and sign a transaction for ``call``; returns the raw bytes."""
        pass

    @abstractmethod
    def send_signed(self, raw_tx: bytes) -> str:
        """
        Broadcast a signed transaction and return its hash.

        Raises:
            BroadcastError: node rejected the transaction
            InsufficientFundsError: account cannot pay for gas
            RevertError: execution reverted
        """
        pass

    @abstractmethod
    def wait_for_receipt(self, tx_hash: str, timeout: int) -> Receipt:
        """Block until mined. Raises RevertError or ConfirmationTimeoutError."""
        pass

    @abstractmethod
    def get_balance(self, address: Optional[str] = None) -> int:
        """Balance in wei; defaults to the signing account."""
        pass

    def is_connected(self) -> bool:
        return True
