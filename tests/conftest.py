"""
Shared fixtures - an in-memory chain client that records every call.
"""

import pytest
from typing import Any, Dict, List, Optional, Tuple

from trusttrack.chain.client import ChainClient, ContractCall, Receipt
from trusttrack.core.errors import ReadError
from trusttrack.core.media import ContentAddressedMediaResolver
from trusttrack.core.submission import SubmissionPipeline

SIGNER = "0x7553F1f079Aeee2c37605fA3220c4a358cd9A791"


class FakeChainClient(ChainClient):
    """Chain client double; raises configured errors and counts calls."""

    def __init__(self, address: str = SIGNER):
        self._address = address
        self.calls: List[Tuple[str, Any]] = []
        self.gas_estimate = 100000
        self.gas_price = 2_000_000_000
        self.chain_nonce = 7
        self.balance = 10 ** 18
        self.connected = True

        self.estimate_error: Optional[Exception] = None
        self.send_errors: List[Exception] = []
        self.receipt_error: Optional[Exception] = None

        self.signed: List[Dict[str, Any]] = []
        self.sent: List[bytes] = []

        # product_id -> [event_id, ...]; (product_id, event_id) -> data / meta
        self.stage_ids: Dict[str, List[str]] = {}
        self.stage_data: Dict[Tuple[str, str], Any] = {}
        self.stage_meta: Dict[Tuple[str, str], Any] = {}
        self.read_errors: Dict[Tuple[str, str], Exception] = {}

    @property
    def address(self) -> str:
        return self._address

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def add_stage(self, product_id, event_id, data, timestamp, comments="", media="", submitter=SIGNER):
        self.stage_ids.setdefault(product_id, []).append(event_id)
        self.stage_data[(product_id, event_id)] = list(data)
        self.stage_meta[(product_id, event_id)] = (comments, media, timestamp, submitter)

    def estimate_gas(self, call: ContractCall) -> int:
        self.calls.append(("estimate_gas", call))
        if self.estimate_error:
            raise self.estimate_error
        return self.gas_estimate

    def current_gas_price(self) -> int:
        self.calls.append(("current_gas_price", None))
        return self.gas_price

    def pending_nonce(self, address: str) -> int:
        self.calls.append(("pending_nonce", address))
        return self.chain_nonce

    def call(self, read_call: ContractCall) -> Any:
        self.calls.append(("call", read_call))
        if read_call.function == "getStageIds":
            product_id, = read_call.args
            error = self.read_errors.get((product_id, "*"))
            if error:
                raise error
            return list(self.stage_ids.get(product_id, []))

        product_id, event_id = read_call.args
        error = self.read_errors.get((read_call.function, event_id))
        if error:
            raise error
        if read_call.function == "getStageData":
            return self.stage_data[(product_id, event_id)]
        if read_call.function == "getStageMeta":
            return self.stage_meta[(product_id, event_id)]
        raise ReadError(details=f"unknown function {read_call.function}")

    def sign_transaction(self, call: ContractCall, gas: int, gas_price: int, nonce: int) -> bytes:
        self.calls.append(("sign_transaction", call))
        self.signed.append({"call": call, "gas": gas, "gas_price": gas_price, "nonce": nonce})
        return f"{call.function}:{nonce}".encode()

    def send_signed(self, raw_tx: bytes) -> str:
        self.calls.append(("send_signed", raw_tx))
        if self.send_errors:
            raise self.send_errors.pop(0)
        self.sent.append(raw_tx)
        return "0x" + format(len(self.sent), "064x")

    def wait_for_receipt(self, tx_hash: str, timeout: int) -> Receipt:
        self.calls.append(("wait_for_receipt", tx_hash))
        if self.receipt_error:
            raise self.receipt_error
        return Receipt(tx_hash=tx_hash, block_number=123, status=1, gas_used=95000)

    def get_balance(self, address: Optional[str] = None) -> int:
        self.calls.append(("get_balance", address))
        return self.balance

    def is_connected(self) -> bool:
        if isinstance(self.connected, Exception):
            raise self.connected
        return self.connected

    def calls_named(self, name: str) -> List[Any]:
        return [arg for method, arg in self.calls if method == name]


@pytest.fixture
def chain():
    return FakeChainClient()


@pytest.fixture
def media_resolver():
    return ContentAddressedMediaResolver()


@pytest.fixture
def pipeline(chain, media_resolver):
    pipe = SubmissionPipeline(chain, media_resolver, gas_buffer_percent=20,
                              wait_for_receipt=False, id_factory=_sequential_ids())
    yield pipe
    pipe.close()


def _sequential_ids():
    counter = {"n": 0}

    def next_id():
        counter["n"] += 1
        return f"evt-{counter['n']}"
    return next_id


@pytest.fixture
def service(chain, media_resolver, pipeline):
    from trusttrack.core.service import RelayService
    return RelayService(chain, media_resolver, submission=pipeline)
