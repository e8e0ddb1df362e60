"""
Relay service - owns the chain client, media resolver and both pipelines
for the lifetime of the process.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from web3 import Web3

from . import config
from .errors import ConnectivityError, RelayError
from .media import ContentAddressedMediaResolver, MediaResolver
from .reconstruction import ReconstructionPipeline
from .schema import StageHistory, SubmissionRequest, TransactionRecord
from .submission import SubmissionPipeline
from ..chain.client import ChainClient
from ..util.logging import logger


class RelayService:
    """Lifecycle-scoped holder of the single signing account and its pipelines."""

    def __init__(self, client: ChainClient, media_resolver: Optional[MediaResolver] = None,
                 submission: Optional[SubmissionPipeline] = None):
        self.client = client
        self.media_resolver = media_resolver or ContentAddressedMediaResolver()
        self.submission = submission or SubmissionPipeline(client, self.media_resolver)
        self.reconstruction = ReconstructionPipeline(client)

    @classmethod
    def from_config(cls) -> "RelayService":
        """Build the web3-backed service from environment configuration."""
        from ..chain.web3_client import Web3ChainClient

        issues = config.validate_chain_config()
        if issues:
            raise ValueError(f"Chain configuration invalid: {issues}")

        client = Web3ChainClient(
            rpc_url=config.RPC_URL,
            contract_address=config.CONTRACT_ADDRESS,
            private_key=config.PRIVATE_KEY,
            timeout=config.RPC_TIMEOUT_SEC
        )
        if config.ACCOUNT_ADDRESS and Web3.to_checksum_address(config.ACCOUNT_ADDRESS) != client.address:
            raise ValueError("ACCOUNT_ADDRESS does not match PRIVATE_KEY")

        service = cls(client, ContentAddressedMediaResolver(config.MEDIA_UPLOAD_DIR))
        service.initialize()
        return service

    def initialize(self) -> Decimal:
        """Check the node is reachable and report the signer balance in ether."""
        logger.info("Initializing blockchain connection...")
        if not self.client.is_connected():
            raise ConnectivityError(details=f"Cannot connect to chain node for {self.client.address}")

        balance_eth = Web3.from_wei(self.client.get_balance(), "ether")
        if balance_eth < Decimal(str(config.LOW_BALANCE_ETH)):
            logger.log_chain_init(self.client.address, str(balance_eth), status="low_balance",
                                  details={"message": "Low balance! Transactions may fail for lack of gas."})
        else:
            logger.log_chain_init(self.client.address, str(balance_eth))
        return balance_eth

    def submit_stage(self, request: SubmissionRequest) -> TransactionRecord:
        return self.submission.submit(request)

    def get_history(self, product_id: str) -> StageHistory:
        return self.reconstruction.get_history(product_id)

    def health(self) -> Dict[str, Any]:
        try:
            connected = self.client.is_connected()
        except RelayError:
            connected = False
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "blockchain": connected,
            "account": self.client.address,
        }

    def close(self):
        self.submission.close()
