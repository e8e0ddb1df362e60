"""
Submission pipeline - validates a stage, records it on chain through the
account's single-writer queue and classifies any failure.
"""

import time
import uuid
from typing import Callable, Optional

from . import codec
from .config import (
    GAS_BUFFER_PERCENT,
    RECEIPT_TIMEOUT_SEC,
    SUBMISSION_TIMEOUT_SEC,
    WAIT_FOR_RECEIPT,
)
from .errors import RelayError, ValidationError
from .media import MediaResolver, join_references, validate_media
from .schema import SubmissionRequest, TransactionRecord
from .writer import AccountWriter, NonceTracker
from ..chain.client import ChainClient, ContractCall, build_add_stage_call
from ..util.logging import logger


def apply_gas_buffer(estimate: int, percent: int = GAS_BUFFER_PERCENT) -> int:
    """Gas limit with a safety margin, rounded down to whole gas units."""
    return estimate * (100 + percent) // 100


def new_event_id() -> str:
    return str(uuid.uuid4())


class SubmissionPipeline:
    """
    Orchestrates one stage submission.

    Validation, id generation, encoding and media resolution happen on the
    caller's thread. Gas estimation, nonce assignment, signing and broadcast
    run on the account writer so concurrent submissions never share a nonce.
    Broadcast failures are never retried here: a retry needs a new eventId.
    """

    def __init__(self, client: ChainClient, media_resolver: MediaResolver,
                 gas_buffer_percent: int = GAS_BUFFER_PERCENT,
                 wait_for_receipt: bool = WAIT_FOR_RECEIPT,
                 receipt_timeout: int = RECEIPT_TIMEOUT_SEC,
                 submission_timeout: int = SUBMISSION_TIMEOUT_SEC,
                 id_factory: Callable[[], str] = new_event_id):
        self.client = client
        self.media_resolver = media_resolver
        self.gas_buffer_percent = gas_buffer_percent
        self.wait_for_receipt = wait_for_receipt
        self.receipt_timeout = receipt_timeout
        self.submission_timeout = submission_timeout
        self.id_factory = id_factory
        self.writer = AccountWriter(client.address)
        self.nonces = NonceTracker(client, client.address)

    def validate(self, request: SubmissionRequest) -> str:
        """Check input before anything touches the chain; returns the trimmed product id."""
        if not request.product_id or not request.product_id.strip():
            raise ValidationError("Product ID is required")

        codec.validate_pairs(request.fields)
        validate_media(request.media)
        return request.product_id.strip()

    def submit(self, request: SubmissionRequest) -> TransactionRecord:
        product_id = self.validate(request)
        event_id = self.id_factory()

        logger.log_submission(product_id, event_id, len(request.fields), len(request.media))

        key_value_pairs = codec.encode(request.fields)
        media_ref = self._resolve_media(request)

        call = build_add_stage_call(product_id, event_id, key_value_pairs,
                                    request.comments or "", media_ref)

        deadline = time.monotonic() + self.submission_timeout
        future = self.writer.submit(lambda: self._send(event_id, call, media_ref), deadline)
        record = future.result()

        if self.wait_for_receipt:
            record = self._confirm(record)
        return record

    def _resolve_media(self, request: SubmissionRequest) -> str:
        if not request.media:
            return ""
        try:
            references = self.media_resolver.resolve(request.media)
        except OSError as e:
            raise RelayError("Failed to store media", details=str(e)) from e

        media_ref = join_references(references)
        logger.log_operation("media.resolve", "success",
                             {"count": len(references), "media_ref": media_ref})
        return media_ref

    def _send(self, event_id: str, call: ContractCall, media_ref: str) -> TransactionRecord:
        """Runs on the writer thread."""
        try:
            estimate = self.client.estimate_gas(call)
        except RelayError as e:
            logger.log_broadcast(event_id, status="estimation_failed",
                                 details={"category": e.category, "error": e.details})
            raise

        gas_limit = apply_gas_buffer(estimate, self.gas_buffer_percent)
        gas_price = self.client.current_gas_price()
        nonce = self.nonces.reserve()
        logger.log_gas(event_id, estimate, gas_limit, gas_price, nonce)

        try:
            raw_tx = self.client.sign_transaction(call, gas_limit, gas_price, nonce)
            tx_hash = self.client.send_signed(raw_tx)
        except Exception as e:
            self.nonces.invalidate()
            logger.log_broadcast(event_id, status="failed", details={
                "category": getattr(e, "category", "internal"),
                "error": getattr(e, "details", str(e)),
                "nonce": nonce
            })
            raise

        self.nonces.commit(nonce)
        logger.log_broadcast(event_id, tx_hash)

        return TransactionRecord(
            event_id=event_id,
            transaction_hash=tx_hash,
            gas_used_estimate=gas_limit,
            gas_price_used=gas_price,
            nonce=nonce,
            media_ref=media_ref
        )

    def _confirm(self, record: TransactionRecord) -> TransactionRecord:
        try:
            receipt = self.client.wait_for_receipt(record.transaction_hash, self.receipt_timeout)
        except RelayError as e:
            logger.log_broadcast(record.event_id, record.transaction_hash, status=e.category)
            raise

        record.block_number = receipt.block_number
        record.status = receipt.status
        logger.log_broadcast(record.event_id, record.transaction_hash, status="confirmed",
                             details={"block_number": receipt.block_number})
        return record

    def close(self):
        self.writer.close()
