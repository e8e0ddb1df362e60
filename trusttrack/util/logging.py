"""
Structured operation logging for the relay.
Submission, broadcast and reconstruction events are emitted as single lines.
"""

import logging
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['private_key', 'secret', 'password', 'raw_transaction']


class StructuredLogger:
    """Structured logger for submission and reconstruction operations."""

    def __init__(self, name: str = "trusttrack"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {sanitize_payload(details)}"

        self.logger.log(level, message)

    def log_chain_init(self, account: str, balance_eth: str, status: str = "success", details: Dict[str, Any] = None):
        """Log chain connection and signer balance at startup."""
        log_details = {"account": account, "balance_eth": balance_eth}
        if details:
            log_details.update(details)

        level = logging.WARNING if status == "low_balance" else logging.INFO
        self.log_operation("chain.init", status, log_details, level=level)

    def log_submission(self, product_id: str, event_id: str, fields_count: int, media_count: int, status: str = "received"):
        """Log an incoming stage submission."""
        details = {
            "product_id": product_id,
            "event_id": event_id,
            "fields_count": fields_count,
            "media_count": media_count
        }
        self.log_operation("submission", status, details)

    def log_gas(self, event_id: str, estimate: int, gas_limit: int, gas_price: int, nonce: int):
        """Log gas parameters chosen for a transaction."""
        details = {
            "event_id": event_id,
            "gas_estimate": estimate,
            "gas_limit": gas_limit,
            "gas_price": gas_price,
            "nonce": nonce
        }
        self.log_operation("submission.gas", "estimated", details)

    def log_broadcast(self, event_id: str, tx_hash: str = None, status: str = "success", details: Dict[str, Any] = None):
        """Log the outcome of a signed transaction broadcast."""
        log_details = {"event_id": event_id}
        if tx_hash:
            log_details["tx_hash"] = tx_hash
        if details:
            log_details.update(details)

        level = logging.INFO if status in ("success", "confirmed") else logging.ERROR
        self.log_operation("submission.broadcast", status, log_details, level=level)

    def log_stage_skipped(self, product_id: str, event_id: str, reason: str):
        """Log a stage that could not be read during reconstruction."""
        details = {"product_id": product_id, "event_id": event_id, "reason": reason[:200]}
        self.log_operation("history.stage", "skipped", details, level=logging.WARNING)

    def log_history(self, product_id: str, stage_count: int, skipped_count: int):
        """Log a completed history reconstruction."""
        details = {
            "product_id": product_id,
            "stage_count": stage_count,
            "skipped_count": skipped_count
        }
        status = "partial" if skipped_count else "success"
        self.log_operation("history", status, details)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for operation logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload


logger = StructuredLogger()
