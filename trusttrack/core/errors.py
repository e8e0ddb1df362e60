"""
Relay error taxonomy.

Every failure surfaced to a caller is a RelayError carrying a coarse
``category`` to branch on, a user-facing ``message`` and the raw
``details`` of the underlying chain or input error.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for all classified relay failures."""

    category = "internal"
    default_message = "Relay operation failed"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details if details is not None else self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "category": self.category,
            "details": self.details,
        }


class ValidationError(RelayError):
    category = "validation"
    default_message = "Invalid submission"


class EstimationError(RelayError):
    category = "estimation"
    default_message = "Smart contract rejected the transaction. Please check your data."


class InsufficientFundsError(RelayError):
    category = "insufficient_funds"
    default_message = "Insufficient funds for gas fees. Please add ETH to the signing account."


class RevertError(RelayError):
    category = "revert"
    default_message = "Smart contract rejected the transaction. Please check your data."

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None,
                 tx_hash: Optional[str] = None):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class BroadcastError(RelayError):
    category = "broadcast"
    default_message = "Node rejected the signed transaction"


class ConnectivityError(RelayError):
    category = "connectivity"
    default_message = "Blockchain node unreachable"


class ConfirmationTimeoutError(RelayError):
    """Broadcast succeeded but no receipt arrived in time; the tx may still be mined.

    Not a ConnectivityError: the transaction was accepted, so resubmitting
    could record the stage twice.
    """

    category = "confirmation_timeout"
    default_message = "Transaction was broadcast but not confirmed in time"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None,
                 tx_hash: Optional[str] = None):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class ReadError(RelayError):
    category = "read"
    default_message = "Failed to read contract state"


class PartialFetchError(RelayError):
    """One stage of a history could not be read; recorded, never raised out of reconstruction."""

    category = "partial_fetch"
    default_message = "Failed to fetch stage"

    def __init__(self, event_id: str, cause: Exception):
        self.event_id = event_id
        self.cause = cause
        super().__init__(f"Failed to fetch stage {event_id}", getattr(cause, "details", None) or str(cause))


STAGE_DEFAULTS = {
    "estimate": EstimationError,
    "broadcast": BroadcastError,
    "read": ReadError,
}

CONNECTIVITY_MARKERS = ("timed out", "timeout", "connection refused", "connection error",
                        "max retries exceeded", "name or service not known")


def classify_chain_error(exc: Exception, stage: str) -> RelayError:
    """
    Map a raw chain exception to the relay taxonomy.

    Args:
        exc: Exception raised by the RPC layer
        stage: One of estimate, broadcast, read, nonce, gas_price, receipt

    Returns:
        RelayError subclass instance with the raw message as details
    """
    if isinstance(exc, RelayError):
        return exc

    raw = str(exc) or exc.__class__.__name__
    lowered = raw.lower()

    if "insufficient funds" in lowered:
        return InsufficientFundsError(details=raw)

    if "revert" in lowered:
        if stage == "estimate":
            return EstimationError(details=raw)
        if stage == "read":
            return ReadError(details=raw)
        return RevertError(details=raw)

    # requests' ConnectionError/Timeout derive from OSError
    if isinstance(exc, (OSError, TimeoutError)) or any(m in lowered for m in CONNECTIVITY_MARKERS):
        return ConnectivityError(details=raw)

    error_cls = STAGE_DEFAULTS.get(stage)
    if error_cls is None:
        return RelayError(message=f"Chain {stage} call failed", details=raw)
    return error_cls(details=raw)
