"""
Relay configuration - chain endpoint, signer, gas policy and media limits.
Values come from the environment; a local .env file is loaded first.
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Chain connection
RPC_URL = os.getenv("RPC_URL", "https://ethereum-sepolia-rpc.publicnode.com")
CONTRACT_ADDRESS = os.getenv("CONTRACT_ADDRESS", "")
PRIVATE_KEY = os.getenv("PRIVATE_KEY", "")
ACCOUNT_ADDRESS = os.getenv("ACCOUNT_ADDRESS", "")  # Optional, cross-checked against PRIVATE_KEY
RPC_TIMEOUT_SEC = int(os.getenv("RPC_TIMEOUT_SEC", "30"))

# Submission policy
GAS_BUFFER_PERCENT = int(os.getenv("GAS_BUFFER_PERCENT", "20"))
WAIT_FOR_RECEIPT = os.getenv("WAIT_FOR_RECEIPT", "false").lower() == "true"
RECEIPT_TIMEOUT_SEC = int(os.getenv("RECEIPT_TIMEOUT_SEC", "120"))
SUBMISSION_TIMEOUT_SEC = int(os.getenv("SUBMISSION_TIMEOUT_SEC", "60"))
LOW_BALANCE_ETH = float(os.getenv("LOW_BALANCE_ETH", "0.001"))

# Media uploads
MEDIA_MAX_FILES = int(os.getenv("MEDIA_MAX_FILES", "10"))
MEDIA_MAX_BYTES = int(os.getenv("MEDIA_MAX_BYTES", str(5 * 1024 * 1024)))
MEDIA_UPLOAD_DIR = os.getenv("MEDIA_UPLOAD_DIR", "./uploads")

# HTTP server
PORT = int(os.getenv("PORT", "3001"))

VERSION = "1.0.0"


def debug_enabled() -> bool:
    """Check debug flag at call time so tests can flip it via the environment."""
    return os.getenv("DEBUG", "false").lower() == "true"


def validate_chain_config() -> List[str]:
    """Validate chain configuration and return any issues."""
    issues = []

    if not RPC_URL:
        issues.append("RPC_URL is required")

    if not CONTRACT_ADDRESS:
        issues.append("CONTRACT_ADDRESS is required")

    if not PRIVATE_KEY:
        issues.append("PRIVATE_KEY is required")

    if GAS_BUFFER_PERCENT < 0:
        issues.append("GAS_BUFFER_PERCENT must be >= 0")

    if RECEIPT_TIMEOUT_SEC < 1:
        issues.append("RECEIPT_TIMEOUT_SEC must be >= 1")

    if SUBMISSION_TIMEOUT_SEC < 1:
        issues.append("SUBMISSION_TIMEOUT_SEC must be >= 1")

    if MEDIA_MAX_FILES < 0:
        issues.append("MEDIA_MAX_FILES must be >= 0")

    return issues
