"""Hash utilities for wasm code payloads.

Key rules:
- Payloads arrive base64 encoded (governance MsgStoreCode messages)
- If the decoded bytes are a gzip stream, the hash covers the decompressed bytes
- Otherwise the raw decoded bytes are hashed
- Hashes are SHA-256, uppercase hex, the registry convention
- Malformed payloads never raise past compute_wasm_hash; they yield None
"""

import base64
import binascii
import gzip
import hashlib
import logging
import zlib
from typing import Any, Optional

LOGGER = logging.getLogger("wasmledger.hash")

PROPOSAL_STATUS_LABELS = {
    "PROPOSAL_STATUS_UNSPECIFIED": "Unspecified",
    "PROPOSAL_STATUS_DEPOSIT_PERIOD": "Deposit Period",
    "PROPOSAL_STATUS_VOTING_PERIOD": "Voting Period",
    "PROPOSAL_STATUS_PASSED": "Passed",
    "PROPOSAL_STATUS_REJECTED": "Rejected",
    "PROPOSAL_STATUS_FAILED": "Failed",
}


class HashError(ValueError):
    """Raised when a payload cannot be decoded for hashing."""
    pass


def normalize_hash(value: str) -> str:
    """Uppercase, whitespace-stripped form used for every hash comparison."""
    return value.strip().upper()


def sha256_upper(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest().upper()


def decode_payload(payload_b64: Any) -> bytes:
    """Decode a base64 payload strictly.

    Raises:
        HashError: If the payload is not a string or not valid base64
    """
    if not isinstance(payload_b64, (str, bytes)):
        raise HashError(f"payload must be a base64 string, got {type(payload_b64).__name__}")
    try:
        return base64.b64decode(payload_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HashError(f"malformed base64 payload: {e}") from e


def _maybe_gunzip(raw: bytes) -> bytes:
    try:
        return gzip.decompress(raw)
    except (OSError, EOFError, zlib.error):
        # Not a (complete) gzip stream: the payload was uploaded uncompressed
        return raw


def compute_wasm_hash(payload_b64: Any) -> Optional[str]:
    """Compute the canonical code hash of a base64 wasm payload.

    Args:
        payload_b64: Base64 encoded wasm bytes, optionally gzip wrapped

    Returns:
        64-char uppercase hex SHA-256 of the (decompressed) wasm bytes,
        or None if the payload could not be decoded. None means
        "no match possible", not a failure of the run.
    """
    try:
        raw = decode_payload(payload_b64)
    except HashError as e:
        LOGGER.warning("cannot hash wasm payload: %s", e)
        return None
    return sha256_upper(_maybe_gunzip(raw))


def proposal_status_label(status: str) -> str:
    """Human label for a gov proposal status enum name; unknown values pass through."""
    return PROPOSAL_STATUS_LABELS.get(status, status)
