"""Code constants for wasmledger validation and reconciliation results.

These constants prevent stringly-typed codes and ensure client code
uses the correct values when filtering reports.
"""

from enum import Enum


class ValidationCode(str, Enum):
    """Schema validation issue codes."""

    # Errors (blocking)
    INVALID_TYPE = "INVALID_TYPE"
    MISSING_FIELD = "MISSING_FIELD"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    TOO_SHORT = "TOO_SHORT"
    PATTERN_MISMATCH = "PATTERN_MISMATCH"
    DUPLICATE_ID = "DUPLICATE_ID"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    REGISTRY_LOAD_ERROR = "REGISTRY_LOAD_ERROR"

    # Warnings (non-blocking)
    MISSING_TESTNET = "MISSING_TESTNET"


class DiscrepancyCategory(str, Enum):
    """Reconciliation discrepancy categories, in report order."""

    MISSING_FROM_REGISTRY = "missing_from_registry"
    MISSING_FROM_CHAIN = "missing_from_chain"
    HASH_MISMATCH = "hash_mismatch"
    GOVERNANCE_MISATTRIBUTION = "governance_misattribution"
    DEPRECATED_STILL_LIVE = "deprecated_still_live"
    TESTNET_DIVERGENCE = "testnet_divergence"


class DivergenceKind(str, Enum):
    """The two distinguishable testnet divergence outcomes."""

    NOT_FOUND = "not_found"
    HASH_MISMATCH = "hash_mismatch"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class RunMode(str, Enum):
    """Which phases a run executes."""

    ALL = "all"
    VALIDATE_ONLY = "validate-only"
    VERIFY_ONLY = "verify-only"

    @property
    def validates(self) -> bool:
        return self is not RunMode.VERIFY_ONLY

    @property
    def verifies(self) -> bool:
        return self is not RunMode.VALIDATE_ONLY
