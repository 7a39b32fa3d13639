"""wasmledger: wasm contract registry validation + on-chain reconciliation."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("wasmledger")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from wasmledger.api import (
    SchemaValidationResult,
    ValidationReport,
    VerificationResult,
    run,
    validate_registry,
    verify_registry,
)
from wasmledger.codes import DiscrepancyCategory, Priority, RunMode, ValidationCode

__all__ = [
    "__version__",
    "run",
    "validate_registry",
    "verify_registry",
    "SchemaValidationResult",
    "ValidationReport",
    "VerificationResult",
    "DiscrepancyCategory",
    "Priority",
    "RunMode",
    "ValidationCode",
]
