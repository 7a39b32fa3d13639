"""Public API for wasmledger.

High-level functions that run the schema and reconciliation phases and
return complete, structured results. Each phase returns its own result
value; ``run`` assembles them into one report.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import httpx
from pydantic import BaseModel, Field, ValidationError

from wasmledger.codes import RunMode, ValidationCode
from wasmledger.config import Settings, get_settings
from wasmledger.kernel.reconcile import ReconciliationResult, reconcile
from wasmledger.kernel.records import ContractRecord, OnChainCode
from wasmledger.kernel.schema import REGISTRY_SCHEMA, collect_errors
from wasmledger._internal.fetch import FetchError, fetch_code_infos, fetch_proposals
from wasmledger._internal.io.registry import (
    RegistryLoadError,
    RegistryStatistics,
    compute_statistics,
    load_registry_file,
    parse_records,
)

LOGGER = logging.getLogger("wasmledger.api")

RegistryInput = Union[str, os.PathLike, Path, Sequence[Any]]


class SchemaIssue(BaseModel):
    """A single schema validation issue (error or warning)."""
    code: str  # ValidationCode value
    path: str  # e.g. "[3].release.url"; empty for file-level issues
    message: str


class SchemaValidationResult(BaseModel):
    """Result of the schema phase."""
    ok: bool  # True if no errors (warnings don't block)
    record_count: int
    errors: List[SchemaIssue]
    warnings: List[SchemaIssue]
    statistics: Optional[RegistryStatistics] = None  # only for a valid registry


class VerificationResult(BaseModel):
    """Result of the on-chain reconciliation phase.

    ``ok`` means the phase ran to completion. Discrepancies are advisory and
    do not make it fail; ``error`` explains why verification could not run.
    """
    ok: bool
    network: str
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    reconciliation: Optional[ReconciliationResult] = None


class ValidationReport(BaseModel):
    """Consolidated report of one run."""
    ok: bool
    mode: RunMode
    network: str
    generated_at: str
    schema_validation: Optional[SchemaValidationResult] = None
    verification: Optional[VerificationResult] = None


def _is_path(registry: RegistryInput) -> bool:
    return isinstance(registry, (str, os.PathLike))


def _missing_testnet_warnings(data: Sequence[Any]) -> List[SchemaIssue]:
    warnings: List[SchemaIssue] = []
    for index, item in enumerate(data):
        if isinstance(item, dict) and not item.get("testnet"):
            warnings.append(SchemaIssue(
                code=ValidationCode.MISSING_TESTNET.value,
                path=f"[{index}]",
                message=f"Code ID {item.get('code_id', '?')} ({item.get('name', '?')}) has no testnet configuration",
            ))
    return warnings


def validate_registry(registry: RegistryInput) -> SchemaValidationResult:
    """Validate registry structure against the registry schema.

    Args:
        registry: Path to the registry JSON file, or the already-loaded record list

    Returns:
        SchemaValidationResult listing every violation found. A missing or
        unreadable file is reported as an error, not raised.
    """
    if _is_path(registry):
        try:
            data = load_registry_file(registry)
        except FileNotFoundError:
            return SchemaValidationResult(
                ok=False,
                record_count=0,
                errors=[SchemaIssue(
                    code=ValidationCode.FILE_NOT_FOUND.value,
                    path="",
                    message=f"Registry file not found: {registry}",
                )],
                warnings=[],
            )
        except RegistryLoadError as e:
            return SchemaValidationResult(
                ok=False,
                record_count=0,
                errors=[SchemaIssue(code=ValidationCode.REGISTRY_LOAD_ERROR.value, path="", message=str(e))],
                warnings=[],
            )
    else:
        data = registry

    errors = [
        SchemaIssue(code=e.code.value, path=e.path, message=str(e))
        for e in collect_errors(data, REGISTRY_SCHEMA)
    ]
    is_list = isinstance(data, (list, tuple))
    warnings = _missing_testnet_warnings(data) if is_list else []
    statistics = compute_statistics(parse_records(data)) if not errors else None

    if errors:
        LOGGER.info("registry schema validation failed with %d errors", len(errors))
    else:
        LOGGER.info("registry schema validation passed (%d records)", len(data))

    return SchemaValidationResult(
        ok=not errors,
        record_count=len(data) if is_list else 0,
        errors=errors,
        warnings=warnings,
        statistics=statistics,
    )


def _load_local(registry: RegistryInput) -> List[ContractRecord]:
    if _is_path(registry):
        return parse_records(load_registry_file(registry))
    return parse_records(registry)


def verify_registry(
    registry: RegistryInput,
    *,
    network: str = "mainnet",
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> VerificationResult:
    """Reconcile the registry against live chain state.

    The local load, the code entry fetch and the governance proposal fetch
    run concurrently and are joined before reconciling. The testnet fetch
    follows only when some record carries a testnet sub-record.

    Args:
        registry: Path to the registry JSON file, or the already-loaded record list
        network: Primary network whose code entries and proposals are compared
        settings: Endpoint/timeout settings (defaults to get_settings())
        transport: Optional httpx transport (tests inject httpx.MockTransport)

    Returns:
        VerificationResult; ``ok`` is False with ``error`` set if a
        load-bearing step failed, in which case no partial result is returned.
    """
    settings = settings or get_settings()
    try:
        primary = settings.endpoint(network)
    except ValueError as e:
        return VerificationResult(ok=False, network=network, error=str(e))

    LOGGER.info("verifying registry against %s", primary.network)
    warnings: List[str] = []
    try:
        with ThreadPoolExecutor(max_workers=3) as executor:
            local_future = executor.submit(_load_local, registry)
            codes_future = executor.submit(
                fetch_code_infos, primary, timeout=settings.http_timeout, transport=transport
            )
            proposals_future = executor.submit(
                fetch_proposals,
                primary,
                status=settings.proposal_status,
                timeout=settings.http_timeout,
                transport=transport,
            )
            local = local_future.result()
            on_chain = codes_future.result()
            proposals = proposals_future.result()

        testnet_codes: List[OnChainCode] = []
        testnet_checked = True
        if any(r.testnet is not None for r in local):
            try:
                testnet_codes = fetch_code_infos(
                    settings.endpoint("testnet"), timeout=settings.http_timeout, transport=transport
                )
            except FetchError as e:
                LOGGER.warning("testnet fetch failed, skipping testnet checks: %s", e)
                warnings.append(f"Testnet checks skipped: {e}")
                testnet_checked = False

        result = reconcile(local, on_chain, testnet_codes, proposals, testnet_checked=testnet_checked)
    except FileNotFoundError:
        return VerificationResult(ok=False, network=network, error=f"Registry file not found: {registry}")
    except (FetchError, RegistryLoadError) as e:
        LOGGER.error("on-chain verification failed: %s", e)
        return VerificationResult(ok=False, network=network, error=str(e))
    except ValidationError as e:
        LOGGER.error("registry records could not be parsed: %s", e)
        return VerificationResult(ok=False, network=network, error=f"Registry records could not be parsed: {e}")

    if not proposals:
        warnings.append("No governance proposals available; governance attribution was not checked")

    LOGGER.info(
        "verification complete: %d discrepancies across %d categories",
        result.summary.total_discrepancies,
        len(result.recommendations),
    )
    return VerificationResult(ok=True, network=network, warnings=warnings, reconciliation=result)


def run(
    registry: Optional[RegistryInput] = None,
    *,
    mode: Union[RunMode, str] = RunMode.ALL,
    network: str = "mainnet",
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ValidationReport:
    """Run the selected phases and aggregate them into one report.

    Both phases run in ``all`` mode even when the first one fails; ``ok`` is
    the logical AND of the phases that ran.
    """
    settings = settings or get_settings()
    mode = RunMode(mode)
    if registry is None:
        registry = settings.registry_path

    ok = True
    schema_result: Optional[SchemaValidationResult] = None
    verification: Optional[VerificationResult] = None

    if mode.validates:
        schema_result = validate_registry(registry)
        ok = schema_result.ok and ok
    if mode.verifies:
        verification = verify_registry(registry, network=network, settings=settings, transport=transport)
        ok = verification.ok and ok

    return ValidationReport(
        ok=ok,
        mode=mode,
        network=network,
        generated_at=datetime.now(timezone.utc).isoformat(),
        schema_validation=schema_result,
        verification=verification,
    )
