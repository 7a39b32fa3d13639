"""Plain-text rendering of validation reports."""

from typing import List

from wasmledger.api import SchemaValidationResult, ValidationReport, VerificationResult
from wasmledger.codes import DiscrepancyCategory
from wasmledger._internal.io.registry import RegistryStatistics

CATEGORY_HEADINGS = {
    DiscrepancyCategory.MISSING_FROM_REGISTRY: "Contracts on-chain but missing from the registry",
    DiscrepancyCategory.MISSING_FROM_CHAIN: "Contracts in the registry but missing from chain",
    DiscrepancyCategory.HASH_MISMATCH: "Hash mismatches",
    DiscrepancyCategory.GOVERNANCE_MISATTRIBUTION: "Governance issues",
    DiscrepancyCategory.DEPRECATED_STILL_LIVE: "Deprecated contracts still on-chain (advisory)",
    DiscrepancyCategory.TESTNET_DIVERGENCE: "Testnet configuration issues",
}


def _render_schema(result: SchemaValidationResult, lines: List[str]) -> None:
    if result.ok:
        lines.append(f"[OK] Registry structure validation passed ({result.record_count} records)")
    else:
        lines.append(f"[FAILED] Registry structure validation failed ({len(result.errors)} errors)")
        for issue in result.errors:
            lines.append(f"  {issue.message}")
    if result.warnings:
        lines.append(f"  Warnings: {len(result.warnings)}")
        for issue in result.warnings:
            lines.append(f"  - {issue.message}")


def _render_verification(result: VerificationResult, lines: List[str]) -> None:
    if not result.ok or result.reconciliation is None:
        lines.append(f"[FAILED] On-chain verification could not run: {result.error}")
        return

    recon = result.reconciliation
    summary = recon.summary
    lines.append(f"On-chain verification summary ({result.network}):")
    lines.append(f"  Local contracts: {summary.total_local}")
    lines.append(f"  On-chain contracts: {summary.total_on_chain}")
    lines.append(f"  Testnet contracts: {summary.total_testnet}")
    lines.append(f"  Contracts with testnet config: {summary.records_with_testnet}")
    lines.append(f"  Governance proposals: {summary.total_proposals}")
    for warning in result.warnings:
        lines.append(f"  Warning: {warning}")

    if summary.total_discrepancies == 0:
        lines.append("")
        lines.append("[OK] All contracts match. No discrepancies found.")
    else:
        lines.append("")
        lines.append(f"Total discrepancies: {summary.total_discrepancies}")
        for category in DiscrepancyCategory:
            items = recon.by_category(category)
            if not items:
                continue
            lines.append("")
            lines.append(f"{CATEGORY_HEADINGS[category]}:")
            for item in items:
                lines.append(f"  {item.describe()}")

    if recon.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        for number, rec in enumerate(recon.recommendations, start=1):
            lines.append(f"  {number}. [{rec.priority.value.upper()}] {rec.message}")
            lines.append(f"     Action: {rec.action}")


def render_report(report: ValidationReport) -> str:
    """Render a ValidationReport as plain text."""
    lines: List[str] = ["Validation results", "=" * 50]
    if report.schema_validation is not None:
        _render_schema(report.schema_validation, lines)
    if report.verification is not None:
        if report.schema_validation is not None:
            lines.append("")
        _render_verification(report.verification, lines)
    lines.append("")
    lines.append(f"Status: {'OK' if report.ok else 'FAILED'}")
    return "\n".join(lines)


def render_statistics(stats: RegistryStatistics) -> str:
    return "\n".join([
        "Contract statistics:",
        f"  Total contracts: {stats.total}",
        f"  Active: {stats.active} | Deprecated: {stats.deprecated}",
        f"  Genesis: {stats.genesis} | Via proposal: {stats.via_proposal}",
        f"  With testnet: {stats.with_testnet} | Without testnet: {stats.without_testnet}",
        f"  Unique authors: {stats.unique_authors}",
    ])
