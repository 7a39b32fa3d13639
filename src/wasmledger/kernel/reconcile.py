"""Discrepancy analysis between the local registry and on-chain state.

Every category is computed independently over identity-keyed indices, so
one registry entry can show up in several categories at once (for example
both a hash mismatch and a governance misattribution). The analysis is
read-only: it reports, it never edits the registry.
"""

from dataclasses import dataclass, field
from typing import Annotated, Dict, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from wasmledger.codes import DiscrepancyCategory, DivergenceKind, Priority
from wasmledger.kernel.hash_utils import compute_wasm_hash, normalize_hash, proposal_status_label
from wasmledger.kernel.records import ContractRecord, GovernanceProposal, OnChainCode


class ProposalRef(BaseModel):
    """The proposal a code upload was found in."""
    proposal_id: str
    title: str
    status: str  # human label, e.g. "Passed"
    message_index: int  # 1-based position of the MsgStoreCode within the proposal


class MissingFromRegistry(BaseModel):
    category: Literal["missing_from_registry"] = "missing_from_registry"
    code_id: str
    hash: str
    creator: str

    def describe(self) -> str:
        return f"Code ID {self.code_id}: {self.hash} (creator {self.creator or 'unknown'})"


class MissingFromChain(BaseModel):
    category: Literal["missing_from_chain"] = "missing_from_chain"
    code_id: str
    name: str
    hash: str
    governance: str
    deprecated: bool

    def describe(self) -> str:
        return f"Code ID {self.code_id} ({self.name}): {self.hash}"


class HashMismatch(BaseModel):
    category: Literal["hash_mismatch"] = "hash_mismatch"
    code_id: str
    name: str
    local_hash: str
    chain_hash: str
    governance: str

    def describe(self) -> str:
        return f"Code ID {self.code_id} ({self.name}): registry {self.local_hash} != chain {self.chain_hash}"


class GovernanceMisattribution(BaseModel):
    category: Literal["governance_misattribution"] = "governance_misattribution"
    code_id: str
    name: str
    hash: str
    governance: str
    proposal: ProposalRef

    def describe(self) -> str:
        return (
            f"Code ID {self.code_id} ({self.name}): marked as {self.governance} but uploaded via "
            f"Proposal {self.proposal.proposal_id} ({self.proposal.status})"
        )


class DeprecatedStillLive(BaseModel):
    """A deprecated entry whose code is still stored on-chain.

    Deployed code cannot be removed from a chain, so this is advisory only.
    """
    category: Literal["deprecated_still_live"] = "deprecated_still_live"
    code_id: str
    name: str
    hash: str
    governance: str
    advisory: bool = True

    def describe(self) -> str:
        return f"Code ID {self.code_id} ({self.name}): deprecated contract still exists on-chain (advisory)"


class TestnetDivergence(BaseModel):
    category: Literal["testnet_divergence"] = "testnet_divergence"
    code_id: str
    testnet_code_id: str
    name: str
    kind: DivergenceKind
    expected_hash: str
    actual_hash: Optional[str] = None

    def describe(self) -> str:
        if self.kind is DivergenceKind.NOT_FOUND:
            return (
                f"Code ID {self.code_id} ({self.name}): testnet code ID "
                f"{self.testnet_code_id} not found on testnet"
            )
        return (
            f"Code ID {self.code_id} ({self.name}): testnet code ID {self.testnet_code_id} "
            f"expected {self.expected_hash}, actual {self.actual_hash}"
        )


Discrepancy = Annotated[
    Union[
        MissingFromRegistry,
        MissingFromChain,
        HashMismatch,
        GovernanceMisattribution,
        DeprecatedStillLive,
        TestnetDivergence,
    ],
    Field(discriminator="category"),
]


class Recommendation(BaseModel):
    category: DiscrepancyCategory
    priority: Priority
    count: int
    message: str
    action: str


class ReconciliationSummary(BaseModel):
    total_local: int
    total_on_chain: int
    total_testnet: int
    total_proposals: int
    records_with_testnet: int
    matched: int
    testnet_checked: bool
    discrepancy_counts: Dict[str, int]

    @property
    def total_discrepancies(self) -> int:
        return sum(self.discrepancy_counts.values())


class ReconciliationResult(BaseModel):
    discrepancies: List[Discrepancy]
    recommendations: List[Recommendation]
    matched_code_ids: List[str]
    summary: ReconciliationSummary

    def by_category(self, category: DiscrepancyCategory) -> List[Discrepancy]:
        return [d for d in self.discrepancies if d.category == category.value]


@dataclass
class ReconciliationIndices:
    """Identity-keyed lookups over one run's inputs."""
    local_by_code_id: Dict[str, ContractRecord] = field(default_factory=dict)
    on_chain_by_code_id: Dict[str, OnChainCode] = field(default_factory=dict)
    on_chain_by_hash: Dict[str, OnChainCode] = field(default_factory=dict)
    testnet_by_code_id: Dict[str, OnChainCode] = field(default_factory=dict)
    proposal_by_hash: Dict[str, ProposalRef] = field(default_factory=dict)


def build_proposal_hash_index(proposals: Iterable[GovernanceProposal]) -> Dict[str, ProposalRef]:
    """Map code hash -> proposal for every code upload found in ``proposals``.

    Payloads that cannot be hashed are skipped (logged by compute_wasm_hash).
    When the same code was uploaded more than once, the last proposal wins.
    """
    index: Dict[str, ProposalRef] = {}
    for proposal in proposals:
        for position, message in enumerate(proposal.messages, start=1):
            if not message.is_store_code:
                continue
            code_hash = compute_wasm_hash(message.wasm_byte_code)
            if code_hash is None:
                continue
            index[code_hash] = ProposalRef(
                proposal_id=proposal.id,
                title=proposal.title,
                status=proposal_status_label(proposal.status),
                message_index=position,
            )
    return index


def build_indices(
    local: Sequence[ContractRecord],
    on_chain: Sequence[OnChainCode],
    testnet_on_chain: Sequence[OnChainCode],
    proposals: Sequence[GovernanceProposal],
) -> ReconciliationIndices:
    return ReconciliationIndices(
        local_by_code_id={r.code_id: r for r in local},
        on_chain_by_code_id={c.code_id: c for c in on_chain},
        on_chain_by_hash={normalize_hash(c.data_hash): c for c in on_chain},
        testnet_by_code_id={c.code_id: c for c in testnet_on_chain},
        proposal_by_hash=build_proposal_hash_index(proposals),
    )


def _missing_from_registry(on_chain: Sequence[OnChainCode], idx: ReconciliationIndices) -> List[Discrepancy]:
    return [
        MissingFromRegistry(code_id=c.code_id, hash=normalize_hash(c.data_hash), creator=c.creator)
        for c in on_chain
        if c.code_id not in idx.local_by_code_id
    ]


def _missing_from_chain(local: Sequence[ContractRecord], idx: ReconciliationIndices) -> List[Discrepancy]:
    return [
        MissingFromChain(
            code_id=r.code_id,
            name=r.name,
            hash=r.hash,
            governance=r.governance,
            deprecated=r.deprecated,
        )
        for r in local
        if r.code_id not in idx.on_chain_by_code_id
    ]


def _hash_mismatches(local: Sequence[ContractRecord], idx: ReconciliationIndices) -> List[Discrepancy]:
    found: List[Discrepancy] = []
    for record in local:
        chain = idx.on_chain_by_code_id.get(record.code_id)
        if chain is None:
            continue
        chain_hash = normalize_hash(chain.data_hash)
        if normalize_hash(record.hash) != chain_hash:
            found.append(HashMismatch(
                code_id=record.code_id,
                name=record.name,
                local_hash=record.hash,
                chain_hash=chain_hash,
                governance=record.governance,
            ))
    return found


def _governance_misattributions(local: Sequence[ContractRecord], idx: ReconciliationIndices) -> List[Discrepancy]:
    found: List[Discrepancy] = []
    for record in local:
        if not record.is_genesis:
            continue
        proposal = idx.proposal_by_hash.get(normalize_hash(record.hash))
        if proposal is not None:
            found.append(GovernanceMisattribution(
                code_id=record.code_id,
                name=record.name,
                hash=record.hash,
                governance=record.governance,
                proposal=proposal,
            ))
    return found


def _deprecated_still_live(local: Sequence[ContractRecord], idx: ReconciliationIndices) -> List[Discrepancy]:
    return [
        DeprecatedStillLive(code_id=r.code_id, name=r.name, hash=r.hash, governance=r.governance)
        for r in local
        if r.deprecated and r.code_id in idx.on_chain_by_code_id
    ]


def _testnet_divergences(local: Sequence[ContractRecord], idx: ReconciliationIndices) -> List[Discrepancy]:
    found: List[Discrepancy] = []
    for record in local:
        testnet = record.presence().testnet
        if testnet is None:
            continue
        chain = idx.testnet_by_code_id.get(testnet.code_id)
        if chain is None:
            found.append(TestnetDivergence(
                code_id=record.code_id,
                testnet_code_id=testnet.code_id,
                name=record.name,
                kind=DivergenceKind.NOT_FOUND,
                expected_hash=testnet.hash,
            ))
            continue
        actual = normalize_hash(chain.data_hash)
        if normalize_hash(testnet.hash) != actual:
            found.append(TestnetDivergence(
                code_id=record.code_id,
                testnet_code_id=testnet.code_id,
                name=record.name,
                kind=DivergenceKind.HASH_MISMATCH,
                expected_hash=testnet.hash,
                actual_hash=actual,
            ))
    return found


# Fixed category -> (priority, message template, action). Not configurable.
_RECOMMENDATION_RULES = {
    DiscrepancyCategory.MISSING_FROM_REGISTRY: (
        Priority.HIGH,
        "Add {count} missing contracts to the registry",
        "Review on-chain code entries and add the missing records",
    ),
    DiscrepancyCategory.MISSING_FROM_CHAIN: (
        Priority.MEDIUM,
        "Remove {count} registry records that do not exist on-chain",
        "Verify the code IDs are truly absent from the chain before removing them",
    ),
    DiscrepancyCategory.HASH_MISMATCH: (
        Priority.HIGH,
        "Fix {count} hash mismatches between the registry and on-chain data",
        "Update hash values in the registry to match on-chain data",
    ),
    DiscrepancyCategory.GOVERNANCE_MISATTRIBUTION: (
        Priority.MEDIUM,
        "Review {count} contracts marked as Genesis but uploaded via proposals",
        "Update the governance field to the actual proposal ID",
    ),
    DiscrepancyCategory.DEPRECATED_STILL_LIVE: (
        Priority.MEDIUM,
        "Review {count} deprecated contracts still stored on-chain",
        "No action required unless the deprecation flag is wrong; stored code cannot be removed",
    ),
    DiscrepancyCategory.TESTNET_DIVERGENCE: (
        Priority.MEDIUM,
        "Fix {count} testnet configuration issues",
        "Update testnet sub-records or verify the testnet deployments",
    ),
}


def _count_by_category(discrepancies: Iterable[Discrepancy]) -> Dict[str, int]:
    counts = {category.value: 0 for category in DiscrepancyCategory}
    for item in discrepancies:
        counts[item.category] += 1
    return counts


def derive_recommendations(discrepancies: Iterable[Discrepancy]) -> List[Recommendation]:
    """One recommendation per non-empty category, in category order."""
    counts = _count_by_category(discrepancies)
    recommendations: List[Recommendation] = []
    for category in DiscrepancyCategory:
        count = counts[category.value]
        if count == 0:
            continue
        priority, template, action = _RECOMMENDATION_RULES[category]
        recommendations.append(Recommendation(
            category=category,
            priority=priority,
            count=count,
            message=template.format(count=count),
            action=action,
        ))
    return recommendations


def reconcile(
    local: Sequence[ContractRecord],
    on_chain: Sequence[OnChainCode],
    testnet_on_chain: Sequence[OnChainCode] = (),
    proposals: Sequence[GovernanceProposal] = (),
    *,
    testnet_checked: bool = True,
) -> ReconciliationResult:
    """Cross-reference the registry against one run's chain data.

    Args:
        local: Registry records, in registry order
        on_chain: Primary network code entries, in arrival order
        testnet_on_chain: Testnet code entries
        proposals: Governance proposals (advisory; may be empty)
        testnet_checked: False when testnet data could not be fetched, in
            which case testnet divergence is not computed at all

    Returns:
        ReconciliationResult with discrepancies, recommendations and summary
    """
    idx = build_indices(local, on_chain, testnet_on_chain, proposals)

    discrepancies: List[Discrepancy] = []
    discrepancies.extend(_missing_from_registry(on_chain, idx))
    discrepancies.extend(_missing_from_chain(local, idx))
    discrepancies.extend(_hash_mismatches(local, idx))
    discrepancies.extend(_governance_misattributions(local, idx))
    discrepancies.extend(_deprecated_still_live(local, idx))
    if testnet_checked:
        discrepancies.extend(_testnet_divergences(local, idx))

    matched = [r.code_id for r in local if r.code_id in idx.on_chain_by_code_id]

    summary = ReconciliationSummary(
        total_local=len(local),
        total_on_chain=len(on_chain),
        total_testnet=len(testnet_on_chain),
        total_proposals=len(proposals),
        records_with_testnet=sum(1 for r in local if r.testnet is not None),
        matched=len(matched),
        testnet_checked=testnet_checked,
        discrepancy_counts=_count_by_category(discrepancies),
    )
    return ReconciliationResult(
        discrepancies=discrepancies,
        recommendations=derive_recommendations(discrepancies),
        matched_code_ids=matched,
        summary=summary,
    )
