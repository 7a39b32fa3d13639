"""Pydantic models for registry records and remote chain data."""

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

GENESIS = "Genesis"
STORE_CODE_TYPE_URL = "/cosmwasm.wasm.v1.MsgStoreCode"


def _coerce_id(v: Any) -> Any:
    # Chain APIs serialize uint64 ids as strings, but be lenient with ints
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


ChainId = Annotated[str, BeforeValidator(_coerce_id)]


class Release(BaseModel):
    url: str
    version: str


class Author(BaseModel):
    name: str
    url: str


class DeploymentRecord(BaseModel):
    """The optional testnet sub-record of a registry entry."""
    code_id: ChainId
    hash: str
    network: str
    deployed_by: str
    deployed_at: str


class NetworkDeployment(BaseModel):
    """Identity of a contract on one network."""
    network: str
    code_id: str
    hash: str


class NetworkPresence(BaseModel):
    """Normalized view of where a registry entry is deployed."""
    mainnet: NetworkDeployment
    testnet: Optional[NetworkDeployment] = None


class ContractRecord(BaseModel):
    """A curated registry entry.

    Strictness (unknown fields, patterns) is the schema validator's job;
    this model only needs the shape the reconciler consumes, so extra
    fields are ignored.
    """
    name: str
    description: str = ""
    code_id: ChainId
    hash: str
    release: Release
    author: Author
    governance: str
    deprecated: bool = False
    testnet: Optional[DeploymentRecord] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def is_genesis(self) -> bool:
        return self.governance == GENESIS

    def presence(self) -> NetworkPresence:
        testnet = None
        if self.testnet is not None:
            testnet = NetworkDeployment(
                network=self.testnet.network,
                code_id=self.testnet.code_id,
                hash=self.testnet.hash,
            )
        return NetworkPresence(
            mainnet=NetworkDeployment(network="mainnet", code_id=self.code_id, hash=self.hash),
            testnet=testnet,
        )


class OnChainCode(BaseModel):
    """One entry of ``/cosmwasm/wasm/v1/code``. Fetched per run, never persisted."""
    code_id: ChainId
    data_hash: str
    creator: str = ""

    model_config = ConfigDict(extra="ignore")


class ProposalMessage(BaseModel):
    type_url: str = Field("", alias="@type")
    wasm_byte_code: Optional[str] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @property
    def is_store_code(self) -> bool:
        return self.type_url == STORE_CODE_TYPE_URL


class GovernanceProposal(BaseModel):
    id: ChainId
    title: str = ""
    status: str = ""
    messages: List[ProposalMessage] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("title", "status", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("messages", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v
