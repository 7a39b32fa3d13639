"""Pytest configuration and shared fixtures.

No sys.path hacks - tests import from the installed wasmledger package.
"""

import base64
import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

from wasmledger.config import Settings, get_settings

TESTNET_URL = "https://testnet.example"

HASH_A = "A" * 64


def _record(code_id: str = "1", **overrides: Any) -> Dict[str, Any]:
    """A schema-valid registry record; keyword arguments replace top-level fields."""
    record = {
        "name": f"contract-{code_id}",
        "description": "A test contract",
        "code_id": code_id,
        "hash": HASH_A,
        "release": {"url": "https://github.com/example/contracts/releases/v1.0.0", "version": "v1.0.0"},
        "author": {"name": "Example Labs", "url": "https://example.com"},
        "governance": "Genesis",
        "deprecated": False,
    }
    record.update(overrides)
    return record


def _testnet(code_id: str = "100", hash: str = HASH_A) -> Dict[str, Any]:
    return {
        "code_id": code_id,
        "hash": hash,
        "network": "xion-testnet-2",
        "deployed_by": "xion1deployer0abc",
        "deployed_at": "2024-05-01T12:30:00.000Z",
    }


@pytest.fixture
def make_record():
    return _record


@pytest.fixture
def make_testnet():
    return _testnet


@pytest.fixture
def write_registry(tmp_path):
    """Write a record list to a JSON file and return its path."""
    def _write(records: List[Dict[str, Any]], name: str = "contracts.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def settings():
    return Settings(
        mainnet_api_url="https://mainnet.example",
        testnet_api_url=TESTNET_URL,
        registry_path="contracts.json",
        http_timeout=5.0,
        proposal_status="0",
        log_level="WARNING",
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _code_info(code_id: str, data_hash: str, creator: str = "xion1creator") -> Dict[str, Any]:
    return {"code_id": code_id, "data_hash": data_hash, "creator": creator, "instantiate_permission": {}}


def _store_code_proposal(proposal_id: str, wasm: bytes, status: str = "PROPOSAL_STATUS_PASSED",
                        title: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": proposal_id,
        "title": title or f"Upload code {proposal_id}",
        "status": status,
        "messages": [
            {"@type": "/cosmos.gov.v1.MsgExecLegacyContent"},
            {
                "@type": "/cosmwasm.wasm.v1.MsgStoreCode",
                "sender": "xion10d07y265gmmuvt4z0w9aw880jnsr700jctv5wj",
                "wasm_byte_code": base64.b64encode(wasm).decode("ascii"),
            },
        ],
    }


@pytest.fixture
def make_code_info():
    return _code_info


@pytest.fixture
def make_proposal():
    return _store_code_proposal


class FakeChainApi:
    """In-memory stand-in for the mainnet/testnet REST endpoints.

    Code entries are served in pages of ``page_size`` with opaque
    ``next_key`` values. ``fail`` maps (network, kind) to an HTTP status.
    """

    def __init__(self, page_size: int = 2):
        self.page_size = page_size
        self.codes: Dict[str, List[Dict[str, Any]]] = {"mainnet": [], "testnet": []}
        self.proposals: Dict[str, List[Dict[str, Any]]] = {"mainnet": [], "testnet": []}
        self.fail: Dict[tuple, int] = {}
        self.requests: List[httpx.Request] = []

    def _network(self, request: httpx.Request) -> str:
        return "testnet" if request.url.host == httpx.URL(TESTNET_URL).host else "mainnet"

    def _page(self, items: List[Dict[str, Any]], key: Optional[str]) -> tuple:
        start = int(base64.b64decode(key).decode()) if key else 0
        end = start + self.page_size
        next_key = base64.b64encode(str(end).encode()).decode() if end < len(items) else None
        return copy.deepcopy(items[start:end]), next_key

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        network = self._network(request)
        if request.url.path == "/cosmwasm/wasm/v1/code":
            kind, items, field = "codes", self.codes[network], "code_infos"
        elif request.url.path == "/cosmos/gov/v1/proposals":
            kind, items, field = "proposals", self.proposals[network], "proposals"
        else:
            return httpx.Response(404, json={"message": "not found"})

        status = self.fail.get((network, kind))
        if status is not None:
            return httpx.Response(status, json={"message": "unavailable"})

        page, next_key = self._page(items, request.url.params.get("pagination.key"))
        return httpx.Response(200, json={field: page, "pagination": {"next_key": next_key, "total": "0"}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requested_paths(self, network: str) -> List[str]:
        return [r.url.path for r in self.requests if self._network(r) == network]


@pytest.fixture
def chain_api():
    return FakeChainApi()
