"""Paginated retrieval of on-chain code entries and governance proposals.

Pagination is strictly sequential: each request carries the previous
response's ``pagination.next_key`` and the loop ends when no key comes
back. Every fetch opens its own httpx client, so independent fetches can
run on separate threads.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from wasmledger.config import ChainEndpoint
from wasmledger.kernel.records import GovernanceProposal, OnChainCode

LOGGER = logging.getLogger("wasmledger.fetch")

CODE_PATH = "/cosmwasm/wasm/v1/code"
PROPOSALS_PATH = "/cosmos/gov/v1/proposals"
DEFAULT_TIMEOUT = 30.0


class FetchError(RuntimeError):
    """Transport, HTTP or payload failure of a remote fetch.

    ``status`` is the HTTP status code, or None when no response arrived
    (connection failure, timeout).
    """

    def __init__(self, message: str, url: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)


def _get_json(client: httpx.Client, url: str, params: Dict[str, str]) -> Dict[str, Any]:
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise FetchError(f"HTTP {status}: {e.response.reason_phrase} ({url})", url=url, status=status) from e
    except httpx.RequestError as e:
        raise FetchError(f"Request failed: {e} ({url})", url=url) from e

    try:
        payload = response.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON response from {url}", url=url, status=response.status_code) from e
    if not isinstance(payload, dict):
        raise FetchError(f"Unexpected response shape from {url}", url=url, status=response.status_code)
    return payload


def _next_key(payload: Dict[str, Any]) -> Optional[str]:
    pagination = payload.get("pagination")
    if not isinstance(pagination, dict):
        return None
    key = pagination.get("next_key")
    return key or None


def fetch_pages(
    endpoint: ChainEndpoint,
    path: str,
    collection_key: str,
    *,
    params: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> List[Dict[str, Any]]:
    """Follow ``pagination.next_key`` until exhausted and return all items in arrival order.

    Raises:
        FetchError: On any transport/HTTP failure, or if the server hands
            back a continuation key it already returned.
    """
    url = f"{endpoint.base_url}{path}"
    items: List[Dict[str, Any]] = []
    seen_keys: set[str] = set()
    key: Optional[str] = None
    page = 0

    with httpx.Client(timeout=timeout, transport=transport, follow_redirects=True) as client:
        while True:
            page += 1
            query = dict(params or {})
            if key is not None:
                query["pagination.key"] = key
            payload = _get_json(client, url, query)

            page_items = payload.get(collection_key) or []
            if not isinstance(page_items, list):
                raise FetchError(f"'{collection_key}' is not a list in response from {url}", url=url)
            items.extend(page_items)
            LOGGER.debug("fetched %s page %d: %d items from %s", endpoint.network, page, len(page_items), path)

            key = _next_key(payload)
            if key is None:
                break
            if key in seen_keys:
                raise FetchError(f"Pagination did not advance (repeated next_key) at {url}", url=url)
            seen_keys.add(key)

    return items


def fetch_code_infos(
    endpoint: ChainEndpoint,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> List[OnChainCode]:
    """Fetch every stored code entry of one network.

    Load-bearing: failures propagate as FetchError.
    """
    raw = fetch_pages(endpoint, CODE_PATH, "code_infos", timeout=timeout, transport=transport)
    try:
        codes = [OnChainCode.model_validate(item) for item in raw]
    except ValidationError as e:
        url = f"{endpoint.base_url}{CODE_PATH}"
        raise FetchError(f"Malformed code entry in response from {url}: {e}", url=url) from e
    LOGGER.info("found %d code entries on %s", len(codes), endpoint.network)
    return codes


def fetch_proposals(
    endpoint: ChainEndpoint,
    *,
    status: str = "0",
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> List[GovernanceProposal]:
    """Fetch governance proposals filtered by status code ("0" = all).

    Advisory: a failed fetch is logged and yields an empty list.
    """
    try:
        raw = fetch_pages(
            endpoint,
            PROPOSALS_PATH,
            "proposals",
            params={"proposal_status": status},
            timeout=timeout,
            transport=transport,
        )
    except FetchError as e:
        LOGGER.warning("failed to fetch governance proposals from %s: %s", endpoint.network, e)
        return []
    proposals: List[GovernanceProposal] = []
    for item in raw:
        try:
            proposals.append(GovernanceProposal.model_validate(item))
        except ValidationError as e:
            LOGGER.warning("skipping malformed proposal on %s: %s", endpoint.network, e)
    LOGGER.info("found %d governance proposals on %s", len(proposals), endpoint.network)
    return proposals
