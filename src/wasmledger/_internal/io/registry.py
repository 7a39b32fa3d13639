"""Registry file I/O helpers (internal)."""

import json
from pathlib import Path
from typing import Any, List, Sequence, Union

from pydantic import BaseModel

from wasmledger.kernel.records import ContractRecord


class RegistryLoadError(ValueError):
    """Raised when the registry file cannot be read as a JSON array."""
    pass


class RegistryStatistics(BaseModel):
    """Counts over a registry, as printed by the ``stats`` command."""
    total: int
    active: int
    deprecated: int
    genesis: int
    via_proposal: int
    with_testnet: int
    without_testnet: int
    unique_authors: int


def load_registry_file(path: Union[str, Path]) -> List[Any]:
    """Load the raw record list from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        RegistryLoadError: If the file cannot be read as UTF-8 text, or is
            not JSON, or is not a JSON array
    """
    registry_path = Path(path)
    try:
        text = registry_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except UnicodeDecodeError as e:
        raise RegistryLoadError(f"{registry_path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise RegistryLoadError(f"{registry_path} cannot be read: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RegistryLoadError(f"{registry_path} is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise RegistryLoadError(f"{registry_path} must contain a JSON array of records")
    return data


def parse_records(data: Sequence[Any]) -> List[ContractRecord]:
    """Normalize raw records into ContractRecord models (raises pydantic.ValidationError)."""
    return [ContractRecord.model_validate(item) for item in data]


def load_records(path: Union[str, Path]) -> List[ContractRecord]:
    return parse_records(load_registry_file(path))


def compute_statistics(records: Sequence[ContractRecord]) -> RegistryStatistics:
    deprecated = sum(1 for r in records if r.deprecated)
    genesis = sum(1 for r in records if r.is_genesis)
    with_testnet = sum(1 for r in records if r.testnet is not None)
    return RegistryStatistics(
        total=len(records),
        active=len(records) - deprecated,
        deprecated=deprecated,
        genesis=genesis,
        via_proposal=len(records) - genesis,
        with_testnet=with_testnet,
        without_testnet=len(records) - with_testnet,
        unique_authors=len({r.author.name for r in records}),
    )
