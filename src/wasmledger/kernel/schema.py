"""Declarative schema nodes and a recursive validator for registry records.

Each schema node kind is its own closed, frozen type. Objects are strict
allow-lists: required keys must be present and any key that is not a
declared property is rejected.

Arrays may name an identity field. In that case the array check also
enforces two collection-level rules that cannot be expressed per element:
identity values are unique, and adjacent elements appear in non-decreasing
numeric order of the identity field.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from wasmledger.codes import ValidationCode


class SchemaError(ValueError):
    """Raised when a value violates its schema node."""

    def __init__(self, path: str, reason: str, code: ValidationCode = ValidationCode.INVALID_TYPE):
        self.path = path
        self.reason = reason
        self.code = code
        super().__init__(f"{path or '<root>'} {reason}")


@dataclass(frozen=True)
class StringNode:
    """A string with optional minimum length and full-match pattern.

    ``message`` replaces the generic pattern-failure text when supplied.
    """
    min_length: int = 0
    pattern: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class BooleanNode:
    pass


@dataclass(frozen=True)
class Property:
    name: str
    node: "SchemaNode"
    required: bool = True


@dataclass(frozen=True)
class ObjectNode:
    properties: Tuple[Property, ...] = field(default_factory=tuple)

    @property
    def known_keys(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.properties)


@dataclass(frozen=True)
class ArrayNode:
    items: "SchemaNode"
    identity_field: Optional[str] = None
    label_field: Optional[str] = None


SchemaNode = Union[StringNode, BooleanNode, ObjectNode, ArrayNode]


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}"


def _index_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


def _check_string(value: Any, node: StringNode, path: str) -> None:
    if not isinstance(value, str):
        raise SchemaError(path, "must be a string", ValidationCode.INVALID_TYPE)
    if node.min_length and len(value) < node.min_length:
        raise SchemaError(path, f"must be at least {node.min_length} characters", ValidationCode.TOO_SHORT)
    if node.pattern is not None and re.fullmatch(node.pattern, value) is None:
        reason = node.message or f"must match pattern: {node.pattern}"
        raise SchemaError(path, reason, ValidationCode.PATTERN_MISMATCH)


def _check_boolean(value: Any, path: str) -> None:
    # bool is a subclass of int, but 0/1 are not booleans here
    if not isinstance(value, bool):
        raise SchemaError(path, "must be a boolean", ValidationCode.INVALID_TYPE)


def _check_object(value: Any, node: ObjectNode, path: str) -> None:
    if not isinstance(value, Mapping):
        raise SchemaError(path, "must be an object", ValidationCode.INVALID_TYPE)

    for prop in node.properties:
        if prop.required and prop.name not in value:
            raise SchemaError(path, f"missing required property: {prop.name}", ValidationCode.MISSING_FIELD)

    known = set(node.known_keys)
    for key in value:
        if key not in known:
            raise SchemaError(path, f"has unknown property: {key}", ValidationCode.UNKNOWN_FIELD)

    for prop in node.properties:
        if prop.name in value:
            validate(value[prop.name], prop.node, _child_path(path, prop.name))


def _identity(item: Any, field_name: str) -> Optional[str]:
    if not isinstance(item, Mapping):
        return None
    ident = item.get(field_name)
    if ident is None or ident == "":
        return None
    return str(ident)


def _numeric(ident: Optional[str]) -> Optional[int]:
    if ident is None:
        return None
    try:
        return int(ident)
    except ValueError:
        return None


def _collection_errors(items: List[Any], node: ArrayNode, path: str) -> List[SchemaError]:
    """Duplicate and ordering violations for an identity-keyed array."""
    errors: List[SchemaError] = []
    field_name = node.identity_field
    if field_name is None:
        return errors

    seen: dict[str, int] = {}
    for index, item in enumerate(items):
        ident = _identity(item, field_name)
        if ident is None:
            continue
        if ident in seen:
            errors.append(SchemaError(
                _index_path(path, index),
                f"duplicate {field_name} {ident} (first seen at {_index_path(path, seen[ident])})",
                ValidationCode.DUPLICATE_ID,
            ))
        else:
            seen[ident] = index

    for index in range(1, len(items)):
        prev, current = items[index - 1], items[index]
        prev_id = _numeric(_identity(prev, field_name))
        current_id = _numeric(_identity(current, field_name))
        if prev_id is None or current_id is None:
            continue
        if current_id < prev_id:
            label = node.label_field or field_name
            prev_label = prev.get(label, "?")
            current_label = current.get(label, "?")
            errors.append(SchemaError(
                _index_path(path, index),
                f"not in {field_name} order: {prev_label} ({prev_id}) comes before "
                f"{current_label} ({current_id})",
                ValidationCode.OUT_OF_ORDER,
            ))
    return errors


def _array_errors(value: Any, node: ArrayNode, path: str) -> List[SchemaError]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        return [SchemaError(path, "must be an array", ValidationCode.INVALID_TYPE)]

    errors: List[SchemaError] = []
    for index, item in enumerate(value):
        try:
            validate(item, node.items, _index_path(path, index))
        except SchemaError as e:
            errors.append(e)
    errors.extend(_collection_errors(list(value), node, path))
    return errors


def validate(value: Any, node: SchemaNode, path: str = "") -> None:
    """Validate ``value`` against ``node`` depth-first.

    Raises:
        SchemaError: the first violation found.
        TypeError: if ``node`` is not a known schema node kind.
    """
    if isinstance(node, ArrayNode):
        errors = _array_errors(value, node, path)
        if errors:
            raise errors[0]
    elif isinstance(node, ObjectNode):
        _check_object(value, node, path)
    elif isinstance(node, StringNode):
        _check_string(value, node, path)
    elif isinstance(node, BooleanNode):
        _check_boolean(value, path)
    else:
        raise TypeError(f"Unknown schema node type: {type(node).__name__}")


def collect_errors(value: Any, node: SchemaNode, path: str = "") -> List[SchemaError]:
    """Return every violation instead of only the first.

    For arrays this is the first error of each invalid element plus every
    duplicate and ordering violation. Pass/fail is the same as ``validate``.
    """
    if isinstance(node, ArrayNode):
        return _array_errors(value, node, path)
    try:
        validate(value, node, path)
    except SchemaError as e:
        return [e]
    return []


HEX64_UPPER = r"[A-F0-9]{64}"
HEX64_ANY_CASE = r"[a-fA-F0-9]{64}"
DECIMAL_ID = r"[0-9]+"
HTTPS_URL = r"https://[\s\S]*"

DEPLOYMENT_SCHEMA = ObjectNode(properties=(
    Property("code_id", StringNode(pattern=DECIMAL_ID)),
    Property("hash", StringNode(
        pattern=HEX64_ANY_CASE,
        message="Testnet hash must be 64 hex characters long",
    )),
    Property("network", StringNode(min_length=1)),
    Property("deployed_by", StringNode(pattern=r"xion[a-z0-9]+")),
    Property("deployed_at", StringNode(
        pattern=r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{3}Z",
    )),
))

CONTRACT_SCHEMA = ObjectNode(properties=(
    Property("name", StringNode(min_length=1)),
    Property("description", StringNode()),
    Property("code_id", StringNode(pattern=DECIMAL_ID)),
    Property("hash", StringNode(
        pattern=HEX64_UPPER,
        message="Mainnet hash must be 64 characters long and contain only uppercase hex characters",
    )),
    Property("release", ObjectNode(properties=(
        Property("url", StringNode(pattern=HTTPS_URL)),
        Property("version", StringNode(min_length=1)),
    ))),
    Property("author", ObjectNode(properties=(
        Property("name", StringNode(min_length=1)),
        Property("url", StringNode(pattern=HTTPS_URL)),
    ))),
    Property("governance", StringNode(pattern=r"Genesis|[0-9]+")),
    Property("deprecated", BooleanNode()),
    Property("testnet", DEPLOYMENT_SCHEMA, required=False),
))

REGISTRY_SCHEMA = ArrayNode(items=CONTRACT_SCHEMA, identity_field="code_id", label_field="name")
