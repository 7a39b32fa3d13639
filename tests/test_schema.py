"""Tests for the registry schema validator."""

import copy

import pytest

from wasmledger.codes import ValidationCode
from wasmledger.kernel.schema import (
    CONTRACT_SCHEMA,
    REGISTRY_SCHEMA,
    ArrayNode,
    BooleanNode,
    ObjectNode,
    Property,
    SchemaError,
    StringNode,
    collect_errors,
    validate,
)


def _set_path(record, dotted, value):
    target = record
    parts = dotted.split(".")
    for part in parts[:-1]:
        target = target[part]
    target[parts[-1]] = value


def _delete_path(record, dotted):
    target = record
    parts = dotted.split(".")
    for part in parts[:-1]:
        target = target[part]
    del target[parts[-1]]


def test_valid_registry_passes(make_record, make_testnet):
    registry = [
        make_record("1"),
        make_record("2", testnet=make_testnet("200")),
        make_record("10", governance="42", deprecated=True, description=""),
    ]
    validate(registry, REGISTRY_SCHEMA)
    assert collect_errors(registry, REGISTRY_SCHEMA) == []


def test_empty_registry_passes():
    validate([], REGISTRY_SCHEMA)


def test_testnet_hash_accepts_lowercase(make_record, make_testnet):
    registry = [make_record("1", testnet=make_testnet("5", hash="ab" * 32))]
    validate(registry, REGISTRY_SCHEMA)


@pytest.mark.parametrize(
    "field, value, expected_path, expected_code",
    [
        ("name", "", "[0].name", ValidationCode.TOO_SHORT),
        ("name", 7, "[0].name", ValidationCode.INVALID_TYPE),
        ("code_id", "12a", "[0].code_id", ValidationCode.PATTERN_MISMATCH),
        ("code_id", 12, "[0].code_id", ValidationCode.INVALID_TYPE),
        ("hash", "a" * 64, "[0].hash", ValidationCode.PATTERN_MISMATCH),
        ("hash", "A" * 63, "[0].hash", ValidationCode.PATTERN_MISMATCH),
        ("governance", "genesis", "[0].governance", ValidationCode.PATTERN_MISMATCH),
        ("deprecated", "false", "[0].deprecated", ValidationCode.INVALID_TYPE),
        ("deprecated", 0, "[0].deprecated", ValidationCode.INVALID_TYPE),
        ("release.url", "http://example.com/release", "[0].release.url", ValidationCode.PATTERN_MISMATCH),
        ("release.version", "", "[0].release.version", ValidationCode.TOO_SHORT),
        ("author.name", "", "[0].author.name", ValidationCode.TOO_SHORT),
        ("author.url", "example.com", "[0].author.url", ValidationCode.PATTERN_MISMATCH),
    ],
)
def test_field_violation_reports_exact_path(make_record, field, value, expected_path, expected_code):
    record = make_record("1")
    _set_path(record, field, value)

    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)

    assert excinfo.value.path == expected_path
    assert excinfo.value.code == expected_code
    assert str(excinfo.value).startswith(expected_path + " ")


@pytest.mark.parametrize(
    "field, value",
    [
        ("code_id", "x1"),
        ("hash", "xyz"),
        ("network", ""),
        ("deployed_by", "cosmos1abc"),
        ("deployed_at", "2024-05-01"),
        ("deployed_at", "2024-05-01T12:30:00Z"),
    ],
)
def test_testnet_field_violation_reports_nested_path(make_record, make_testnet, field, value):
    testnet = make_testnet("100")
    testnet[field] = value
    record = make_record("1", testnet=testnet)

    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)

    assert excinfo.value.path == f"[0].testnet.{field}"


def test_mainnet_hash_message_is_descriptive(make_record):
    with pytest.raises(SchemaError) as excinfo:
        validate([make_record("1", hash="abc")], REGISTRY_SCHEMA)
    assert "uppercase hex" in excinfo.value.reason


def test_testnet_hash_message_is_descriptive(make_record, make_testnet):
    record = make_record("1", testnet=make_testnet("5", hash="short"))
    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)
    assert excinfo.value.reason == "Testnet hash must be 64 hex characters long"


def test_pattern_is_full_match(make_record):
    # A trailing newline must not slip through an anchored-looking pattern
    with pytest.raises(SchemaError):
        validate([make_record("1", hash="A" * 64 + "\n")], REGISTRY_SCHEMA)
    with pytest.raises(SchemaError):
        validate([make_record("1 ")], REGISTRY_SCHEMA)


def test_https_url_only_checks_prefix(make_record):
    record = make_record("1")
    record["release"]["url"] = "https://example.com/a\nb"
    validate([record], REGISTRY_SCHEMA)


@pytest.mark.parametrize("field", ["name", "description", "code_id", "hash", "release", "author", "governance", "deprecated"])
def test_missing_required_field(make_record, field):
    record = make_record("1")
    del record[field]

    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)

    assert excinfo.value.path == "[0]"
    assert excinfo.value.code == ValidationCode.MISSING_FIELD
    assert excinfo.value.reason == f"missing required property: {field}"


def test_missing_nested_field(make_record):
    record = make_record("1")
    _delete_path(record, "release.version")

    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)

    assert excinfo.value.path == "[0].release"
    assert excinfo.value.code == ValidationCode.MISSING_FIELD


def test_unknown_top_level_field_rejected(make_record):
    record = make_record("1", homepage="https://example.com")

    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)

    assert excinfo.value.code == ValidationCode.UNKNOWN_FIELD
    assert excinfo.value.reason == "has unknown property: homepage"


def test_unknown_nested_field_rejected(make_record, make_testnet):
    testnet = make_testnet("5")
    testnet["explorer"] = "https://explorer.example"
    record = make_record("1", testnet=testnet)

    with pytest.raises(SchemaError) as excinfo:
        validate([record], REGISTRY_SCHEMA)

    assert excinfo.value.path == "[0].testnet"
    assert excinfo.value.code == ValidationCode.UNKNOWN_FIELD


def test_element_must_be_object():
    with pytest.raises(SchemaError) as excinfo:
        validate(["not a record"], REGISTRY_SCHEMA)
    assert excinfo.value.path == "[0]"
    assert excinfo.value.reason == "must be an object"


@pytest.mark.parametrize("value", [{}, "[]", None, 3])
def test_registry_must_be_array(value):
    with pytest.raises(SchemaError) as excinfo:
        validate(value, REGISTRY_SCHEMA)
    assert excinfo.value.path == ""
    assert excinfo.value.reason == "must be an array"
    assert str(excinfo.value) == "<root> must be an array"


@pytest.mark.parametrize("first, second", [(0, 1), (0, 3), (2, 3), (1, 3)])
def test_duplicate_code_id_detected_at_any_position(make_record, first, second):
    registry = [make_record(str(i + 1)) for i in range(4)]
    registry[second]["code_id"] = registry[first]["code_id"]
    # keep the registry ordered so only the duplicate is at fault
    if second - first > 1:
        for i in range(first + 1, second):
            registry[i]["code_id"] = registry[first]["code_id"]

    errors = collect_errors(registry, REGISTRY_SCHEMA)

    duplicates = [e for e in errors if e.code == ValidationCode.DUPLICATE_ID]
    assert duplicates
    assert any(e.path == f"[{second}]" for e in duplicates)
    assert all(e.code != ValidationCode.OUT_OF_ORDER for e in errors)


def test_duplicate_message_names_first_position(make_record):
    registry = [make_record("1"), make_record("2"), make_record("2")]

    errors = collect_errors(registry, REGISTRY_SCHEMA)

    assert len(errors) == 1
    assert errors[0].path == "[2]"
    assert errors[0].reason == "duplicate code_id 2 (first seen at [1])"


def test_out_of_order_names_both_records(make_record):
    registry = [make_record("1"), make_record("3"), make_record("2")]

    with pytest.raises(SchemaError) as excinfo:
        validate(registry, REGISTRY_SCHEMA)

    error = excinfo.value
    assert error.code == ValidationCode.OUT_OF_ORDER
    assert error.path == "[2]"
    assert "contract-3 (3)" in error.reason
    assert "contract-2 (2)" in error.reason


def test_ordering_is_numeric_not_lexicographic(make_record):
    registry = [make_record("2"), make_record("10"), make_record("100")]
    assert collect_errors(registry, REGISTRY_SCHEMA) == []


def test_collect_errors_reports_every_violation(make_record):
    registry = [
        make_record("1", name=""),
        make_record("3", hash="bad"),
        make_record("2"),
        make_record("2"),
    ]

    errors = collect_errors(registry, REGISTRY_SCHEMA)

    assert [e.path for e in errors] == ["[0].name", "[1].hash", "[3]", "[2]"]
    assert [e.code for e in errors] == [
        ValidationCode.TOO_SHORT,
        ValidationCode.PATTERN_MISMATCH,
        ValidationCode.DUPLICATE_ID,
        ValidationCode.OUT_OF_ORDER,
    ]


def test_validate_raises_first_of_collected_errors(make_record):
    registry = [make_record("1"), make_record("2", hash="bad"), make_record("3", name="")]

    with pytest.raises(SchemaError) as excinfo:
        validate(registry, REGISTRY_SCHEMA)

    assert excinfo.value.path == "[1].hash"


def test_validation_does_not_mutate_input(make_record):
    registry = [make_record("2"), make_record("1")]
    before = copy.deepcopy(registry)
    collect_errors(registry, REGISTRY_SCHEMA)
    assert registry == before


def test_single_record_schema_uses_caller_path(make_record):
    record = make_record("1", name="")
    with pytest.raises(SchemaError) as excinfo:
        validate(record, CONTRACT_SCHEMA, path="record")
    assert excinfo.value.path == "record.name"


def test_boolean_node_rejects_integers():
    with pytest.raises(SchemaError):
        validate(1, BooleanNode())
    validate(True, BooleanNode())


def test_optional_property_may_be_absent():
    node = ObjectNode(properties=(
        Property("a", StringNode()),
        Property("b", StringNode(), required=False),
    ))
    validate({"a": "x"}, node)
    assert collect_errors({"a": "x", "b": 2}, node)[0].path == ".b"


def test_array_without_identity_skips_collection_rules():
    node = ArrayNode(items=StringNode())
    assert collect_errors(["b", "a", "a"], node) == []


def test_unknown_node_type_raises_type_error():
    with pytest.raises(TypeError):
        validate("x", object())
