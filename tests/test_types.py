import json

import pytest

from ibis_indexer.abi.types import (
    CairoType,
    ContractClass,
    FieldDef,
    RawAbiEntry,
    RawMember,
    TypeDef,
)


@pytest.mark.parametrize(
    "kind, size",
    [
        (CairoType.UNIT, 0),
        (CairoType.FELT252, 1),
        (CairoType.U8, 1),
        (CairoType.I128, 1),
        (CairoType.BOOL, 1),
        (CairoType.CONTRACT_ADDRESS, 1),
        (CairoType.CLASS_HASH, 1),
        (CairoType.U256, 2),
        (CairoType.ENUM, -1),
        (CairoType.ARRAY, -1),
        (CairoType.SPAN, -1),
        (CairoType.BYTE_ARRAY, -1),
    ],
)
def test_felt_size_per_kind(kind, size):
    assert TypeDef(kind).felt_size() == size


def test_struct_felt_size_sums_members():
    inner = TypeDef(
        CairoType.STRUCT,
        members=[FieldDef("a", TypeDef(CairoType.U256)), FieldDef("b", TypeDef(CairoType.BOOL))],
    )
    outer = TypeDef(
        CairoType.STRUCT,
        members=[FieldDef("x", inner), FieldDef("y", TypeDef(CairoType.FELT252))],
    )
    assert inner.felt_size() == 3
    assert outer.felt_size() == inner.felt_size() + 1


def test_empty_struct_has_zero_size():
    assert TypeDef(CairoType.STRUCT).felt_size() == 0


def test_raw_entry_from_dict():
    entry = RawAbiEntry.from_dict(
        {
            "type": "event",
            "name": "pkg::Transfer",
            "kind": "struct",
            "members": [
                {"name": "from", "type": "core::felt252", "kind": "key"},
                {"name": "value", "type": "core::integer::u256", "kind": "data"},
            ],
        }
    )
    assert entry.type == "event"
    assert entry.kind == "struct"
    assert entry.members == [
        RawMember("from", "core::felt252", "key"),
        RawMember("value", "core::integer::u256", "data"),
    ]
    assert entry.variants == []
    assert entry.items == []


def test_raw_entry_nested_items():
    entry = RawAbiEntry.from_dict(
        {
            "type": "interface",
            "name": "pkg::IToken",
            "items": [
                {
                    "type": "function",
                    "name": "balance_of",
                    "inputs": [{"name": "account", "type": "core::felt252"}],
                    "outputs": [{"type": "core::integer::u256"}],
                    "state_mutability": "view",
                }
            ],
        }
    )
    func = entry.items[0]
    assert func.name == "balance_of"
    assert func.inputs[0].name == "account"
    assert func.outputs[0].type == "core::integer::u256"
    assert func.state_mutability == "view"


def test_raw_entry_rejects_non_object():
    with pytest.raises(ValueError):
        RawAbiEntry.from_dict(["not", "an", "object"])


ABI = [
    {"type": "enum", "name": "pkg::Event", "variants": [{"name": "Transfer", "type": "pkg::Transfer", "kind": "nested"}]},
    {"type": "struct", "name": "pkg::Point", "members": [{"name": "x", "type": "core::felt252"}]},
]


def test_contract_class_string_and_array_abi_agree():
    from_string = ContractClass.from_dict({"abi": json.dumps(ABI)}).entries()
    from_array = ContractClass.from_dict({"abi": ABI}).entries()
    assert from_string == from_array
    assert [e.name for e in from_array] == ["pkg::Event", "pkg::Point"]
    assert from_array[0].variants[0].kind == "nested"


def test_contract_class_missing_abi():
    with pytest.raises(ValueError):
        ContractClass.from_dict({}).entries()


def test_contract_class_bad_abi_string():
    with pytest.raises(ValueError):
        ContractClass(abi="{not json").entries()


def test_contract_class_abi_object_rejected():
    with pytest.raises(ValueError):
        ContractClass(abi=json.dumps({"type": "event"})).entries()