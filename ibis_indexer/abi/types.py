"""Cairo ABI type model: resolved type definitions and raw ABI JSON entries."""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class CairoType(enum.Enum):
    """Kinds of Cairo types the decoder knows how to read."""

    FELT252 = enum.auto()
    U8 = enum.auto()
    U16 = enum.auto()
    U32 = enum.auto()
    U64 = enum.auto()
    U128 = enum.auto()
    U256 = enum.auto()
    I8 = enum.auto()
    I16 = enum.auto()
    I32 = enum.auto()
    I64 = enum.auto()
    I128 = enum.auto()
    BOOL = enum.auto()
    CONTRACT_ADDRESS = enum.auto()
    CLASS_HASH = enum.auto()
    BYTE_ARRAY = enum.auto()
    ARRAY = enum.auto()
    SPAN = enum.auto()
    STRUCT = enum.auto()
    ENUM = enum.auto()
    UNIT = enum.auto()


_SINGLE_FELT = frozenset(
    {
        CairoType.FELT252,
        CairoType.U8,
        CairoType.U16,
        CairoType.U32,
        CairoType.U64,
        CairoType.U128,
        CairoType.I8,
        CairoType.I16,
        CairoType.I32,
        CairoType.I64,
        CairoType.I128,
        CairoType.BOOL,
        CairoType.CONTRACT_ADDRESS,
        CairoType.CLASS_HASH,
    }
)

_VARIABLE_SIZE = frozenset(
    {CairoType.ENUM, CairoType.ARRAY, CairoType.SPAN, CairoType.BYTE_ARRAY}
)


@dataclass
class FieldDef:
    """A named field of a struct, an enum variant, or an event member."""

    name: str
    type: TypeDef


@dataclass
class TypeDef:
    """A resolved Cairo type definition."""

    kind: CairoType
    name: str = ""
    inner: TypeDef | None = None
    members: list[FieldDef] = field(default_factory=list)
    variants: list[FieldDef] = field(default_factory=list)

    def felt_size(self) -> int:
        """Number of felts the type takes when serialized, or -1 if variable."""
        if self.kind is CairoType.UNIT:
            return 0
        if self.kind in _SINGLE_FELT:
            return 1
        if self.kind is CairoType.U256:
            return 2
        if self.kind is CairoType.STRUCT:
            return sum(member.type.felt_size() for member in self.members)
        if self.kind in _VARIABLE_SIZE:
            return -1
        return 1


@dataclass
class EventDef:
    """A parsed and resolved event definition."""

    name: str
    full_name: str
    selector: int
    key_members: list[FieldDef] = field(default_factory=list)
    data_members: list[FieldDef] = field(default_factory=list)


@dataclass
class RawMember:
    """A struct or event member as written in the ABI JSON."""

    name: str
    type: str
    kind: str = ""


@dataclass
class RawVariant:
    """An enum variant as written in the ABI JSON."""

    name: str
    type: str
    kind: str = ""


@dataclass
class RawParam:
    """A function input or output parameter."""

    name: str
    type: str


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _entries(data: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"field {key!r} must be a JSON array")
    return [_require_mapping(item, key) for item in items]


@dataclass
class RawAbiEntry:
    """A single entry of a Cairo ABI JSON array."""

    type: str
    name: str
    members: list[RawMember] = field(default_factory=list)
    variants: list[RawVariant] = field(default_factory=list)
    kind: str = ""
    items: list[RawAbiEntry] = field(default_factory=list)
    inputs: list[RawParam] = field(default_factory=list)
    outputs: list[RawParam] = field(default_factory=list)
    state_mutability: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RawAbiEntry:
        """Build an entry from its decoded JSON object."""
        data = _require_mapping(data, "ABI entry")
        return cls(
            type=data.get("type", ""),
            name=data.get("name", ""),
            members=[
                RawMember(m.get("name", ""), m.get("type", ""), m.get("kind", ""))
                for m in _entries(data, "members")
            ],
            variants=[
                RawVariant(v.get("name", ""), v.get("type", ""), v.get("kind", ""))
                for v in _entries(data, "variants")
            ],
            kind=data.get("kind", ""),
            items=[cls.from_dict(item) for item in _entries(data, "items")],
            inputs=[RawParam(p.get("name", ""), p.get("type", "")) for p in _entries(data, "inputs")],
            outputs=[RawParam(p.get("name", ""), p.get("type", "")) for p in _entries(data, "outputs")],
            state_mutability=data.get("state_mutability", ""),
        )


@dataclass
class ContractClass:
    """Top level of a contract class file.

    The ABI may be a JSON string (older compilers) or a JSON array.
    """

    abi: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContractClass:
        """Build from the decoded contract class JSON object."""
        data = _require_mapping(data, "contract class")
        return cls(abi=data.get("abi"))

    def entries(self) -> list[RawAbiEntry]:
        """Return the ABI entries, decoding a string-encoded ABI first."""
        raw = self.abi
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ValueError(f"abi string is not valid JSON: {exc}") from exc
        if not isinstance(raw, list):
            raise ValueError("abi must be a JSON array of entries")
        return [RawAbiEntry.from_dict(entry) for entry in raw]