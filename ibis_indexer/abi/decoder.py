"""Decoding of raw event felts into Python values using resolved ABI types."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from .types import CairoType, EventDef, TypeDef

Decoded = tuple[Any, int]


class DecodeError(ValueError):
    """Raised when felts cannot be decoded as the expected type."""


def felt_to_hex(value: int) -> str:
    """Render a felt as ``0x``-prefixed lower-case hex without leading zeros."""
    if value < 0:
        raise ValueError(f"felt cannot be negative: {value}")
    return f"0x{value:x}"


def _felt_at(felts: Sequence[int], offset: int) -> int:
    if offset >= len(felts):
        raise DecodeError(f"offset {offset} out of bounds (len={len(felts)})")
    return felts[offset]


def _decode_felt(_td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    return felt_to_hex(_felt_at(felts, offset)), 1


def _decode_uint(bits: int, _td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    value = _felt_at(felts, offset)
    if value >= 1 << bits:
        raise DecodeError(f"value {value} exceeds u{bits} range")
    return value, 1


def _decode_u128(_td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    return str(_felt_at(felts, offset)), 1


def _decode_u256(_td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    if offset + 1 >= len(felts):
        raise DecodeError(f"u256 requires 2 felts at offset {offset} (len={len(felts)})")
    low, high = felts[offset], felts[offset + 1]
    return str((high << 128) + low), 2


def _to_signed(value: int, bits: int) -> int:
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _decode_signed(bits: int, _td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    return _to_signed(_felt_at(felts, offset), bits), 1


def _decode_i128(_td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    return str(_to_signed(_felt_at(felts, offset), 128)), 1


def _decode_bool(_td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    return _felt_at(felts, offset) != 0, 1


def _decode_byte_array(_td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    """Layout: [num_chunks, chunk0..chunkN-1, pending_word, pending_word_len]."""
    num_chunks = _felt_at(felts, offset)
    if offset + 1 + num_chunks + 2 > len(felts):
        raise DecodeError(
            f"ByteArray: need {1 + num_chunks + 2} felts at offset {offset} (len={len(felts)})"
        )
    chunks = felts[offset + 1 : offset + 1 + num_chunks]
    # Each full chunk holds 31 bytes in the low end of the 32-byte word.
    raw = b"".join(chunk.to_bytes(32, "big")[1:] for chunk in chunks)

    pending_word = felts[offset + 1 + num_chunks].to_bytes(32, "big")
    pending_len = felts[offset + 2 + num_chunks]
    if 0 < pending_len <= 31:
        raw += pending_word[32 - pending_len :]

    return raw.decode("utf-8", errors="replace"), 1 + num_chunks + 2


def _decode_array(td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    length = _felt_at(felts, offset)
    if td.inner is None:
        raise DecodeError("Array/Span has no inner type definition")
    consumed = 1
    result = []
    for index in range(length):
        try:
            value, used = decode_type(td.inner, felts, offset + consumed)
        except DecodeError as exc:
            raise DecodeError(f"decoding array element {index}: {exc}") from exc
        result.append(value)
        consumed += used
    return result, consumed


def _decode_struct(td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    result: dict[str, Any] = {}
    consumed = 0
    for member in td.members:
        try:
            value, used = decode_type(member.type, felts, offset + consumed)
        except DecodeError as exc:
            raise DecodeError(f'decoding struct member "{member.name}": {exc}') from exc
        result[member.name] = value
        consumed += used
    return result, consumed


def _decode_enum(td: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    index = _felt_at(felts, offset)
    if index >= len(td.variants):
        raise DecodeError(
            f"enum variant index {index} out of range (have {len(td.variants)} variants)"
        )
    variant = td.variants[index]
    result: dict[str, Any] = {"variant": variant.name}
    consumed = 1
    if variant.type.kind is not CairoType.UNIT:
        try:
            value, used = decode_type(variant.type, felts, offset + consumed)
        except DecodeError as exc:
            raise DecodeError(f'decoding enum variant "{variant.name}": {exc}') from exc
        result["value"] = value
        consumed += used
    return result, consumed


_DECODERS: dict[CairoType, Callable[[TypeDef, Sequence[int], int], Decoded]] = {
    CairoType.FELT252: _decode_felt,
    CairoType.CONTRACT_ADDRESS: _decode_felt,
    CairoType.CLASS_HASH: _decode_felt,
    CairoType.U8: partial(_decode_uint, 8),
    CairoType.U16: partial(_decode_uint, 16),
    CairoType.U32: partial(_decode_uint, 32),
    CairoType.U64: partial(_decode_uint, 64),
    CairoType.U128: _decode_u128,
    CairoType.U256: _decode_u256,
    CairoType.I8: partial(_decode_signed, 8),
    CairoType.I16: partial(_decode_signed, 16),
    CairoType.I32: partial(_decode_signed, 32),
    CairoType.I64: partial(_decode_signed, 64),
    CairoType.I128: _decode_i128,
    CairoType.BOOL: _decode_bool,
    CairoType.BYTE_ARRAY: _decode_byte_array,
    CairoType.ARRAY: _decode_array,
    CairoType.SPAN: _decode_array,
    CairoType.STRUCT: _decode_struct,
    CairoType.ENUM: _decode_enum,
}


def decode_type(type_def: TypeDef, felts: Sequence[int], offset: int) -> Decoded:
    """Decode one value of ``type_def`` at ``offset``; return it and the felts used."""
    if type_def.kind is CairoType.UNIT:
        # The unit type carries no value and occupies no felts.
        return None, 0
    decoder = _DECODERS.get(type_def.kind, _decode_felt)
    return decoder(type_def, felts, offset)


def decode_event(event: EventDef, keys: Sequence[int], data: Sequence[int]) -> dict[str, Any]:
    """Decode event keys and data into a dict keyed by member name.

    ``keys`` must not include the selector (pass ``keys[1:]``).
    """
    result: dict[str, Any] = {}
    for label, members, felts in (
        ("key", event.key_members, keys),
        ("data", event.data_members, data),
    ):
        offset = 0
        for member in members:
            try:
                value, used = decode_type(member.type, felts, offset)
            except DecodeError as exc:
                raise DecodeError(f'decoding {label} member "{member.name}": {exc}') from exc
            result[member.name] = value
            offset += used
    return result