"""Event selectors and lookup of event definitions by selector or name."""

from __future__ import annotations

from collections.abc import Iterable

from Crypto.Hash import keccak

from .types import EventDef

_MASK_250 = (1 << 250) - 1


def starknet_keccak(data: bytes | str) -> int:
    """Keccak-256 of ``data`` truncated to its low 250 bits."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = keccak.new(digest_bits=256, data=data).digest()
    return int.from_bytes(digest, "big") & _MASK_250


def compute_selector(name: str) -> int:
    """Selector of an event or function name."""
    return starknet_keccak(name)


class EventRegistry:
    """Maps event selectors and short names to their definitions."""

    def __init__(self, events: Iterable[EventDef]) -> None:
        self._by_selector: dict[int, EventDef] = {}
        self._by_name: dict[str, EventDef] = {}
        for event in events:
            self._by_selector[event.selector] = event
            self._by_name[event.name] = event

    def match_selector(self, selector: int | None) -> EventDef | None:
        """Definition for a selector (usually ``keys[0]``), or None."""
        if selector is None:
            return None
        return self._by_selector.get(selector)

    def match_name(self, name: str) -> EventDef | None:
        """Definition for a short event name, or None."""
        return self._by_name.get(name)

    def events(self) -> list[EventDef]:
        """All registered definitions, one per selector."""
        return list(self._by_selector.values())