"""Fixed universe of tradable symbols."""

from __future__ import annotations

from typing import Iterable, Iterator


class SymbolCatalog:
    """Immutable, ordered set of symbols known at process start."""

    def __init__(self, symbols: Iterable[str]):
        normalized = tuple(dict.fromkeys(str(s).strip().upper() for s in symbols if str(s).strip()))
        if not normalized:
            raise ValueError("SymbolCatalog requires at least one symbol")
        self._symbols = normalized
        self._members = frozenset(normalized)

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"SymbolCatalog({list(self._symbols)!r})"
