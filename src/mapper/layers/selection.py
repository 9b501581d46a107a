"""SelectionSet — the names of the currently selected layer entries."""

from __future__ import annotations


class SelectionSet:
    """Unordered set of selected entry names plus the range-select anchor.

    The anchor is the name most recently selected by a plain or toggle
    click. Range order is not kept here; it comes from the displayed list.
    """

    def __init__(self) -> None:
        self._names: set[str] = set()
        self.anchor: str | None = None

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(sorted(self._names))

    @property
    def names(self) -> set[str]:
        return set(self._names)

    def add(self, name: str) -> None:
        self._names.add(name)

    def discard(self, name: str) -> None:
        self._names.discard(name)
        if self.anchor == name:
            self.anchor = None

    def replace(self, names) -> None:
        self._names = set(names)
        if self.anchor not in self._names:
            self.anchor = None

    def clear(self) -> None:
        self._names.clear()
        self.anchor = None
