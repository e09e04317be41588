"""
Arbiter raw occurrences (the tokenizer → resolver contract).

An external tokenizer reports, per argument name, every time the argument was
seen on the command line: the raw text values it consumed (none for
presence-only flags) and the token position where it occurred. Positions only
need to be comparable; they decide which side of an override survives.

    >>> occurrences = Occurrences()
    >>> occurrences.record("config", "a.toml").record("debug").record("debug")
    occurrences(config=1, debug=2)
    >>> occurrences["debug"][-1].position
    3
"""
from collections.abc import Mapping
from typing import NamedTuple

from .utils import Unset


class Occurrence(NamedTuple):
    values: tuple
    position: int


class Occurrences(Mapping):
    """
    Ordered mapping of argument name → tuple of Occurrence.

    record() appends one occurrence; when no position is given it is one past
    the highest position recorded so far, so recording in command-line order
    is enough for override tie-breaking.
    """

    def __init__(self, occurrences=(), /):
        self._occurrences = {}
        self._position = 0
        if isinstance(occurrences, Mapping):
            occurrences = occurrences.items()
        for name, records in occurrences:
            if isinstance(records, str):
                raise TypeError(f"occurrences of {name!r} must be an iterable of value lists")
            for record in records:
                match record:
                    case Occurrence(values, position):
                        self.record(name, *values, position=position)
                    case str():
                        raise TypeError(f"occurrences of {name!r} must be value lists, not strings")
                    case _:
                        self.record(name, *record)

    def record(self, name, /, *values, position=Unset):
        if not isinstance(name, str):
            raise TypeError("occurrence name must be a string")
        if not all(isinstance(value, str) for value in values):
            raise TypeError(f"occurrence values of {name!r} must be strings")
        if position is Unset:
            position = self._position + 1
        elif not isinstance(position, int) or isinstance(position, bool):
            raise TypeError(f"occurrence position of {name!r} must be an integer")
        self._position = max(self._position, position)
        self._occurrences.setdefault(name, []).append(Occurrence(tuple(values), position))
        return self

    def __getitem__(self, name, /):
        return tuple(self._occurrences[name])

    def __iter__(self):
        return iter(self._occurrences)

    def __len__(self):
        return len(self._occurrences)

    def __repr__(self):
        return f"occurrences({", ".join(f"{name}={len(records)}" for name, records in self._occurrences.items())})"


__all__ = (
    "Occurrence",
    "Occurrences",
)
