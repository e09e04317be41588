"""
Arbiter resolved matches (the resolver's successful output).

For every present argument: its occurrence count, its materialized values, and
whether it was supplied explicitly or filled in from a default. Satisfied
groups are recorded by name only.
"""
import enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import NamedTuple


class Provenance(enum.Enum):
    EXPLICIT = "explicit"
    DEFAULTED = "defaulted"


class MatchedArgument(NamedTuple):
    occurrences: int
    values: tuple
    provenance: Provenance


class Matches(Mapping):
    """
    Read-only mapping of argument name → MatchedArgument.

    Group names are not keys, but is_present() and `in` answer for them too.
    Queries for names that are absent return None / () / 0 rather than raising,
    so callers can probe optional arguments directly.
    """

    def __init__(self, arguments, groups=(), /):
        self._arguments = MappingProxyType(dict(arguments))
        self._groups = frozenset(groups)

    @property
    def groups(self):
        return self._groups

    def is_present(self, name, /):
        return name in self._arguments or name in self._groups

    def value_of(self, name, /):
        if (matched := self._arguments.get(name)) is None or not matched.values:
            return None
        return matched.values[0]

    def values_of(self, name, /):
        if (matched := self._arguments.get(name)) is None:
            return ()
        return matched.values

    def occurrences_of(self, name, /):
        if (matched := self._arguments.get(name)) is None:
            return 0
        return matched.occurrences

    def provenance_of(self, name, /):
        if (matched := self._arguments.get(name)) is None:
            return None
        return matched.provenance

    def __contains__(self, name, /):
        return self.is_present(name)

    def __getitem__(self, name, /):
        return self._arguments[name]

    def __iter__(self):
        return iter(self._arguments)

    def __len__(self):
        return len(self._arguments)

    def __eq__(self, other):
        if not isinstance(other, Matches):
            return NotImplemented
        return dict(self._arguments) == dict(other._arguments) and self._groups == other._groups

    __hash__ = None

    def __repr__(self):
        return f"matches({", ".join(f"{name}={matched.values!r}" for name, matched in self._arguments.items())})"

    def __rich_repr__(self):
        for name, matched in self._arguments.items():
            yield name, matched
        if self._groups:
            yield "groups", sorted(self._groups)


__all__ = (
    "Provenance",
    "MatchedArgument",
    "Matches",
)
