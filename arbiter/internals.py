"""
internal building blocks for frozen specifications.

scope
- StorageGuard: build-phase mixin; backing fields (names prefixed with '-')
  are written while the instance is being built and are read-only afterwards.
- view(name): read-only property over a backing field, returning immutable
  views for containers.
- SpecificationType: metaclass wiring __typename__, view properties for the
  names declared in __introspectable__, and stable __repr__/__rich_repr__.

these names are not re-exported by the package; they may change without notice.
"""
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from contextlib import contextmanager
from types import MappingProxyType

from .utils import Unset, coalesce, rename


class StorageGuard:
    """
    internal mixin to protect backing storage and control mutation.

    rules
    - any attribute whose name starts with '-' is considered internal backing and:
      • cannot be read through normal attribute access (AttributeError),
      • cannot be written unless during the guarded build phase.

    build phase
    - toggled by the private flag '__building' on the instance.
    - __new__ is context-managed so specifications can write backing fields safely:
        with super().__new__(cls) as self:
            setattr(self, "-field", value)
        # after the 'with' block, backing fields are locked (read-only).
    """
    __slots__ = ("__building",)

    @contextmanager
    def __new__(cls):
        self = object.__new__(cls)
        self.__building = True
        try:
            yield self
        finally:
            self.__building = False

    def __getattribute__(self, name, /):
        if isinstance(name, str) and name.startswith("-"):
            raise AttributeError("internal storage is not accessible")
        return object.__getattribute__(self, name)

    def __setattr__(self, name, value, /):
        if isinstance(name, str) and name.startswith("-"):
            if not self.__building:
                raise AttributeError("internal storage is read-only")
        return object.__setattr__(self, name, value)

    def __delattr__(self, name, /):
        if isinstance(name, str) and name.startswith("-"):
            raise AttributeError("internal storage is read-only")
        return object.__delattr__(self, name)


def view(name, /):
    """
    internal: build a read-only view over a backing field.

    behavior
    - Sequence (non-str) → tuple
    - Mapping           → MappingProxyType
    - Set               → frozenset
    - other types       → returned as-is
    """
    if not isinstance(name, str):
        raise TypeError("view() argument must be a string")

    @rename(name)
    def getter(self):
        value = object.__getattribute__(self, "-" + name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(value)
        if isinstance(value, Mapping):
            return MappingProxyType(value)
        if isinstance(value, Set):
            return frozenset(value)
        return value

    return property(getter)


class SpecificationType(type):
    """
    metaclass for frozen, introspectable specifications (arguments and groups).

    responsibilities
    - derive __typename__ from the class name (camel-case split with hyphens);
      it prefixes configuration error messages.
    - expose every name listed in __introspectable__ as a read-only view().
    - provide stable __repr__/__rich_repr__; __displayable__ (when set) narrows
      what is shown, otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: view(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


__all__ = (
    "StorageGuard",
    "SpecificationType",
    "view",
)
