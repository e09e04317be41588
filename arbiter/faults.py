"""
Arbiter faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the package
  can report. Codes are grouped by domain to keep copy consistent and make
  logs/searches predictable.
- ResolutionError: runtime faults produced while resolving occurrences against
  a registry. They carry message + options and know how to render themselves
  with rich in a friendly, lowercased, and actionable way.
- SpecificationError: configuration-time defects (bad usage strings, dangling
  references, positional layout mistakes). Always raised immediately.
- ResolutionWarning: configuration smells that do not stop the program.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: runtime messages mention the ordinal position of the
  offending occurrence when it is known (“from third position”, etc.).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The resolver returns ResolutionError values; Resolver.matches() passes them to
  trigger(fault, **ctx).
- In non-shell mode, exceptions are raised and warnings go through the warnings
  module; in shell mode, both are rendered via rich on stderr.
"""
import copy
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the package (stable identifiers).

    grouping (by high-level domain)
    - presence (2110x)
      • ARGUMENT_CONFLICT, MISSING_REQUIRED_ARGUMENT, UNEXPECTED_MULTIPLE_USAGE
    - cardinality (2111x)
      • WRONG_NUMBER_OF_VALUES, TOO_FEW_VALUES, TOO_MANY_VALUES
    - content (2112x)
      • INVALID_VALUE, EMPTY_VALUE
    - warnings (2210x)
      • CONTRADICTORY_RULE, IMPOSSIBLE_DEFAULT
    - configuration (231xx)
      • UNKNOWN_GROUP_MEMBER, UNKNOWN_REFERENCE, UNKNOWN_ARGUMENT, DUPLICATE_ARGUMENT,
        POSITIONAL_INDEX_GAP, POSITIONAL_MULTIPLE_NOT_LAST, USAGE_SYNTAX, UNKNOWN_SETTING

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired (e.g., to shorter labels).
    """
    # --- presence errors (21xxx) ---
    ARGUMENT_CONFLICT            = 21101
    MISSING_REQUIRED_ARGUMENT    = 21102
    UNEXPECTED_MULTIPLE_USAGE    = 21103

    # --- cardinality errors (21xxx) ---
    WRONG_NUMBER_OF_VALUES       = 21111
    TOO_FEW_VALUES               = 21112
    TOO_MANY_VALUES              = 21113

    # --- content errors (21xxx) ---
    INVALID_VALUE                = 21121
    EMPTY_VALUE                  = 21122

    # --- warnings (22xxx) ---
    CONTRADICTORY_RULE           = 22101
    IMPOSSIBLE_DEFAULT           = 22102

    # --- configuration errors (23xxx) ---
    UNKNOWN_GROUP_MEMBER         = 23101
    UNKNOWN_REFERENCE            = 23102
    UNKNOWN_ARGUMENT             = 23103
    DUPLICATE_ARGUMENT           = 23104
    POSITIONAL_INDEX_GAP         = 23111
    POSITIONAL_MULTIPLE_NOT_LAST = 23112
    USAGE_SYNTAX                 = 23121
    UNKNOWN_SETTING              = 23122

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by errors and warnings.

    palette keys: code, title, message, hint-arrow, hint (merged with __styles__
    from __main__, which always wins).
    """
    main = __import__("__main__")
    options = fault.options

    styles = defaultdict(str, {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "docs": "underline #00E5FF dim",  # documentation footer
    } | palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if options["colorful"] else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    prog = text(getattr(main, "__prog__", options.get("prog", "arbiter")), styler("prog-name"))

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(options["code"].normalize(), styler("code")),
        " | ",
        text(options["title"].title(), styler("title")),
        " ]"
    )
    parts = [text(fault.message, styler("message"))]
    if options.get("hint"):
        parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(options["hint"], styler("hint"))))
    if options.get("docs"):
        parts.append(text(options["docs"], styler("docs")))

    if options["fancy"]:
        return Panel(Group(*parts), title=header, title_align="left")

    return Group(header, *parts)


class ResolutionError(Exception):
    """
    base type for faults found while resolving occurrences.

    every subclass declares its __fault__ code and a short __title__; both can be
    overridden through options. the resolver fills 'arguments' (implicated names,
    first one is the offender), 'values' (offending raw values) and 'hint'.
    """
    __fault__ = Unset
    __title__ = "resolution error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__fault__,
            "title": type(self).__title__,
            "arguments": (),
            "values": (),
            "hint": None,
            "docs": None,
            "shell": False,
            "fancy": False,
            "colorful": True,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def arguments(self):
        return tuple(self.options["arguments"])

    @property
    def values(self):
        return tuple(self.options["values"])

    def __str__(self):
        return str(self.message) if self.message is not Unset else type(self).__title__

    def __eq__(self, other):
        if not isinstance(other, ResolutionError):
            return NotImplemented
        return (type(self), self.message, self.arguments, self.values) == \
            (type(other), other.message, other.arguments, other.values)

    def __hash__(self):
        return hash((type(self), self.message, self.arguments, self.values))

    def __rich__(self):
        return _render(self, {
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self):
        if not self.options["shell"]:
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ArgumentConflictError(ResolutionError):
    __fault__ = FaultCode.ARGUMENT_CONFLICT
    __title__ = "argument conflict"
class MissingRequiredArgumentError(ResolutionError):
    __fault__ = FaultCode.MISSING_REQUIRED_ARGUMENT
    __title__ = "missing required argument"
class UnexpectedMultipleUsageError(ResolutionError):
    __fault__ = FaultCode.UNEXPECTED_MULTIPLE_USAGE
    __title__ = "unexpected multiple usage"
class WrongNumberOfValuesError(ResolutionError):
    __fault__ = FaultCode.WRONG_NUMBER_OF_VALUES
    __title__ = "wrong number of values"
class TooFewValuesError(ResolutionError):
    __fault__ = FaultCode.TOO_FEW_VALUES
    __title__ = "too few values"
class TooManyValuesError(ResolutionError):
    __fault__ = FaultCode.TOO_MANY_VALUES
    __title__ = "too many values"
class InvalidValueError(ResolutionError):
    __fault__ = FaultCode.INVALID_VALUE
    __title__ = "invalid value"
class EmptyValueError(ResolutionError):
    __fault__ = FaultCode.EMPTY_VALUE
    __title__ = "empty value"


class SpecificationError(ValueError):
    """
    base type for configuration-time defects.

    these are programmer mistakes (a malformed usage string, a rule naming an
    argument that does not exist, a positional layout that cannot be parsed),
    so they are always raised at the point of detection and never rendered.
    """
    __fault__ = Unset

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).__fault__} | options)

    @property
    def code(self):
        return self.options["code"]


class UnknownGroupMemberError(SpecificationError):
    __fault__ = FaultCode.UNKNOWN_GROUP_MEMBER
class UnknownReferenceError(SpecificationError):
    __fault__ = FaultCode.UNKNOWN_REFERENCE
class UnknownArgumentError(SpecificationError):
    __fault__ = FaultCode.UNKNOWN_ARGUMENT
class DuplicateArgumentError(SpecificationError):
    __fault__ = FaultCode.DUPLICATE_ARGUMENT
class PositionalIndexGapError(SpecificationError):
    __fault__ = FaultCode.POSITIONAL_INDEX_GAP
class PositionalMultipleNotLastError(SpecificationError):
    __fault__ = FaultCode.POSITIONAL_MULTIPLE_NOT_LAST
class UsageSyntaxError(SpecificationError):
    __fault__ = FaultCode.USAGE_SYNTAX
class UnknownSettingError(SpecificationError):
    __fault__ = FaultCode.UNKNOWN_SETTING


class ResolutionWarning(ABC, Warning):
    __fault__ = Unset
    __title__ = "resolution warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__fault__,
            "title": type(self).__title__,
            "arguments": (),
            "hint": None,
            "docs": None,
            "shell": False,
            "fancy": False,
            "colorful": True,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    def __str__(self):
        return str(self.message) if self.message is not Unset else type(self).__title__

    def __rich__(self):
        return _render(self, {
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self):
        if not self.options["shell"]:
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ContradictoryRuleWarning(ResolutionWarning):
    __fault__ = FaultCode.CONTRADICTORY_RULE
    __title__ = "contradictory rule"
class ImpossibleDefaultWarning(ResolutionWarning):
    __fault__ = FaultCode.IMPOSSIBLE_DEFAULT
    __title__ = "impossible default"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are
      raised and warnings are emitted through the warnings module.

    typical options
    - shell, fancy, colorful, prog, title, code, hint, docs, and any other
      context the reporter may want to show (e.g., arguments/values).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ResolutionError",
    "ArgumentConflictError",
    "MissingRequiredArgumentError",
    "UnexpectedMultipleUsageError",
    "WrongNumberOfValuesError",
    "TooFewValuesError",
    "TooManyValuesError",
    "InvalidValueError",
    "EmptyValueError",
    "SpecificationError",
    "UnknownGroupMemberError",
    "UnknownReferenceError",
    "UnknownArgumentError",
    "DuplicateArgumentError",
    "PositionalIndexGapError",
    "PositionalMultipleNotLastError",
    "UsageSyntaxError",
    "UnknownSettingError",
    "ResolutionWarning",
    "ContradictoryRuleWarning",
    "ImpossibleDefaultWarning",
    "trigger",
    "getdoc",
)
