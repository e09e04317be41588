r"""
Arbiter usage-string grammar.

A single annotated line compiles into a Blueprint, the same way a chain of
builder calls would:

    [<|\[]NAME[>|\]][...] [-X[,]] [--long[-word]][...] [(=)[<|\[]VAL[>|\]]]... ['help text']

Tokens
- explicit name: the first bracketed token seen before any switch. '<NAME>'
  makes the argument required, '[NAME]' leaves it optional.
- short: '-X' (exactly one character), optionally followed by ','.
- long: '--word' (word characters and inner hyphens), optionally followed by '='.
- value placeholder: a bracketed token after a switch (or after the explicit
  name); each one adds a value name. '<VAL>' marks the argument required only
  when no explicit name was given.
- '...': after a name, switch, or placeholder, marks the argument multiple.
- help: the first single-quoted run, anywhere on the line.

Derived effects
- name priority without an explicit name: long, then short.
- more than one placeholder fixes number_of_values to their count.
- a switch-less argument uses its explicit name as value name and takes values.

Examples
    >>> spec = from_usage("-d, --debug... 'turns on debugging'").build()
    >>> spec.name, spec.short, spec.long, spec.multiple, spec.takes_value
    ('debug', 'd', 'debug', True, False)
    >>> from_usage("-o, --output=<FILE> 'output file'").build().value_names
    ('FILE',)

Malformed lines raise UsageSyntaxError (a SpecificationError), naming the
offending position.
"""
import enum

from .arguments import Blueprint
from .faults import UsageSyntaxError
from .utils import Unset

_CLOSERS = {"<": ">", "[": "]"}


class UsageToken(enum.Enum):
    UNKNOWN = enum.auto()
    NAME = enum.auto()
    VALUE_NAME = enum.auto()
    SHORT = enum.auto()
    LONG = enum.auto()
    MULTIPLE = enum.auto()
    HELP = enum.auto()


class UsageParser:
    """
    Single-pass scanner over one usage line.

    The parser does not build anything while scanning: it records builder calls
    and replays them on a fresh Blueprint once the name is known.
    """

    def __init__(self, usage, /):
        if not isinstance(usage, str):
            raise TypeError("usage must be a string")
        self.usage = usage
        self.position = 0
        self.previous = UsageToken.UNKNOWN
        self.name = Unset
        self.short = Unset
        self.long = Unset
        self.help = Unset
        self.value_names = []
        self.calls = []

    def fail(self, reason, /):
        raise UsageSyntaxError(
            f"malformed usage {self.usage!r}: {reason} at offset {self.position}",
            usage=self.usage,
            offset=self.position,
        )

    def parse(self):
        length = len(self.usage)
        while self.position < length:
            char = self.usage[self.position]
            match char:
                case _ if char.isspace():
                    self.position += 1
                case "-":
                    if self.usage.startswith("--", self.position):
                        self.parse_long()
                    else:
                        self.parse_short()
                case "<" | "[":
                    self.parse_bracket(char)
                case "'":
                    self.parse_help()
                case ".":
                    self.parse_multiple()
                case "," if self.previous is UsageToken.SHORT:
                    self.position += 1
                case "=" if self.previous in (UsageToken.SHORT, UsageToken.LONG):
                    self.position += 1
                case _:
                    self.fail(f"unexpected character {char!r}")
        return self.finalize()

    def parse_long(self):
        start = self.position = self.position + 2
        while self.position < len(self.usage) and (
            self.usage[self.position].isalnum() or self.usage[self.position] in "-_"
        ):
            self.position += 1
        long = self.usage[start:self.position]
        if not long or long.startswith("-") or long.endswith("-"):
            self.fail("expected a long switch name")
        if self.long is not Unset:
            self.fail("more than one long switch")
        self.long = long
        self.calls.append(("long", long))
        self.previous = UsageToken.LONG

    def parse_short(self):
        self.position += 1
        if self.position >= len(self.usage) or not (
            self.usage[self.position].isalnum() or self.usage[self.position] in "?_@#"
        ):
            self.fail("expected a short switch character")
        short = self.usage[self.position]
        self.position += 1
        if self.position < len(self.usage) and not (
            self.usage[self.position].isspace() or self.usage[self.position] in ",.=<['"
        ):
            self.fail("a short switch must be a single character")
        if self.short is not Unset:
            self.fail("more than one short switch")
        self.short = short
        self.calls.append(("short", short))
        self.previous = UsageToken.SHORT

    def parse_bracket(self, opener, /):
        closer = _CLOSERS[opener]
        start = self.position + 1
        end = self.usage.find(closer, start)
        if end == -1:
            self.fail(f"unbalanced {opener!r}")
        content = self.usage[start:end]
        if not content or any(char in content for char in "<>[]' ") or content != content.strip():
            self.fail(f"invalid placeholder {self.usage[self.position:end + 1]!r}")
        self.position = end + 1

        switched = self.short is not Unset or self.long is not Unset
        if self.name is Unset and not switched and not self.value_names:
            self.name = content
            if opener == "<":
                self.calls.append(("required", True))
            self.previous = UsageToken.NAME
            return

        if opener == "<" and self.name is Unset:
            self.calls.append(("required", True))
        self.value_names.append(content)
        self.calls.append(("value_name", content))
        self.previous = UsageToken.VALUE_NAME

    def parse_help(self):
        end = self.usage.find("'", self.position + 1)
        if end == -1:
            self.fail("unbalanced quote")
        if self.help is not Unset:
            self.fail("more than one help text")
        self.help = self.usage[self.position + 1:end]
        self.calls.append(("help", self.help))
        self.position = end + 1
        self.previous = UsageToken.HELP

    def parse_multiple(self):
        if not self.usage.startswith("...", self.position):
            self.fail("expected '...'")
        if self.previous in (UsageToken.UNKNOWN, UsageToken.HELP, UsageToken.MULTIPLE):
            self.fail("'...' must follow a name, switch or placeholder")
        self.position += 3
        self.calls.append(("multiple", True))
        self.previous = UsageToken.MULTIPLE

    def finalize(self):
        name = self.name
        if name is Unset:
            name = self.long if self.long is not Unset else self.short
        if name is Unset:
            self.fail("no name can be derived")

        calls = list(self.calls)
        if self.short is Unset and self.long is Unset:
            if not self.value_names:
                calls.append(("value_name", name))
            calls.append(("takes_value", True))
        if len(self.value_names) > 1:
            calls.append(("number_of_values", len(self.value_names)))

        blueprint = Blueprint(name)
        for method, *parameters in calls:
            getattr(blueprint, method)(*parameters)
        return blueprint


def from_usage(usage, /):
    """
    Compile one usage line into a Blueprint (further builder calls may be chained).

    Raises
    - TypeError: usage is not a string.
    - UsageSyntaxError: the line is malformed or no name can be derived.
    """
    return UsageParser(usage).parse()


__all__ = (
    "UsageToken",
    "UsageParser",
    "from_usage",
)
