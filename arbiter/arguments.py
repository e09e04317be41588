r"""
Arbiter argument specifications.

Overview
- Setting: boolean switches of an argument, stored as one IntFlag.
- Blueprint: mutable, fluent builder. Every mutator returns the blueprint itself,
  so specifications read as one chained expression:
      argument("config").short("c").long("config").value_name("FILE").help("...")
- Argument: the frozen specification produced by Blueprint.build() (or registered
  in a Resolver, which builds blueprints itself). Fields are exposed as read-only
  properties declared in __introspectable__.
- argument(name): shorthand for Blueprint(name).

Implicit effects (applied by the blueprint mutators)
- number_of_values, min_values, max_values, value_terminator, default_value,
  default_value_if(s), value_name(s) and value_delimiter imply TAKES_VALUE.
- value_delimiter(d) keeps only the first character of d and enables delimiter use.
- value_names(...) enables delimiter use when no delimiter decision was made yet
  (VALUE_DELIMITER_NOT_SET still present); value_name(...) never does.
- required_unless* imply REQUIRED; required_unless_all also sets REQUIRED_UNLESS_ALL.

Metadata (sanitized when an Argument is constructed)
- name: non-empty string, unique within a registry.
- short: single character (leading hyphens stripped); long: non-empty (leading
  hyphens stripped, inner hyphens kept).
- index: 1-based positional index; forbidden together with short/long.
- min_values <= max_values when both are given; number_of_values >= 1.
- value_delimiter: exactly one character.
- validator / validator_os: callables returning None/True on success and a
  message (or False) on failure.

Equality
- Two arguments are equal when their identity+settings core matches (name,
  short, long, index, settings); value rules never take part. Hashing uses the name.
"""
import builtins
import functools
from enum import IntFlag

from .internals import StorageGuard, SpecificationType
from .utils import Unset, coalesce


class Setting(IntFlag):
    """
    boolean switches of an argument.

    - REQUIRED: must be present after resolution (see required_unless for the escape hatch).
    - MULTIPLE: may occur more than once.
    - GLOBAL: propagated to subcommands by host layers (stored only).
    - HIDDEN, NEXT_LINE_HELP: presentation hints (stored only).
    - ALLOW_HYPHEN_VALUES: values may start with '-' (tokenizer hint, stored only).
    - EMPTY_VALUES: empty strings are accepted as values.
    - REQUIRE_DELIMITER: values must be delimited (tokenizer hint, stored only).
    - USE_VALUE_DELIMITER: raw values are split by the delimiter.
    - VALUE_DELIMITER_NOT_SET: no delimiter decision was made yet.
    - REQUIRED_UNLESS_ALL: required_unless needs every listed name, not just one.
    - TAKES_VALUE: occurrences carry values.
    """
    REQUIRED                = 1 << 0
    MULTIPLE                = 1 << 1
    GLOBAL                  = 1 << 2
    HIDDEN                  = 1 << 3
    NEXT_LINE_HELP          = 1 << 4
    ALLOW_HYPHEN_VALUES     = 1 << 5
    EMPTY_VALUES            = 1 << 6
    REQUIRE_DELIMITER       = 1 << 7
    USE_VALUE_DELIMITER     = 1 << 8
    VALUE_DELIMITER_NOT_SET = 1 << 9
    REQUIRED_UNLESS_ALL     = 1 << 10
    TAKES_VALUE             = 1 << 11


DEFAULT_SETTINGS = Setting.EMPTY_VALUES | Setting.VALUE_DELIMITER_NOT_SET


def _sanitize_identity(cls, metadata, /):
    """
    Internal: validate name/short/long/aliases/index and their combination.

    Raises
    - TypeError: wrong types, or an index combined with a switch.
    - ValueError: empty names, multi-character shorts, non-positive indices.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not name.strip():
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")

    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} 'short' must be a string")
    elif isinstance(short, str) and len(short := short.lstrip("-")) != 1:
        raise ValueError(f"{cls.__typename__} {name!r} 'short' must be a single character")
    metadata["short"] = coalesce(short)

    if not isinstance(long := metadata["long"], str | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} 'long' must be a string")
    elif isinstance(long, str) and not (long := long.lstrip("-")):
        raise ValueError(f"{cls.__typename__} {name!r} 'long' cannot be empty")
    metadata["long"] = coalesce(long)

    aliases = []
    for alias in metadata["aliases"]:
        match alias:
            case str() as alias:
                aliases.append((alias.lstrip("-"), False))
            case (str() as alias, bool() as visible):
                aliases.append((alias.lstrip("-"), visible))
            case _:
                raise TypeError(f"{cls.__typename__} {name!r} aliases must be strings or (name, visible) pairs")
        if not aliases[-1][0]:
            raise ValueError(f"{cls.__typename__} {name!r} aliases cannot be empty")
    metadata["aliases"] = tuple(aliases)

    if not isinstance(index := metadata["index"], int | Unset) or isinstance(index, bool):
        raise TypeError(f"{cls.__typename__} {name!r} 'index' must be an integer")
    elif isinstance(index, int) and index < 1:
        raise ValueError(f"{cls.__typename__} {name!r} 'index' must be greater than or equal to 1")
    elif isinstance(index, int) and (metadata["short"] or metadata["long"]):
        raise TypeError(f"positional {cls.__typename__} {name!r} cannot have a short or long switch")
    metadata["index"] = coalesce(index)


def _sanitize_text(cls, metadata, /):
    for field in ("help", "long_help"):
        if not isinstance(metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} {metadata["name"]!r} {field!r} must be a string")
        metadata[field] = coalesce(metadata[field])
    if not isinstance(metadata["display_order"], int) or isinstance(metadata["display_order"], bool):
        raise TypeError(f"{cls.__typename__} {metadata["name"]!r} 'display_order' must be an integer")


def _sanitize_values(cls, metadata, /):
    """
    Internal: validate cardinality and content metadata.

    Every value-related field that is provided implies TAKES_VALUE, so a
    directly constructed Argument agrees with what the blueprint would build.
    """
    name = metadata["name"]
    settings = Setting(metadata["settings"])

    for field, lowest in (("number_of_values", 1), ("min_values", 0), ("max_values", 1)):
        if not isinstance(count := metadata[field], int | Unset) or isinstance(count, bool):
            raise TypeError(f"{cls.__typename__} {name!r} {field!r} must be an integer")
        elif isinstance(count, int) and count < lowest:
            raise ValueError(f"{cls.__typename__} {name!r} {field!r} must be greater than or equal to {lowest}")
        metadata[field] = coalesce(count)
    if metadata["min_values"] is not None and metadata["max_values"] is not None:
        if metadata["min_values"] > metadata["max_values"]:
            raise ValueError(f"{cls.__typename__} {name!r} 'min_values' cannot exceed 'max_values'")

    if not all(isinstance(value_name, str) and value_name for value_name in metadata["value_names"]):
        raise TypeError(f"{cls.__typename__} {name!r} value names must be non-empty strings")
    metadata["value_names"] = tuple(metadata["value_names"])

    if not isinstance(delimiter := metadata["value_delimiter"], str | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} 'value_delimiter' must be a string")
    elif isinstance(delimiter, str) and len(delimiter) != 1:
        raise ValueError(f"{cls.__typename__} {name!r} 'value_delimiter' must be a single character")
    metadata["value_delimiter"] = coalesce(delimiter)

    if not isinstance(terminator := metadata["value_terminator"], str | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} 'value_terminator' must be a string")
    elif isinstance(terminator, str) and not terminator:
        raise ValueError(f"{cls.__typename__} {name!r} 'value_terminator' cannot be empty")
    metadata["value_terminator"] = coalesce(terminator)

    possible = tuple(metadata["possible_values"])
    if not all(isinstance(value, str) for value in possible):
        raise TypeError(f"{cls.__typename__} {name!r} possible values must be strings")
    metadata["possible_values"] = tuple(dict.fromkeys(possible))

    for field in ("validator", "validator_os"):
        if not (metadata[field] is Unset or builtins.callable(metadata[field])):
            raise TypeError(f"{cls.__typename__} {name!r} {field!r} must be callable")
        metadata[field] = coalesce(metadata[field])

    if not isinstance(metadata["default_value"], str | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} 'default_value' must be a string")
    metadata["default_value"] = coalesce(metadata["default_value"])

    if any(
        metadata[field] is not None and metadata[field] != ()
        for field in (
            "number_of_values", "min_values", "max_values", "value_names",
            "value_delimiter", "value_terminator", "default_value",
        )
    ) or metadata["default_value_ifs"]:
        settings |= Setting.TAKES_VALUE
    metadata["settings"] = settings


def _sanitize_rules(cls, metadata, /):
    """
    Internal: normalize cross-argument rules into tuples.

    Names are not resolved here; the resolver checks every reference against
    its registry when it is constructed.
    """
    name = metadata["name"]

    def names(field):
        if isinstance(metadata[field], str) or not all(isinstance(other, str) for other in metadata[field]):
            raise TypeError(f"{cls.__typename__} {name!r} {field!r} must be an iterable of strings")
        return tuple(metadata[field])

    for field in ("required_unless", "conflicts_with", "overrides_with", "groups"):
        metadata[field] = names(field)

    requires = []
    for rule in metadata["requires"]:
        match rule:
            case str() as target:
                requires.append((None, target))
            case (str() | None as value, str() as target):
                requires.append((value, target))
            case _:
                raise TypeError(f"{cls.__typename__} {name!r} requires rules must be (value, name) pairs")
    metadata["requires"] = tuple(requires)

    required_ifs = []
    for rule in metadata["required_ifs"]:
        match rule:
            case (str() as trigger, str() as value):
                required_ifs.append((trigger, value))
            case _:
                raise TypeError(f"{cls.__typename__} {name!r} required_if rules must be (name, value) pairs")
    metadata["required_ifs"] = tuple(required_ifs)

    default_value_ifs = []
    for rule in metadata["default_value_ifs"]:
        match rule:
            case (str() as trigger, str() | None as value, str() as default):
                default_value_ifs.append((trigger, value, default))
            case _:
                raise TypeError(
                    f"{cls.__typename__} {name!r} default_value_if rules must be (name, value, default) triples"
                )
    metadata["default_value_ifs"] = tuple(default_value_ifs)


class Argument(StorageGuard, metaclass=SpecificationType):
    """
    Frozen argument specification.

    Arguments are usually produced by Blueprint.build(); the keyword constructor
    is available for callers that prefer to declare everything at once. Once
    constructed, the backing storage is locked and every field is read through
    the read-only properties listed in __introspectable__.

    Derived views
    - positional: no short and no long switch.
    - takes_value: TAKES_VALUE is set, or the argument is positional.
    - multiple / required: the corresponding settings.
    - delimiter: the effective delimiter character (',' when delimiter use is
      enabled without an explicit character), or None.
    - label: how messages refer to the argument ('--long', '-s' or '<NAME>').
    """

    __introspectable__ = (
        "name",
        "short",
        "long",
        "aliases",
        "index",
        "help",
        "long_help",
        "display_order",
        "settings",
        "number_of_values",
        "min_values",
        "max_values",
        "value_names",
        "value_delimiter",
        "value_terminator",
        "possible_values",
        "validator",
        "validator_os",
        "default_value",
        "default_value_ifs",
        "requires",
        "required_ifs",
        "required_unless",
        "conflicts_with",
        "overrides_with",
        "groups",
    )
    __displayable__ = (
        "name",
        "short",
        "long",
        "index",
        "settings",
        "value_names",
        "help",
    )

    def __new__(
            cls,
            name,
            /,
            *,
            short=Unset,
            long=Unset,
            aliases=(),
            index=Unset,
            help=Unset,
            long_help=Unset,
            display_order=999,
            settings=DEFAULT_SETTINGS,
            number_of_values=Unset,
            min_values=Unset,
            max_values=Unset,
            value_names=(),
            value_delimiter=Unset,
            value_terminator=Unset,
            possible_values=(),
            validator=Unset,
            validator_os=Unset,
            default_value=Unset,
            default_value_ifs=(),
            requires=(),
            required_ifs=(),
            required_unless=(),
            conflicts_with=(),
            overrides_with=(),
            groups=(),
    ):
        metadata = {
            "name": name,
            "short": short,
            "long": long,
            "aliases": aliases,
            "index": index,
            "help": help,
            "long_help": long_help,
            "display_order": display_order,
            "settings": settings,
            "number_of_values": number_of_values,
            "min_values": min_values,
            "max_values": max_values,
            "value_names": value_names,
            "value_delimiter": value_delimiter,
            "value_terminator": value_terminator,
            "possible_values": possible_values,
            "validator": validator,
            "validator_os": validator_os,
            "default_value": default_value,
            "default_value_ifs": default_value_ifs,
            "requires": requires,
            "required_ifs": required_ifs,
            "required_unless": required_unless,
            "conflicts_with": conflicts_with,
            "overrides_with": overrides_with,
            "groups": groups,
        }
        if not isinstance(settings, int):
            raise TypeError(f"{cls.__typename__} 'settings' must be a Setting")
        _sanitize_identity(cls, metadata)
        _sanitize_text(cls, metadata)
        _sanitize_values(cls, metadata)
        _sanitize_rules(cls, metadata)

        with super().__new__(cls) as self:
            for field, value in metadata.items():
                setattr(self, "-" + field, value)
        return self

    @property
    def positional(self):
        return self.short is None and self.long is None

    @property
    def takes_value(self):
        return self.is_set(Setting.TAKES_VALUE) or self.positional

    @property
    def multiple(self):
        return self.is_set(Setting.MULTIPLE)

    @property
    def required(self):
        return self.is_set(Setting.REQUIRED)

    @property
    def delimiter(self):
        if not self.is_set(Setting.USE_VALUE_DELIMITER):
            return None
        return self.value_delimiter or ","

    @property
    def label(self):
        if self.long is not None:
            return "--" + self.long
        if self.short is not None:
            return "-" + self.short
        return "<" + (self.value_names[0] if self.value_names else self.name) + ">"

    def is_set(self, setting, /):
        return bool(self.settings & setting)

    def __argument__(self):
        return self

    def __eq__(self, other):
        if not isinstance(other, Argument):
            return NotImplemented
        return (self.name, self.short, self.long, self.index, self.settings) == \
            (other.name, other.short, other.long, other.index, other.settings)

    def __hash__(self):
        return hash(self.name)


def _mutator(function, /):
    """
    Internal: wrap a blueprint mutator so it refuses to run once the blueprint
    was built and always returns the blueprint for chaining.
    """
    @functools.wraps(function)
    def wrapper(self, /, *args, **kwargs):
        if self._argument is not Unset:
            raise TypeError(f"blueprint {self._name!r} was already built and cannot be modified")
        function(self, *args, **kwargs)
        return self
    return wrapper


class Blueprint:
    """
    Fluent, mutable builder for an Argument.

    Mutators never validate (validation happens once, in build()), never fail on
    a blueprint that was not built yet, and return the blueprint itself. After
    build() the blueprint is frozen: further mutation raises TypeError and
    build() keeps returning the same Argument.
    """

    def __init__(self, name, /):
        if not isinstance(name, str):
            raise TypeError("blueprint name must be a string")
        self._name = name
        self._settings = DEFAULT_SETTINGS
        self._argument = Unset
        self._metadata = {
            "aliases": [],
            "value_names": [],
            "possible_values": [],
            "default_value_ifs": [],
            "requires": [],
            "required_ifs": [],
            "required_unless": [],
            "conflicts_with": [],
            "overrides_with": [],
            "groups": [],
        }

    @classmethod
    def from_usage(cls, usage, /):
        """
        Parse a one-line usage string into a new blueprint (see arbiter.usage).
        """
        from .usage import from_usage
        return from_usage(usage)

    @property
    def name(self):
        return self._name

    def is_set(self, setting, /):
        return bool(self._settings & setting)

    # identity

    @_mutator
    def short(self, short, /):
        self._metadata["short"] = short.lstrip("-")[:1] or Unset

    @_mutator
    def long(self, long, /):
        self._metadata["long"] = long.lstrip("-")

    @_mutator
    def alias(self, name, /):
        self._metadata["aliases"].append((name, False))

    @_mutator
    def aliases(self, names, /):
        self._metadata["aliases"].extend((name, False) for name in names)

    @_mutator
    def visible_alias(self, name, /):
        self._metadata["aliases"].append((name, True))

    @_mutator
    def visible_aliases(self, names, /):
        self._metadata["aliases"].extend((name, True) for name in names)

    @_mutator
    def index(self, index, /):
        self._metadata["index"] = index

    # text

    @_mutator
    def help(self, text, /):
        self._metadata["help"] = text

    @_mutator
    def long_help(self, text, /):
        self._metadata["long_help"] = text

    @_mutator
    def display_order(self, order, /):
        self._metadata["display_order"] = order

    # settings

    @_mutator
    def setting(self, setting, /):
        self._settings |= setting

    @_mutator
    def settings(self, settings, /):
        for setting in settings:
            self._settings |= setting

    @_mutator
    def unset_setting(self, setting, /):
        self._settings &= ~setting

    @_mutator
    def unset_settings(self, settings, /):
        for setting in settings:
            self._settings &= ~setting

    def _toggle(self, setting, value, /):
        if value:
            self._settings |= setting
        else:
            self._settings &= ~setting

    @_mutator
    def required(self, value=True, /):
        self._toggle(Setting.REQUIRED, value)

    @_mutator
    def takes_value(self, value=True, /):
        self._toggle(Setting.TAKES_VALUE, value)

    @_mutator
    def multiple(self, value=True, /):
        self._toggle(Setting.MULTIPLE, value)

    @_mutator
    def global_(self, value=True, /):
        self._toggle(Setting.GLOBAL, value)

    @_mutator
    def hidden(self, value=True, /):
        self._toggle(Setting.HIDDEN, value)

    @_mutator
    def next_line_help(self, value=True, /):
        self._toggle(Setting.NEXT_LINE_HELP, value)

    @_mutator
    def allow_hyphen_values(self, value=True, /):
        self._toggle(Setting.ALLOW_HYPHEN_VALUES, value)

    @_mutator
    def empty_values(self, value=True, /):
        self._toggle(Setting.EMPTY_VALUES, value)

    def _use_delimiter(self, value, /):
        if value:
            if self._metadata.get("value_delimiter", Unset) is Unset:
                self._metadata["value_delimiter"] = ","
            self._settings |= Setting.TAKES_VALUE | Setting.USE_VALUE_DELIMITER
        else:
            self._metadata["value_delimiter"] = Unset
            self._settings &= ~Setting.USE_VALUE_DELIMITER
        self._settings &= ~Setting.VALUE_DELIMITER_NOT_SET

    @_mutator
    def use_delimiter(self, value=True, /):
        self._use_delimiter(value)

    @_mutator
    def require_delimiter(self, value=True, /):
        if value:
            self._use_delimiter(True)
        self._toggle(Setting.REQUIRE_DELIMITER, value)

    # cross-argument rules

    @_mutator
    def required_unless(self, name, /):
        self._metadata["required_unless"].append(name)
        self._settings |= Setting.REQUIRED

    @_mutator
    def required_unless_one(self, names, /):
        self._metadata["required_unless"].extend(names)
        self._settings |= Setting.REQUIRED

    @_mutator
    def required_unless_all(self, names, /):
        self._metadata["required_unless"].extend(names)
        self._settings |= Setting.REQUIRED | Setting.REQUIRED_UNLESS_ALL

    @_mutator
    def required_if(self, name, value, /):
        self._metadata["required_ifs"].append((name, value))

    @_mutator
    def required_ifs(self, rules, /):
        self._metadata["required_ifs"].extend(rules)

    @_mutator
    def requires(self, name, /):
        self._metadata["requires"].append((None, name))

    @_mutator
    def requires_if(self, value, name, /):
        self._metadata["requires"].append((value, name))

    @_mutator
    def requires_ifs(self, rules, /):
        self._metadata["requires"].extend(rules)

    @_mutator
    def requires_all(self, names, /):
        self._metadata["requires"].extend((None, name) for name in names)

    @_mutator
    def conflicts_with(self, name, /):
        self._metadata["conflicts_with"].append(name)

    @_mutator
    def conflicts_with_all(self, names, /):
        self._metadata["conflicts_with"].extend(names)

    @_mutator
    def overrides_with(self, name, /):
        self._metadata["overrides_with"].append(name)

    @_mutator
    def overrides_with_all(self, names, /):
        self._metadata["overrides_with"].extend(names)

    @_mutator
    def group(self, name, /):
        self._metadata["groups"].append(name)

    @_mutator
    def groups(self, names, /):
        self._metadata["groups"].extend(names)

    # values

    @_mutator
    def number_of_values(self, count, /):
        self._metadata["number_of_values"] = count
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def min_values(self, count, /):
        self._metadata["min_values"] = count
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def max_values(self, count, /):
        self._metadata["max_values"] = count
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def value_terminator(self, terminator, /):
        self._metadata["value_terminator"] = terminator
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def value_delimiter(self, delimiter, /):
        self._metadata["value_delimiter"] = delimiter[:1] or Unset
        self._settings &= ~Setting.VALUE_DELIMITER_NOT_SET
        self._settings |= Setting.TAKES_VALUE | Setting.USE_VALUE_DELIMITER

    @_mutator
    def value_name(self, name, /):
        self._metadata["value_names"].append(name)
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def value_names(self, names, /):
        if self._settings & Setting.VALUE_DELIMITER_NOT_SET:
            self._settings &= ~Setting.VALUE_DELIMITER_NOT_SET
            self._settings |= Setting.USE_VALUE_DELIMITER
        self._metadata["value_names"].extend(names)
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def possible_value(self, value, /):
        self._metadata["possible_values"].append(value)

    @_mutator
    def possible_values(self, values, /):
        self._metadata["possible_values"].extend(values)

    @_mutator
    def validator(self, function, /):
        self._metadata["validator"] = function

    @_mutator
    def validator_os(self, function, /):
        self._metadata["validator_os"] = function

    @_mutator
    def default_value(self, value, /):
        self._metadata["default_value"] = value
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def default_value_if(self, name, value, default, /):
        self._metadata["default_value_ifs"].append((name, value, default))
        self._settings |= Setting.TAKES_VALUE

    @_mutator
    def default_value_ifs(self, rules, /):
        self._metadata["default_value_ifs"].extend(rules)
        self._settings |= Setting.TAKES_VALUE

    def build(self):
        """
        Freeze the blueprint into an Argument.

        Validation errors surface here (TypeError/ValueError naming the field).
        Calling build() again returns the same Argument.
        """
        if self._argument is Unset:
            argument = Argument(self._name, settings=self._settings, **self._metadata)
            self._argument = argument
        return self._argument

    def __argument__(self):
        return self.build()

    def __repr__(self):
        return f"blueprint({self._name!r}, built={self._argument is not Unset})"


def argument(name, /):
    """
    Start a fluent argument specification.

    Example
        >>> spec = argument("output").short("o").long("output").value_name("FILE").build()
        >>> spec.label
        '--output'
    """
    return Blueprint(name)


__all__ = (
    "Setting",
    "Argument",
    "Blueprint",
    "argument",
)
