"""
Arbiter resolution engine.

Resolver(arguments, groups) builds a frozen registry and checks it once:
- blueprints are built, groups frozen; names, shorts, longs and aliases are unique;
- positionals without an index get the next free one in registration order,
  indices must be exactly 1..n, and only the last positional may be multiple;
- every rule reference names a known argument or group, and every explicit
  group member names a known argument;
- suspicious combinations (requiring and conflicting with the same name, a
  default outside the possible values) are reported as warnings.

Resolver.resolve(occurrences) then runs these passes, in this order, each one
to completion before the next, stopping at the first violation:

    1. presence          names with at least one occurrence
    2. overrides         the earlier side of every present override pair is dropped
    3. conflicts         first present conflict pair (or exclusive group) fails
    4. groups            a group is present when any (or, with all=True, every) member is
    5. required set      REQUIRED (gated by required_unless), required_if, required groups
    6. requires          targets of every present argument join the required set
    7. defaults          absent arguments outside the step 5 required set take their
                         first matching default; newly present arguments feed their
                         requires back into 6
    8. missing           first required name still absent fails
    9. materialize       raw values are split by the delimiter and concatenated
    10. cardinality      repetition, number_of_values, min_values, max_values
    11. content          empty values, possible values, validator, validator_os
    12. matches

Errors are returned as ResolutionError values; Resolver.matches() surfaces them
through trigger() instead (raised, or rendered and exited in shell mode).

Dropped (overridden) arguments never come back: they take no default and are
never reported missing. Defaulted values go through the same cardinality and
content checks as supplied ones. More than one value name fixes the value count
when number_of_values is not set.
"""
import os
import sys
from collections import deque
from types import MappingProxyType

from .arguments import Setting
from .faults import *
from .groups import Group
from .matches import Matches, MatchedArgument, Provenance
from .occurrences import Occurrences
from .utils import Unset, coalesce, ordinal


def _counted(count, noun, /):
    return f"{count} {noun}" + ("" if count == 1 else "s")


def _outcome(argument, result, value, /):
    """
    normalize a validator result into None (accepted) or a failure message.
    """
    match result:
        case None | True:
            return None
        case False:
            return f"invalid value {value!r} for {argument.label!r}"
        case str() as message:
            return message
        case outcome:
            raise TypeError(
                f"validator of argument {argument.name!r} must return None, a boolean or a message, "
                f"not {type(outcome).__name__!r}"
            )


class Resolver:
    """
    Frozen registry of arguments and groups, plus the resolution entry points.

    Options
    - shell: render faults with rich and exit instead of raising (matches() only).
    - fancy: render faults inside a panel.
    - colorful: style rendered faults.
    - prog: program name shown in rendered faults (defaults to sys.argv[0]).
    """

    def __init__(self, arguments, groups=(), /, *, shell=False, fancy=False, colorful=True, prog=Unset):
        self._options = MappingProxyType({
            "shell": bool(shell),
            "fancy": bool(fancy),
            "colorful": bool(colorful),
            "prog": coalesce(prog, os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "arbiter"),
        })
        self._arguments = {}
        self._groups = {}
        self._members = {}
        self._indices = {}

        self._register_arguments(arguments)
        self._register_groups(groups)
        self._assign_indices()
        self._check_references()
        self._check_smells()

    # --- registry construction ---

    def _register_arguments(self, arguments, /):
        switches = {}
        for spec in arguments:
            if not hasattr(spec, "__argument__"):
                raise TypeError(f"resolver arguments must be blueprints or arguments, not {type(spec).__name__!r}")
            argument = spec.__argument__()
            if argument.name in self._arguments:
                raise DuplicateArgumentError(f"argument {argument.name!r} is declared more than once")
            for switch in (
                *(("-" + argument.short,) if argument.short is not None else ()),
                *(("--" + argument.long,) if argument.long is not None else ()),
                *("--" + alias for alias, _ in argument.aliases),
            ):
                if (owner := switches.setdefault(switch, argument.name)) != argument.name:
                    raise DuplicateArgumentError(
                        f"switch {switch!r} of argument {argument.name!r} is already used by {owner!r}"
                    )
            self._arguments[argument.name] = argument

    def _register_groups(self, groups, /):
        for spec in groups:
            if not hasattr(spec, "__group__"):
                raise TypeError(f"resolver groups must be groups, not {type(spec).__name__!r}")
            group = spec.__group__()
            if group.name in self._groups or group.name in self._arguments:
                raise DuplicateArgumentError(f"group {group.name!r} clashes with an existing argument or group")
            for member in group.members:
                if member not in self._arguments:
                    raise UnknownGroupMemberError(
                        f"group {group.name!r} refers to unknown argument {member!r}", group=group.name, member=member
                    )
            self._groups[group.name] = group
            self._members[group.name] = list(group.members)

        # arguments naming a group join it; undeclared groups are created on the fly
        for argument in self._arguments.values():
            for name in argument.groups:
                if name in self._arguments:
                    raise DuplicateArgumentError(f"group {name!r} of argument {argument.name!r} clashes with an argument")
                if name not in self._groups:
                    self._groups[name] = Group(name).freeze()
                    self._members[name] = []
                if argument.name not in self._members[name]:
                    self._members[name].append(argument.name)

        self._members = {name: tuple(members) for name, members in self._members.items()}

    def _assign_indices(self):
        taken = {}
        for argument in self._arguments.values():
            if argument.positional and argument.index is not None:
                if (owner := taken.setdefault(argument.index, argument.name)) != argument.name:
                    raise PositionalIndexGapError(
                        f"positional index {argument.index} is used by both {owner!r} and {argument.name!r}"
                    )
        candidate = 1
        for argument in self._arguments.values():
            if argument.positional and argument.index is None:
                while candidate in taken:
                    candidate += 1
                taken[candidate] = argument.name
        if sorted(taken) != list(range(1, len(taken) + 1)):
            missing = min(set(range(1, len(taken) + 1)) - set(taken))
            raise PositionalIndexGapError(f"positional indices must be contiguous, index {missing} is missing")
        self._indices = {name: index for index, name in sorted(taken.items())}

        last = max(taken, default=0)
        for name, index in self._indices.items():
            if self._arguments[name].multiple and index != last:
                raise PositionalMultipleNotLastError(
                    f"positional argument {name!r} accepts multiple values but is not the last positional"
                )

    def _check_references(self):
        known = self._arguments.keys() | self._groups.keys()
        for argument in self._arguments.values():
            references = (
                ("required_unless", argument.required_unless),
                ("conflicts_with", argument.conflicts_with),
                ("overrides_with", argument.overrides_with),
                ("requires", [target for _, target in argument.requires]),
                ("required_if", [trigger for trigger, _ in argument.required_ifs]),
                ("default_value_if", [trigger for trigger, _, _ in argument.default_value_ifs]),
            )
            for rule, names in references:
                for name in names:
                    if name not in known:
                        raise UnknownReferenceError(
                            f"argument {argument.name!r} refers to unknown argument or group {name!r} in {rule!r}",
                            argument=argument.name,
                            reference=name,
                        )

    def _check_smells(self):
        for argument in self._arguments.values():
            required = {target for value, target in argument.requires if value is None}
            for name in argument.conflicts_with:
                if name in required:
                    trigger(
                        ContradictoryRuleWarning(
                            f"argument {argument.name!r} both requires and conflicts with {name!r}",
                            arguments=(argument.name, name),
                            hint="it can never be used",
                        ),
                        **self._options,
                    )
            if argument.possible_values:
                defaults = [argument.default_value, *(default for _, _, default in argument.default_value_ifs)]
                for default in defaults:
                    if default is not None and default not in argument.possible_values:
                        trigger(
                            ImpossibleDefaultWarning(
                                f"default {default!r} of argument {argument.name!r} is not a possible value",
                                arguments=(argument.name,),
                                hint=f"possible values: {", ".join(argument.possible_values)}",
                            ),
                            **self._options,
                        )

    # --- public surface ---

    @property
    def arguments(self):
        return MappingProxyType(self._arguments)

    @property
    def groups(self):
        return MappingProxyType(self._groups)

    @property
    def positionals(self):
        return tuple(self._arguments[name] for name in self._indices)

    def index_of(self, name, /):
        return self._indices.get(name)

    def members_of(self, name, /):
        return self._members[name]

    def resolve(self, occurrences, /):
        """
        Resolve raw occurrences into Matches, or return the first ResolutionError.

        Raises (caller/tokenizer defects, never returned)
        - UnknownArgumentError: an occurrence names an unregistered argument.
        - ValueError: a presence-only argument received values.
        - TypeError: a validator returned something other than None/bool/str.
        """
        return _Resolution(self, self._normalize(occurrences)).run()

    def matches(self, occurrences, /):
        """
        Resolve raw occurrences into Matches, surfacing errors through trigger().
        """
        result = self.resolve(occurrences)
        if isinstance(result, ResolutionError):
            trigger(result, **self._options, docs=getdoc(result.code))
        return result

    def _normalize(self, occurrences, /):
        if not isinstance(occurrences, Occurrences):
            occurrences = Occurrences(occurrences)
        normalized = {}
        for name, records in occurrences.items():
            if (argument := self._arguments.get(name)) is None:
                raise UnknownArgumentError(f"occurrence of unknown argument {name!r}", argument=name)
            if not records:
                continue
            if not argument.takes_value:
                if any(record.values for record in records):
                    raise ValueError(f"argument {name!r} does not take values")
            elif (terminator := argument.value_terminator) is not None:
                records = tuple(
                    record._replace(values=record.values[:-1])
                    if record.values and record.values[-1] == terminator else record
                    for record in records
                )
            normalized[name] = list(records)
        return normalized

    def __repr__(self):
        return f"resolver(arguments={list(self._arguments)!r}, groups={list(self._groups)!r})"

    def __rich_repr__(self):
        yield "arguments", list(self._arguments.values())
        yield "groups", list(self._groups.values())


class _Resolution:
    """
    State of one resolve() call; the resolver itself is never mutated.
    """

    def __init__(self, resolver, occurrences, /):
        self.resolver = resolver
        self.arguments = resolver._arguments
        self.groups = resolver._groups
        self.occurrences = occurrences
        self.present = set(occurrences)
        self.dropped = set()
        self.defaulted = {}
        self.satisfied = set()
        self.required = {}
        self.required_groups = {}
        self.mandatory = frozenset()
        self.propagated = set()
        self.cache = {}

    def run(self):
        for step in (
            self.override,
            self.conflict,
            self.derive,
            self.require,
            self.propagate,
            self.default,
            self.missing,
            self.materialize,
            self.cardinality,
            self.content,
        ):
            if (error := step()) is not None:
                return error
        return self.produce()

    # --- helpers ---

    def is_present(self, name, /):
        return name in self.present or name in self.satisfied

    def latest(self, name, /):
        return max(record.position for record in self.occurrences[name])

    def values(self, name, /):
        if name in self.cache:
            return self.cache[name]
        if (argument := self.arguments.get(name)) is None or name not in self.present or not argument.takes_value:
            return ()
        if name in self.defaulted:
            raw = [self.defaulted[name]]
        else:
            raw = [value for record in self.occurrences[name] for value in record.values]
        if (delimiter := argument.delimiter) is not None:
            raw = [part for value in raw for part in value.split(delimiter)]
        self.cache[name] = values = tuple(raw)
        return values

    def first(self, name, /):
        return values[0] if (values := self.values(name)) else None

    def expand(self, name, /):
        """
        names an argument rule can hit: the argument itself, or every member of a group.
        """
        if name in self.groups:
            return self.resolver.members_of(name)
        return (name,)

    def label(self, name, /):
        if (argument := self.arguments.get(name)) is not None:
            return argument.label
        return name

    def drop(self, name, /):
        self.present.discard(name)
        self.dropped.add(name)
        self.occurrences.pop(name, None)
        self.cache.pop(name, None)

    # --- passes ---

    def override(self):
        for argument in self.arguments.values():
            for target in argument.overrides_with:
                if argument.name not in self.present:
                    break
                if target == argument.name:
                    records = self.occurrences[argument.name]
                    self.occurrences[argument.name] = [max(records, key=lambda record: record.position)]
                    self.cache.pop(argument.name, None)
                    continue
                for other in self.expand(target):
                    if other == argument.name or other not in self.present:
                        continue
                    if self.latest(other) > self.latest(argument.name):
                        self.drop(argument.name)
                        break
                    self.drop(other)

    def conflict(self):
        for argument in self.arguments.values():
            if argument.name not in self.present:
                continue
            for target in argument.conflicts_with:
                for other in self.expand(target):
                    if other != argument.name and other in self.present:
                        return self.conflicting(argument.name, other)
        for group in self.groups.values():
            if group.exclusive:
                members = [member for member in self.resolver.members_of(group.name) if member in self.present]
                if len(members) > 1:
                    return self.conflicting(*members[:2])

    def conflicting(self, name, other, /):
        position = self.latest(other)
        return ArgumentConflictError(
            f"argument {self.label(name)!r} cannot be used with {self.label(other)!r} "
            f"(from {ordinal(position)} position)",
            arguments=(name, other),
            hint="remove one of them",
        )

    def derive(self):
        self.satisfied = set()
        for group in self.groups.values():
            members = self.resolver.members_of(group.name)
            hits = [member in self.present for member in members]
            if members and (all(hits) if group.all else any(hits)):
                self.satisfied.add(group.name)

    def require(self):
        for argument in self.arguments.values():
            if argument.required:
                if argument.required_unless:
                    hits = [self.is_present(name) for name in argument.required_unless]
                    if not (all(hits) if argument.is_set(Setting.REQUIRED_UNLESS_ALL) else any(hits)):
                        self.required[argument.name] = argument.required_unless
                else:
                    self.required[argument.name] = ()
            for trigger, value in argument.required_ifs:
                if self.is_present(trigger) and self.first(trigger) == value:
                    self.required.setdefault(argument.name, ())
        for group in self.groups.values():
            if group.required:
                self.required_groups[group.name] = None
        self.mandatory = frozenset(self.required)

    def propagate(self, names=Unset, /):
        queue = deque(coalesce(names, [name for name in self.arguments if name in self.present]))
        while queue:
            if (name := queue.popleft()) in self.propagated:
                continue
            self.propagated.add(name)
            for value, target in self.arguments[name].requires:
                if value is not None and self.first(name) != value:
                    continue
                if target in self.groups:
                    self.required_groups.setdefault(target, name)
                else:
                    self.required.setdefault(target, ())

    def default(self):
        added = []
        for argument in self.arguments.values():
            if argument.name in self.present or argument.name in self.dropped or argument.name in self.mandatory:
                continue
            default = argument.default_value
            for trigger, value, text in argument.default_value_ifs:
                if self.is_present(trigger) and (value is None or self.first(trigger) == value):
                    default = text
                    break
            if default is not None:
                self.defaulted[argument.name] = default
                self.present.add(argument.name)
                added.append(argument.name)
        self.propagate(added)
        self.derive()

    def missing(self):
        for argument in self.arguments.values():
            if argument.name not in self.required or argument.name in self.present or argument.name in self.dropped:
                continue
            unless = self.required[argument.name]
            return MissingRequiredArgumentError(
                f"the required argument {argument.label!r} was not provided",
                arguments=(argument.name,),
                hint=(
                    f"provide it or {"all" if argument.is_set(Setting.REQUIRED_UNLESS_ALL) else "one"} of "
                    f"{", ".join(repr(self.label(name)) for name in unless)}"
                    if unless else "provide it"
                ),
            )
        for name in self.required_groups:
            if name in self.satisfied:
                continue
            group = self.groups[name]
            members = self.resolver.members_of(name)
            return MissingRequiredArgumentError(
                f"the required group {name!r} was not provided",
                arguments=(name, *members),
                hint=f"provide {"all" if group.all else "one"} of {", ".join(repr(self.label(member)) for member in members)}",
            )

    def materialize(self):
        for name in self.present:
            self.values(name)

    def cardinality(self):
        for argument in self.arguments.values():
            if argument.name not in self.present:
                continue
            records = self.occurrences.get(argument.name, ())
            if len(records) > 1 and not argument.multiple:
                return UnexpectedMultipleUsageError(
                    f"argument {argument.label!r} was provided more than once "
                    f"(again from {ordinal(records[1].position)} position)",
                    arguments=(argument.name,),
                    hint="provide it only once",
                )
            if not argument.takes_value:
                continue
            count = len(values := self.values(argument.name))
            expected = argument.number_of_values
            if expected is None and len(argument.value_names) > 1:
                expected = len(argument.value_names)
            if expected is not None:
                if argument.multiple:
                    wrong = count == 0 or count % expected != 0
                else:
                    wrong = count != expected
                if wrong:
                    return WrongNumberOfValuesError(
                        f"argument {argument.label!r} expects {_counted(expected, "value")}"
                        f"{" per occurrence" if argument.multiple else ""} but received {count}",
                        arguments=(argument.name,),
                        values=values,
                        hint=f"provide exactly {_counted(expected, "value")}",
                    )
                continue
            if (minimum := argument.min_values) is not None and count < minimum:
                return TooFewValuesError(
                    f"argument {argument.label!r} expects at least {_counted(minimum, "value")} but received {count}",
                    arguments=(argument.name,),
                    values=values,
                    hint=f"provide at least {_counted(minimum, "value")}",
                )
            if (maximum := argument.max_values) is not None and count > maximum:
                return TooManyValuesError(
                    f"argument {argument.label!r} expects at most {_counted(maximum, "value")} but received {count}",
                    arguments=(argument.name,),
                    values=values,
                    hint=f"provide at most {_counted(maximum, "value")}",
                )

    def content(self):
        for argument in self.arguments.values():
            if argument.name not in self.present or not argument.takes_value:
                continue
            for value in self.values(argument.name):
                if not value and not argument.is_set(Setting.EMPTY_VALUES):
                    return EmptyValueError(
                        f"argument {argument.label!r} cannot have an empty value",
                        arguments=(argument.name,),
                        values=(value,),
                        hint="provide a non-empty value",
                    )
                if argument.possible_values and value not in argument.possible_values:
                    return InvalidValueError(
                        f"{value!r} isn't a valid value for {argument.label!r}",
                        arguments=(argument.name,),
                        values=(value,),
                        hint=f"possible values: {", ".join(argument.possible_values)}",
                    )
                if argument.validator is not None:
                    if (message := _outcome(argument, argument.validator(value), value)) is not None:
                        return InvalidValueError(message, arguments=(argument.name,), values=(value,))
                if argument.validator_os is not None:
                    if (message := _outcome(argument, argument.validator_os(os.fsencode(value)), value)) is not None:
                        return InvalidValueError(message, arguments=(argument.name,), values=(value,))

    def produce(self):
        matched = {}
        for argument in self.arguments.values():
            if argument.name not in self.present:
                continue
            if argument.name in self.defaulted:
                matched[argument.name] = MatchedArgument(0, self.values(argument.name), Provenance.DEFAULTED)
            else:
                matched[argument.name] = MatchedArgument(
                    len(self.occurrences[argument.name]), self.values(argument.name), Provenance.EXPLICIT
                )
        return Matches(matched, self.satisfied)


def resolve(arguments, groups, occurrences, /):
    """
    One-shot resolution: build a Resolver and resolve occurrences against it.

    Returns Matches, or the first ResolutionError as a value.
    """
    return Resolver(arguments, groups).resolve(occurrences)


__all__ = (
    "Resolver",
    "resolve",
)
