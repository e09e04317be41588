"""
Arbiter declarative loaders.

Turn already-parsed data (from YAML, TOML, JSON, or a literal) into blueprints.
Each entry is a single-key mapping {name: {setting: value, ...}}; every setting
key maps onto the blueprint mutator of the same name ('global' maps onto
global_). Where a rule accepts several names, a single string is accepted too.

    >>> blueprint = from_mapping({"config": {"short": "c", "long": "config", "value_name": "FILE"}})
    >>> blueprint.build().label
    '--config'

Unknown keys raise UnknownSettingError naming the key and the argument.
"""
from collections.abc import Iterable, Mapping

from .arguments import Blueprint
from .faults import UnknownSettingError


def _strings(name, key, value, /):
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise TypeError(f"setting {key!r} of argument {name!r} must be a string or a list of strings")


def _tuples(name, key, value, size, /):
    """
    accept either one tuple ([a, b]) or a list of tuples ([[a, b], [c, d]]).
    """
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise TypeError(f"setting {key!r} of argument {name!r} must be a list of {size}-item lists")
    value = list(value)
    if len(value) == size and all(isinstance(item, str | None) for item in value):
        value = [value]
    rules = []
    for item in value:
        if isinstance(item, str) or not isinstance(item, Iterable) or len(item := tuple(item)) != size:
            raise TypeError(f"setting {key!r} of argument {name!r} must be a list of {size}-item lists")
        rules.append(item)
    return rules


def from_mapping(mapping, /):
    """
    Build one Blueprint from a single-key mapping {name: settings}.

    Settings may be None (an argument with no settings at all).
    """
    if not isinstance(mapping, Mapping) or len(mapping) != 1:
        raise TypeError("from_mapping() argument must be a single-key mapping {name: settings}")
    (name, settings), = mapping.items()
    if settings is None:
        settings = {}
    if not isinstance(settings, Mapping):
        raise TypeError(f"settings of argument {name!r} must be a mapping")

    blueprint = Blueprint(name)
    for key, value in settings.items():
        match key:
            case "short" | "long" | "help" | "long_help" | "value_name" | "value_delimiter" | "value_terminator" \
                 | "default_value" | "required_unless" | "index" | "number_of_values" | "min_values" \
                 | "max_values" | "display_order":
                getattr(blueprint, key)(value)
            case "required" | "takes_value" | "multiple" | "hidden" | "next_line_help" | "empty_values" \
                 | "use_delimiter" | "allow_hyphen_values" | "require_delimiter":
                getattr(blueprint, key)(bool(value))
            case "global":
                blueprint.global_(bool(value))
            case "aliases" | "visible_aliases" | "value_names" | "possible_values" | "groups" \
                 | "required_unless_one" | "required_unless_all":
                getattr(blueprint, key)(_strings(name, key, value))
            case "group":
                blueprint.groups(_strings(name, key, value))
            case "requires":
                blueprint.requires_all(_strings(name, key, value))
            case "conflicts_with":
                blueprint.conflicts_with_all(_strings(name, key, value))
            case "overrides_with":
                blueprint.overrides_with_all(_strings(name, key, value))
            case "requires_if" | "requires_ifs":
                blueprint.requires_ifs(_tuples(name, key, value, 2))
            case "required_if" | "required_ifs":
                blueprint.required_ifs(_tuples(name, key, value, 2))
            case "default_value_if" | "default_value_ifs":
                blueprint.default_value_ifs(_tuples(name, key, value, 3))
            case _:
                raise UnknownSettingError(
                    f"unknown setting {key!r} for argument {name!r}", key=key, argument=name
                )
    return blueprint


def from_mappings(mappings, /):
    """
    Build blueprints, in order, from a mapping {name: settings, ...} or from an
    iterable of single-key mappings.
    """
    if isinstance(mappings, Mapping):
        mappings = ({name: settings} for name, settings in mappings.items())
    return [from_mapping(mapping) for mapping in mappings]


__all__ = (
    "from_mapping",
    "from_mappings",
)
