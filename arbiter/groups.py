"""
Arbiter argument groups.

A Group names a set of arguments so rules can refer to all of them at once.

- presence: a group is present when any member is present, or, with all=True,
  when every member is present.
- required: the group itself must be present after resolution.
- exclusive: at most one member may be present.

Groups are appendable (arg/args return the group for chaining) until they are
frozen, which happens when a Resolver registers them. Members are not checked
here; the resolver rejects unknown members when it is constructed.
"""
from .internals import SpecificationType


class Group(metaclass=SpecificationType):
    __introspectable__ = (
        "name",
        "members",
        "all",
        "required",
        "exclusive",
    )

    def __init__(self, name, /, *members, all=False, required=False, exclusive=False):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not name.strip():
            raise ValueError(f"{type(self).__typename__} 'name' cannot be empty")
        for flag, value in (("all", all), ("required", required), ("exclusive", exclusive)):
            if not isinstance(value, bool):
                raise TypeError(f"{type(self).__typename__} {name!r} {flag!r} must be a boolean")
        if all and exclusive:
            raise TypeError(f"{type(self).__typename__} {name!r} cannot be both 'all' and 'exclusive'")
        object.__setattr__(self, "-name", name)
        object.__setattr__(self, "-members", [])
        object.__setattr__(self, "-all", all)
        object.__setattr__(self, "-required", required)
        object.__setattr__(self, "-exclusive", exclusive)
        object.__setattr__(self, "frozen", False)
        self.args(members)

    def arg(self, name, /):
        if self.frozen:
            raise TypeError(f"{type(self).__typename__} {self.name!r} is frozen and cannot be modified")
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} {self.name!r} members must be strings")
        members = object.__getattribute__(self, "-members")
        if name not in members:
            members.append(name)
        return self

    def args(self, names, /):
        if isinstance(names, str):
            raise TypeError(f"{type(self).__typename__} {self.name!r} members must be an iterable of strings")
        for name in names:
            self.arg(name)
        return self

    def freeze(self):
        object.__setattr__(self, "frozen", True)
        return self

    def __group__(self):
        return self.freeze()

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__typename__} attributes are read-only")

    def __contains__(self, name, /):
        return name in object.__getattribute__(self, "-members")

    def __iter__(self):
        return iter(self.members)

    def __len__(self):
        return len(self.members)


__all__ = (
    "Group",
)
