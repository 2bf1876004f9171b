r"""
Argbind argument declarations.

Overview
- Declarations
  • Argument: metadata for one bindable field of a record class. It is a data
    descriptor: reading it on an instance yields the parsed value (or the
    field default), writing stores a value.
  • Flag: presence-only value type. A field annotated with Flag is set by the
    mere presence of its option token and consumes no value.
  • Project / @project(...): schema-level metadata used by help rendering.

- Introspection & representation
  • ArgumentType metaclass gives stable __repr__/__rich_repr__ and exposes the
    names listed in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- options: Iterable[str], positional-only. Empty ⇒ the field is positional
  (mandatory). Their grammar and uniqueness are checked when the schema is
  built, not here.
- name: Unset | str (display name, defaults to the attribute name).
- descr: Unset | str | Text (short help).
- type: Unset | Callable (overrides the annotation).
- default: any value; when Unset, counters default to 0, flags to Flag(False)
  and everything else to None.
- length: int >= 0 (fixed array length, 0 = unbounded).
- nonempty / mentions / mandatory: bool.

Quick example:
    >>> from argbind import Argument, Flag
    >>> class Args:
    ...     source: str = Argument(descr="file to read")
    ...     level: int = Argument("-l", "--level", default=1)
    ...     verbose: int = Argument("-v", mentions=True)
    ...     dry: Flag = Argument("-n", "--dry-run")
"""
import builtins
import copy
import functools
import operator
import re
import types
import typing
from typing import final

from rich.text import Text

from .utils import *


class ArgumentType(type):
    """
    Metaclass for declaration and schema objects.

    Responsibilities
    - Expose fields named in __introspectable__ as read-only properties
      mirroring the private "_<name>" backing attributes.
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens).
    - __displayable__ (if set) narrows which properties __rich_repr__ shows.
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
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
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


def _sanitize_text(cls, metadata, key, /):
    """
    Internal: a display string must be Unset or non-empty after trimming.
    """
    if not isinstance(value := metadata[key], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    elif isinstance(value, str) and not (value := value.strip()):
        raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
    metadata[key] = coalesce(value)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate Argument metadata in place.

    Raises
    - TypeError: wrong types (non-string options, non-callable type, non-int length).
    - ValueError: empty name/descr, negative length.
    """
    options = []
    for option in metadata["options"]:
        if not isinstance(option, str):
            raise TypeError(f"{cls.__typename__} options must be strings")
        options.append(option)
    metadata["options"] = tuple(options)

    _sanitize_text(cls, metadata, "name")
    _sanitize_text(cls, metadata, "descr")

    if not (metadata["type"] is Unset or callable(metadata["type"])):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if not isinstance(length := metadata["length"], int) or isinstance(length, bool):
        raise TypeError(f"{cls.__typename__} 'length' must be an integer")
    elif length < 0:
        raise ValueError(f"{cls.__typename__} 'length' must be zero or a positive integer")


@final
class Flag:
    """
    Presence-only boolean value.

    Unlike a bool field, which takes an explicit value on the command line
    (`--color yes`), a Flag field becomes true when its option token appears and
    never consumes the following token.

    Flag(True) and Flag(False) are the only two instances; both compare equal to
    the matching bool.
    """
    __slots__ = ("_value",)

    def __new__(cls, value=False, /):
        return _flag(bool(value))

    def __bool__(self):
        return self._value

    def __eq__(self, other):
        if isinstance(other, Flag | bool):
            return bool(self) == bool(other)
        return NotImplemented

    def __hash__(self):
        return hash(self._value)

    def __setattr__(self, name, value):
        raise AttributeError("flag values are immutable")

    def __repr__(self):
        return f"Flag({self._value})"

    def __str__(self):
        return str(self._value)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return Flag, (self._value,)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'Flag' is not an acceptable base type")


@functools.cache
def _flag(value, /):
    self = object.__new__(Flag)
    object.__setattr__(self, "_value", value)
    return self


def unwrap(annotation, /):
    """
    Strip `X | None` / Optional[X] down to X. Other annotations pass through.
    """
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        members = [member for member in typing.get_args(annotation) if member is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


class Argument[_T](metaclass=ArgumentType):
    """
    Metadata for one bindable field, installed as a class attribute.

    Arguments without option tokens are positional: they are filled in
    declaration order from tokens that match no option. Arguments with option
    tokens are optional unless mandatory=True.

    Properties
    - The names in __introspectable__ are exposed as read-only attributes.
    - attribute / owner are filled by __set_name__ when the class is created.
    """

    __introspectable__ = (
        "options",
        "name",
        "descr",
        "type",
        "default",
        "length",
        "nonempty",
        "mentions",
        "mandatory",
        "attribute",
        "owner",
    )
    __displayable__ = (
        "attribute",
        "options",
        "name",
        "type",
        "default",
        "length",
        "nonempty",
        "mentions",
        "mandatory",
    )

    def __init__(
            self,
            *options,
            name=Unset,
            descr=Unset,
            type=Unset,
            default=Unset,
            length=0,
            nonempty=False,
            mentions=False,
            mandatory=False,
    ):
        metadata = {
            "options": options,
            "name": name,
            "descr": descr,
            "type": type,
            "default": default,
            "length": length,
            "nonempty": bool(nonempty),
            "mentions": bool(mentions),
            "mandatory": bool(mandatory),
        }
        _sanitize_metadata(builtins.type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._attribute = None
        self._owner = None
        self._declared = Unset

    def __set_name__(self, owner, name):
        if self._attribute is not None and self._attribute != name:
            raise TypeError(f"argument already bound to attribute {self._attribute!r}")
        self._attribute = name
        self._owner = owner
        self._declared = Unset

    def declared(self):
        """
        The declared value type: explicit `type=`, else the owner's annotation,
        else str. Optional wrappers are stripped.

        Owner annotations are resolved once per binding; a failed resolution
        is not remembered and raises again on the next call.
        """
        if self._type is not Unset:
            return unwrap(self._type)
        if self._owner is None:
            return str
        if self._declared is Unset:
            hints = typing.get_type_hints(self._owner)
            self._declared = unwrap(hints.get(self._attribute, str))
        return self._declared

    def fallback(self):
        """
        The value a field holds before parsing touches it.
        """
        if self._default is not Unset:
            return self._default
        if self._mentions:
            return 0
        if self.declared() is Flag:
            return Flag(False)
        return None

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        try:
            return instance.__dict__[self._attribute]
        except KeyError:
            return instance.__dict__.setdefault(self._attribute, copy.copy(self.fallback()))

    def __set__(self, instance, value):
        instance.__dict__[self._attribute] = value

    def __delete__(self, instance):
        instance.__dict__.pop(self._attribute, None)


class Project(metaclass=ArgumentType):
    """
    Schema-level metadata consumed by help rendering.

    - name: program name (falls back to __prog__ in __main__ or argv[0])
    - version: version string
    - description: free text printed under the header
    - requirements: free text printed after the description
    - addendum: trailing remarks printed last
    """

    __introspectable__ = (
        "name",
        "version",
        "description",
        "requirements",
        "addendum",
    )

    def __init__(self, *, name=Unset, version=Unset, description=Unset, requirements=Unset, addendum=Unset):
        metadata = {
            "name": name,
            "version": version,
            "description": description,
            "requirements": requirements,
            "addendum": addendum,
        }
        for key in metadata:
            _sanitize_text(type(self), metadata, key)

        for key, object in metadata.items():
            setattr(self, "_" + key, object)


def project(**kwargs):
    """
    Class decorator attaching Project metadata to a record class.

    Usage
        @project(name="tool", version="1.2", description="does things")
        class Args:
            ...
    """
    metadata = Project(**kwargs)

    @rename("project")
    def wrapper(cls, /):
        if not isinstance(cls, type):
            raise TypeError("@project() must be applied to a class")
        cls.__project__ = metadata
        return cls

    return wrapper


__all__ = (
    # Classes
    "Argument",
    "Flag",
    "Project",

    # Decorators
    "project",
)
