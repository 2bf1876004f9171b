"""
Argbind schema builder: derive field descriptors from a record class.

What this module provides
- Kind: semantic kind of a field (flag, counter, boolean, enumeration,
  scalar, array).
- Field: immutable descriptor for one Argument of a record class.
- Schema: the ordered fields, the option lookup table and the positional
  queue of a record class, plus its Project metadata.
- schema(cls): build the Schema of a class once and return the cached
  object on every later call.

Build-time validation (raised, never recorded in a parse result)
- duplicate option tokens           → DuplicateOptionError
- tokens not shaped `-x` / `--word`  → MalformedOptionError
- counters not typed as plain int, without option tokens, or with a
  non-int default
                                    → MentionCounterError
- arrays of flags, nested arrays, unconvertible or unresolvable annotations
                                    → UnsupportedKindError

Concurrency
- The registry is process-wide and guarded by a lock with a double-checked
  lookup: concurrent first uses of a class never observe a partially built
  schema and never build it twice.
"""
import collections.abc
import enum
import re
import threading
import typing
from types import MappingProxyType

from .arguments import Argument, ArgumentType, Flag, unwrap
from .faults import *
from .utils import Unset


class Kind(enum.Enum):
    """
    How a field binds to the token stream.

    - FLAG: set by presence, consumes no value.
    - COUNTER: incremented once per mention, consumes no value.
    - BOOLEAN / ENUMERATION / SCALAR: consume exactly one value.
    - ARRAY: consumes values until an option, the end of input or the fixed
      length is reached.
    """
    FLAG = "flag"
    COUNTER = "counter"
    BOOLEAN = "boolean"
    ENUMERATION = "enumeration"
    SCALAR = "scalar"
    ARRAY = "array"

    @property
    def consuming(self):
        """
        True when the kind reads at least one value token.
        """
        return self not in (Kind.FLAG, Kind.COUNTER)


_SEQUENCES = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)


def _scalar_kind(owner, attribute, declared, /):
    """
    Internal: kind of a single-value type.
    """
    if declared is Flag:
        return Kind.FLAG
    if declared is bool:
        return Kind.BOOLEAN
    if isinstance(declared, type) and issubclass(declared, enum.Enum):
        return Kind.ENUMERATION
    if isinstance(declared, type) or callable(declared) and typing.get_origin(declared) is None:
        return Kind.SCALAR
    raise UnsupportedKindError(f"field {owner.__name__}.{attribute} has an unsupported type {declared!r}")


def _resolve(owner, attribute, argument, /):
    """
    Internal: derive (kind, element, converter, container) for an Argument.

    - element: Kind of array elements (None for non-arrays)
    - converter: callable / enum / bool / Flag used to build a single value
    - container: list or tuple for arrays (None otherwise)
    """
    try:
        declared = argument.declared()
    except (NameError, AttributeError, TypeError, SyntaxError) as exception:
        raise UnsupportedKindError(
            f"field {owner.__name__}.{attribute} has an unresolvable annotation: {exception}"
        ) from exception

    if argument.mentions:
        if declared is not int:
            raise MentionCounterError(
                f"field {owner.__name__}.{attribute} has to be an int to count mentions"
            )
        if not argument.options:
            raise MentionCounterError(
                f"field {owner.__name__}.{attribute} has to declare option names to count mentions"
            )
        default = argument.default
        if default is not Unset and (not isinstance(default, int) or isinstance(default, bool)):
            raise MentionCounterError(
                f"field {owner.__name__}.{attribute} has to default to an int to count mentions"
            )
        return Kind.COUNTER, None, int, None

    origin = typing.get_origin(declared)
    if declared in (list, tuple) or origin in _SEQUENCES:
        arguments = typing.get_args(declared)
        container = tuple if tuple in (declared, origin) else list

        if origin is tuple and not (len(arguments) == 2 and arguments[1] is Ellipsis):
            raise UnsupportedKindError(
                f"field {owner.__name__}.{attribute} must use tuple[T, ...] for arrays"
            )

        element = unwrap(arguments[0]) if arguments else str
        if typing.get_origin(element) in _SEQUENCES or element in (list, tuple):
            raise UnsupportedKindError(f"field {owner.__name__}.{attribute} cannot be a nested array")

        kind = _scalar_kind(owner, attribute, element)
        if not kind.consuming:
            raise UnsupportedKindError(f"field {owner.__name__}.{attribute} cannot be an array of flags")
        return Kind.ARRAY, kind, element, container

    return _scalar_kind(owner, attribute, declared), None, declared, None


class Field(metaclass=ArgumentType):
    """
    Immutable descriptor of one bindable field.

    Properties
    - index: position in Schema.fields
    - attribute: attribute name on the record class
    - kind / element / converter / container: see _resolve()
    - options: option tokens in declaration order (empty ⇒ positional)
    - name: display name (explicit name or the attribute name)
    - descr: description or None
    - length: fixed array length (0 = unbounded)
    - nonempty: arrays must receive at least one element
    - mandatory: positional, or explicitly marked mandatory
    - argument: the originating Argument declaration
    """

    __introspectable__ = (
        "index",
        "attribute",
        "kind",
        "element",
        "converter",
        "container",
        "options",
        "name",
        "descr",
        "length",
        "nonempty",
        "mandatory",
        "argument",
    )
    __displayable__ = (
        "attribute",
        "kind",
        "element",
        "converter",
        "options",
        "name",
        "length",
        "nonempty",
        "mandatory",
    )

    def __init__(self, index, owner, attribute, argument, /):
        kind, element, converter, container = _resolve(owner, attribute, argument)

        self._index = index
        self._attribute = attribute
        self._kind = kind
        self._element = element
        self._converter = converter
        self._container = container
        self._options = argument.options
        self._name = argument.name or attribute
        self._descr = argument.descr
        self._length = argument.length
        self._nonempty = argument.nonempty
        self._mandatory = not argument.options or argument.mandatory
        self._argument = argument

    @property
    def positional(self):
        return not self._options


def _discover(cls, /):
    """
    Internal: Argument attributes of a class in declaration order, base
    classes first. A subclass attribute that is no longer an Argument hides
    the inherited one.
    """
    arguments = {}
    for klass in reversed(cls.__mro__):
        for attribute, value in vars(klass).items():
            if isinstance(value, Argument):
                arguments[attribute] = value
            elif attribute in arguments:
                del arguments[attribute]
    return arguments


class Schema(metaclass=ArgumentType):
    """
    Read-only parsing schema of a record class.

    Properties
    - type: the record class
    - fields: every Field, declaration order
    - options: option token → index into fields
    - positionals: fields without option tokens, declaration order
    - project: Project metadata (from @project) or None
    """

    __introspectable__ = (
        "type",
        "fields",
        "options",
        "positionals",
        "project",
    )

    def __init__(self, cls, /):
        fields = []
        options = {}

        for index, (attribute, argument) in enumerate(_discover(cls).items()):
            seen = set()
            for option in argument.options:
                if not re.fullmatch(r"-\w|--\w+", option, flags=re.ASCII):
                    raise MalformedOptionError(
                        f"invalid option format {option!r} on {cls.__name__}.{attribute}, "
                        f"format has to match -\\w|--\\w+"
                    )
                if option in seen or option in options:
                    raise DuplicateOptionError(f"duplicate option {option!r} on {cls.__name__}.{attribute}")
                seen.add(option)
                options[option] = index
            fields.append(Field(index, cls, attribute, argument))

        self._type = cls
        self._fields = tuple(fields)
        self._options = MappingProxyType(options)
        self._positionals = tuple(field for field in fields if field.positional)
        self._project = getattr(cls, "__project__", None)

    def lookup(self, token, /):
        """
        The Field bound to an option token, or None.
        """
        try:
            return self._fields[self._options[token]]
        except KeyError:
            return None

    def field(self, attribute, /):
        """
        The Field declared under an attribute name.

        Raises
        - KeyError: when the class declares no such argument.
        """
        for field in self._fields:
            if field.attribute == attribute:
                return field
        raise KeyError(attribute)

    def instantiate(self):
        """
        A fresh record instance holding only defaults.
        """
        return self._type()


_registry = {}
_lock = threading.Lock()


def schema(cls, /):
    """
    Return the Schema of a record class, building it on first use.

    Later calls return the very same Schema object. Build failures are not
    cached: they raise again on the next call.

    Raises
    - TypeError: when cls is not a class.
    - SchemaError: when the declaration is invalid (see module docs).
    """
    if not isinstance(cls, type):
        raise TypeError("schema() argument must be a class")
    try:
        return _registry[cls]
    except KeyError:
        pass
    with _lock:
        if (cached := _registry.get(cls)) is None:
            cached = _registry[cls] = Schema(cls)
        return cached


__all__ = (
    "Kind",
    "Field",
    "Schema",
    "schema",
)
