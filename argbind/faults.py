"""
Argbind faults: error bitmask, diagnostics and schema errors.

Scope
- ArgumentError: the combinable bitmask summarizing one parse pass
  (MISSING_VALUE, WRONG_VALUE, EMPTY_ARRAY).
- FaultCode: stable numeric identifiers for every diagnostic. The hundreds
  digit encodes which ArgumentError bit the diagnostic records.
- Fault: base type for recoverable problems. Faults are never raised by the
  parser; they are pushed to a sink and render themselves as one rich line.
- SchemaError: base type for programming errors in a schema declaration.
  These are raised at first schema use and are not part of the bitmask.
- trigger(): merge runtime options into a fault and hand it to a sink.

UX goals
- Position-first messages (“at third position”) so users learn by trying.
- Short titles, one-sentence bodies, a single hint.
- Palette overridable via __styles__ in __main__, labels via __codes__.
"""
import copy
from collections import defaultdict
from enum import IntEnum, IntFlag
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class ArgumentError(IntFlag):
    """
    Combinable categories of recoverable problems found during a parse.

    - MISSING_VALUE: an option requiring a value had none (end of input, or
      the next token was another option).
    - WRONG_VALUE: a value failed its coercion, or a token matched neither an
      option nor a remaining positional slot.
    - EMPTY_ARRAY: a non-empty array field ended up with zero elements.
    """
    NONE          = 0
    MISSING_VALUE = 1
    WRONG_VALUE   = 2
    EMPTY_ARRAY   = 4


class FaultCode(IntEnum):
    """
    canonical fault codes for parse diagnostics (stable identifiers).

    grouping
    - missing values (111xx) → ArgumentError.MISSING_VALUE
      • MISSING_VALUE, PREEMPTED_VALUE
    - wrong values (112xx) → ArgumentError.WRONG_VALUE
      • UNKNOWN_ARGUMENT, INVALID_BOOLEAN, ENUM_OUT_OF_RANGE,
        UNKNOWN_ENUM_NAME, UNCASTABLE_VALUE
    - empty arrays (113xx) → ArgumentError.EMPTY_ARRAY
      • EMPTY_ARRAY
    """
    # --- missing values (111xx) ---
    MISSING_VALUE     = 11101
    PREEMPTED_VALUE   = 11102

    # --- wrong values (112xx) ---
    UNKNOWN_ARGUMENT  = 11201
    INVALID_BOOLEAN   = 11202
    ENUM_OUT_OF_RANGE = 11203
    UNKNOWN_ENUM_NAME = 11204
    UNCASTABLE_VALUE  = 11205

    # --- empty arrays (113xx) ---
    EMPTY_ARRAY       = 11301

    @property
    def error(self):
        """
        the ArgumentError bit recorded when a fault with this code is triggered.
        """
        return {
            111: ArgumentError.MISSING_VALUE,
            112: ArgumentError.WRONG_VALUE,
            113: ArgumentError.EMPTY_ARRAY,
        }[self.value // 100]

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class SchemaError(Exception):
    """
    A schema declaration is invalid. Raised at first use of the schema.
    """


class DuplicateOptionError(SchemaError, ValueError): ...
class MalformedOptionError(SchemaError, ValueError): ...
class MentionCounterError(SchemaError, TypeError): ...
class UnsupportedKindError(SchemaError, TypeError): ...


class Fault(Warning):
    """
    A recoverable parse problem.

    Options commonly carried
    - code: FaultCode (required for rendering and for the recorded bit)
    - title: short headline
    - hint: one actionable suggestion (optional)
    - input: the offending token
    - index: 1-based position of the token in the normalized stream
    - field: the Field the problem relates to (optional)
    - prog: program name shown in the header (optional)
    - colorful: style the rendering (default True)
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def error(self):
        return self.options["code"].error

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code
            "fault-title": "bold #FFC2E0",  # soft pinky title
            "fault-message": "#D6D6DE",  # light gray body
            "hint-arrow": "#B8EFAF dim",  # green arrow
            "hint": "italic #B8EFAF",  # green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style])

        prog = getattr(main, "__prog__", self.options.get("prog"))

        line = Text.assemble(
            "[ ",
            *((text(prog, "prog-name"), " — ") if prog else ()),
            text(self.options["code"].normalize(), "code"),
            " | ",
            text(self.options.get("title", "").lower(), "fault-title"),
            " ] ",
            text(str(self), "fault-message"),
        )
        if hint := self.options.get("hint"):
            line.append_text(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return line

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingValueFault(Fault): ...
class PreemptedValueFault(Fault): ...
class UnknownArgumentFault(Fault): ...
class InvalidBooleanFault(Fault): ...
class EnumOutOfRangeFault(Fault): ...
class UnknownEnumNameFault(Fault): ...
class UncastableValueFault(Fault): ...
class EmptyArrayFault(Fault): ...


def emit(fault, /):
    """
    default sink: print the fault as one line on stderr.
    """
    console.print(fault)


def trigger(fault, sink=Unset, /, **options):
    """
    surface a fault through a sink with the given runtime options.

    contract
    - fault must be a Fault; options are merged via copy.replace(...).
    - sink is any callable taking the merged fault (defaults to emit()).
    - returns the ArgumentError bit the fault stands for so callers can
      accumulate it.
    """
    if not isinstance(fault, Fault):
        raise TypeError("trigger() first argument must be a fault")
    fault = copy.replace(fault, **options)
    (emit if sink is Unset else sink)(fault)
    return fault.error


__all__ = (
    "ArgumentError",
    "FaultCode",
    "SchemaError",
    "DuplicateOptionError",
    "MalformedOptionError",
    "MentionCounterError",
    "UnsupportedKindError",
    "Fault",
    "MissingValueFault",
    "PreemptedValueFault",
    "UnknownArgumentFault",
    "InvalidBooleanFault",
    "EnumOutOfRangeFault",
    "UnknownEnumNameFault",
    "UncastableValueFault",
    "EmptyArrayFault",
    "emit",
    "trigger",
)
