"""
Argbind parser: bind a token stream onto a record class.

What this module provides
- normalize(tokens): split compact short-option clusters (-abc → -a -b -c) and
  turn the Windows-style /x prefix into -x.
- ArgumentParser: parse token lists into instances of a record class whose
  fields are declared with Argument(...).
- ParsedArguments: the result envelope (arguments/value, success,
  printed_help, errors).
- parse(cls, arguments): one-shot convenience wrapper.

Dispatch (one pass, left to right)
- `-h` / `--help` anywhere short-circuits: help is rendered and an untouched
  record is returned with success=True and printed_help=True.
- A token found in the option table binds its field (option path); otherwise
  the next positional field takes the token itself as its value; otherwise the
  token is reported as unrecognized.
- Flags are set and counters incremented without consuming a value.
- On the option path a value is read from the following token. A missing value
  at the end of input stops the loop; a value pre-empted by another option is
  reported and that option is processed next.
- Problems are reported through the sink and recorded in the ArgumentError
  bitmask; parsing always continues to give a complete picture.

Example
    >>> from argbind import Argument, Flag, parse
    >>> class Args:
    ...     source: str = Argument()
    ...     numbers: list[int] = Argument("-n")
    ...     quiet: Flag = Argument("-q")
    >>> result = parse(Args, ["in.txt", "-n", "1", "2", "-q"])
    >>> result.success, result.value.numbers, bool(result.value.quiet)
    (True, [1, 2], True)
"""
import functools
import re
import sys
from collections import namedtuple
from collections.abc import Iterable

from rich.console import Console

from .arguments import Flag
from .faults import *
from .helper import render_help
from .schemas import Kind, schema
from .utils import *

_AFFIRMATIVE = re.compile(r"on|true|yes|1", re.IGNORECASE)
_NEGATIVE = re.compile(r"off|false|not?|0", re.IGNORECASE)

_HELPERS = ("-h", "--help")


def normalize(tokens, /):
    """
    Rewrite raw tokens so every option reference is a standalone -x / --xyz.

    Rules, per token
    - length > 1, starting with '-' or '/', second char not '-': a compact
      cluster, every following char becomes its own '-<char>' token.
    - otherwise starting with '/' (and longer than one char): the leading '/'
      becomes '-'.
    - anything else passes through unchanged.
    """
    normalized = []
    for token in tokens:
        if len(token) > 1 and token[0] in "-/" and token[1] != "-":
            normalized.extend("-" + char for char in token[1:])
        elif len(token) > 1 and token[0] == "/":
            normalized.append("-" + token[1:])
        else:
            normalized.append(token)
    return normalized


class ParsedArguments(namedtuple("ParsedArguments", ("arguments", "success", "printed_help", "errors"))):
    """
    Result envelope of one parse.

    - arguments: the record instance (also available as `value`)
    - success: True iff no error was recorded (help mode counts as success)
    - printed_help: True iff help was rendered and nothing else was processed
    - errors: ArgumentError bitmask
    """
    __slots__ = ()

    @property
    def value(self):
        return self.arguments


class _Pass:
    """
    Mutable state of one parse: tokens, position, positional cursor, error
    bitmask and the record being filled. Never shared between parses.
    """

    def __init__(self, parser, tokens, /):
        self.parser = parser
        self.schema = parser.schema
        self.tokens = tokens
        self.index = 0
        self.cursor = 0
        self.errors = ArgumentError.NONE
        self.instance = self.schema.instantiate()

    def trigger(self, fault, /, **options):
        """
        report a fault through the parser sink and record its bit.
        """
        self.errors |= trigger(fault, self.parser.sink, **{
            "index": self.index + 1,
            "prog": self.parser.prog,
            "colorful": self.parser.colorful,
        } | options)

    def run(self):
        tokens = self.tokens
        options = self.schema.options
        positionals = self.schema.positionals

        while self.index < len(tokens):
            token = tokens[self.index]

            if (field := self.schema.lookup(token)) is not None:
                # optional argument, named by one of its option tokens
                input = token
                if not field.kind.consuming:
                    self._mention(field)
                    continue

                self.index += 1
                if self.index == len(tokens):
                    self.trigger(MissingValueFault(
                        "missing value for %r at the end of input" % input,
                        title="missing value",
                        code=FaultCode.MISSING_VALUE,
                        hint="pass a value after %r" % input,
                        input=input,
                        field=field,
                    ), index=self.index)
                    break
                if tokens[self.index] in options:
                    self.trigger(PreemptedValueFault(
                        "missing value for %r, encountered option %r at %s position instead" % (
                            input, tokens[self.index], ordinal(self.index + 1)
                        ),
                        title="missing value",
                        code=FaultCode.PREEMPTED_VALUE,
                        hint="put a value between %r and %r" % (input, tokens[self.index]),
                        input=input,
                        field=field,
                    ), index=self.index)
                    continue
            elif self.cursor < len(positionals):
                # required argument, filled from the token itself
                field = positionals[self.cursor]
                input = field.name
                self.cursor += 1
                if not field.kind.consuming:
                    self._mention(field)
                    continue
            else:
                self.trigger(UnknownArgumentFault(
                    "argument %r at %s position not recognized" % (token, ordinal(self.index + 1)),
                    title="unknown argument",
                    code=FaultCode.UNKNOWN_ARGUMENT,
                    hint="try '--help' to see all available options",
                    input=token,
                ))
                self.index += 1
                continue

            if field.kind is Kind.ARRAY:
                self._collect(field, input)
            else:
                value = self._coerce(field, field.kind, input, tokens[self.index])
                if value is not Unset:
                    setattr(self.instance, field.attribute, value)
                self.index += 1

        return ParsedArguments(self.instance, self.errors == ArgumentError.NONE, False, self.errors)

    def _mention(self, field, /):
        """
        flags are set, counters incremented; neither consumes a value.
        """
        if field.kind is Kind.FLAG:
            setattr(self.instance, field.attribute, Flag(True))
        else:
            setattr(self.instance, field.attribute, getattr(self.instance, field.attribute) + 1)
        self.index += 1

    def _collect(self, field, input, /):
        """
        consume array elements until an option, the end of input, or the
        fixed length. The field is assigned whole or left untouched.
        """
        tokens = self.tokens
        stop = len(tokens)
        if field.length:
            stop = min(stop, self.index + field.length)

        values = []
        while self.index < stop:
            if tokens[self.index] in self.schema.options:
                break
            value = self._coerce(field, field.element, input, tokens[self.index])
            if value is not Unset:
                values.append(value)
            self.index += 1

        if field.nonempty and not values:
            self.trigger(EmptyArrayFault(
                "argument %r can't be empty" % input,
                title="empty array",
                code=FaultCode.EMPTY_ARRAY,
                hint="pass at least one valid value for %r" % input,
                input=input,
                field=field,
            ))
            return
        setattr(self.instance, field.attribute, field.container(values))

    def _coerce(self, field, kind, input, token, /):
        """
        convert one token per kind; Unset means the fault was already reported.
        """
        match kind:
            case Kind.BOOLEAN:
                if _AFFIRMATIVE.fullmatch(token):
                    return True
                if _NEGATIVE.fullmatch(token):
                    return False
                self.trigger(InvalidBooleanFault(
                    "failed to parse boolean value %r for %r at %s position" % (token, input, ordinal(self.index + 1)),
                    title="invalid boolean",
                    code=FaultCode.INVALID_BOOLEAN,
                    hint="use on, true, yes, 1 or off, false, no, not, 0",
                    input=token,
                    field=field,
                ))
                return Unset
            case Kind.ENUMERATION:
                return self._enumerate(field, input, token)
            case _:
                try:
                    return field.converter(token)
                except (ValueError, TypeError, ArithmeticError) as exception:
                    self.trigger(UncastableValueFault(
                        "failed to parse %r for %r at %s position" % (token, input, ordinal(self.index + 1)),
                        title="invalid value",
                        code=FaultCode.UNCASTABLE_VALUE,
                        hint="expected %s" % getattr(field.converter, "__name__", repr(field.converter)),
                        input=token,
                        field=field,
                        exception=exception,
                    ))
                    return Unset

    def _enumerate(self, field, input, token, /):
        """
        integers select a member by value, other tokens by name (exact match
        first, then a unique case-insensitive one).
        """
        enumeration = field.converter
        try:
            number = int(token)
        except ValueError:
            pass
        else:
            for member in enumeration.__members__.values():
                if member.value == number:
                    return member
            # composite flag values are not declared members
            self.trigger(EnumOutOfRangeFault(
                "value %d for %r at %s position is out of range" % (number, input, ordinal(self.index + 1)),
                title="value out of range",
                code=FaultCode.ENUM_OUT_OF_RANGE,
                hint="allowed values are: %s" % ",".join(str(member.value) for member in enumeration),
                input=token,
                field=field,
            ))
            return Unset

        members = enumeration.__members__
        if token in members:
            return members[token]
        matches = [member for name, member in members.items() if name.casefold() == token.casefold()]
        if len(set(matches)) == 1:
            return matches[0]

        self.trigger(UnknownEnumNameFault(
            "value %r for %r at %s position not recognized" % (token, input, ordinal(self.index + 1)),
            title="unknown value",
            code=FaultCode.UNKNOWN_ENUM_NAME,
            hint="allowed values are: %s" % ",".join(member.name for member in enumeration),
            input=token,
            field=field,
        ))
        return Unset


class ArgumentParser:
    """
    Parser bound to one record class.

    Parameters
    - cls: record class declaring its fields with Argument(...). It must be
      constructible without arguments. Its schema is built (or fetched from
      the cache) here, so declaration errors surface at construction.
    - sink: callable receiving every Fault (defaults to a stderr console).
    - helper: callable receiving the Schema when help is requested
      (defaults to render_help on `console`).
    - console: rich Console used by the default helper (defaults to stdout).
    - colorful: style rendered output.

    A parser holds no per-parse state; one instance may serve concurrent
    parses.
    """

    def __init__(self, cls, /, *, sink=Unset, helper=Unset, console=Unset, colorful=True):
        if not (sink is Unset or callable(sink)):
            raise TypeError("ArgumentParser() 'sink' must be callable")
        if not (helper is Unset or callable(helper)):
            raise TypeError("ArgumentParser() 'helper' must be callable")
        if not isinstance(console, Console | Unset):
            raise TypeError("ArgumentParser() 'console' must be a rich console")

        self._schema = schema(cls)
        self._sink = sink
        self._colorful = bool(colorful)
        self._helper = coalesce(helper, functools.partial(
            render_help,
            console=coalesce(console, Console()),
            colorful=self._colorful,
        ))

    @property
    def schema(self):
        return self._schema

    @property
    def sink(self):
        return self._sink

    @property
    def colorful(self):
        return self._colorful

    @property
    def prog(self):
        if self._schema.project is not None:
            return self._schema.project.name
        return None

    def parse(self, arguments=Unset, /):
        """
        Parse a token list into a ParsedArguments envelope.

        Parameters
        - arguments: Iterable[str] of already split tokens; sys.argv[1:] when
          omitted.

        Raises
        - TypeError: when arguments is a plain string or contains non-strings.
        """
        if arguments is Unset:
            arguments = sys.argv[1:]
        if isinstance(arguments, str) or not isinstance(arguments, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")

        tokens = list(arguments)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() argument must be an iterable of strings")

        tokens = normalize(tokens)
        if any(token in _HELPERS for token in tokens):
            self._helper(self._schema)
            return ParsedArguments(self._schema.instantiate(), True, True, ArgumentError.NONE)

        return _Pass(self, tokens).run()


def parse(cls, arguments=Unset, /, **options):
    """
    One-shot parse: ArgumentParser(cls, **options).parse(arguments).
    """
    return ArgumentParser(cls, **options).parse(arguments)


__all__ = (
    "normalize",
    "ParsedArguments",
    "ArgumentParser",
    "parse",
)
