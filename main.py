import enum

from rich.pretty import pprint

from argbind import *


class Mode(enum.IntEnum):
    FAST = 0
    SAFE = 1


@project(name="demo", version="1.0.0", description="argbind demo tool", addendum="flags can be clustered: -qv")
class Arguments:
    file: str = Argument(name="FILE", descr="input file")
    numbers: list[int] = Argument("-n", "--numbers", descr="numbers to add", nonempty=True)
    mode: Mode = Argument("-m", "--mode", default=Mode.FAST, descr="processing mode")
    color: bool = Argument("-c", "--color", default=True, descr="colorize output (yes/no)")
    verbose: int = Argument("-v", mentions=True, descr="verbosity, repeat to increase")
    quiet: Flag = Argument("-q", "--quiet", descr="suppress output")


if __name__ == '__main__':
    result = parse(Arguments)
    if not result.printed_help:
        pprint(result)
        pprint({field.attribute: getattr(result.value, field.attribute) for field in schema(Arguments).fields})
    raise SystemExit(0 if result.success else 1)
