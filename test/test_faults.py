# python
"""
Faults behavioral tests (codes, bitmask mapping, trigger, rendering).

Scope
- Validate FaultCode → ArgumentError mapping and host label overrides.
- Validate trigger(): option merging, sinks and the returned bit.
- Validate one-line rendering with and without program name and hint.

Conventions
- Test method names follow CamelCase per project convention.
- __main__ hooks are patched, never assigned.
"""
import __main__
import copy
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argbind import (
    ArgumentError,
    EmptyArrayFault,
    Fault,
    FaultCode,
    MissingValueFault,
    UnknownArgumentFault,
    faults,
    trigger,
)


def render(fault):
    buffer = io.StringIO()
    Console(file=buffer, width=300, color_system=None).print(fault)
    return buffer.getvalue().strip()


class TestFaultCode(TestCase):

    def testErrorMapping(self):
        for code in FaultCode:
            with self.subTest(code=code):
                expected = {
                    111: ArgumentError.MISSING_VALUE,
                    112: ArgumentError.WRONG_VALUE,
                    113: ArgumentError.EMPTY_ARRAY,
                }[code // 100]
                self.assertIs(code.error, expected)

    def testCodesAreUnique(self):
        self.assertEqual(len({int(code) for code in FaultCode}), len(FaultCode))

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.EMPTY_ARRAY.normalize(), "11301")

    def testNormalizeHonorsHostLabels(self):
        with mock.patch.object(__main__, "__codes__", {FaultCode.EMPTY_ARRAY: "E-EMPTY"}, create=True):
            self.assertEqual(FaultCode.EMPTY_ARRAY.normalize(), "E-EMPTY")
            self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "11101")

    def testErrorBitsCombine(self):
        combined = ArgumentError.MISSING_VALUE | ArgumentError.EMPTY_ARRAY
        self.assertEqual(int(combined), 5)
        self.assertEqual(int(ArgumentError.NONE), 0)


class TestTrigger(TestCase):

    def testReturnsBitAndMergesOptions(self):
        received = []
        fault = MissingValueFault("no value", code=FaultCode.MISSING_VALUE, index=1)
        error = trigger(fault, received.append, index=4, prog="tool")
        self.assertIs(error, ArgumentError.MISSING_VALUE)
        self.assertEqual(len(received), 1)
        self.assertIsInstance(received[0], MissingValueFault)
        self.assertEqual(received[0].options["index"], 4)
        self.assertEqual(received[0].options["prog"], "tool")
        self.assertEqual(fault.options["index"], 1)

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("boom"))

    def testDefaultSinkPrints(self):
        buffer = io.StringIO()
        with mock.patch.object(faults, "console", Console(file=buffer, width=300, color_system=None)):
            error = trigger(EmptyArrayFault("argument '-i' can't be empty", code=FaultCode.EMPTY_ARRAY))
        self.assertIs(error, ArgumentError.EMPTY_ARRAY)
        self.assertIn("argument '-i' can't be empty", buffer.getvalue())

    def testReplaceKeepsTypeAndMessage(self):
        fault = UnknownArgumentFault("what?", code=FaultCode.UNKNOWN_ARGUMENT)
        replaced = copy.replace(fault, hint="try --help")
        self.assertIsInstance(replaced, UnknownArgumentFault)
        self.assertEqual(str(replaced), "what?")
        self.assertEqual(replaced.options["hint"], "try --help")
        self.assertNotIn("hint", fault.options)

    def testFaultsAreWarnings(self):
        self.assertTrue(issubclass(Fault, Warning))
        self.assertEqual(str(Fault()), "")


class TestRendering(TestCase):

    def testFullLine(self):
        fault = MissingValueFault(
            "missing value for '-c'",
            code=FaultCode.MISSING_VALUE,
            title="Missing Value",
            hint="pass a value",
            prog="tool",
        )
        self.assertEqual(render(fault), "[ tool — 11101 | missing value ] missing value for '-c' → pass a value")

    def testWithoutProgAndHint(self):
        fault = MissingValueFault("missing", code=FaultCode.MISSING_VALUE, title="missing value")
        self.assertEqual(render(fault), "[ 11101 | missing value ] missing")

    def testHostProgWins(self):
        fault = MissingValueFault("missing", code=FaultCode.MISSING_VALUE, title="t", prog="tool")
        with mock.patch.object(__main__, "__prog__", "host", create=True):
            self.assertTrue(render(fault).startswith("[ host — 11101"))

    def testColorlessRenderingHasNoStyles(self):
        fault = MissingValueFault("missing", code=FaultCode.MISSING_VALUE, title="t", colorful=False)
        self.assertEqual(fault.__rich__().spans, [])

    def testColorfulRenderingIsStyled(self):
        fault = MissingValueFault("missing", code=FaultCode.MISSING_VALUE, title="t")
        self.assertNotEqual(fault.__rich__().spans, [])


if __name__ == "__main__":
    unittest.main()
