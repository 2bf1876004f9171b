# python
"""
Help rendering behavioral tests.

Scope
- Validate the project header, the options section and the addendum.
- Validate the "No options available." fallback and the __prog__ fallback.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured from a colorless console.
"""
import __main__
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argbind import Argument, Flag, project, schema
from argbind.helper import render_help


@project(
    name="tool",
    version="1.2.3",
    description="does useful things",
    requirements="python 3.13",
    addendum="report bugs upstream",
)
class Described:
    source: str = Argument(name="SOURCE", descr="file to read")
    output: str = Argument("-o", "--output", descr="file to write", mandatory=True)
    quiet: Flag = Argument("-q")


class Empty:
    pass


def capture(cls, **options):
    buffer = io.StringIO()
    render_help(schema(cls), console=Console(file=buffer, width=200, color_system=None), **options)
    return buffer.getvalue()


class TestHelp(TestCase):

    def testHeader(self):
        lines = capture(Described).splitlines()
        self.assertEqual(lines[0], "tool")
        self.assertEqual(lines[1], "Version: 1.2.3")
        self.assertIn("does useful things", lines)
        self.assertIn("Requirements: python 3.13", lines)

    def testOptionLines(self):
        lines = capture(Described).splitlines()
        self.assertIn(": SOURCE", lines)
        self.assertIn(": output (-o, --output) (required)", lines)
        self.assertIn(": quiet  (-q)", lines)
        self.assertIn("| file to read", lines)
        self.assertIn("| file to write", lines)

    def testSectionOrder(self):
        output = capture(Described)
        self.assertLess(output.index("Requirements"), output.index("--- Command line options:"))
        self.assertLess(output.index("--- Command line options:"), output.index("--- Also:"))
        self.assertTrue(output.rstrip().endswith("report bugs upstream"))

    def testWithoutProject(self):
        output = capture(Empty)
        self.assertEqual(output.strip(), "No options available.")

    def testProgFallback(self):
        @project(version="0.1")
        class Unnamed:
            value: str = Argument()

        with mock.patch.object(__main__, "__prog__", "hosted", create=True):
            self.assertEqual(capture(Unnamed).splitlines()[0], "hosted")

    def testColorlessOutputMatches(self):
        self.assertEqual(capture(Described, colorful=False), capture(Described))


if __name__ == "__main__":
    unittest.main()
