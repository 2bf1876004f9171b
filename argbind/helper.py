"""
Argbind help rendering.

Layout
    <project name>
    Version: <version>

    <description>

    Requirements: <requirements>

    --- Command line options:
    : <name, padded> (<option>, <option>) (required)
    | <description>

    --- Also:
    <addendum>

The project header is only rendered for classes decorated with @project(...).
A schema without fields renders "No options available." instead of the options
section.

Palette keys
- program-name, version-label, version, description, requirements-label,
  section, field-name, option-name, required, field-description, addendum

Customization
- Define a mapping named __styles__ in __main__ to override palette entries.
- Define __prog__ in __main__ to override the program name fallback.
- When colorful is False, styling is suppressed.
"""
import os.path
import sys
from collections import defaultdict

from rich.console import Console, Group
from rich.text import Text

from .utils import *


def render_help(schema, /, *, console=Unset, colorful=True):
    """
    Print the help of a Schema to a rich console (stdout by default).
    """
    console = coalesce(console, Console())
    main = __import__("__main__")

    styles = defaultdict(str, {
        "program-name": "bold #FF4D94",  # magenta-pink brand
        "version-label": "bold #00E6FF",  # cyan
        "version": "#E5E7EB",
        "description": "italic #A3A3A3",  # neutral gray
        "requirements-label": "bold #FFD600",  # amber
        "section": "bold #FFFFFF",  # pure white headers
        "field-name": "bold #36C5F0",  # sky-blue
        "option-name": "bold #22C55E",  # green
        "required": "bold #EF4444",  # red
        "field-description": "#9CA3AF",  # muted gray
        "addendum": "#737373",  # dim footer gray
    } | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    renders = []

    if (project := schema.project) is not None:
        name = (
            project.name or
            getattr(main, "__prog__", None) or
            os.path.basename(sys.argv[0]) or
            "Name"
        )
        renders.append(text(name, "program-name"))
        if project.version:
            renders.append(Text.assemble(text("Version", "version-label"), ": ", text(project.version, "version")))
        renders.append(Text(""))
        if project.description:
            renders.append(text(project.description, "description"))
            renders.append(Text(""))
        if project.requirements:
            renders.append(Text.assemble(
                text("Requirements", "requirements-label"), ": ", text(project.requirements, "description")
            ))
            renders.append(Text(""))

    if schema.fields:
        renders.append(text("--- Command line options:", "section"))
        width = max(len(field.name) for field in schema.fields)
        for field in schema.fields:
            line = Text.assemble(": ", text(field.name, "field-name"), " " * (width - len(field.name)))
            if field.options:
                line.append_text(Text.assemble(
                    " (", Text(", ").join(text(option, "option-name") for option in field.options), ")"
                ))
                if field.mandatory:
                    line.append_text(Text.assemble(" ", text("(required)", "required")))
            renders.append(line)
            if field.descr:
                renders.append(Text.assemble("| ", text(field.descr, "field-description")))
            renders.append(Text(""))
    else:
        renders.append(Text("No options available."))

    if project is not None and project.addendum:
        renders.append(text("--- Also:", "section"))
        renders.append(text(project.addendum, "addendum"))

    console.print(Group(*renders))


__all__ = (
    "render_help",
)
