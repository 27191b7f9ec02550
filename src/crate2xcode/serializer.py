"""
Writer for the project.pbxproj text format.

Xcode project files use the old-style (OpenStep) property list syntax:
nested `{ key = value; }` dictionaries and `( item, )` arrays, with
`/* ... */` comments naming the objects that identifiers point to. Output is
laid out the way Xcode itself writes it: objects grouped by isa into
sections, sections and objects sorted, so regenerated files diff cleanly.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from crate2xcode.objects import ObjectGraph, PBXRef, ProjectObject

ARCHIVE_VERSION = 1
OBJECT_VERSION = 53

_BARE_RE = re.compile(r'^[A-Za-z0-9_]+$')
_ESCAPES = {
    "\\": "\\\\",
    "\"": "\\\"",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def quote(value: str) -> str:
    """Return value as a plist string token, quoted and escaped if needed."""
    if _BARE_RE.match(value):
        return value
    escaped = "".join(_ESCAPES.get(c, c) for c in value)
    return f'"{escaped}"'


def _comment(text: Optional[str]) -> str:
    if not text:
        return ""
    # A comment can't contain its own terminator
    return f" /* {text.replace('*/', '(*)/')} */"


class _Writer:
    def __init__(self, graph: ObjectGraph) -> None:
        self.graph = graph

    def ref(self, ref: PBXRef) -> str:
        comment = ref.comment if ref.comment is not None else self.graph.comment_for(ref.identifier)
        return f"{ref.identifier}{_comment(comment)}"

    def value(self, value: Any, indent: int) -> str:
        pad = "\t" * indent
        if isinstance(value, PBXRef):
            return self.ref(value)
        if isinstance(value, str):
            return quote(value)
        if isinstance(value, bool):
            return "YES" if value else "NO"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, (list, tuple)):
            items = [f"{pad}\t{self.value(item, indent + 1)},\n" for item in value]
            return "(\n" + "".join(items) + f"{pad})"
        if isinstance(value, dict):
            entries = [
                f"{pad}\t{quote(str(key))} = {self.value(value[key], indent + 1)};\n"
                for key in sorted(value)
            ]
            return "{\n" + "".join(entries) + f"{pad}}}"
        raise TypeError(f"Unsupported value type: {type(value)!r}")

    def object(self, obj: ProjectObject) -> str:
        lines = [f"\t\t{obj.identifier}{_comment(obj.comment)} = {{\n"]
        lines.append(f"\t\t\tisa = {quote(obj.isa)};\n")
        for key in sorted(obj.fields):
            lines.append(f"\t\t\t{quote(key)} = {self.value(obj.fields[key], 3)};\n")
        lines.append("\t\t};\n")
        return "".join(lines)

    def objects(self) -> str:
        sections: Dict[str, List[ProjectObject]] = {}
        for obj in self.graph:
            sections.setdefault(obj.isa, []).append(obj)

        out: List[str] = []
        for isa in sorted(sections):
            out.append(f"\n/* Begin {isa} section */\n")
            for obj in sorted(sections[isa], key=lambda o: o.identifier):
                out.append(self.object(obj))
            out.append(f"/* End {isa} section */\n")
        return "".join(out)


def serialize(graph: ObjectGraph, generator_version: str) -> str:
    """
    Render a project object graph as project.pbxproj text.

    Args:
        graph: Complete project graph with its root object set
        generator_version: crate2xcode version noted in the file header

    Returns:
        The file contents. Identical graphs always render identically.

    Raises:
        ValueError: If the graph has no root object
    """
    if graph.root is None or graph.root not in graph:
        raise ValueError("Project graph has no root object")

    writer = _Writer(graph)
    return (
        "// !$*UTF8*$!\n"
        "{\n"
        f"\t/* generated with crate2xcode {generator_version} */\n"
        f"\tarchiveVersion = {ARCHIVE_VERSION};\n"
        "\tclasses = {\n"
        "\t};\n"
        f"\tobjectVersion = {OBJECT_VERSION};\n"
        "\tobjects = {\n"
        + writer.objects() +
        "\t};\n"
        f"\trootObject = {writer.ref(PBXRef(graph.root))};\n"
        "}\n"
    )
