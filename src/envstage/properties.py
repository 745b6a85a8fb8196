"""Property file formats used by target definitions and generated files.

Three formats are understood:

- line-based ``key=value`` properties (``#``/``!`` comments, ``=``, ``:`` or
  whitespace separators, backslash continuations and escapes)
- the XML properties format (``<properties><entry key="...">``)
- flat YAML mappings
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

import yaml

Loader = Callable[[BinaryIO], dict[str, str]]

_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
# Line terminators of properties files; form feeds and other Unicode
# separators belong to the line
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _decode(data: bytes) -> str:
    """Decode property bytes, falling back to latin-1 like Java properties."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def split_lines(text: str) -> list[str]:
    """Split text on \\n, \\r and \\r\\n only, without a trailing empty line."""
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_lines(path: Path) -> list[str]:
    """Read a text file as lines, decoding UTF-8 with a latin-1 fallback."""
    return split_lines(_decode(path.read_bytes()))


def _logical_lines(text: str) -> list[str]:
    """Join backslash-continued physical lines into logical lines."""
    logical: list[str] = []
    pending: str | None = None

    for raw in split_lines(text):
        line = raw.lstrip() if pending is not None else raw
        if pending is None:
            stripped = line.lstrip()
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped

        # An odd number of trailing backslashes continues the line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        logical.append((pending or "") + line)
        pending = None

    if pending is not None:
        logical.append(pending)
    return logical


def _unescape(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        char = value[i]
        if char != "\\" or i + 1 >= len(value):
            out.append(char)
            i += 1
            continue
        nxt = value[i + 1]
        if nxt == "u" and i + 6 <= len(value):
            try:
                out.append(chr(int(value[i + 2 : i + 6], 16)))
                i += 6
                continue
            except ValueError:
                pass
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into raw key and raw value."""
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\":
            i += 2
            continue
        if char in _SEPARATORS or char.isspace():
            break
        i += 1

    key = line[:i]
    rest = line[i:].lstrip()
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip()
    return key, rest


def parse_properties(text: str) -> dict[str, str]:
    """Parse line-based properties text into a mapping.

    Later definitions of the same key replace earlier ones.
    """
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        raw_key, raw_value = _split_entry(line)
        result[_unescape(raw_key)] = _unescape(raw_value)
    return result


def load_properties(stream: BinaryIO) -> dict[str, str]:
    """Load line-based properties from a byte stream."""
    return parse_properties(_decode(stream.read()))


def load_xml_properties(stream: BinaryIO) -> dict[str, str]:
    """Load XML-formatted properties from a byte stream.

    Raises:
        ValueError: If the document is not well-formed or not a properties document.
    """
    try:
        root = ET.fromstring(stream.read())
    except ET.ParseError as e:
        raise ValueError(f"Invalid XML properties document: {e}") from e

    if root.tag != "properties":
        raise ValueError(f"Expected <properties> root element, found <{root.tag}>")

    result: dict[str, str] = {}
    for entry in root.iter("entry"):
        key = entry.get("key")
        if key is None:
            raise ValueError("XML properties entry without a key attribute")
        result[key] = entry.text or ""
    return result


def load_yaml_properties(stream: BinaryIO) -> dict[str, str]:
    """Load a flat YAML mapping from a byte stream, stringifying values."""
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML properties document: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"YAML properties root must be a mapping, got {type(data).__name__}"
        )
    return {str(k): "" if v is None else str(v) for k, v in data.items()}


LOADERS: dict[str, Loader] = {
    "properties": load_properties,
    "xml": load_xml_properties,
    "yaml": load_yaml_properties,
}


def get_loader(name: str) -> Loader:
    """Get a property loader by format name."""
    if name not in LOADERS:
        raise ValueError(
            f"Unknown properties format: {name} (expected one of {', '.join(LOADERS)})"
        )
    return LOADERS[name]


def read_properties_file(path: Path) -> dict[str, str]:
    """Parse a property file from disk."""
    return parse_properties(_decode(path.read_bytes()))
