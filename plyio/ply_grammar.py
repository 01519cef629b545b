"""
ply_grammar.py - Line grammar of the PLY header and ASCII payload

Header lines (one production per line):
- Magic:      ply
- Format:     format <ascii|binary_big_endian|binary_little_endian> <major>.<minor>
- Comment:    comment <free text>
- Object info: obj_info <free text>
- Element:    element <name> <count>
- Property:   property <type> <name>
- List:       property list <index type> <type> <name>
- End:        end_header

A line may end in \\n, \\r or \\r\\n; trailing spaces and tabs are ignored.

Data lines are whitespace separated numbers; float values may also be inf or nan.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

import numpy as np

from .ply_errors import GrammarError, ValueParseError
from .ply_types import (
    SCALAR_ALIASES,
    ElementDef,
    Encoding,
    ListOf,
    PropertyDef,
    PropertyType,
    Scalar,
    ScalarType,
    Version,
)


@dataclass(frozen=True)
class MagicLine:
    pass


@dataclass(frozen=True)
class FormatLine:
    encoding: Encoding
    version: Version


@dataclass(frozen=True)
class CommentLine:
    text: str


@dataclass(frozen=True)
class ObjInfoLine:
    text: str


@dataclass(frozen=True)
class ElementLine:
    element: ElementDef


@dataclass(frozen=True)
class PropertyLine:
    prop: PropertyDef


@dataclass(frozen=True)
class EndHeaderLine:
    pass


Line = Union[
    MagicLine, FormatLine, CommentLine, ObjInfoLine, ElementLine, PropertyLine, EndHeaderLine
]

_SPACE = r"[ \t]+"
_IDENT = r"[A-Za-z_][A-Za-z0-9_\-]*"

_format_re = re.compile(
    rf"format{_SPACE}(ascii|binary_big_endian|binary_little_endian){_SPACE}([0-9]+)\.([0-9]+)"
)
_comment_re = re.compile(rf"comment(?:{_SPACE}(.*))?")
_obj_info_re = re.compile(rf"obj_info(?:{_SPACE}(.*))?")
_element_re = re.compile(rf"element{_SPACE}({_IDENT}){_SPACE}([0-9]+)")
_property_re = re.compile(
    rf"property{_SPACE}(?:list{_SPACE}(\w+){_SPACE}(\w+)|(\w+)){_SPACE}({_IDENT})"
)
_number_re = re.compile(
    r"[-+]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?|inf(?:inity)?|nan)", re.IGNORECASE
)
_int_re = re.compile(r"[-+]?[0-9]+")


def strip_line_break(text: str) -> str:
    """Remove one trailing line terminator (\\r\\n, \\n or \\r)."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n") or text.endswith("\r"):
        return text[:-1]
    return text


def _scalar(keyword: str, text: str, line: int = None) -> ScalarType:
    try:
        return SCALAR_ALIASES[keyword]
    except KeyError:
        raise GrammarError(f"Unknown scalar type '{keyword}'", text, line) from None


def parse_header_line(text: str, line: int = None) -> Line:
    """Parse one header line into its Line value.

    Raises GrammarError if the line matches no production.
    """
    body = strip_line_break(text)
    if "\n" in body or "\r" in body:
        raise GrammarError("Unexpected line break inside header line", text, line)
    body = body.rstrip(" \t")

    if body == "ply":
        return MagicLine()
    if body == "end_header":
        return EndHeaderLine()

    m = _format_re.fullmatch(body)
    if m:
        major, minor = int(m.group(2)), int(m.group(3))
        if major > 0xFFFF or minor > 0xFF:
            raise GrammarError("Version out of range", text, line)
        return FormatLine(Encoding(m.group(1)), Version(major, minor))

    m = _obj_info_re.fullmatch(body)
    if m:
        return ObjInfoLine(m.group(1) or "")

    m = _comment_re.fullmatch(body)
    if m:
        return CommentLine(m.group(1) or "")

    m = _element_re.fullmatch(body)
    if m:
        return ElementLine(ElementDef(m.group(1), int(m.group(2))))

    m = _property_re.fullmatch(body)
    if m:
        index_kw, list_kw, scalar_kw, name = m.groups()
        if scalar_kw is not None:
            data_type = Scalar(_scalar(scalar_kw, text, line))
        else:
            data_type = ListOf(_scalar(index_kw, text, line), _scalar(list_kw, text, line))
        return PropertyLine(PropertyDef(name, data_type))

    raise GrammarError("Couldn't parse header line", text, line)


def parse_data_line(text: str) -> list[str]:
    """Split an ASCII payload line into number tokens."""
    tokens = strip_line_break(text).split()
    for token in tokens:
        if not _number_re.fullmatch(token):
            raise ValueParseError(f"Invalid number token '{token}'")
    return tokens


def parse_token(token: str, scalar_type: ScalarType) -> Union[int, float]:
    """Parse a number token as `scalar_type`.

    Integer types only accept integer tokens inside their range.
    """
    if scalar_type.is_integral:
        if not _int_re.fullmatch(token):
            raise ValueParseError(
                f"Value '{token}' is not an integer of type '{scalar_type.keyword}'"
            )
        value = int(token)
        low, high = scalar_type.limits
        if not low <= value <= high:
            raise ValueParseError(
                f"Value '{token}' out of range for type '{scalar_type.keyword}'"
            )
        return value
    try:
        value = float(token)
    except ValueError:
        raise ValueParseError(
            f"Value '{token}' is not a number of type '{scalar_type.keyword}'"
        ) from None
    return scalar_type.coerce(value)


def format_number(value: Union[int, float], scalar_type: ScalarType) -> str:
    """Render a value as the shortest token that reads back unchanged."""
    if scalar_type.is_integral:
        return str(int(value))
    if scalar_type is ScalarType.FLOAT:
        return str(np.float32(value))
    return repr(float(value))


# Writing


def format_property_type(data_type: PropertyType) -> str:
    if isinstance(data_type, ListOf):
        return f"list {data_type.index_type.keyword} {data_type.scalar_type.keyword}"
    return data_type.scalar_type.keyword


def format_header_line(line: Line) -> str:
    """Render a Line without terminator, using canonical keywords."""
    if isinstance(line, MagicLine):
        return "ply"
    if isinstance(line, EndHeaderLine):
        return "end_header"
    if isinstance(line, FormatLine):
        return f"format {line.encoding.value} {line.version}"
    if isinstance(line, CommentLine):
        return f"comment {line.text}"
    if isinstance(line, ObjInfoLine):
        return f"obj_info {line.text}"
    if isinstance(line, ElementLine):
        return f"element {line.element.name} {line.element.count}"
    if isinstance(line, PropertyLine):
        return f"property {format_property_type(line.prop.data_type)} {line.prop.name}"
    raise TypeError(f"Unsupported line type: {type(line)}")
