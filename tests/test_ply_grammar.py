import numpy as np
import pytest

from plyio import ElementDef, Encoding, GrammarError, ListOf, PropertyDef, Scalar, ScalarType, Version
from plyio.ply_errors import ValueParseError
from plyio.ply_grammar import (
    CommentLine,
    ElementLine,
    EndHeaderLine,
    FormatLine,
    MagicLine,
    ObjInfoLine,
    PropertyLine,
    format_header_line,
    format_number,
    parse_data_line,
    parse_header_line,
    parse_token,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ply\n", MagicLine()),
        ("end_header\r\n", EndHeaderLine()),
        ("format ascii 1.0\n", FormatLine(Encoding.ASCII, Version(1, 0))),
        ("format binary_big_endian 1.0\r", FormatLine(Encoding.BINARY_BIG_ENDIAN, Version(1, 0))),
        ("format binary_little_endian 2.3", FormatLine(Encoding.BINARY_LITTLE_ENDIAN, Version(2, 3))),
        ("comment hello world\n", CommentLine("hello world")),
        ("comment\n", CommentLine("")),
        ("comment\tTabbed  text", CommentLine("Tabbed  text")),
        ("obj_info scanned 2001\n", ObjInfoLine("scanned 2001")),
        ("element vertex 8\n", ElementLine(ElementDef("vertex", 8))),
        ("element  face\t0  \n", ElementLine(ElementDef("face", 0))),
        ("property float x\n", PropertyLine(PropertyDef("x", Scalar(ScalarType.FLOAT)))),
        ("property float32 x\n", PropertyLine(PropertyDef("x", Scalar(ScalarType.FLOAT)))),
        ("property uint8 red\n", PropertyLine(PropertyDef("red", Scalar(ScalarType.UCHAR)))),
        (
            "property list uchar int vertex_indices\n",
            PropertyLine(PropertyDef("vertex_indices", ListOf(ScalarType.UCHAR, ScalarType.INT))),
        ),
        (
            "property list uint16 float64 w\n",
            PropertyLine(PropertyDef("w", ListOf(ScalarType.USHORT, ScalarType.DOUBLE))),
        ),
    ],
)
def test_parse_header_line(text, expected):
    assert parse_header_line(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "",
        "plyx",
        "format ascii",
        "format ascii 1",
        "format utf8 1.0",
        "element vertex",
        "element vertex -1",
        "element vertex 1.5",
        "property float",
        "property list uchar x",
        "property quad x",
        "property list uchar quad x",
        "commentary text",
        "end_header extra",
    ],
)
def test_invalid_header_line(text):
    with pytest.raises(GrammarError):
        parse_header_line(text)


def test_grammar_error_carries_line_and_text():
    with pytest.raises(GrammarError) as info:
        parse_header_line("element 3 vertex\n", line=4)
    assert info.value.line == 4
    assert info.value.text == "element 3 vertex\n"
    assert str(info.value).startswith("Line 4:")


def test_list_with_float_index_is_grammatical():
    line = parse_header_line("property list float int bad")
    assert line.prop.data_type == ListOf(ScalarType.FLOAT, ScalarType.INT)


@pytest.mark.parametrize(
    "text",
    [
        "ply",
        "format binary_little_endian 1.0",
        "comment hello world",
        "obj_info scanner v2",
        "element vertex 12",
        "property double z",
        "property list ushort uint ids",
        "end_header",
    ],
)
def test_reparse_written_line(text):
    line = parse_header_line(text)
    assert format_header_line(line) == text
    assert parse_header_line(format_header_line(line)) == line


def test_aliases_written_canonical():
    line = parse_header_line("property list int8 float32 values")
    assert format_header_line(line) == "property list char float values"


def test_parse_data_line():
    assert parse_data_line("1 2.5 -3e2 +.5\t7\r\n") == ["1", "2.5", "-3e2", "+.5", "7"]
    assert parse_data_line("\n") == []
    with pytest.raises(ValueParseError):
        parse_data_line("1 abc 3")


def test_parse_token_ranges():
    assert parse_token("-128", ScalarType.CHAR) == -128
    assert parse_token("4294967295", ScalarType.UINT) == 4294967295
    with pytest.raises(ValueParseError):
        parse_token("256", ScalarType.UCHAR)
    with pytest.raises(ValueParseError):
        parse_token("-1", ScalarType.USHORT)
    with pytest.raises(ValueParseError):
        parse_token("1.5", ScalarType.INT)


def test_parse_token_float_precision():
    assert parse_token("0.1", ScalarType.FLOAT) == float(np.float32(0.1))
    assert parse_token("0.1", ScalarType.DOUBLE) == 0.1
    assert parse_token("7", ScalarType.DOUBLE) == 7.0


def test_format_number():
    assert format_number(float(np.float32(0.1)), ScalarType.FLOAT) == "0.1"
    assert format_number(0.1, ScalarType.DOUBLE) == "0.1"
    assert format_number(-5, ScalarType.SHORT) == "-5"
    assert format_number(2.0, ScalarType.DOUBLE) == "2.0"
