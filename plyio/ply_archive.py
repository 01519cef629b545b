"""
ply_archive.py - Reader and writer for PLY files

File layout:
- Header: ASCII lines from "ply" to "end_header" declaring the format,
  comments, object information and the elements with their properties
- Payload: for each element in header order, `count` records, either one
  line of numbers per record (ascii) or packed bytes (binary, big or little
  endian)

Usage:
    import plyio

    # Read a file into a Ply (header + payload of DefaultElement records)
    ply = plyio.load("bunny.ply")
    x = ply.payload["vertex"][0]["x"].data

    # Only the header
    header = plyio.load_header("bunny.ply")

    # Write (counts are fixed up by make_consistent first)
    plyio.dump(ply, "bunny_bin.ply", encoding="binary_little_endian")

    # In memory
    data = plyio.dumps(ply)
    ply = plyio.loads(data)

    # Read elements into your own classes
    parser = plyio.Parser(Vertex)
    with plyio.ByteSource("bunny.ply") as src:
        header = parser.read_header(src)
        vertices = parser.read_payload_for_element(src, header.elements["vertex"], header)
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import BinaryIO, Union

from . import ply_ascii, ply_binary
from .ply_access import DefaultElement
from .ply_errors import ConsistencyError, GrammarError, StructuralError, ValueParseError
from .ply_grammar import (
    CommentLine,
    ElementLine,
    EndHeaderLine,
    FormatLine,
    Line,
    MagicLine,
    ObjInfoLine,
    PropertyLine,
    format_header_line,
    parse_header_line,
)
from .ply_types import (
    ElementDef,
    Encoding,
    Header,
    ListOf,
    Location,
    Ply,
    PropertyDef,
    Version,
)

logger = logging.getLogger(__name__)

NEW_LINES = ("\n", "\r", "\r\n")

_line_break_re = re.compile(rb"[\r\n]")


class ByteSource:
    """Buffered byte reader shared by header and payload reads.

    Lines may end in \\n, \\r or \\r\\n. Reading runs ahead of the caller's
    position in the underlying file, so keep using the same ByteSource for
    everything that follows the header.
    """

    CHUNK_SIZE = 1 << 16

    def __init__(self, source: Union[str, Path, BinaryIO]):
        if isinstance(source, (str, Path)):
            self._file = open(source, "rb")
            self._owns_file = True
        else:
            self._file = source
            self._owns_file = False
        self._buffer = b""
        self._pos = 0
        self._eof = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self._owns_file:
            self._file.close()

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._file.read(self.CHUNK_SIZE)
        if not chunk:
            self._eof = True
            return False
        if isinstance(chunk, str):
            raise TypeError("PLY data must be read from a binary stream")
        self._buffer = self._buffer[self._pos:] + chunk
        self._pos = 0
        return True

    def read(self, size: int) -> bytes:
        while len(self._buffer) - self._pos < size and self._fill():
            pass
        data = self._buffer[self._pos:self._pos + size]
        self._pos += len(data)
        return data

    def readline(self) -> bytes:
        """Read one line including its terminator, b"" at end of data."""
        searched = 0
        while True:
            m = _line_break_re.search(self._buffer, self._pos + searched)
            if m:
                end = m.start()
                if self._buffer[end] == 0x0D:
                    # A \r at the end of the buffer may be the first half of \r\n.
                    if end + 1 == len(self._buffer):
                        offset = end - self._pos
                        if self._fill():
                            end = self._pos + offset
                    if end + 1 < len(self._buffer) and self._buffer[end + 1] == 0x0A:
                        end += 1
                line = self._buffer[self._pos:end + 1]
                self._pos = end + 1
                return line
            searched = len(self._buffer) - self._pos
            if not self._fill():
                line = self._buffer[self._pos:]
                self._pos = len(self._buffer)
                return line


def _as_source(source) -> ByteSource:
    if isinstance(source, ByteSource):
        return source
    return ByteSource(source)


class Parser:
    """Reads PLY headers and payloads into records of `element_type`.

    `element_type` is a PropertyAccess subclass; DefaultElement works for
    any file. To read different elements into different classes, create one
    Parser per class and share one ByteSource between them.
    """

    def __init__(self, element_type=DefaultElement):
        self.element_type = element_type

    def read_ply(self, source) -> Ply:
        """Read a complete file: header, then the payload it declares."""
        source = _as_source(source)
        location = Location()
        header = self._read_header(source, location)
        payload = self._read_payload(source, location, header)
        return Ply(header, payload)

    # Header

    def read_header(self, source, location: Location = None) -> Header:
        """Read all lines up to and including `end_header`.

        Pass a Location and hand the same one to the payload reads to get
        file line numbers in ascii payload errors.
        """
        if location is None:
            location = Location()
        return self._read_header(_as_source(source), location)

    def read_header_line(self, line: str) -> Line:
        return parse_header_line(line)

    def _decode_line(self, raw: bytes, location: Location) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise GrammarError("Header line is not valid UTF-8", repr(raw), location.line) from None

    def _read_header(self, source: ByteSource, location: Location) -> Header:
        text = self._decode_line(source.readline(), location)
        try:
            line = parse_header_line(text, location.line)
        except GrammarError:
            raise StructuralError(
                f"Expected magic number 'ply', got {text!r}", location.line
            ) from None
        if not isinstance(line, MagicLine):
            raise StructuralError(f"Expected magic number 'ply', got {text!r}", location.line)

        header_format = None
        header = Header()
        while True:
            location.next_line()
            raw = source.readline()
            if not raw:
                raise StructuralError("Unexpected end of data, 'end_header' missing", location.line)
            line = parse_header_line(self._decode_line(raw, location), location.line)

            if isinstance(line, EndHeaderLine):
                location.next_line()
                break
            elif isinstance(line, MagicLine):
                raise StructuralError("Unexpected 'ply' found", location.line)
            elif isinstance(line, FormatLine):
                if header_format is None:
                    header_format = line
                elif header_format != line:
                    raise StructuralError(
                        f"Found contradicting format definition: {line.encoding} {line.version}, "
                        f"previous definition: {header_format.encoding} {header_format.version}",
                        location.line,
                    )
            elif isinstance(line, CommentLine):
                header.comments.append(line.text)
            elif isinstance(line, ObjInfoLine):
                header.obj_infos.append(line.text)
            elif isinstance(line, ElementLine):
                name = line.element.name
                if name in header.elements:
                    raise StructuralError(f"Element '{name}' declared twice", location.line)
                header.add_element(line.element)
            elif isinstance(line, PropertyLine):
                if not header.elements:
                    raise StructuralError(
                        f"Property '{line.prop.name}' found without preceding element",
                        location.line,
                    )
                element = next(reversed(header.elements.values()))
                if line.prop.name in element.properties:
                    raise StructuralError(
                        f"Property '{line.prop.name}' declared twice", location.line, element.name
                    )
                element.add_property(line.prop)

        if header_format is None:
            raise StructuralError("No format line found")
        header.encoding = header_format.encoding
        header.version = header_format.version
        logger.debug(
            "Read PLY header: %s %s, %d element(s)",
            header.encoding, header.version, len(header.elements),
        )
        return header

    # Payload

    def read_payload(self, source, header: Header, location: Location = None) -> dict:
        """Read all element groups declared by `header`, in header order.

        Without a `location`, line numbers count from the first payload line.
        """
        if location is None:
            location = Location()
        return self._read_payload(_as_source(source), location, header)

    def read_payload_for_element(
        self, source, element_def: ElementDef, header: Header, location: Location = None
    ) -> list:
        """Read the records of one element. Elements must be read in header order."""
        if location is None:
            location = Location()
        return self._read_element_group(_as_source(source), location, element_def, header)

    def _read_payload(self, source: ByteSource, location: Location, header: Header) -> dict:
        payload = {}
        for name, element_def in header.elements.items():
            payload[name] = self._read_element_group(source, location, element_def, header)
        return payload

    def _read_element_group(self, source, location: Location, element_def: ElementDef, header: Header) -> list:
        records = []
        if header.encoding is Encoding.ASCII:
            for i in range(element_def.count):
                raw = source.readline()
                if not raw:
                    raise ValueParseError(
                        f"Unexpected end of data: expected {element_def.count} records, found {i}",
                        location.line,
                        element_def.name,
                    )
                try:
                    text = raw.decode("ascii")
                except UnicodeDecodeError:
                    raise ValueParseError(
                        "Payload line is not ASCII", location.line, element_def.name
                    ) from None
                records.append(self.read_ascii_element(text, element_def, location))
                location.next_line()
        else:
            byte_order = header.encoding.byte_order
            for _ in range(element_def.count):
                records.append(
                    ply_binary.read_binary_element(source, element_def, self.element_type, byte_order)
                )
        logger.debug("Read %d record(s) of element '%s'", len(records), element_def.name)
        return records

    def read_ascii_element(self, line: str, element_def: ElementDef, location: Location = None):
        """Decode a single ascii payload line."""
        return ply_ascii.read_ascii_element(line, element_def, self.element_type, location)

    def read_big_endian_element(self, source, element_def: ElementDef):
        """Decode a single big endian record from anything with read(n)."""
        return ply_binary.read_binary_element(source, element_def, self.element_type, ">")

    def read_little_endian_element(self, source, element_def: ElementDef):
        """Decode a single little endian record from anything with read(n)."""
        return ply_binary.read_binary_element(source, element_def, self.element_type, "<")


class Writer:
    """Writes a Ply (or its parts) to a binary stream.

    Every write_* method returns the number of bytes written. Only
    `write_ply` checks consistency; when writing piece by piece, call
    `Ply.make_consistent()` yourself.
    """

    def __init__(self, new_line: str = "\n"):
        if new_line not in NEW_LINES:
            raise ValueError(f"Unsupported line terminator: {new_line!r}")
        self.new_line = new_line

    def write_ply(self, out: BinaryIO, ply: Ply) -> int:
        """Make `ply` consistent (counts are updated in place), then write it."""
        ply.make_consistent()
        return self.write_ply_unchecked(out, ply)

    def write_ply_unchecked(self, out: BinaryIO, ply: Ply) -> int:
        written = self.write_header(out, ply.header)
        written += self.write_payload(out, ply.payload, ply.header)
        out.flush()
        logger.debug("Wrote PLY file, %d bytes", written)
        return written

    def _write_line(self, out: BinaryIO, text: str) -> int:
        data = (text + self.new_line).encode("utf-8")
        out.write(data)
        return len(data)

    # Header lines

    def write_line_magic_number(self, out: BinaryIO) -> int:
        return self._write_line(out, format_header_line(MagicLine()))

    def write_line_format(self, out: BinaryIO, encoding: Encoding, version: Version) -> int:
        return self._write_line(out, format_header_line(FormatLine(encoding, version)))

    def write_line_comment(self, out: BinaryIO, comment: str) -> int:
        return self._write_line(out, format_header_line(CommentLine(comment)))

    def write_line_obj_info(self, out: BinaryIO, obj_info: str) -> int:
        return self._write_line(out, format_header_line(ObjInfoLine(obj_info)))

    def write_line_element_definition(self, out: BinaryIO, element: ElementDef) -> int:
        return self._write_line(out, format_header_line(ElementLine(element)))

    def write_line_property_definition(self, out: BinaryIO, prop: PropertyDef) -> int:
        if isinstance(prop.data_type, ListOf):
            prop.data_type.check_index_type(prop.name)
        return self._write_line(out, format_header_line(PropertyLine(prop)))

    def write_element_definition(self, out: BinaryIO, element: ElementDef) -> int:
        """Element line followed by all of its property lines."""
        written = self.write_line_element_definition(out, element)
        for prop in element.properties.values():
            written += self.write_line_property_definition(out, prop)
        return written

    def write_line_end_header(self, out: BinaryIO) -> int:
        return self._write_line(out, format_header_line(EndHeaderLine()))

    def write_header(self, out: BinaryIO, header: Header) -> int:
        # A binary payload starting with 0x0A would read back as the \n of "end_header\r\n".
        if self.new_line == "\r" and header.encoding is not Encoding.ASCII:
            raise ValueError(
                f"Line terminator '\\r' cannot be used with {header.encoding} encoding"
            )
        written = self.write_line_magic_number(out)
        written += self.write_line_format(out, header.encoding, header.version)
        for comment in header.comments:
            written += self.write_line_comment(out, comment)
        for obj_info in header.obj_infos:
            written += self.write_line_obj_info(out, obj_info)
        for element in header.elements.values():
            written += self.write_element_definition(out, element)
        written += self.write_line_end_header(out)
        return written

    # Payload

    def write_payload(self, out: BinaryIO, payload: dict, header: Header) -> int:
        """Write the records of every declared element, in header order."""
        for name in payload:
            if name not in header.elements:
                raise ConsistencyError(f"No declaration for element '{name}' found")
        written = 0
        for name, element_def in header.elements.items():
            records = payload.get(name, [])
            written += self.write_payload_of_element(out, records, element_def, header)
        return written

    def write_payload_of_element(self, out: BinaryIO, records: list, element_def: ElementDef, header: Header) -> int:
        written = 0
        if header.encoding is Encoding.ASCII:
            for record in records:
                written += self.write_ascii_element(out, record, element_def)
        elif header.encoding is Encoding.BINARY_BIG_ENDIAN:
            for record in records:
                written += self.write_big_endian_element(out, record, element_def)
        else:
            for record in records:
                written += self.write_little_endian_element(out, record, element_def)
        logger.debug("Wrote %d record(s) of element '%s'", len(records), element_def.name)
        return written

    def write_ascii_element(self, out: BinaryIO, record, element_def: ElementDef) -> int:
        data = ply_ascii.write_ascii_element(record, element_def, self.new_line).encode("ascii")
        out.write(data)
        return len(data)

    def write_big_endian_element(self, out: BinaryIO, record, element_def: ElementDef) -> int:
        data = ply_binary.write_binary_element(record, element_def, ">")
        out.write(data)
        return len(data)

    def write_little_endian_element(self, out: BinaryIO, record, element_def: ElementDef) -> int:
        data = ply_binary.write_binary_element(record, element_def, "<")
        out.write(data)
        return len(data)


# Convenience functions


def load(source: Union[str, Path, BinaryIO], element_type=DefaultElement) -> Ply:
    """Load a PLY file into a Ply.

    Args:
        source: File path (str or Path) or binary file-like object
        element_type: PropertyAccess subclass for the records

    Example:
        ply = plyio.load("bunny.ply")
        with open("bunny.ply", "rb") as f:
            ply = plyio.load(f)
    """
    with ByteSource(source) as src:
        return Parser(element_type).read_ply(src)


def load_header(source: Union[str, Path, BinaryIO]) -> Header:
    """Read only the header of a PLY file."""
    with ByteSource(source) as src:
        return Parser().read_header(src)


def loads(data: Union[bytes, str], element_type=DefaultElement) -> Ply:
    """Parse a PLY file held in memory.

    Example:
        ply = plyio.loads("ply\\nformat ascii 1.0\\nend_header\\n")
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return load(io.BytesIO(data), element_type)


def dump(
    ply: Ply,
    dest: Union[str, Path, BinaryIO],
    encoding: Union[Encoding, str] = None,
    new_line: str = "\n",
) -> int:
    """Write a Ply to a file, returning the number of bytes written.

    Args:
        ply: Ply to write; counts are made consistent in place
        dest: File path (str or Path) or binary file-like object
        encoding: Override ply.header.encoding ("ascii",
            "binary_little_endian" or "binary_big_endian")
        new_line: Header (and ascii payload) line terminator

    Example:
        plyio.dump(ply, "out.ply", encoding="binary_little_endian")
    """
    if encoding is not None:
        ply.header.encoding = Encoding(encoding)
    writer = Writer(new_line)
    if isinstance(dest, (str, Path)):
        with open(dest, "wb") as f:
            return writer.write_ply(f, ply)
    return writer.write_ply(dest, ply)


def dumps(ply: Ply, encoding: Union[Encoding, str] = None, new_line: str = "\n") -> bytes:
    """Serialize a Ply to bytes."""
    buf = io.BytesIO()
    dump(ply, buf, encoding, new_line)
    return buf.getvalue()
