"""Errors raised while reading or writing PLY files."""

from __future__ import annotations


class PlyError(Exception):
    """Base class of all PLY read/write errors."""

    def __init__(self, message: str, line: int = None, context: str = None):
        self.message = message
        self.line = line
        self.context = context
        full_msg = message
        if line is not None:
            full_msg = f"Line {line}: {message}"
        if context:
            full_msg += f" (in {context})"
        super().__init__(full_msg)


class GrammarError(PlyError):
    """A header line matches no known production."""

    def __init__(self, message: str, text: str, line: int = None, context: str = None):
        self.text = text
        super().__init__(f"{message}: {text!r}", line, context)


class StructuralError(PlyError):
    """The header lines are individually valid but do not form a header."""


class ValueParseError(PlyError):
    """A payload value could not be read."""


class ListLengthError(PlyError):
    """A list property is shorter than declared or too long for its index type."""


class IndexTypeError(PlyError):
    """A list property uses a float or double index type."""


class ConsistencyError(PlyError):
    """Header and payload cannot be written as a valid PLY file."""


class MissingPropertyError(PlyError):
    """A record does not provide a property declared by its element."""


class ValueRangeError(PlyError):
    """A value does not fit into the scalar type it is written as."""
