"""
ply_types.py - Data model shared by the PLY parser and writer

Schema types:
- ScalarType: the eight fixed width numeric types of the format
- Scalar / ListOf: property types (a list carries its index type)
- PropertyDef, ElementDef, Header: the parsed header
- Encoding, Version: the `format` line

Payload types:
- Value: one property value, scalar or list, tagged with its ScalarType
- Ply: header plus payload (element name -> list of records)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import numpy as np

from .ply_errors import IndexTypeError, ValueRangeError
from . import ply_consistency


class ScalarType(Enum):
    """Fixed width numeric type: (keyword, struct code, byte size)."""

    CHAR = ("char", "b", 1)
    UCHAR = ("uchar", "B", 1)
    SHORT = ("short", "h", 2)
    USHORT = ("ushort", "H", 2)
    INT = ("int", "i", 4)
    UINT = ("uint", "I", 4)
    FLOAT = ("float", "f", 4)
    DOUBLE = ("double", "d", 8)

    def __init__(self, keyword: str, code: str, size: int):
        self.keyword = keyword
        self.code = code
        self.size = size

    @property
    def is_integral(self) -> bool:
        return self not in (ScalarType.FLOAT, ScalarType.DOUBLE)

    @property
    def limits(self) -> Optional[tuple[int, int]]:
        """Smallest and largest representable integer, None for float types."""
        if not self.is_integral:
            return None
        bits = self.size * 8
        if self.code.islower():
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1

    def dtype(self, byte_order: str = "=") -> np.dtype:
        """numpy dtype of this type in the given byte order ('<', '>' or '=')."""
        return np.dtype(byte_order + self.code)

    def coerce(self, value: Any) -> Union[int, float]:
        """Convert a number to the Python value stored for this type.

        Integer types require an integral value inside their range.
        FLOAT values are rounded to single precision; finite values beyond
        the float32 range are rejected, inf and nan pass through.
        """
        if self.is_integral:
            if isinstance(value, (bool, np.bool_)) or not isinstance(
                value, (int, np.integer)
            ):
                raise ValueRangeError(
                    f"Expected an integer for type '{self.keyword}', got {value!r}"
                )
            value = int(value)
            low, high = self.limits
            if not low <= value <= high:
                raise ValueRangeError(
                    f"Value {value} out of range for type '{self.keyword}' [{low}, {high}]"
                )
            return value
        if isinstance(value, (bool, np.bool_)) or not isinstance(
            value, (int, float, np.integer, np.floating)
        ):
            raise ValueRangeError(
                f"Expected a number for type '{self.keyword}', got {value!r}"
            )
        if self is ScalarType.FLOAT:
            with np.errstate(over="ignore"):
                narrowed = np.float32(value)
            if np.isinf(narrowed) and np.isfinite(value):
                raise ValueRangeError(
                    f"Value {value!r} out of range for type '{self.keyword}'"
                )
            return float(narrowed)
        return float(value)


# All keywords accepted in a header, the canonical keyword is written back.
SCALAR_ALIASES = {
    "char": ScalarType.CHAR,
    "int8": ScalarType.CHAR,
    "uchar": ScalarType.UCHAR,
    "uint8": ScalarType.UCHAR,
    "short": ScalarType.SHORT,
    "int16": ScalarType.SHORT,
    "ushort": ScalarType.USHORT,
    "uint16": ScalarType.USHORT,
    "int": ScalarType.INT,
    "int32": ScalarType.INT,
    "uint": ScalarType.UINT,
    "uint32": ScalarType.UINT,
    "float": ScalarType.FLOAT,
    "float32": ScalarType.FLOAT,
    "double": ScalarType.DOUBLE,
    "float64": ScalarType.DOUBLE,
}


@dataclass(frozen=True)
class Scalar:
    scalar_type: ScalarType


@dataclass(frozen=True)
class ListOf:
    """List property: a count of type `index_type` followed by the entries."""

    index_type: ScalarType
    scalar_type: ScalarType

    def check_index_type(self, name: str = "?", context: str = None):
        if not self.index_type.is_integral:
            raise IndexTypeError(
                f"Index of list '{name}' must be an integer type, "
                f"'{self.index_type.keyword}' declared",
                context=context,
            )

    @property
    def max_length(self) -> int:
        """Longest list the index type can count."""
        return self.index_type.limits[1]


PropertyType = Union[Scalar, ListOf]


class Value:
    """A single property value.

    Scalars hold an int or float, lists hold a Python list of them.
    Use the factory methods (Value.int(5), Value.list_uchar([1, 2])) or
    Value(ScalarType.INT, 5).
    """

    __slots__ = ("scalar_type", "data", "is_list")

    def __init__(self, scalar_type: ScalarType, data: Any, is_list: bool = False):
        self.scalar_type = scalar_type
        self.is_list = is_list
        if is_list:
            self.data = [scalar_type.coerce(v) for v in data]
        else:
            self.data = scalar_type.coerce(data)

    @classmethod
    def raw(cls, scalar_type: ScalarType, data: Any, is_list: bool = False):
        """Build a Value from data already in stored form, skipping coercion."""
        value = cls.__new__(cls)
        value.scalar_type = scalar_type
        value.data = data
        value.is_list = is_list
        return value

    @property
    def variant(self) -> str:
        """'int', 'list_int', ... matching the PropertyAccess getter suffix."""
        if self.is_list:
            return "list_" + self.scalar_type.keyword
        return self.scalar_type.keyword

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return (
            self.scalar_type is other.scalar_type
            and self.is_list == other.is_list
            and self.data == other.data
        )

    def __hash__(self):
        data = tuple(self.data) if self.is_list else self.data
        return hash((self.scalar_type, self.is_list, data))

    def __repr__(self):
        return f"Value.{self.variant}({self.data!r})"

    @classmethod
    def char(cls, v):
        return cls(ScalarType.CHAR, v)

    @classmethod
    def uchar(cls, v):
        return cls(ScalarType.UCHAR, v)

    @classmethod
    def short(cls, v):
        return cls(ScalarType.SHORT, v)

    @classmethod
    def ushort(cls, v):
        return cls(ScalarType.USHORT, v)

    @classmethod
    def int(cls, v):
        return cls(ScalarType.INT, v)

    @classmethod
    def uint(cls, v):
        return cls(ScalarType.UINT, v)

    @classmethod
    def float(cls, v):
        return cls(ScalarType.FLOAT, v)

    @classmethod
    def double(cls, v):
        return cls(ScalarType.DOUBLE, v)

    @classmethod
    def list_char(cls, v):
        return cls(ScalarType.CHAR, v, is_list=True)

    @classmethod
    def list_uchar(cls, v):
        return cls(ScalarType.UCHAR, v, is_list=True)

    @classmethod
    def list_short(cls, v):
        return cls(ScalarType.SHORT, v, is_list=True)

    @classmethod
    def list_ushort(cls, v):
        return cls(ScalarType.USHORT, v, is_list=True)

    @classmethod
    def list_int(cls, v):
        return cls(ScalarType.INT, v, is_list=True)

    @classmethod
    def list_uint(cls, v):
        return cls(ScalarType.UINT, v, is_list=True)

    @classmethod
    def list_float(cls, v):
        return cls(ScalarType.FLOAT, v, is_list=True)

    @classmethod
    def list_double(cls, v):
        return cls(ScalarType.DOUBLE, v, is_list=True)


class Encoding(Enum):
    ASCII = "ascii"
    BINARY_BIG_ENDIAN = "binary_big_endian"
    BINARY_LITTLE_ENDIAN = "binary_little_endian"

    @property
    def byte_order(self) -> Optional[str]:
        """struct/numpy byte order prefix, None for ascii."""
        if self is Encoding.BINARY_BIG_ENDIAN:
            return ">"
        if self is Encoding.BINARY_LITTLE_ENDIAN:
            return "<"
        return None

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Version:
    major: int = 1
    minor: int = 0

    def __str__(self):
        return f"{self.major}.{self.minor}"


@dataclass
class Location:
    """Current line (header and ascii payload) or record (binary payload)."""

    line: int = 1

    def next_line(self):
        self.line += 1


@dataclass
class PropertyDef:
    name: str
    data_type: PropertyType


@dataclass
class ElementDef:
    """Element declaration: name, record count and ordered properties."""

    name: str
    count: int = 0
    properties: dict[str, PropertyDef] = field(default_factory=dict)

    def add_property(self, prop: PropertyDef):
        self.properties[prop.name] = prop
        return self


@dataclass
class Header:
    encoding: Encoding = Encoding.ASCII
    version: Version = field(default_factory=Version)
    comments: list[str] = field(default_factory=list)
    obj_infos: list[str] = field(default_factory=list)
    elements: dict[str, ElementDef] = field(default_factory=dict)

    def add_element(self, element: ElementDef):
        self.elements[element.name] = element
        return self


@dataclass
class Ply:
    """A complete PLY file: header plus payload.

    The payload maps each element name to its records, in header order:

        ply.payload["vertex"][2]["x"]
    """

    header: Header = field(default_factory=Header)
    payload: dict[str, list] = field(default_factory=dict)

    def make_consistent(self):
        """Fix element counts and validate names before writing.

        Raises ConsistencyError when the problem cannot be fixed.
        """
        ply_consistency.make_consistent(self.header, self.payload)
