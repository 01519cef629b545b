"""Reader and writer for the PLY polygon file format."""

from .ply_access import DefaultElement, PropertyAccess
from .ply_archive import ByteSource, Parser, Writer, dump, dumps, load, load_header, loads
from .ply_errors import (
    ConsistencyError,
    GrammarError,
    IndexTypeError,
    ListLengthError,
    MissingPropertyError,
    PlyError,
    StructuralError,
    ValueParseError,
    ValueRangeError,
)
from .ply_types import (
    ElementDef,
    Encoding,
    Header,
    ListOf,
    Location,
    Ply,
    PropertyDef,
    Scalar,
    ScalarType,
    Value,
    Version,
)
