"""
ply_binary.py - Binary payload codec

Each record is the tight concatenation of its properties in header order:
- Scalars: raw bytes of the scalar type in the file's byte order
- Lists: count as the index type, then `count` packed entries
No padding or alignment between fields or records.
"""

from __future__ import annotations

import struct

import numpy as np

from .ply_access import get_value
from .ply_errors import ListLengthError, MissingPropertyError, PlyError, ValueParseError
from .ply_types import ElementDef, ListOf, PropertyDef, ScalarType, Value


def read_binary_element(source, element_def: ElementDef, element_type, byte_order: str):
    """Decode one record from `source` (anything with read(n) -> bytes).

    `byte_order` is '<' for little endian or '>' for big endian.
    """
    record = element_type.new()
    for name, prop in element_def.properties.items():
        try:
            value = _read_property(source, prop, byte_order)
        except PlyError as e:
            raise type(e)(f"Property '{name}': {e.message}", context=element_def.name) from None
        record.set_property(name, value)
    return record


def _read_exact(source, size: int, what: str) -> bytes:
    data = source.read(size)
    if len(data) < size:
        raise ValueParseError(
            f"Unexpected end of binary data while reading {what} "
            f"({len(data)} of {size} bytes)"
        )
    return data


def _read_scalar(source, scalar_type: ScalarType, byte_order: str, what: str):
    data = _read_exact(source, scalar_type.size, what)
    return struct.unpack(byte_order + scalar_type.code, data)[0]


def _read_property(source, prop: PropertyDef, byte_order: str) -> Value:
    data_type = prop.data_type
    if not isinstance(data_type, ListOf):
        scalar_type = data_type.scalar_type
        return Value.raw(scalar_type, _read_scalar(source, scalar_type, byte_order, "value"))

    data_type.check_index_type(prop.name)
    count = _read_scalar(source, data_type.index_type, byte_order, "list length")
    if count < 0:
        raise ListLengthError(f"Negative list length {count}")
    if count == 0:
        return Value.raw(data_type.scalar_type, [], is_list=True)

    size = count * data_type.scalar_type.size
    data = source.read(size)
    if len(data) < size:
        raise ListLengthError(
            f"List declares {count} entries, but only {len(data) // data_type.scalar_type.size} "
            "could be read"
        )
    items = np.frombuffer(data, dtype=data_type.scalar_type.dtype(byte_order)).tolist()
    return Value.raw(data_type.scalar_type, items, is_list=True)


def write_binary_element(record, element_def: ElementDef, byte_order: str) -> bytes:
    """Encode one record into bytes in the given byte order."""
    context = element_def.name
    buf = bytearray()
    for name, prop in element_def.properties.items():
        data_type = prop.data_type
        if isinstance(data_type, ListOf):
            data_type.check_index_type(name, context)
        value = get_value(record, name, data_type)
        if value is None:
            raise MissingPropertyError(
                f"Record has no value for property '{name}'", context=context
            )
        try:
            if isinstance(data_type, ListOf):
                if len(value) > data_type.max_length:
                    raise ListLengthError(
                        f"List has {len(value)} entries, more than index type "
                        f"'{data_type.index_type.keyword}' can count"
                    )
                scalar_type = data_type.scalar_type
                buf += struct.pack(byte_order + data_type.index_type.code, len(value))
                items = [scalar_type.coerce(v) for v in value]
                buf += np.asarray(items, dtype=scalar_type.dtype(byte_order)).tobytes()
            else:
                scalar_type = data_type.scalar_type
                buf += struct.pack(byte_order + scalar_type.code, scalar_type.coerce(value))
        except PlyError as e:
            raise type(e)(f"Property '{name}': {e.message}", context=context) from None
    return bytes(buf)
