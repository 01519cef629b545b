"""ASCII payload codec: one record per line, properties as number tokens."""

from __future__ import annotations

from typing import Iterator, Optional

from .ply_access import get_value
from .ply_errors import (
    ListLengthError,
    MissingPropertyError,
    PlyError,
    ValueParseError,
    ValueRangeError,
)
from .ply_grammar import format_number, parse_data_line, parse_token
from .ply_types import ElementDef, ListOf, Location, PropertyDef, Value


def _line_of(location: Optional[Location]) -> Optional[int]:
    return location.line if location is not None else None


def read_ascii_element(text: str, element_def: ElementDef, element_type, location=None):
    """Decode one payload line into a new record of `element_type`."""
    line = _line_of(location)
    try:
        tokens = iter(parse_data_line(text))
    except PlyError as e:
        raise ValueParseError(e.message, line, element_def.name) from None

    record = element_type.new()
    for name, prop in element_def.properties.items():
        record.set_property(name, _read_property(tokens, prop, line, element_def.name))

    leftover = next(tokens, None)
    if leftover is not None:
        raise ValueParseError(
            f"Unexpected token '{leftover}' after last property", line, element_def.name
        )
    return record


def _read_property(tokens: Iterator[str], prop: PropertyDef, line, context) -> Value:
    data_type = prop.data_type
    token = next(tokens, None)
    if token is None:
        raise ValueParseError(
            f"Expected a value for property '{prop.name}', but found nothing", line, context
        )
    try:
        if not isinstance(data_type, ListOf):
            return Value.raw(data_type.scalar_type, parse_token(token, data_type.scalar_type))

        data_type.check_index_type(prop.name)
        count = parse_token(token, data_type.index_type)
        if count < 0:
            raise ListLengthError(f"Negative length {count} for list '{prop.name}'")

        items = []
        for i in range(count):
            item = next(tokens, None)
            if item is None:
                raise ListLengthError(
                    f"List '{prop.name}' declares {count} entries, "
                    f"couldn't find entry at index {i}"
                )
            items.append(parse_token(item, data_type.scalar_type))
        return Value.raw(data_type.scalar_type, items, is_list=True)
    except PlyError as e:
        # Attach the position the codec helpers don't know about.
        raise type(e)(f"Property '{prop.name}': {e.message}", line, context) from None


def write_ascii_element(record, element_def: ElementDef, new_line: str = "\n") -> str:
    """Encode one record as a payload line, terminator included."""
    context = element_def.name
    tokens = []
    for name, prop in element_def.properties.items():
        data_type = prop.data_type
        if isinstance(data_type, ListOf):
            data_type.check_index_type(name, context)
        value = get_value(record, name, data_type)
        if value is None:
            raise MissingPropertyError(
                f"Record has no value for property '{name}'", context=context
            )
        if isinstance(data_type, ListOf):
            if len(value) > data_type.max_length:
                raise ListLengthError(
                    f"List '{name}' has {len(value)} entries, more than index type "
                    f"'{data_type.index_type.keyword}' can count",
                    context=context,
                )
            tokens.append(str(len(value)))
            tokens.extend(_format(v, data_type.scalar_type, name, context) for v in value)
        else:
            tokens.append(_format(value, data_type.scalar_type, name, context))
    return " ".join(tokens) + new_line


def _format(value, scalar_type, name, context) -> str:
    try:
        return format_number(scalar_type.coerce(value), scalar_type)
    except ValueRangeError as e:
        raise ValueRangeError(f"Property '{name}': {e.message}", context=context) from None
