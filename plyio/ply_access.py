"""
ply_access.py - Record abstraction used by the payload codecs

The codecs never touch a record directly. While reading they create an empty
record with `new()` and hand every decoded Value to `set_property`. While
writing they ask for each declared property through the typed getter that
matches the property type (`get_int`, `get_list_uchar`, ...).

Subclass PropertyAccess to read into (or write from) your own classes. Every
method has a default, so a read-only class only implements `set_property` and
a write-only class only the getters it needs.

Example:
    class Vertex(PropertyAccess):
        def __init__(self):
            self.x = self.y = 0.0

        def set_property(self, key, value):
            setattr(self, key, value.data)

        def get_float(self, key):
            return getattr(self, key, None)
"""

from __future__ import annotations

from typing import Optional, Sequence

from .ply_types import ListOf, PropertyType, Value


class PropertyAccess:
    """Capability interface between the codecs and a record type."""

    @classmethod
    def new(cls):
        return cls()

    def set_property(self, key: str, value: Value) -> None:
        # Write-only record types have nothing to store.
        pass

    def get_char(self, key: str) -> Optional[int]:
        return None

    def get_uchar(self, key: str) -> Optional[int]:
        return None

    def get_short(self, key: str) -> Optional[int]:
        return None

    def get_ushort(self, key: str) -> Optional[int]:
        return None

    def get_int(self, key: str) -> Optional[int]:
        return None

    def get_uint(self, key: str) -> Optional[int]:
        return None

    def get_float(self, key: str) -> Optional[float]:
        return None

    def get_double(self, key: str) -> Optional[float]:
        return None

    def get_list_char(self, key: str) -> Optional[Sequence[int]]:
        return None

    def get_list_uchar(self, key: str) -> Optional[Sequence[int]]:
        return None

    def get_list_short(self, key: str) -> Optional[Sequence[int]]:
        return None

    def get_list_ushort(self, key: str) -> Optional[Sequence[int]]:
        return None

    def get_list_int(self, key: str) -> Optional[Sequence[int]]:
        return None

    def get_list_uint(self, key: str) -> Optional[Sequence[int]]:
        return None

    def get_list_float(self, key: str) -> Optional[Sequence[float]]:
        return None

    def get_list_double(self, key: str) -> Optional[Sequence[float]]:
        return None


def getter_name(data_type: PropertyType) -> str:
    """Name of the PropertyAccess getter that serves `data_type`."""
    if isinstance(data_type, ListOf):
        return "get_list_" + data_type.scalar_type.keyword
    return "get_" + data_type.scalar_type.keyword


def get_value(record, key: str, data_type: PropertyType):
    """Fetch the raw value of `key` from `record`, None if it is absent."""
    return getattr(record, getter_name(data_type))(key)


class DefaultElement(dict, PropertyAccess):
    """Ready to use record: an ordered dict of property name -> Value.

    Works for any header, at the cost of one Value object per property.
    For compact storage of known layouts, implement PropertyAccess on your
    own class instead.
    """

    def set_property(self, key: str, value: Value) -> None:
        self[key] = value

    def _get(self, key: str, variant: str):
        value = self.get(key)
        if value is None or value.variant != variant:
            return None
        return value.data

    def get_char(self, key):
        return self._get(key, "char")

    def get_uchar(self, key):
        return self._get(key, "uchar")

    def get_short(self, key):
        return self._get(key, "short")

    def get_ushort(self, key):
        return self._get(key, "ushort")

    def get_int(self, key):
        return self._get(key, "int")

    def get_uint(self, key):
        return self._get(key, "uint")

    def get_float(self, key):
        return self._get(key, "float")

    def get_double(self, key):
        return self._get(key, "double")

    def get_list_char(self, key):
        return self._get(key, "list_char")

    def get_list_uchar(self, key):
        return self._get(key, "list_uchar")

    def get_list_short(self, key):
        return self._get(key, "list_short")

    def get_list_ushort(self, key):
        return self._get(key, "list_ushort")

    def get_list_int(self, key):
        return self._get(key, "list_int")

    def get_list_uint(self, key):
        return self._get(key, "list_uint")

    def get_list_float(self, key):
        return self._get(key, "list_float")

    def get_list_double(self, key):
        return self._get(key, "list_double")
