"""
ply_numpy.py - Column view of PLY elements as numpy arrays

Usage:
    import plyio
    from plyio.ply_numpy import element_arrays, records_from_arrays

    ply = plyio.load("bunny.ply")
    vertex = element_arrays(ply, "vertex")
    xyz = np.column_stack([vertex["x"], vertex["y"], vertex["z"]])

    # Scale and write back
    arrays = {k: v * 2 for k, v in vertex.items()}
    ply.payload["vertex"] = records_from_arrays(ply.header.elements["vertex"], arrays)
"""

from __future__ import annotations

import numpy as np

from .ply_access import DefaultElement, get_value
from .ply_errors import MissingPropertyError
from .ply_types import ElementDef, ListOf, Ply, Value


def element_arrays(ply: Ply, element_name: str) -> dict:
    """Return dict of property name -> array for one element.

    Scalar properties become 1-D arrays with the dtype of the property.
    List properties become a list holding one array per record.
    """
    element_def = ply.header.elements[element_name]
    records = ply.payload.get(element_name, [])
    result = {}

    for name, prop in element_def.properties.items():
        data_type = prop.data_type
        dtype = data_type.scalar_type.dtype()
        values = []
        for record in records:
            value = get_value(record, name, data_type)
            if value is None:
                raise MissingPropertyError(
                    f"Record has no value for property '{name}'", context=element_name
                )
            values.append(value)

        if isinstance(data_type, ListOf):
            result[name] = [np.asarray(v, dtype=dtype) for v in values]
        else:
            result[name] = np.asarray(values, dtype=dtype)

    return result


def records_from_arrays(element_def: ElementDef, arrays: dict) -> list:
    """Build DefaultElement records from arrays shaped like element_arrays output."""
    columns = []
    total_size = None
    for name, prop in element_def.properties.items():
        if name not in arrays:
            raise MissingPropertyError(
                f"No array for property '{name}'", context=element_def.name
            )
        column = arrays[name]
        if not isinstance(prop.data_type, ListOf):
            column = np.asarray(column)
        if total_size is None:
            total_size = len(column)
        elif len(column) != total_size:
            raise ValueError(
                f"Array '{name}' has {len(column)} entries, expected {total_size}"
            )
        columns.append((name, prop.data_type, column))

    records = []
    for i in range(total_size or 0):
        record = DefaultElement()
        for name, data_type, column in columns:
            if isinstance(data_type, ListOf):
                value = Value(data_type.scalar_type, np.asarray(column[i]).tolist(), is_list=True)
            else:
                value = Value(data_type.scalar_type, column[i].item())
            record.set_property(name, value)
        records.append(record)
    return records
