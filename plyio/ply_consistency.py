"""Pre-write consistency check of a header against its payload."""

from __future__ import annotations

from .ply_errors import ConsistencyError


def has_white_space(s: str) -> bool:
    return any(c.isspace() for c in s)


def has_line_break(s: str) -> bool:
    return "\n" in s or "\r" in s


def make_consistent(header, payload: dict) -> None:
    """Reconcile element counts with the payload and validate all names.

    Declared elements without records get an empty list, each count is set
    to the number of records. Record contents are never touched.
    """
    for name in header.elements:
        if name not in payload:
            payload[name] = []

    for name, records in payload.items():
        if not name:
            raise ConsistencyError("Element cannot have an empty name")
        element = header.elements.get(name)
        if element is None:
            raise ConsistencyError(f"No declaration for element '{name}' found")
        element.count = len(records)

    for obj_info in header.obj_infos:
        if has_line_break(obj_info):
            raise ConsistencyError(
                f"Object information {obj_info!r} should not contain any line breaks"
            )
    for comment in header.comments:
        if has_line_break(comment):
            raise ConsistencyError(f"Comment {comment!r} should not contain any line breaks")

    for element in header.elements.values():
        if has_line_break(element.name):
            raise ConsistencyError(
                f"Name of element {element.name!r} should not contain any line breaks"
            )
        if has_white_space(element.name):
            raise ConsistencyError(
                f"Name of element {element.name!r} should not contain any white space"
            )
        for prop in element.properties.values():
            if has_line_break(prop.name):
                raise ConsistencyError(
                    f"Name of property {prop.name!r} should not contain any line breaks",
                    context=element.name,
                )
            if has_white_space(prop.name):
                raise ConsistencyError(
                    f"Name of property {prop.name!r} should not contain any white space",
                    context=element.name,
                )
