import pytest

from plyio import (
    DefaultElement,
    ElementDef,
    Encoding,
    Header,
    ListOf,
    Ply,
    PropertyDef,
    Scalar,
    ScalarType,
    Value,
)


def make_record(**values):
    record = DefaultElement()
    for name, value in values.items():
        record.set_property(name, value)
    return record


def make_sample_ply(encoding=Encoding.ASCII):
    """Two elements covering every scalar kind, two list kinds and type extremes."""
    header = Header(encoding=encoding)
    header.comments.append("made by plyio tests")
    header.obj_infos.append("unit: mm")

    vertex = ElementDef("vertex")
    vertex.add_property(PropertyDef("x", Scalar(ScalarType.FLOAT)))
    vertex.add_property(PropertyDef("y", Scalar(ScalarType.FLOAT)))
    vertex.add_property(PropertyDef("z", Scalar(ScalarType.DOUBLE)))
    vertex.add_property(PropertyDef("c", Scalar(ScalarType.CHAR)))
    vertex.add_property(PropertyDef("uc", Scalar(ScalarType.UCHAR)))
    vertex.add_property(PropertyDef("s", Scalar(ScalarType.SHORT)))
    vertex.add_property(PropertyDef("us", Scalar(ScalarType.USHORT)))
    vertex.add_property(PropertyDef("i", Scalar(ScalarType.INT)))
    vertex.add_property(PropertyDef("ui", Scalar(ScalarType.UINT)))
    header.add_element(vertex)

    face = ElementDef("face")
    face.add_property(PropertyDef("vertex_indices", ListOf(ScalarType.UCHAR, ScalarType.INT)))
    face.add_property(PropertyDef("weights", ListOf(ScalarType.USHORT, ScalarType.FLOAT)))
    header.add_element(face)

    payload = {
        "vertex": [
            make_record(
                x=Value.float(0.1),
                y=Value.float(-2.5),
                z=Value.double(0.1),
                c=Value.char(-128),
                uc=Value.uchar(255),
                s=Value.short(-32768),
                us=Value.ushort(65535),
                i=Value.int(-2147483648),
                ui=Value.uint(4294967295),
            ),
            make_record(
                x=Value.float(1e-3),
                y=Value.float(3e10),
                z=Value.double(-1.0 / 3.0),
                c=Value.char(127),
                uc=Value.uchar(0),
                s=Value.short(32767),
                us=Value.ushort(0),
                i=Value.int(2147483647),
                ui=Value.uint(0),
            ),
        ],
        "face": [
            make_record(
                vertex_indices=Value.list_int([0, 1, -1]),
                weights=Value.list_float([0.5, 0.25]),
            ),
            make_record(
                vertex_indices=Value.list_int([]),
                weights=Value.list_float([]),
            ),
        ],
    }
    return Ply(header, payload)


@pytest.fixture()
def sample_ply():
    return make_sample_ply()


@pytest.fixture()
def point_file(tmp_path):
    path = tmp_path / "points.ply"
    path.write_bytes(
        b"ply\n"
        b"format ascii 1.0\n"
        b"comment three points\n"
        b"element point 3\n"
        b"property float x\n"
        b"property float y\n"
        b"property list uchar int ids\n"
        b"end_header\n"
        b"0 0 1 7\n"
        b"1 0.5 0\n"
        b"2 1 2 8 9\n"
    )
    return path
