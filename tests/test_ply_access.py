import io

import pytest

from plyio import (
    ByteSource,
    DefaultElement,
    ElementDef,
    Encoding,
    Header,
    ListOf,
    MissingPropertyError,
    Parser,
    Ply,
    PropertyAccess,
    PropertyDef,
    Scalar,
    ScalarType,
    Value,
    dumps,
    loads,
)


class Vertex(PropertyAccess):
    def __init__(self):
        self.x = 0.0
        self.y = 0.0
        self.red = 0

    def set_property(self, key, value):
        setattr(self, key, value.data)

    def get_float(self, key):
        if key in ("x", "y"):
            return getattr(self, key)
        return None

    def get_uchar(self, key):
        return self.red if key == "red" else None


class Face(PropertyAccess):
    def __init__(self):
        self.indices = []

    def set_property(self, key, value):
        if key == "vertex_indices":
            self.indices = value.data

    def get_list_int(self, key):
        return self.indices if key == "vertex_indices" else None


DATA = (
    b"ply\n"
    b"format ascii 1.0\n"
    b"element vertex 2\n"
    b"property float x\n"
    b"property float y\n"
    b"property uchar red\n"
    b"element face 1\n"
    b"property list uchar int vertex_indices\n"
    b"end_header\n"
    b"0.5 1 255\n"
    b"-1 2.25 7\n"
    b"2 0 1\n"
)


def test_default_access_is_empty():
    record = PropertyAccess.new()
    record.set_property("x", Value.int(1))
    assert record.get_int("x") is None
    assert record.get_list_double("x") is None


def test_default_element_getters():
    record = DefaultElement.new()
    record.set_property("x", Value.short(-3))
    record.set_property("ids", Value.list_uint([1, 2]))
    assert record.get_short("x") == -3
    assert record.get_int("x") is None
    assert record.get_list_uint("ids") == [1, 2]
    assert record.get_list_int("ids") is None
    assert record.get_double("missing") is None


def test_read_into_user_class():
    ply = loads(DATA, element_type=Vertex)
    vertices = ply.payload["vertex"]
    assert all(isinstance(v, Vertex) for v in vertices)
    assert (vertices[1].x, vertices[1].y, vertices[1].red) == (-1.0, 2.25, 7)
    assert vertices[0].red == 255


def test_one_parser_per_element_type():
    with ByteSource(io.BytesIO(DATA)) as src:
        header = Parser().read_header(src)
        vertices = Parser(Vertex).read_payload_for_element(src, header.elements["vertex"], header)
        faces = Parser(Face).read_payload_for_element(src, header.elements["face"], header)
    assert [v.x for v in vertices] == [0.5, -1.0]
    assert faces[0].indices == [0, 1]


def test_write_from_user_class():
    header = Header(encoding=Encoding.BINARY_LITTLE_ENDIAN)
    vertex = ElementDef("vertex")
    vertex.add_property(PropertyDef("x", Scalar(ScalarType.FLOAT)))
    vertex.add_property(PropertyDef("y", Scalar(ScalarType.FLOAT)))
    vertex.add_property(PropertyDef("red", Scalar(ScalarType.UCHAR)))
    header.add_element(vertex)
    face = ElementDef("face")
    face.add_property(PropertyDef("vertex_indices", ListOf(ScalarType.UCHAR, ScalarType.INT)))
    header.add_element(face)

    v = Vertex()
    v.x, v.y, v.red = 1.5, -0.25, 9
    f = Face()
    f.indices = [0, 0, 0]
    data = dumps(Ply(header, {"vertex": [v], "face": [f]}))

    ply = loads(data)
    assert ply.payload["vertex"][0] == {
        "x": Value.float(1.5),
        "y": Value.float(-0.25),
        "red": Value.uchar(9),
    }
    assert ply.payload["face"][0]["vertex_indices"] == Value.list_int([0, 0, 0])


def test_write_from_class_without_getter():
    header = Header()
    header.add_element(
        ElementDef("face").add_property(PropertyDef("ids", ListOf(ScalarType.UCHAR, ScalarType.UINT)))
    )
    with pytest.raises(MissingPropertyError):
        dumps(Ply(header, {"face": [Face()]}))
