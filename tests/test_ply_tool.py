import matplotlib
import pytest

from plyio import Encoding, load
from plyio.ply_tool import main

matplotlib.use("Agg")


def test_info(point_file, capsys):
    main(["info", str(point_file)])
    out = capsys.readouterr().out
    assert "format: ascii 1.0" in out
    assert "comment: three points" in out
    assert "element point: 3 records" in out
    assert "list uchar int ids" in out
    assert "[0]" not in out


def test_info_records(point_file, capsys):
    main(["info", str(point_file), "--records"])
    out = capsys.readouterr().out
    assert "[2] x=2.0 y=1.0 ids=[8, 9]" in out


@pytest.mark.parametrize("encoding", [e.value for e in Encoding])
def test_convert(point_file, tmp_path, encoding):
    dest = tmp_path / "converted.ply"
    main(["convert", str(point_file), str(dest), "--encoding", encoding])
    converted = load(dest)
    assert converted.header.encoding is Encoding(encoding)
    assert converted.payload == load(point_file).payload


def test_convert_crlf(point_file, tmp_path):
    dest = tmp_path / "dos.ply"
    main(["convert", str(point_file), str(dest), "--crlf"])
    assert dest.read_bytes().startswith(b"ply\r\nformat ascii 1.0\r\n")
    assert load(dest).payload == load(point_file).payload


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main(["info", str(tmp_path / "nope.ply")])
    assert info.value.code == 1
    assert "file not found" in capsys.readouterr().out


def test_invalid_file(tmp_path, capsys):
    path = tmp_path / "bad.ply"
    path.write_bytes(b"not a ply file\n")
    with pytest.raises(SystemExit) as info:
        main(["info", str(path)])
    assert info.value.code == 1
    assert "Error:" in capsys.readouterr().out


def test_plot(point_file, tmp_path):
    output = tmp_path / "points.png"
    main(["plot", str(point_file), "-o", str(output)])
    assert output.exists()


def test_plot_unknown_property(point_file, tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["plot", str(point_file), "-y", "ids", "-o", str(tmp_path / "p.png")])
    assert info.value.code == 1
