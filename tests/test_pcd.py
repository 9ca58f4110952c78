import math

import numpy as np
import pytest

from lidarcalib.pcd import PcdError, load_pcd, save_pcd_ascii


def _binary_file(path, fields, rows):
    count = len(rows)
    header = (
        "VERSION 0.7\n"
        f"FIELDS {' '.join(fields)}\n"
        f"SIZE {' '.join('4' for _ in fields)}\n"
        f"TYPE {' '.join('F' for _ in fields)}\n"
        f"COUNT {' '.join('1' for _ in fields)}\n"
        f"WIDTH {count}\nHEIGHT 1\nVIEWPOINT 0 0 0 1 0 0 0\n"
        f"POINTS {count}\nDATA binary\n"
    )
    path.write_bytes(header.encode("ascii") + np.array(rows, dtype="<f4").tobytes())


def test_ascii_round_trip(tmp_path):
    points = np.array(
        [[1.5, -2.25, 0.0], [0.1, 0.2, 0.3], [1e-3, 30.0, -7.0]], dtype=np.float32
    )
    path = tmp_path / "cloud.pcd"
    save_pcd_ascii(path, points)
    back = load_pcd(path)
    assert back.dtype == np.float32
    np.testing.assert_array_equal(back, points)


def test_ascii_header_declares_points(tmp_path):
    path = tmp_path / "cloud.pcd"
    save_pcd_ascii(path, np.zeros((5, 3)))
    lines = path.read_text().splitlines()
    data_index = lines.index("DATA ascii")
    assert lines[data_index - 1] == "POINTS 5"
    assert len(lines) == data_index + 1 + 5


def test_nan_points_survive(tmp_path):
    path = tmp_path / "cloud.pcd"
    save_pcd_ascii(path, [[math.nan, 1.0, 2.0]])
    back = load_pcd(path)
    assert math.isnan(back[0, 0])
    assert back[0, 1] == 1.0


def test_empty_cloud_round_trip(tmp_path):
    path = tmp_path / "cloud.pcd"
    save_pcd_ascii(path, [])
    assert load_pcd(path).shape == (0, 3)


def test_ascii_field_order_is_respected(tmp_path):
    path = tmp_path / "cloud.pcd"
    path.write_text(
        "FIELDS intensity x y z\nSIZE 4 4 4 4\nTYPE F F F F\nCOUNT 1 1 1 1\n"
        "WIDTH 1\nHEIGHT 1\nPOINTS 1\nDATA ascii\n9 1 2 3\n"
    )
    np.testing.assert_array_equal(load_pcd(path), np.array([[1, 2, 3]], dtype=np.float32))


def test_binary_file_is_read(tmp_path):
    path = tmp_path / "cloud.pcd"
    rows = [[1.0, 2.0, 3.0, 0.5], [-4.0, 5.5, 0.0, 0.25]]
    _binary_file(path, ["x", "y", "z", "intensity"], rows)
    expected = np.array(rows, dtype=np.float32)[:, :3]
    np.testing.assert_array_equal(load_pcd(path), expected)


def test_truncated_binary_raises(tmp_path):
    path = tmp_path / "cloud.pcd"
    _binary_file(path, ["x", "y", "z"], [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    path.write_bytes(path.read_bytes()[:-4])
    with pytest.raises(PcdError):
        load_pcd(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(PcdError):
        load_pcd(tmp_path / "absent.pcd")


def test_missing_axis_raises(tmp_path):
    path = tmp_path / "cloud.pcd"
    path.write_text("FIELDS x y\nSIZE 4 4\nTYPE F F\nCOUNT 1 1\nPOINTS 1\nDATA ascii\n1 2\n")
    with pytest.raises(PcdError):
        load_pcd(path)


def test_too_few_points_raises(tmp_path):
    path = tmp_path / "cloud.pcd"
    path.write_text("FIELDS x y z\nSIZE 4 4 4\nTYPE F F F\nCOUNT 1 1 1\nPOINTS 2\nDATA ascii\n1 2 3\n")
    with pytest.raises(PcdError):
        load_pcd(path)


def test_non_numeric_value_raises(tmp_path):
    path = tmp_path / "cloud.pcd"
    path.write_text("FIELDS x y z\nSIZE 4 4 4\nTYPE F F F\nCOUNT 1 1 1\nPOINTS 1\nDATA ascii\n1 two 3\n")
    with pytest.raises(PcdError):
        load_pcd(path)


def test_compressed_data_is_rejected(tmp_path):
    path = tmp_path / "cloud.pcd"
    path.write_text("FIELDS x y z\nSIZE 4 4 4\nTYPE F F F\nCOUNT 1 1 1\nPOINTS 0\nDATA binary_compressed\n")
    with pytest.raises(PcdError):
        load_pcd(path)


def test_header_without_data_line_raises(tmp_path):
    path = tmp_path / "cloud.pcd"
    path.write_text("FIELDS x y z\nPOINTS 0\n")
    with pytest.raises(PcdError):
        load_pcd(path)


def test_save_rejects_wrong_shape(tmp_path):
    with pytest.raises(ValueError):
        save_pcd_ascii(tmp_path / "cloud.pcd", [[1.0, 2.0]])