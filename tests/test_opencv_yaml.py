import math

import numpy as np
import pytest

from lidarcalib.opencv_yaml import FileStorageError, dump_file, dumps, load_file, loads

OPENCV_SAMPLE = """%YAML:1.0
---
data_num: 4
distortion: !!opencv-matrix
   rows: 1
   cols: 4
   dt: f
   data: [ -5.50211109e-02, 6.54778555e-02, 2.28431483e-04,
       6.33787364e-04 ]
"""


def test_dumps_starts_with_opencv_header():
    assert dumps({"a": 1}).startswith("%YAML:1.0\n---\n")


def test_scalar_round_trip_preserves_values_and_order():
    items = {
        "laser_topic_name": "/scan",
        "ransac_max_iterations": 10000,
        "ransac_fitline_dist_th": 0.02,
        "laser_z_wrt_chessboard": "x-",
    }
    result = loads(dumps(items))
    assert list(result) == list(items)
    assert result == items


def test_pairs_are_accepted_as_input():
    pairs = [("b", 2), ("a", 1)]
    assert list(loads(dumps(pairs)).items()) == pairs


def test_float_written_in_exponent_form():
    assert "v: 5.0000000000000000e-01" in dumps({"v": 0.5})


def test_float32_matrix_round_trip():
    matrix = np.array(
        [
            [644.076904296875, 0.0, 641.3648681640625],
            [0.0, 643.2040405273438, 359.3841857910156],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    )
    back = loads(dumps({"intrinsic": matrix}))["intrinsic"]
    assert back.dtype == np.float32
    np.testing.assert_array_equal(back, matrix)


def test_vector_written_as_column_matrix():
    vector = np.array([1.25, -3.5])
    back = loads(dumps({"xy": vector}))["xy"]
    assert back.shape == (2, 1)
    assert back.dtype == np.float64
    np.testing.assert_array_equal(back, vector.reshape(2, 1))


def test_matrix_type_code_for_double():
    assert "dt: d" in dumps({"m": np.zeros((2, 2), dtype=np.float64)})


def test_multichannel_integer_matrix_round_trip():
    matrix = np.arange(12, dtype=np.uint8).reshape(2, 2, 3)
    back = loads(dumps({"m": matrix}))["m"]
    assert back.dtype == np.uint8
    np.testing.assert_array_equal(back, matrix)


def test_non_finite_matrix_round_trip():
    matrix = np.array([[np.nan, np.inf, -np.inf]])
    back = loads(dumps({"m": matrix}))["m"]
    assert math.isnan(back[0, 0])
    assert back[0, 1] == np.inf
    assert back[0, 2] == -np.inf


def test_reads_opencv_written_document():
    result = loads(OPENCV_SAMPLE)
    assert result["data_num"] == 4
    distortion = result["distortion"]
    assert distortion.shape == (1, 4)
    assert distortion.dtype == np.float32
    assert distortion[0, 0] == np.float32(-5.50211109e-02)


def test_reads_opencv_nan_spelling():
    text = (
        "%YAML:1.0\n---\nm: !!opencv-matrix\n   rows: 1\n   cols: 2\n"
        "   dt: d\n   data: [ .Nan, 2.5 ]\n"
    )
    result = loads(text)
    matrix = result["m"]
    assert list(result) == ["m"]
    assert matrix.shape == (1, 2)
    assert matrix.dtype == np.float64
    assert np.isnan(matrix[0, 0])
    assert matrix[0, 1] == 2.5


def test_empty_document_gives_empty_dict():
    assert loads("%YAML:1.0\n---\n") == {}


def test_malformed_document_raises():
    with pytest.raises(FileStorageError):
        loads("key: [1, 2")


def test_matrix_with_wrong_element_count_raises():
    text = "m: !!opencv-matrix\n   rows: 2\n   cols: 2\n   dt: d\n   data: [ 1., 2., 3. ]\n"
    with pytest.raises(FileStorageError):
        loads(text)


def test_top_level_sequence_raises():
    with pytest.raises(FileStorageError):
        loads("- 1\n- 2\n")


def test_unsupported_value_raises():
    with pytest.raises(FileStorageError):
        dumps({"a": object()})


def test_invalid_key_raises():
    with pytest.raises(FileStorageError):
        dumps({"bad key": 1})


def test_file_round_trip(tmp_path):
    path = tmp_path / "config.yaml"
    dump_file(path, {"data_num": 7, "name": "/odom"})
    assert load_file(path) == {"data_num": 7, "name": "/odom"}


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileStorageError):
        load_file(tmp_path / "absent.yaml")