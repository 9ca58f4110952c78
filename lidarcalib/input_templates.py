"""Default input parameter files for the two calibration tools."""

from __future__ import annotations

import argparse
from os import PathLike
from typing import Any, Union

import numpy as np

from lidarcalib.opencv_yaml import dump_file

DEFAULT_FILE_NAME = "parameters_input.yaml"

PathType = Union[str, "PathLike[str]"]


def camera_parameters() -> dict[str, Any]:
    """Default parameters of the laser-to-camera calibration, in file order."""
    intrinsic = np.array(
        [
            [644.076904296875, 0.0, 641.3648681640625],
            [0.0, 643.2040405273438, 359.3841857910156],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    )
    distortion = np.array(
        [[-0.05502111092209816, 0.06547785550355911, 0.0002284314832650125, 0.0006337873637676239]],
        dtype=np.float32,
    )
    return {
        "image_topic_name": "/camera/color/image_raw",
        "laser_topic_name": "/scan",
        "reletive_dist_from_laser2chessboard_origin": 0.193,
        "chessboard_length_in_laser_frame": 0.60,
        "laser_x_wrt_chessboard": "z",
        "laser_y_wrt_chessboard": "y",
        "laser_z_wrt_chessboard": "x-",
        "intrinsic": intrinsic,
        "distortion": distortion,
        "chessboard_rows": 8,
        "chessboard_cols": 11,
        "chessboard_square_height": 45.0,
        "chessboard_square_width": 45.0,
        "left_margin_length": 29.0,
        "right_margin_length": 30.0,
        "up_margin_length": 22.0,
        "down_margin_length": 22.0,
        "max_dist_seen_as_continuous": 0.5,
        "ransac_max_iterations": 10000,
        "ransac_fitline_dist_th": 0.02,
        "min_point_num_stop_ransac": 10,
        "min_proportion_stop_ransac": 0.01,
    }


def odom_parameters() -> dict[str, Any]:
    """Default parameters of the laser-to-odometry calibration, in file order."""
    return {
        "laser_topic_name": "/scan",
        "odom_topic_name": "/odom",
        "long_edge_length": 2.0,
        "short_edge_length": 1.0,
        "max_dist_seen_as_continuous": 0.07,
        "line_length_tolerance": 0.25,
        "ransac_max_iterations": 10000,
        "ransac_fitline_dist_th": 0.04,
        "min_point_num_stop_ransac": 10,
        "min_proportion_stop_ransac": 0.01,
        "diff_tolerance_laser_odom": 0.05,
    }


def write_camera_template(path: PathType = DEFAULT_FILE_NAME) -> None:
    """Write the laser-to-camera parameter template."""
    dump_file(path, camera_parameters())


def write_odom_template(path: PathType = DEFAULT_FILE_NAME) -> None:
    """Write the laser-to-odometry parameter template."""
    dump_file(path, odom_parameters())


def _run(argv, description: str, writer) -> int:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "-o", "--output", default=DEFAULT_FILE_NAME, help="file to write (default: %(default)s)"
    )
    args = parser.parse_args(argv)
    writer(args.output)
    print(f"{args.output} generated!")
    return 0


def main_camera(argv: list[str] | None = None) -> int:
    """Generate the laser-to-camera parameter file."""
    return _run(argv, "Write the laser-to-camera calibration input template.", write_camera_template)


def main_odom(argv: list[str] | None = None) -> int:
    """Generate the laser-to-odometry parameter file."""
    return _run(argv, "Write the laser-to-odometry calibration input template.", write_odom_template)