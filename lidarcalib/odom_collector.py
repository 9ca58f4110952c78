"""Collection of paired laser clouds and odometry poses for laser-to-odometry calibration."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from lidarcalib.scan import LaserData, LaserScan, scan_to_points


@dataclass
class Odometry:
    """An odometry message: position and orientation quaternion."""

    stamp_sec: int
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    qw: float = 1.0
    qx: float = 0.0
    qy: float = 0.0
    qz: float = 0.0


@dataclass
class OdomData:
    """A planar odometry pose used for calibration."""

    odom_pose_xy: np.ndarray = field(default_factory=lambda: np.zeros(2))
    odom_pose_yaw_rotation: np.ndarray = field(default_factory=lambda: np.eye(2))
    current_yaw: float = 0.0
    can_be_used: bool = False

    def __post_init__(self) -> None:
        self.odom_pose_xy = np.asarray(self.odom_pose_xy, dtype=np.float64).reshape(2)
        self.odom_pose_yaw_rotation = np.asarray(self.odom_pose_yaw_rotation, dtype=np.float64).reshape(2, 2)


def quaternion_to_rotation(w: float, x: float, y: float, z: float) -> np.ndarray:
    """Rotation matrix of a quaternion, which is used as given without normalising."""
    tx, ty, tz = 2.0 * x, 2.0 * y, 2.0 * z
    twx, twy, twz = tx * w, ty * w, tz * w
    txx, txy, txz = tx * x, ty * x, tz * x
    tyy, tyz, tzz = ty * y, tz * y, tz * z
    return np.array(
        [
            [1.0 - (tyy + tzz), txy - twz, txz + twy],
            [txy + twz, 1.0 - (txx + tzz), tyz - twx],
            [txz - twy, tyz + twx, 1.0 - (txx + tyy)],
        ]
    )


def yaw_from_rotation(rotation) -> float:
    """First angle of a Z-Y-X Euler decomposition, in the range [0, pi]."""
    matrix = np.asarray(rotation, dtype=np.float64)
    yaw = math.atan2(matrix[1, 0], matrix[0, 0])
    if yaw < 0:
        yaw += math.pi
    return yaw


@dataclass
class OdomDataCollector:
    """Gathers one accumulated laser cloud and one odometry pose per capture request.

    Feed it incoming messages through ``on_laser_scan`` and ``on_odometry``.
    """

    laser_topic: str = "/scan"
    odom_topic: str = "/odom"
    max_range: float = 30.0
    min_frame_num: int = 4
    max_time_delay: int = 3
    laser_data_set: list[LaserData] = field(default_factory=list)
    odom_data_set: list[OdomData] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._laser_captured = True
        self._odom_captured = True
        self._collected_frame = 0
        self._last_laser_time = 0
        self._last_odom_time = 0
        self._cumulative = np.zeros((0, 3), dtype=np.float32)

    def start_capture(self) -> None:
        """Begin capturing a new laser cloud and odometry pair."""
        self._collected_frame = 0
        self._odom_captured = False
        self._laser_captured = False
        self._cumulative = np.zeros((0, 3), dtype=np.float32)

    def on_laser_scan(self, scan: LaserScan) -> None:
        """Handle an incoming laser scan."""
        if self._laser_captured:
            return
        if self._last_laser_time != 0 and abs(self._last_laser_time - scan.stamp_sec) < self.max_time_delay:
            return
        if self._collected_frame >= self.min_frame_num:
            if not self._odom_captured:
                return
            self._laser_captured = True
            self._last_laser_time = scan.stamp_sec
            self.laser_data_set.append(LaserData(point_cloud=self._cumulative.copy(), can_be_used=True))
        else:
            points = scan_to_points(scan, self.max_range)
            self._cumulative = np.vstack([self._cumulative, points])
            self._collected_frame += 1

    def on_odometry(self, odometry: Odometry) -> None:
        """Handle an incoming odometry message."""
        if self._odom_captured:
            return
        if self._last_odom_time != 0:
            if abs(self._last_odom_time - odometry.stamp_sec) < self.max_time_delay:
                return
            if abs(odometry.stamp_sec - self._last_laser_time) < self.max_time_delay:
                return
        rotation = quaternion_to_rotation(odometry.qw, odometry.qx, odometry.qy, odometry.qz)
        self.odom_data_set.append(
            OdomData(
                odom_pose_xy=np.array([odometry.x, odometry.y]),
                odom_pose_yaw_rotation=rotation[:2, :2].copy(),
                current_yaw=yaw_from_rotation(rotation),
                can_be_used=True,
            )
        )
        self._last_odom_time = odometry.stamp_sec
        self._odom_captured = True

    def current_capture_succeed(self) -> bool:
        """Whether both the laser cloud and the pose of the current capture arrived."""
        return self._odom_captured and self._laser_captured