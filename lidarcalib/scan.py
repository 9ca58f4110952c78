"""Laser scans and the point clouds built from them."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

MAX_RANGE = 30.0


@dataclass
class LaserScan:
    """A planar laser scan: one range per beam, beams evenly spaced in angle."""

    stamp_sec: int
    angle_min: float
    angle_increment: float
    ranges: Sequence[float] = ()


def _empty_cloud() -> np.ndarray:
    return np.zeros((0, 3), dtype=np.float32)


@dataclass
class LaserData:
    """An accumulated laser point cloud and whether it is fit for calibration."""

    point_cloud: np.ndarray = field(default_factory=_empty_cloud)
    can_be_used: bool = False

    def __post_init__(self) -> None:
        self.point_cloud = np.asarray(self.point_cloud, dtype=np.float32).reshape(-1, 3)


def scan_to_points(scan: LaserScan, max_range: float = MAX_RANGE) -> np.ndarray:
    """Convert a scan to (N, 3) points in the laser frame.

    Beams whose range is not finite or exceeds ``max_range`` are dropped.
    """
    ranges = np.asarray(scan.ranges, dtype=np.float32).reshape(-1)
    angles = np.float32(scan.angle_min) + np.float32(scan.angle_increment) * np.arange(
        ranges.size, dtype=np.float32
    )
    keep = np.isfinite(ranges) & ~(ranges.astype(np.float64) > max_range)
    kept_ranges = ranges[keep].astype(np.float64)
    kept_angles = angles[keep].astype(np.float64)
    points = np.zeros((kept_ranges.size, 3), dtype=np.float32)
    points[:, 0] = kept_ranges * np.cos(kept_angles)
    points[:, 1] = kept_ranges * np.sin(kept_angles)
    return points