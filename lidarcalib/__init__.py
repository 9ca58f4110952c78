"""Data capture, storage and parameter tuning for 2D lidar extrinsic calibration."""

__version__ = "1.0.1"