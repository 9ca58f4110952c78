"""Collection of paired laser clouds and camera images for laser-to-camera calibration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from lidarcalib.scan import LaserData, LaserScan, scan_to_points

MAX_TIME_DELAY = 3
MAX_RANGE = 30.0
MAX_FRAME = 3

_log = logging.getLogger(__name__)

_CHANNELS = {"bgr8": 3, "rgb8": 3, "bgra8": 4, "rgba8": 4, "mono8": 1}


@dataclass
class Image:
    """A raw camera image as it arrives from the camera topic."""

    stamp_sec: int
    height: int
    width: int
    encoding: str
    data: bytes | np.ndarray
    step: int = 0


@dataclass
class CameraData:
    """One captured BGR image used for calibration."""

    image: np.ndarray


@dataclass
class LaserPlane:
    """The image captured with the chessboard aligned to the laser plane."""

    laser_plane_image: np.ndarray | None = None


def image_to_bgr(image: Image) -> np.ndarray:
    """Convert an 8-bit image to a (height, width, 3) BGR uint8 array.

    Raises ValueError for an unsupported encoding or a buffer that is too short.
    """
    channels = _CHANNELS.get(image.encoding)
    if channels is None:
        raise ValueError(f"cannot convert encoding {image.encoding!r} to bgr8")
    if isinstance(image.data, np.ndarray):
        raw = np.asarray(image.data, dtype=np.uint8).reshape(-1)
    else:
        raw = np.frombuffer(bytes(image.data), dtype=np.uint8)
    row_bytes = image.width * channels
    step = image.step or row_bytes
    if step < row_bytes:
        raise ValueError(f"row step {step} is shorter than a row of {row_bytes} bytes")
    needed = step * image.height
    if raw.size < needed:
        raise ValueError(f"image buffer holds {raw.size} bytes, expected {needed}")
    pixels = raw[:needed].reshape(image.height, step)[:, :row_bytes]
    pixels = pixels.reshape(image.height, image.width, channels)
    if image.encoding == "mono8":
        bgr = np.repeat(pixels, 3, axis=2)
    elif image.encoding == "rgb8":
        bgr = pixels[..., ::-1]
    elif image.encoding == "bgra8":
        bgr = pixels[..., :3]
    elif image.encoding == "rgba8":
        bgr = pixels[..., 2::-1]
    else:
        bgr = pixels
    return np.ascontiguousarray(bgr, dtype=np.uint8).copy()


@dataclass
class CameraDataCollector:
    """Gathers one accumulated laser cloud and one image per capture request.

    Feed it incoming messages through ``on_laser_scan`` and ``on_image``.
    """

    image_topic: str = "/camera/color/image_raw"
    laser_topic: str = "/scan"
    max_time_delay: int = MAX_TIME_DELAY
    max_range: float = MAX_RANGE
    max_frame: int = MAX_FRAME
    camera_data_set: list[CameraData] = field(default_factory=list)
    laser_data_set: list[LaserData] = field(default_factory=list)
    laser_plane_image: LaserPlane = field(default_factory=LaserPlane)

    def __post_init__(self) -> None:
        self._image_captured = True
        self._laser_captured = True
        self._capture_laser_plane_image = False
        self._last_laser_time = 0
        self._last_image_time = 0
        self._collected_frame = 0
        self._cumulative = np.zeros((0, 3), dtype=np.float32)

    def start_capture(self) -> None:
        """Begin capturing a new laser cloud and image pair."""
        self._collected_frame = 0
        self._image_captured = False
        self._laser_captured = False
        self._cumulative = np.zeros((0, 3), dtype=np.float32)

    def capture_laser_plane_image(self) -> None:
        """Capture the next image as the laser plane reference image."""
        self._image_captured = False
        self._capture_laser_plane_image = True

    def on_laser_scan(self, scan: LaserScan) -> None:
        """Handle an incoming laser scan."""
        if self._laser_captured:
            return
        if self._last_laser_time != 0 and abs(self._last_laser_time - scan.stamp_sec) < self.max_time_delay:
            return
        if self._collected_frame >= self.max_frame:
            if not self._image_captured:
                return
            self._laser_captured = True
            self._last_laser_time = scan.stamp_sec
            self.laser_data_set.append(LaserData(point_cloud=self._cumulative.copy(), can_be_used=True))
            _log.info("current data capture done")
        else:
            points = scan_to_points(scan, self.max_range)
            self._cumulative = np.vstack([self._cumulative, points])
            self._collected_frame += 1

    def on_image(self, image: Image) -> None:
        """Handle an incoming camera image."""
        if self._image_captured:
            return
        if self._last_image_time != 0 and abs(self._last_image_time - image.stamp_sec) < self.max_time_delay:
            return
        if self._last_image_time == 0:
            self._last_image_time = image.stamp_sec
        bgr = image_to_bgr(image)
        self._image_captured = True
        if self._capture_laser_plane_image:
            self.laser_plane_image.laser_plane_image = bgr
            self._capture_laser_plane_image = False
        else:
            self.camera_data_set.append(CameraData(image=bgr))

    def current_capture_succeed(self) -> bool:
        """Whether both the laser cloud and the image of the current capture arrived."""
        return self._image_captured and self._laser_captured

    def laser_plane_image_capture_succeed(self) -> bool:
        """Whether the requested image has been captured."""
        return self._image_captured