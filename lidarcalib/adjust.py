"""Interactive tuning of the line detection parameters, frame by frame."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

CONTINUITY_RANGE = (0, 200)
CONTINUITY_MID = 100
LENGTH_TOLERANCE_RANGE = (0, 200)
LENGTH_TOLERANCE_MID = 100
FIT_THRESHOLD_RANGE = (0, 100)
FIT_THRESHOLD_MID = 50


class CameraCalibrator(Protocol):
    """What the camera adjuster needs from a laser-to-camera calibrator."""

    laser_data_set: Sequence[Any]

    def get_parameters_adjust(self) -> tuple[float, float]: ...

    def update_parameters_detect(
        self, index: int, max_dist_seen_as_continuous: float, ransac_fitline_dist_th: float
    ) -> Any: ...


class OdomCalibrator(Protocol):
    """What the odometry adjuster needs from a laser-to-odometry calibrator."""

    laser_data_set: Sequence[Any]

    def get_parameters_adjust(self) -> tuple[float, float, float]: ...

    def update_parameters_detect(
        self,
        index: int,
        max_dist_seen_as_continuous: float,
        line_length_tolerance: float,
        ransac_fitline_dist_th: float,
    ) -> Any: ...


def _scaled(mid_value: float, value: int, mid_position: int, bounds: tuple[int, int]) -> float:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"slider position {value} outside {low}..{high}")
    return (mid_value / float(mid_position)) * float(value)


class FrameNavigator:
    """Steps back and forth through a fixed number of frames, starting at the first."""

    def __init__(self, count: int, on_change: Callable[[int], None] | None = None) -> None:
        if count < 1:
            raise ValueError("there must be at least one frame")
        self.count = count
        self.current = 0
        self._on_change = on_change

    @property
    def has_previous(self) -> bool:
        """Whether a step back is possible."""
        return self.current > 0

    @property
    def has_next(self) -> bool:
        """Whether a step forward is possible."""
        return self.current + 1 < self.count

    def previous(self) -> int:
        """Move to the previous frame and return its index."""
        if not self.has_previous:
            raise IndexError("already at the first frame")
        self.current -= 1
        self._notify()
        return self.current

    def next(self) -> int:
        """Move to the next frame and return its index."""
        if not self.has_next:
            raise IndexError("already at the last frame")
        self.current += 1
        self._notify()
        return self.current

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.current)


class _Adjuster:
    def __init__(self, calibrator: Any, on_update: Callable[[Any], None] | None) -> None:
        self.calibrator = calibrator
        self._on_update = on_update
        self.navigator = FrameNavigator(len(calibrator.laser_data_set), self._show)

    @property
    def frame(self) -> int:
        """Index of the frame currently shown."""
        return self.navigator.current

    def _detect_all(self, progress: Callable[[int, int], None] | None) -> None:
        total = len(self.calibrator.laser_data_set)
        for index in range(total):
            self._detect(index)
            if progress is not None:
                progress(index, total)

    def _detect(self, index: int) -> None:
        raise NotImplementedError

    def _show(self, index: int) -> None:
        if self._on_update is not None:
            self._on_update(self.calibrator.laser_data_set[index])

    def apply(self) -> None:
        """Run detection on the current frame with the current parameters."""
        self._detect(self.frame)
        self._show(self.frame)


class CameraParameterAdjuster(_Adjuster):
    """Tunes continuity distance and line fit threshold for laser-to-camera data.

    On creation every frame is detected with the calibrator's own parameters,
    which sit at the middle of each slider.
    """

    def __init__(
        self,
        calibrator: CameraCalibrator,
        on_update: Callable[[Any], None] | None = None,
        progress: Callable[[int, int], None] | None = None,
    ) -> None:
        super().__init__(calibrator, on_update)
        mid_continuity, mid_threshold = calibrator.get_parameters_adjust()
        self.mid_continuity = float(mid_continuity)
        self.mid_fit_threshold = float(mid_threshold)
        self.continuity = self.mid_continuity
        self.fit_threshold = self.mid_fit_threshold
        self._detect_all(progress)
        self._show(self.frame)

    def _detect(self, index: int) -> None:
        self.calibrator.update_parameters_detect(index, self.continuity, self.fit_threshold)

    def set_continuity(self, value: int) -> float:
        """Set the continuity slider (0..200, 100 = initial) and return the distance."""
        self.continuity = _scaled(self.mid_continuity, value, CONTINUITY_MID, CONTINUITY_RANGE)
        return self.continuity

    def set_fit_threshold(self, value: int) -> float:
        """Set the fit threshold slider (0..100, 50 = initial) and return the threshold."""
        self.fit_threshold = _scaled(
            self.mid_fit_threshold, value, FIT_THRESHOLD_MID, FIT_THRESHOLD_RANGE
        )
        return self.fit_threshold

    def apply(self) -> None:
        """Run detection on the current frame with the current parameters."""
        super().apply()


class OdomParameterAdjuster(_Adjuster):
    """Tunes continuity distance, line length tolerance and fit threshold for odometry data.

    On creation every frame is detected with the calibrator's own parameters,
    which sit at the middle of each slider.
    """

    def __init__(
        self,
        calibrator: OdomCalibrator,
        on_update: Callable[[Any], None] | None = None,
        progress: Callable[[int, int], None] | None = None,
    ) -> None:
        super().__init__(calibrator, on_update)
        mid_continuity, mid_tolerance, mid_threshold = calibrator.get_parameters_adjust()
        self.mid_continuity = float(mid_continuity)
        self.mid_length_tolerance = float(mid_tolerance)
        self.mid_fit_threshold = float(mid_threshold)
        self.continuity = self.mid_continuity
        self.length_tolerance = self.mid_length_tolerance
        self.fit_threshold = self.mid_fit_threshold
        self._detect_all(progress)
        self._show(self.frame)

    def _detect(self, index: int) -> None:
        self.calibrator.update_parameters_detect(
            index, self.continuity, self.length_tolerance, self.fit_threshold
        )

    def set_continuity(self, value: int) -> float:
        """Set the continuity slider (0..200, 100 = initial) and return the distance."""
        self.continuity = _scaled(self.mid_continuity, value, CONTINUITY_MID, CONTINUITY_RANGE)
        return self.continuity

    def set_length_tolerance(self, value: int) -> float:
        """Set the length tolerance slider (0..200, 100 = initial) and return the tolerance."""
        self.length_tolerance = _scaled(
            self.mid_length_tolerance, value, LENGTH_TOLERANCE_MID, LENGTH_TOLERANCE_RANGE
        )
        return self.length_tolerance

    def set_fit_threshold(self, value: int) -> float:
        """Set the fit threshold slider (0..100, 50 = initial) and return the threshold."""
        self.fit_threshold = _scaled(
            self.mid_fit_threshold, value, FIT_THRESHOLD_MID, FIT_THRESHOLD_RANGE
        )
        return self.fit_threshold

    def apply(self) -> None:
        """Run detection on the current frame with the current parameters."""
        super().apply()