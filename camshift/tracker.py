import numbers
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
from loguru import logger

from .config import TrackerConfig, THRESHOLD_MAX
from .errors import InvalidArgumentError, PreconditionError
from .features import OpenCVVisionOps, cross_kernel, diamond_kernel
from .geometry import (
    EMPTY_RECT, EMPTY_ROTATED_RECT, bounding_rect, intersect, is_rect_nonzero,
)


class Parameter(IntEnum):
    """Keys accepted by set_parameter() / get_parameter()."""
    HUE_BINS = 0
    SAT_BINS = 1
    VAL_BINS = 2
    MEDIAN_BLUR = 3
    THRESHOLD = 4


_BIN_PARAMETERS = {Parameter.HUE_BINS: 0, Parameter.SAT_BINS: 1, Parameter.VAL_BINS: 2}
_CHANNELS = (0, 1, 2)


@dataclass
class TrackState:
    frame: np.ndarray | None = None             # current BGR frame (caller-owned)
    histogram: np.ndarray | None = None         # 3-D HSV histogram of the selection
    track_window: tuple = EMPTY_RECT            # (x, y, w, h)
    rotated_window: tuple | None = None         # ((cx, cy), (w, h), angle)
    back_projection: np.ndarray | None = None   # filtered density map of the last step


def _read_only(array):
    snapshot = array.copy()
    snapshot.flags.writeable = False
    return snapshot


def _check_parameter(parameter, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgumentError(f"{parameter.name} must be an integer, got {value!r}")
    if parameter in _BIN_PARAMETERS:
        if value < 0:
            raise InvalidArgumentError(f"{parameter.name} must be greater than or equal to 0")
    elif parameter == Parameter.MEDIAN_BLUR:
        if value <= 1 or value % 2 != 1:
            raise InvalidArgumentError(f"{parameter.name} must be greater than 1 and odd")
    elif parameter == Parameter.THRESHOLD:
        if value < 0 or value > THRESHOLD_MAX:
            raise InvalidArgumentError(
                f"{parameter.name} must be greater than or equal to 0, "
                f"and less than or equal to {THRESHOLD_MAX}")


class CamShiftTracker:
    """
    Color-histogram tracker around the CAMShift search.

    A selection seeds an HSV histogram. Each run_camshift() backprojects that histogram
    onto the current frame, cleans the density map (mask, threshold, median blur,
    erode, dilate) and lets CAMShift move, resize and rotate the window. The result
    is kept from collapsing below a minimum size or jumping off the frame.

    Typical use:
        tracker = CamShiftTracker()
        tracker.set_frame(first_frame)
        tracker.set_selection((x, y, w, h))
        for frame in frames:
            tracker.set_frame(frame)
            tracker.run_camshift()
            x, y, w, h = tracker.get_track()
    """
    __slots__ = ('config', 'vision_ops', 'state', 'hist_bins', 'median_blur', 'threshold',
                 'erosion_kernel', 'dilation_kernel')

    def __init__(self, config: TrackerConfig | None = None, vision_ops=None):
        self.config = config if config is not None else TrackerConfig()
        self.vision_ops = vision_ops if vision_ops is not None else OpenCVVisionOps()
        self.state = TrackState()

        if len(self.config.hist_bins) != len(_CHANNELS):
            raise InvalidArgumentError(f"hist_bins needs {len(_CHANNELS)} values")
        if len(self.config.hist_ranges) != len(_CHANNELS):
            raise InvalidArgumentError(f"hist_ranges needs {len(_CHANNELS)} (min, max) pairs")
        for parameter, index in _BIN_PARAMETERS.items():
            _check_parameter(parameter, self.config.hist_bins[index])
        _check_parameter(Parameter.MEDIAN_BLUR, self.config.median_blur)
        _check_parameter(Parameter.THRESHOLD, self.config.threshold)

        self.hist_bins = list(self.config.hist_bins)
        self.median_blur = int(self.config.median_blur)
        self.threshold = int(self.config.threshold)

        self.erosion_kernel = cross_kernel()
        self.dilation_kernel = diamond_kernel(3)

    # ---------- frame / selection ----------
    def set_frame(self, frame):
        """Set the image the next set_selection() / run_camshift() works on."""
        self.state.frame = frame

    @property
    def frame(self):
        return self.state.frame

    @property
    def has_selection(self) -> bool:
        return self.state.histogram is not None

    @property
    def histogram(self):
        if self.state.histogram is None:
            return None
        return _read_only(self.state.histogram)

    def set_selection(self, selection):
        """
        Seed the color histogram from a region of the current frame.

        Args:
            selection: (x, y, w, h); clipped to the frame before use

        Raises:
            InvalidArgumentError: w or h is not positive, the selection misses the frame,
                or a histogram bin count is 0
            PreconditionError: no frame has been set
        """
        x, y, w, h = (int(v) for v in selection)
        if w <= 0 or h <= 0:
            raise InvalidArgumentError(f"Invalid selection {selection}: width and height must be positive")
        frame = self._require_frame()

        rows, cols = frame.shape[:2]
        roi = intersect((x, y, w, h), (0, 0, cols, rows))
        if not is_rect_nonzero(roi):
            raise InvalidArgumentError(f"Selection {selection} lies outside the {cols}x{rows} frame")
        if 0 in self.hist_bins:
            raise InvalidArgumentError(f"Cannot build a histogram with bins {tuple(self.hist_bins)}")

        hsv, mask = self._hsv_and_mask(frame)
        rx, ry, rw, rh = roi
        histogram = self.vision_ops.calc_hist(
            hsv[ry:ry + rh, rx:rx + rw], _CHANNELS, mask[ry:ry + rh, rx:rx + rw],
            self.hist_bins, self.config.hist_ranges_flat)
        if histogram is None:
            raise InvalidArgumentError(f"No histogram produced for bins {tuple(self.hist_bins)}")

        self.state.histogram = histogram
        self.state.track_window = roi
        logger.debug(f"Selection set to {roi}, histogram bins {tuple(self.hist_bins)}")

    # ---------- tracking ----------
    def run_camshift(self):
        """
        Run one tracking step on the current frame.

        Updates the track window, the rotated track window and the backprojection.

        Raises:
            PreconditionError: no frame has been set, or no selection has been made
        """
        frame = self._require_frame()
        if self.state.histogram is None:
            raise PreconditionError("No histogram available; call set_selection() first")
        ops = self.vision_ops

        hsv, mask = self._hsv_and_mask(frame)
        ranges = self.config.hist_ranges_flat
        dst = ops.back_project(hsv, _CHANNELS, self.state.histogram, ranges)
        dst = ops.bitwise_and(dst, mask)
        dst = ops.threshold(dst, self.threshold, THRESHOLD_MAX)
        dst = ops.median_blur(dst, self.median_blur)
        dst = ops.erode(dst, self.erosion_kernel)
        dst = ops.dilate(dst, self.dilation_kernel)

        prev = self.state.rotated_window or EMPTY_ROTATED_RECT
        rotated = ops.cam_shift(dst, self.state.track_window, self.config.term_criteria)

        rows, cols = dst.shape[:2]
        rotated = self._sanitize(rotated, prev, cols, rows)
        track = intersect(bounding_rect(rotated), (0, 0, cols, rows))

        self.state.back_projection = dst
        self.state.rotated_window = rotated
        self.state.track_window = track
        logger.debug(f"CamShift window {track}, center ({rotated[0][0]:.1f}, {rotated[0][1]:.1f})")

    def _sanitize(self, rotated, prev, cols, rows):
        (cx, cy), (w, h), angle = rotated
        min_w = self.config.min_width
        # Height is floored with the width minimum; both default to 20.
        # TODO: switch to config.min_height once the two are allowed to differ.
        min_h = self.config.min_width

        if w < min_w:
            w = float(min_w)
        if h < min_h:
            h = float(min_h)

        (prev_cx, prev_cy), _, _ = prev
        if cx <= 0 or cx > cols:
            logger.debug(f"Center x {cx:.1f} outside [1, {cols}], keeping {prev_cx:.1f}")
            cx = prev_cx
        if cy <= 0 or cy > rows:
            logger.debug(f"Center y {cy:.1f} outside [1, {rows}], keeping {prev_cy:.1f}")
            cy = prev_cy
        return (float(cx), float(cy)), (float(w), float(h)), float(angle)

    # ---------- results ----------
    def get_back_projection(self):
        """Read-only copy of the filtered backprojection from the last step."""
        bp = self.state.back_projection
        if bp is None or bp.shape[0] == 0 or bp.shape[1] == 0:
            raise PreconditionError("Backprojection has not been set")
        return _read_only(bp)

    def get_track(self):
        """Axis-aligned track window (x, y, w, h)."""
        if not is_rect_nonzero(self.state.track_window):
            raise PreconditionError("Track has not been set")
        return self.state.track_window

    def get_rotated_track(self):
        """Rotated track window ((cx, cy), (w, h), angle) as produced by CAMShift."""
        rotated = self.state.rotated_window
        if rotated is None or not is_rect_nonzero(bounding_rect(rotated)):
            raise PreconditionError("Rotated track has not been set")
        return rotated

    # ---------- parameters ----------
    def set_parameter(self, parameter, value):
        try:
            parameter = Parameter(parameter)
        except ValueError:
            raise InvalidArgumentError(f"Unknown parameter: {parameter!r}") from None
        _check_parameter(parameter, value)

        value = int(value)
        if parameter in _BIN_PARAMETERS:
            self.hist_bins[_BIN_PARAMETERS[parameter]] = value
        elif parameter == Parameter.MEDIAN_BLUR:
            self.median_blur = value
        else:
            self.threshold = value
        logger.info(f"{parameter.name} set to {value}")

    def get_parameter(self, parameter):
        """Current value of `parameter`; 0 for keys outside Parameter."""
        try:
            parameter = Parameter(parameter)
        except ValueError:
            return 0
        if parameter in _BIN_PARAMETERS:
            return self.hist_bins[_BIN_PARAMETERS[parameter]]
        if parameter == Parameter.MEDIAN_BLUR:
            return self.median_blur
        return self.threshold

    # ---------- helpers ----------
    def _require_frame(self):
        frame = self.state.frame
        if frame is None or frame.size == 0:
            raise PreconditionError("No frame available; call set_frame() first")
        return frame

    def _hsv_and_mask(self, frame):
        hsv = self.vision_ops.to_hsv(frame)
        mask = self.vision_ops.in_range(hsv, self.config.mask_lower, self.config.mask_upper)
        return hsv, mask
