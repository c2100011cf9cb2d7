"""
Construction-time settings for the CAMShift tracker
"""
from dataclasses import dataclass, fields
from typing import Tuple

import cv2


HUE_RANGE = (0, 180)
SAT_RANGE = (0, 256)
VAL_RANGE = (0, 256)

HUE_BINS = 20
SAT_BINS = 10
VAL_BINS = 1

MEDIAN_BLUR = 3
THRESHOLD = 40
THRESHOLD_MAX = 255

MIN_WIDTH = 20
MIN_HEIGHT = 20

TERM_CRITERIA = (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 10, 1)


@dataclass(frozen=True)
class TrackerConfig:
    # (min, max) per HSV channel, max exclusive as in cv2.calcHist
    hist_ranges: Tuple[Tuple[int, int], ...] = (HUE_RANGE, SAT_RANGE, VAL_RANGE)

    # inclusive bounds for cv2.inRange; the defaults let every pixel through
    mask_lower: Tuple[int, int, int] = (0, 0, 0)
    mask_upper: Tuple[int, int, int] = (HUE_RANGE[1], SAT_RANGE[1], VAL_RANGE[1])

    hist_bins: Tuple[int, int, int] = (HUE_BINS, SAT_BINS, VAL_BINS)
    median_blur: int = MEDIAN_BLUR
    threshold: int = THRESHOLD

    term_criteria: Tuple[int, int, float] = TERM_CRITERIA
    min_width: int = MIN_WIDTH
    min_height: int = MIN_HEIGHT

    @classmethod
    def from_dict(cls, values: dict) -> "TrackerConfig":
        """Build a config from a plain mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            if key not in known:
                continue
            if isinstance(value, list):
                value = tuple(tuple(v) if isinstance(v, list) else v for v in value)
            kwargs[key] = value
        return cls(**kwargs)

    @property
    def hist_ranges_flat(self):
        """Ranges in the flat [min0, max0, min1, max1, ...] form cv2 expects."""
        return [float(v) for pair in self.hist_ranges for v in pair]
