import numpy as np
import pytest

from camshift import CamShiftTracker, TrackerConfig, VisionOps


class FakeVisionOps(VisionOps):
    """Pass-through image ops with a scripted CAMShift result.

    `density` replaces the backprojection, `mask` replaces the inRange mask and
    `results` is consumed one entry per cam_shift() call (an Exception instance is raised).
    """

    def __init__(self, results=None, density=None, mask=None):
        self.results = list(results or [])
        self.density = density
        self.mask = mask
        self.calls = []
        self.windows = []
        self.hist_regions = []
        self.kernels = {}
        self.term_criteria = None

    def to_hsv(self, frame):
        self.calls.append('to_hsv')
        return frame

    def in_range(self, image, lower, upper):
        self.calls.append('in_range')
        if self.mask is not None:
            return self.mask
        return np.full(image.shape[:2], 255, dtype=np.uint8)

    def calc_hist(self, image, channels, mask, bins, ranges):
        self.calls.append('calc_hist')
        self.hist_regions.append((image.shape, mask.shape, tuple(bins)))
        return np.ones(tuple(max(b, 1) for b in bins), dtype=np.float32)

    def back_project(self, image, channels, hist, ranges):
        self.calls.append('back_project')
        if self.density is not None:
            return self.density.copy()
        return np.full(image.shape[:2], 255, dtype=np.uint8)

    def bitwise_and(self, a, b):
        self.calls.append('bitwise_and')
        return np.bitwise_and(a, b)

    def threshold(self, image, thresh, max_value):
        self.calls.append('threshold')
        return np.where(image > thresh, max_value, 0).astype(np.uint8)

    def median_blur(self, image, ksize):
        self.calls.append('median_blur')
        self.kernels['median_blur'] = ksize
        return image

    def erode(self, image, kernel):
        self.calls.append('erode')
        self.kernels['erode'] = kernel
        return image

    def dilate(self, image, kernel):
        self.calls.append('dilate')
        self.kernels['dilate'] = kernel
        return image

    def cam_shift(self, prob_image, window, term_criteria):
        self.calls.append('cam_shift')
        self.windows.append(tuple(window))
        self.term_criteria = term_criteria
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        x, y, w, h = window
        return (x + w / 2.0, y + h / 2.0), (float(w), float(h)), 0.0


def make_frame(rows=100, cols=120):
    return np.zeros((rows, cols, 3), dtype=np.uint8)


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def fake_ops():
    return FakeVisionOps()


@pytest.fixture
def tracker(fake_ops):
    return CamShiftTracker(TrackerConfig(), vision_ops=fake_ops)


@pytest.fixture
def seeded(tracker, frame):
    tracker.set_frame(frame)
    tracker.set_selection((40, 30, 30, 20))
    return tracker
