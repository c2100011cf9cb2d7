"""
Vision primitives used by the tracker
Includes HSV conversion, masking, histograms, backprojection, filtering and the CAMShift search
"""
import cv2
import numpy as np


def cross_kernel():
    """3x3 plus-shaped structuring element used for erosion."""
    return np.array([[0, 1, 0],
                     [1, 1, 1],
                     [0, 1, 0]], dtype=np.uint8)


def diamond_kernel(radius=3):
    """(2r+1)x(2r+1) diamond, |dx| + |dy| <= r, used for dilation."""
    size = 2 * radius + 1
    ys, xs = np.mgrid[:size, :size]
    return ((np.abs(xs - radius) + np.abs(ys - radius)) <= radius).astype(np.uint8)


class VisionOps:
    """Image operations the tracker delegates to.

    Subclass and override to run the tracker on something other than OpenCV,
    e.g. a scripted fake in tests. Every image argument and return value is a numpy array.
    """
    def to_hsv(self, frame): ...
    def in_range(self, image, lower, upper): ...
    def calc_hist(self, image, channels, mask, bins, ranges): ...
    def back_project(self, image, channels, hist, ranges): ...
    def bitwise_and(self, a, b): ...
    def threshold(self, image, thresh, max_value): ...
    def median_blur(self, image, ksize): ...
    def erode(self, image, kernel): ...
    def dilate(self, image, kernel): ...
    def cam_shift(self, prob_image, window, term_criteria): ...  # return ((cx, cy), (w, h), angle)


class OpenCVVisionOps(VisionOps):
    """VisionOps backed by cv2, one call per operation."""

    def to_hsv(self, frame):
        return cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)

    def in_range(self, image, lower, upper):
        return cv2.inRange(image,
                           np.array(lower, dtype=np.float64),
                           np.array(upper, dtype=np.float64))

    def calc_hist(self, image, channels, mask, bins, ranges):
        return cv2.calcHist([image], list(channels), mask, list(bins), list(ranges))

    def back_project(self, image, channels, hist, ranges):
        if hist.ndim < 3:
            return cv2.calcBackProject([image], list(channels), hist, list(ranges), 1)
        # cv2 reads a 3-D numpy histogram as a 2-D multi-channel Mat, so look the bins up here.
        inside = np.ones(image.shape[:2], dtype=bool)
        index = []
        for axis, channel in enumerate(channels):
            lo, hi = ranges[2 * axis], ranges[2 * axis + 1]
            bins = hist.shape[axis]
            values = image[..., channel].astype(np.float64)
            idx = np.floor((values - lo) * bins / (hi - lo)).astype(np.intp)
            inside &= (idx >= 0) & (idx < bins)
            index.append(np.clip(idx, 0, bins - 1))
        dst = np.where(inside, hist[tuple(index)], 0)
        return np.clip(np.rint(dst), 0, 255).astype(np.uint8)

    def bitwise_and(self, a, b):
        return cv2.bitwise_and(a, b)

    def threshold(self, image, thresh, max_value):
        _, dst = cv2.threshold(image, thresh, max_value, cv2.THRESH_BINARY)
        return dst

    def median_blur(self, image, ksize):
        return cv2.medianBlur(image, ksize)

    def erode(self, image, kernel):
        return cv2.erode(image, kernel)

    def dilate(self, image, kernel):
        return cv2.dilate(image, kernel)

    def cam_shift(self, prob_image, window, term_criteria):
        rotated, _ = cv2.CamShift(prob_image, tuple(int(v) for v in window), term_criteria)
        (cx, cy), (w, h), angle = rotated
        return (float(cx), float(cy)), (float(w), float(h)), float(angle)
