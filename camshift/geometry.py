"""Rectangle helpers for track windows.

Axis-aligned rectangles are `(x, y, w, h)` int tuples. Rotated rectangles use the
`((cx, cy), (w, h), angle)` layout returned by `cv2.CamShift`, angle in degrees.
"""
import math
from typing import Tuple

import numpy as np


Rect = Tuple[int, int, int, int]
RotatedRect = Tuple[Tuple[float, float], Tuple[float, float], float]

EMPTY_RECT: Rect = (0, 0, 0, 0)
EMPTY_ROTATED_RECT: RotatedRect = ((0.0, 0.0), (0.0, 0.0), 0.0)


def is_rect_nonzero(rect: Rect) -> bool:
    _, _, w, h = rect
    return w > 0 and h > 0


def box_points(rotated: RotatedRect) -> np.ndarray:
    """Corners of a rotated rectangle as a (4, 2) float array.

    Same ordering as cv2.boxPoints: bottom-left, top-left, top-right, bottom-right
    for an unrotated box.
    """
    (cx, cy), (w, h), angle = rotated
    theta = math.radians(angle)
    b = math.cos(theta) * 0.5
    a = math.sin(theta) * 0.5

    p0 = (cx - a * h - b * w, cy + b * h - a * w)
    p1 = (cx + a * h - b * w, cy - b * h - a * w)
    p2 = (2 * cx - p0[0], 2 * cy - p0[1])
    p3 = (2 * cx - p1[0], 2 * cy - p1[1])
    return np.array([p0, p1, p2, p3], dtype=np.float64)


def bounding_rect(rotated: RotatedRect) -> Rect:
    """Smallest integer rectangle holding every corner of `rotated`.

    Matches RotatedRect::boundingRect, so a zero-size box still yields a 1x1 rect.
    """
    pts = box_points(rotated)
    x1 = int(math.floor(pts[:, 0].min()))
    y1 = int(math.floor(pts[:, 1].min()))
    x2 = int(math.ceil(pts[:, 0].max()))
    y2 = int(math.ceil(pts[:, 1].max()))
    return (x1, y1, x2 - x1 + 1, y2 - y1 + 1)


def intersect(a: Rect, b: Rect) -> Rect:
    """Intersection of two rectangles; `EMPTY_RECT` when they do not overlap."""
    xa, ya, wa, ha = a
    xb, yb, wb, hb = b
    x1 = max(xa, xb)
    y1 = max(ya, yb)
    x2 = min(xa + wa, xb + wb)
    y2 = min(ya + ha, yb + hb)
    if x2 <= x1 or y2 <= y1:
        return EMPTY_RECT
    return (x1, y1, x2 - x1, y2 - y1)


def contains(outer: Rect, inner: Rect) -> bool:
    xo, yo, wo, ho = outer
    xi, yi, wi, hi = inner
    return xi >= xo and yi >= yo and xi + wi <= xo + wo and yi + hi <= yo + ho


def center(rect: Rect) -> Tuple[float, float]:
    x, y, w, h = rect
    return x + w / 2.0, y + h / 2.0
