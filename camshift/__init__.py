"""
CAMShift tracking package initialization
"""
from .config import TrackerConfig
from .errors import CamShiftError, InvalidArgumentError, PreconditionError
from .features import VisionOps, OpenCVVisionOps, cross_kernel, diamond_kernel
from .geometry import bounding_rect, box_points, intersect, contains, is_rect_nonzero
from .tracker import CamShiftTracker, Parameter, TrackState

__all__ = [
    'CamShiftTracker',
    'Parameter',
    'TrackState',
    'TrackerConfig',
    'CamShiftError',
    'InvalidArgumentError',
    'PreconditionError',
    'VisionOps',
    'OpenCVVisionOps',
    'cross_kernel',
    'diamond_kernel',
    'bounding_rect',
    'box_points',
    'intersect',
    'contains',
    'is_rect_nonzero',
]
