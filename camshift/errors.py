"""
Exceptions raised by the tracker controller
"""


class CamShiftError(Exception):
    """Base class for tracker errors."""


class InvalidArgumentError(CamShiftError, ValueError):
    """A caller-supplied value violates a documented constraint."""


class PreconditionError(CamShiftError, RuntimeError):
    """An operation was called before the one it depends on."""
