# mimic/errors.py
"""
Exception types raised by the scene engine and its collaborators.
"""


class MimicError(Exception):
    """Base class for every error raised by this package."""


class SceneGraphError(MimicError, ValueError):
    """A payload cannot be turned into a SceneGraph at all (wrong top-level structure)."""


class SceneAcquisitionError(MimicError, RuntimeError):
    """The scene generation service failed or returned an unusable payload."""
