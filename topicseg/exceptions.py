"""
Exception types raised by topicseg.

Both concrete errors subclass ValueError so callers that already guard
numeric code with ``except ValueError`` keep working.
"""


class TopicSegError(Exception):
    """Base class for all topicseg errors."""


class InvalidSegmentationError(TopicSegError, ValueError):
    """A segmentation or position array is malformed.

    Raised for overlapping segments, non-monotonic position arrays and
    position arrays that still contain the unset sentinel (0).
    """


class InvalidParameterError(TopicSegError, ValueError):
    """A numeric parameter is out of range or shapes do not match."""
