from __future__ import annotations


class MeanFilterError(Exception):
    """Base class for every failure raised by the mean filter."""


class InvalidInput(MeanFilterError, ValueError):
    """The source buffer is missing, empty or not an 8-bit single-channel grid."""


class InvalidRadius(MeanFilterError, ValueError):
    """The window radius is not positive or does not fit inside the grid."""

    def __init__(self, radius, width: int | None = None, height: int | None = None, reason: str | None = None) -> None:
        self.radius = radius
        self.width = width
        self.height = height
        if reason is None:
            reason = f"window radius {radius!r} does not fit a {width}x{height} grid"
        super().__init__(reason)

    def __reduce__(self):
        # keep attributes when crossing a process pool
        return type(self), (self.radius, self.width, self.height, str(self))


class AllocationFailure(MeanFilterError, MemoryError):
    """Output or cache buffers could not be allocated."""


class UnknownFilterMode(MeanFilterError, ValueError):
    """The requested filter backend does not exist."""
