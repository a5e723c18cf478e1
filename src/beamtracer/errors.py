"""Exception types raised by beamtracer.

Only invalid top-level parameters abort a render. Geometry problems found
while rendering are recovered locally: a degenerate primitive never
intersects, and a zero-length direction falls back to a fixed axis.
"""


class BeamtracerError(Exception):
    """Base class for renderer errors."""


class DegenerateGeometryError(BeamtracerError, ValueError):
    """A primitive has zero or invalid extent.

    Attributes:
        indices: Scene-order indices of the offending primitives.
    """

    def __init__(self, message: str, indices: tuple[int, ...] = ()):
        super().__init__(message)
        self.indices = tuple(indices)


class ZeroLengthVectorError(BeamtracerError, ArithmeticError):
    """A zero-length vector was normalized without a fallback direction."""


class RenderCancelledError(BeamtracerError):
    """A render was cancelled between tiles.

    Attributes:
        partial: Image holding the rows finished before cancellation.
        rows_completed: Number of leading rows that hold final values.
    """

    def __init__(self, partial, rows_completed: int):
        super().__init__(f"Render cancelled after {rows_completed} rows")
        self.partial = partial
        self.rows_completed = rows_completed
