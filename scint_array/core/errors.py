"""
Exceptions raised while building the array or processing events.

All of them are fatal for a run. Each one also derives from the builtin
exception a caller would naturally catch for the same situation.
"""


class ScintArrayError(Exception):
    """Base class for all errors raised by scint_array."""


class InvalidSegmentCount(ScintArrayError, ValueError):
    def __init__(self, segments):
        self.segments = segments
        super().__init__(f"Number of segments must be >= 1, got {segments}")


class InvalidDimensions(ScintArrayError, ValueError):
    def __init__(self, name, detail=""):
        self.name = name
        message = f"Invalid dimensions for '{name}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class UnknownMaterial(ScintArrayError, KeyError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown material '{name}'")

    def __str__(self):
        return self.args[0]


class IndexOutOfRange(ScintArrayError, IndexError):
    def __init__(self, what, index, size):
        self.index = index
        self.size = size
        super().__init__(f"{what} index {index} outside [0, {size})")


class MissingCollection(ScintArrayError, KeyError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Cannot access hits collection '{name}'")

    def __str__(self):
        return self.args[0]


class GeometryOverlap(ScintArrayError, RuntimeError):
    def __init__(self, volume, other, point, depth):
        self.volume = volume
        self.other = other
        self.point = point
        super().__init__(
            f"Overlap detected: volume '{volume}' intrudes into '{other}' "
            f"at local point {tuple(round(float(c), 4) for c in point)} "
            f"by {depth:.4g} mm"
        )


class InvalidSelection(ScintArrayError, ValueError):
    """A selection group does not fit the configured layout."""


class MalformedDeposits(ScintArrayError, ValueError):
    """A deposit map holds values that cannot be energies."""


class RegistryError(ScintArrayError, RuntimeError):
    """Crystal position registry written twice or frozen incomplete."""
