"""Error kinds raised by the fogview core."""


class FogviewError(RuntimeError):
    """Base class for fogview errors."""


class GeometryError(FogviewError):
    """Raised when a transform cannot be computed without producing NaN values."""


class DegenerateBasisError(GeometryError):
    """
    Raised when the view basis cannot be derived.

    Happens when eye and center coincide, or when the view direction is
    parallel to the reference axis used for the cross product.
    """


class SingularWorldAlignmentError(GeometryError):
    """Raised when a node's world rotation+scale is not invertible (e.g. zero scale)."""


class InvalidSampleError(FogviewError, ValueError):
    """Raised when a noise sample is requested at a non-finite coordinate."""
