from __future__ import annotations

from typing import Any


class GeoValueError(ValueError):
    """
    Base class for invalid input to the spatial index.

    Subclasses ValueError so callers that already guard on ValueError keep working.
    """

    def __init__(self, message: str, *, value: Any = None):
        super().__init__(message)
        self.value = value


class InvalidCoordinate(GeoValueError):
    pass


class InvalidZoom(GeoValueError):
    pass


class InvalidQuadKey(GeoValueError):
    pass
