"""Exceptions raised by the energy backend.

Forecast absence is not an error (the engines return `None`), and thin
data lowers confidence instead of failing. Only the persistence layer
raises, and the cache turns those failures into memory-only operation.
"""


class EnergyError(Exception):
    """Base class for backend errors."""


class CacheStoreError(EnergyError):
    """A forecast store could not load or persist data."""
