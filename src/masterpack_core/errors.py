"""Exceptions raised by the masterpack core.

Expected data conditions (a product that does not fit, a layer that
overhangs, an empty search) are returned as values, not raised.
"""


class MasterpackError(Exception):
    """Base class for errors raised by this package."""


class InvalidGeometry(MasterpackError, ValueError):
    """Raised when a dimension, wall thickness or sweep range is not usable."""


class InvalidConfiguration(MasterpackError, ValueError):
    """Raised when a settings or configuration file violates the schema."""
