"""Exception types raised by the test-selection engine."""

from __future__ import annotations


class StatgateError(ValueError):
    """Base class for all engine errors."""


class InsufficientDataError(StatgateError):
    """A group has fewer observations than the analysis requires."""


class InvalidShapeError(StatgateError):
    """Input groups do not fit the requested test shape.

    Raised for mismatched paired lengths, malformed multi-group requests,
    unusable values and unmapped selector input.
    """


class InvalidParameterError(StatgateError):
    """An analysis parameter is outside its allowed range."""


class DegenerateInputError(StatgateError):
    """The data make the selected test statistic undefined."""
