"""
Exceptions for KiWIS catalog and time series operations.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .alignment import AlignmentDiagnostics


class KiWISError(Exception):
    """Base exception for kiwisdb errors."""

    pass


class MalformedIdentifier(KiWISError):
    """Time series identifier could not be parsed."""

    pass


class UnsupportedIntervalRequest(KiWISError):
    """Requested interval cannot be produced from the catalog."""

    pass


class IncompatibleAlignmentOption(KiWISError):
    """Alignment option is not valid for the requested interval."""

    pass


class RedundantIrregularRequest(KiWISError):
    """Irregular interval requested on an identifier that is already irregular."""

    pass


class NoMatchingSeries(KiWISError):
    """Catalog query succeeded but matched no time series."""

    pass


class AmbiguousSeries(KiWISError):
    """Catalog query matched more than one time series."""

    def __init__(self, message: str, match_count: int = 0):
        super().__init__(message)
        self.match_count = match_count


class TransportFailure(KiWISError):
    """Error communicating with the KiWIS web service."""

    pass


class ValueDecodeFailure(KiWISError):
    """Time series values could not be decoded."""

    def __init__(
        self, message: str, diagnostics: Optional["AlignmentDiagnostics"] = None
    ):
        super().__init__(message)
        self.diagnostics = diagnostics


class RequirementSyntaxError(KiWISError):
    """Requirement check text could not be parsed."""

    pass
