"""
Python client for KiWIS time series web services.

Resolve time series identifiers against the KiWIS catalog and read values
with interval-ending timestamps.
"""

try:
    from importlib import metadata

    __version__ = metadata.version(__name__)
except Exception:
    __version__ = "unknown"

from .alignment import (
    AlignmentDiagnostics,
    AlignmentOptions,
    InterpolationType,
    TemporalAligner,
    lookup_interpolation_type,
)
from .catalog import CatalogQueryEngine, CatalogStore
from .client import KiWISClient
from .config import ClientConfig
from .convenience import (
    list_data_intervals,
    list_data_types,
    list_time_series,
    read_time_series,
)
from .datastore import KiWISDataStore
from .exceptions import (
    AmbiguousSeries,
    IncompatibleAlignmentOption,
    KiWISError,
    MalformedIdentifier,
    NoMatchingSeries,
    RedundantIrregularRequest,
    RequirementSyntaxError,
    TransportFailure,
    UnsupportedIntervalRequest,
    ValueDecodeFailure,
)
from .identifier import LocationType, RequestedIdentifier
from .interval import DataInterval, IntervalBase, parse_interval, spacing_to_interval
from .models import CatalogEntry, RawValue
from .query import FilterPredicate
from .requirements import ConfigCheck, VersionCheck, parse_requirement
from .resolver import IdentifierResolver, Resolution
from .response import CatalogQueryResult
from .timeseries import Period, TimeSeries, TimeSeriesValue

__all__ = [
    # Datastore and client
    "KiWISDataStore",
    "KiWISClient",
    "ClientConfig",
    # Catalog
    "CatalogEntry",
    "CatalogQueryEngine",
    "CatalogQueryResult",
    "CatalogStore",
    "FilterPredicate",
    # Identifiers and alignment
    "RequestedIdentifier",
    "LocationType",
    "IdentifierResolver",
    "Resolution",
    "AlignmentOptions",
    "AlignmentDiagnostics",
    "TemporalAligner",
    "InterpolationType",
    "lookup_interpolation_type",
    "DataInterval",
    "IntervalBase",
    "parse_interval",
    "spacing_to_interval",
    # Time series
    "TimeSeries",
    "TimeSeriesValue",
    "Period",
    "RawValue",
    # Requirements
    "parse_requirement",
    "VersionCheck",
    "ConfigCheck",
    # Convenience functions
    "read_time_series",
    "list_time_series",
    "list_data_types",
    "list_data_intervals",
    # Exceptions
    "KiWISError",
    "MalformedIdentifier",
    "UnsupportedIntervalRequest",
    "IncompatibleAlignmentOption",
    "RedundantIrregularRequest",
    "NoMatchingSeries",
    "AmbiguousSeries",
    "TransportFailure",
    "ValueDecodeFailure",
    "RequirementSyntaxError",
]
