"""
High-level convenience functions for KiWIS data access.

Each function opens a datastore for the duration of the call. Use
:class:`~kiwisdb.datastore.KiWISDataStore` directly to reuse the catalog
cache between calls.
"""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence, Union

from .alignment import AlignmentOptions
from .config import ClientConfig
from .datastore import KiWISDataStore
from .models import CatalogEntry
from .query import FilterPredicate
from .timeseries import TimeSeries


def _config(config: Optional[ClientConfig]) -> ClientConfig:
    return config if config is not None else ClientConfig.from_env()


def read_time_series(
    tsid: str,
    read_start: Optional[datetime] = None,
    read_end: Optional[datetime] = None,
    options: Union[AlignmentOptions, Mapping[str, Any], None] = None,
    config: Optional[ClientConfig] = None,
) -> TimeSeries:
    """
    Read one time series.

    Args:
        tsid: Time series identifier, e.g. ``0101.WaterLevelRiver-HG.1Day``.
        read_start: Start of the period to read.
        read_end: End of the period to read.
        options: Alignment options.
        config: Datastore configuration, read from ``KIWIS_*`` environment
            variables if not given.

    Example:
        >>> ts = read_time_series("0101.WaterLevelRiver-HG.1Day")  # doctest: +SKIP
        >>> df = ts.to_pandas()  # doctest: +SKIP
    """
    with KiWISDataStore(_config(config)) as datastore:
        return datastore.read_time_series(tsid, read_start, read_end, options=options)


def list_time_series(
    data_type: Optional[str] = None,
    data_interval: Optional[str] = None,
    filters: Optional[Sequence[FilterPredicate]] = None,
    config: Optional[ClientConfig] = None,
) -> List[CatalogEntry]:
    """List catalog entries matching the filters."""
    with KiWISDataStore(_config(config)) as datastore:
        return list(datastore.list_time_series(data_type, data_interval, filters))


def list_data_types(
    data_interval: Optional[str] = None,
    include_wildcards: bool = False,
    config: Optional[ClientConfig] = None,
) -> List[str]:
    """List the data types in the catalog."""
    with KiWISDataStore(_config(config)) as datastore:
        datastore.get_time_series_catalog(read_data=True)
        return datastore.data_type_strings(data_interval, include_wildcards)


def list_data_intervals(
    data_type: Optional[str] = None,
    include_wildcards: bool = False,
    config: Optional[ClientConfig] = None,
) -> List[str]:
    """List the data intervals in the catalog."""
    with KiWISDataStore(_config(config)) as datastore:
        datastore.get_time_series_catalog(read_data=True)
        return datastore.data_interval_strings(data_type, include_wildcards)
