"""
Resolution of time series identifiers to exactly one catalog entry.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .alignment import AlignmentOptions
from .catalog import CatalogQueryEngine
from .exceptions import (
    AmbiguousSeries,
    IncompatibleAlignmentOption,
    NoMatchingSeries,
    RedundantIrregularRequest,
    TransportFailure,
    UnsupportedIntervalRequest,
)
from .identifier import LocationType, RequestedIdentifier
from .interval import IntervalBase
from .models import CatalogEntry
from .response import CatalogQueryResult

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """A resolved identifier."""

    requested: RequestedIdentifier
    output: RequestedIdentifier
    entry: CatalogEntry
    options: AlignmentOptions


def validate_request(identifier: RequestedIdentifier, options: AlignmentOptions) -> None:
    """
    Check that the requested interval can be produced with ``options``.

    Raises:
        RedundantIrregularRequest: Irregular output requested for an irregular series.
        UnsupportedIntervalRequest: Multi-day, month or year interval without irregular output.
        IncompatibleAlignmentOption: Read option does not match the requested interval.
    """
    interval = identifier.data_interval
    irregular = options.irregular

    if irregular is not None and interval.is_irregular:
        raise RedundantIrregularRequest(
            f"Time series '{identifier}' interval is already irregular, "
            f"irregular interval {irregular} is not needed"
        )
    if interval.base is IntervalBase.DAY and interval.multiplier != 1 and irregular is None:
        raise UnsupportedIntervalRequest(
            f"Time series '{identifier}' interval {interval} can only be read "
            "with an irregular interval (e.g., IrregDay)"
        )
    if options.read_day_as_24hour and not (
        interval.base is IntervalBase.DAY and interval.multiplier == 1
    ):
        raise IncompatibleAlignmentOption(
            f"Time series '{identifier}' ReadDayAs24Hour requires a 1Day interval"
        )
    if options.read_24hour_as_day and not (
        interval.base is IntervalBase.HOUR and interval.multiplier == 24
    ):
        raise IncompatibleAlignmentOption(
            f"Time series '{identifier}' Read24HourAsDay requires a 24Hour interval"
        )
    if interval.base in (IntervalBase.MONTH, IntervalBase.YEAR) and irregular is None:
        raise UnsupportedIntervalRequest(
            f"Time series '{identifier}' interval {interval} can only be read "
            "with an irregular interval (e.g., IrregMonth)"
        )


def series_path(station_no: str, station_parameter_no: str, short_name: str) -> str:
    """Path pattern matching a series at any site."""
    return f"*/{station_no}/{station_parameter_no}/{short_name}"


class IdentifierResolver:
    """Resolves identifiers against the catalog."""

    def __init__(self, engine: CatalogQueryEngine):
        self.engine = engine

    def lookup(self, identifier: RequestedIdentifier) -> CatalogEntry:
        """
        Find the single catalog entry for ``identifier``.

        Raises:
            MalformedIdentifier: If the data type cannot be split for a path lookup.
            TransportFailure: If the catalog query failed.
            NoMatchingSeries: If nothing matched.
            AmbiguousSeries: If more than one entry matched.
        """
        if identifier.location_type is LocationType.BY_SERIES_ID:
            logger.info(f"Looking up time series {identifier} using ts_id")
            result = self.engine.query(ts_id=identifier.series_id)
        else:
            station_parameter_no, short_name = identifier.data_type_parts()
            path = series_path(identifier.location_id, station_parameter_no, short_name)
            logger.info(f"Looking up time series {identifier} using ts_path {path}")
            result = self.engine.query(ts_path=path)
        return self._single(identifier, result)

    def _single(
        self, identifier: RequestedIdentifier, result: CatalogQueryResult
    ) -> CatalogEntry:
        if result.failed:
            raise TransportFailure(
                f"Catalog query for time series '{identifier}' failed: {result.error}"
            ) from result.error
        if len(result) == 0:
            raise NoMatchingSeries(f"No time series found matching '{identifier}'")
        if len(result) > 1:
            raise AmbiguousSeries(
                f"Matched {len(result)} time series for '{identifier}', expecting 1",
                match_count=len(result),
            )
        return result[0]

    def resolve(
        self, tsid: str, options: Optional[AlignmentOptions] = None
    ) -> Resolution:
        """
        Parse, validate and look up ``tsid``.

        No request is made unless the identifier is well formed and valid for
        ``options``.
        """
        options = options or AlignmentOptions()
        requested = RequestedIdentifier.parse(tsid)
        validate_request(requested, options)
        entry = self.lookup(requested)
        if entry.data_interval and entry.data_interval.lower() != str(requested.data_interval).lower():
            logger.warning(
                f"Time series '{requested}' interval differs from catalog interval "
                f"{entry.data_interval} (ts_spacing {entry.ts_spacing})"
            )

        output = requested
        output_interval = options.output_interval()
        if output_interval is not None:
            output = requested.with_interval(output_interval)
        return Resolution(requested=requested, output=output, entry=entry, options=options)
