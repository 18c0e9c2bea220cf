"""
KiWIS datastore: catalog, identifier resolution and time series reading.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .alignment import AlignmentOptions, TemporalAligner
from .catalog import CatalogQueryEngine, CatalogStore
from .client import KiWISClient
from .config import ClientConfig
from .exceptions import NoMatchingSeries, TransportFailure
from .identifier import RequestedIdentifier
from .interval import parse_interval
from .models import CatalogEntry
from .query import FilterPredicate
from .requirements import RequirementResult, check_requirement, parse_requirement
from .resolver import IdentifierResolver
from .response import CatalogQueryResult
from .timeseries import VALUES_URL_PROPERTY, Period, TimeSeries, fill_properties

logger = logging.getLogger(__name__)

Options = Union[AlignmentOptions, Mapping[str, Any], None]


def strip_note(choice: Optional[str]) -> Optional[str]:
    """Remove a ``" - description"`` suffix added to a choice for display."""
    if choice is None:
        return None
    return choice.split(" - ", 1)[0].strip()


class KiWISDataStore:
    """A named KiWIS web service with a cached time series catalog."""

    def __init__(
        self,
        config: ClientConfig,
        client: Optional[KiWISClient] = None,
        store: Optional[CatalogStore] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self.client = client if client is not None else KiWISClient(config)
        self.engine = CatalogQueryEngine(self.client)
        self.store = store if store is not None else CatalogStore(self.engine)
        self.resolver = IdentifierResolver(self.engine)

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "KiWISDataStore":
        return cls(ClientConfig.from_properties(properties))

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def description(self) -> str:
        return self.config.description

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "KiWISDataStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @staticmethod
    def plugin_properties() -> Dict[str, str]:
        from . import __version__

        return {
            "Name": "KiWIS",
            "Description": "Read time series from KiWIS web services.",
            "Author": "kiwisdb developers",
            "Version": __version__,
        }

    def get_time_series_catalog(self, read_data: bool = False) -> Tuple[CatalogEntry, ...]:
        """Return the cached catalog, reading it from the service if ``read_data``."""
        return self.store.load(force=read_data)

    def data_type_strings(
        self, data_interval: Optional[str] = None, include_wildcards: bool = True
    ) -> List[str]:
        return self.store.data_types(strip_note(data_interval), include_wildcards)

    def data_interval_strings(
        self, data_type: Optional[str] = None, include_wildcards: bool = True
    ) -> List[str]:
        return self.store.data_intervals(strip_note(data_type), include_wildcards)

    def filter_choices(self) -> Dict[str, List[str]]:
        return self.store.filter_choices()

    def list_time_series(
        self,
        data_type: Optional[str] = None,
        data_interval: Optional[str] = None,
        filters: Optional[Sequence[FilterPredicate]] = None,
    ) -> CatalogQueryResult:
        """Query the catalog for time series metadata, without values."""
        return self.engine.query(
            data_type=strip_note(data_type),
            data_interval=strip_note(data_interval),
            filters=filters,
        )

    def identifier_for_entry(
        self, entry: CatalogEntry, use_ts_id: bool = False, input_name: str = ""
    ) -> RequestedIdentifier:
        return entry.to_identifier(self.name, use_ts_id=use_ts_id, input_name=input_name)

    def read_time_series(
        self,
        tsid: str,
        read_start: Optional[datetime] = None,
        read_end: Optional[datetime] = None,
        read_data: bool = True,
        options: Options = None,
    ) -> TimeSeries:
        """
        Read one time series.

        Args:
            tsid: Time series identifier, e.g. ``0101.WaterLevelRiver-HG.1Day``.
            read_start: Start of the period to read, None for the full period.
            read_end: End of the period to read, None for the full period.
            read_data: If False only metadata and properties are filled.
            options: :class:`AlignmentOptions`, or a mapping with
                ``IrregularInterval``, ``Read24HourAsDay`` and ``ReadDayAs24Hour``.

        Raises:
            KiWISError: The subclass names what went wrong.
        """
        if options is not None and not isinstance(options, AlignmentOptions):
            options = AlignmentOptions.from_properties(options)
        resolution = self.resolver.resolve(tsid, options)
        entry = resolution.entry
        aligner = TemporalAligner(
            resolution.requested.data_interval, resolution.options, debug=self.config.debug
        )

        ts = TimeSeries(
            identifier=str(resolution.output),
            requested_identifier=str(resolution.requested),
            interval=parse_interval(resolution.output.interval),
            precision=aligner.precision,
            description=entry.station_name or "",
            data_units=entry.ts_unit_symbol or "",
            data_units_original=entry.ts_unit_symbol or "",
            period=Period(read_start, read_end, read_start, read_end),
            catalog_entry=entry,
        )
        fill_properties(ts.properties, entry)

        if not read_data:
            return ts
        if entry.ts_id is None:
            raise NoMatchingSeries(f"Catalog entry for '{tsid}' has no ts_id")

        try:
            raw_values, url = self.client.get_timeseries_values(
                entry.ts_id, read_start, read_end
            )
        except TransportFailure as e:
            raise TransportFailure(f"Reading values for '{tsid}' failed: {e}") from e
        ts.set_property(VALUES_URL_PROPERTY, url)

        result = aligner.align_values(raw_values, read_start, read_end)
        result.diagnostics.raise_for_errors(tsid)
        ts.period = result.period
        ts.values = result.values
        ts.properties.update(result.diagnostics.to_properties())
        logger.info(
            f"Read {len(ts.values)} values for {ts.identifier} "
            f"({ts.format_timestamp(ts.period.start)} to {ts.format_timestamp(ts.period.end)})"
        )
        return ts

    def check_requirement(self, text: str) -> RequirementResult:
        """Evaluate an ``@require datastore ...`` line against this datastore."""
        requirement = parse_requirement(text)
        return check_requirement(
            requirement,
            self.name,
            service_version=self.config.service_version,
            configuration=self.config.properties,
        )
