"""
Data models for KiWIS catalog entries and raw time series values.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .identifier import SERIES_ID_LOCATION_TYPE, RequestedIdentifier, quote_if_needed


@dataclass
class CatalogEntry:
    """
    One time series available from the KiWIS catalog, plus a problem log.

    Assigning ``station_no`` also assigns ``loc_id``. Assign ``loc_id``
    afterwards to override the location.
    """

    loc_id: str = ""
    data_type: Optional[str] = None
    data_interval: Optional[str] = None
    data_units: Optional[str] = None

    # Site
    site_id: Optional[int] = None
    site_name: Optional[str] = None
    site_no: Optional[str] = None

    # Station
    station_id: Optional[int] = None
    station_name: Optional[str] = None
    station_long_name: Optional[str] = None
    station_no: Optional[str] = None
    station_latitude: Optional[float] = None
    station_longitude: Optional[float] = None

    # Station parameter
    station_parameter_name: Optional[str] = None
    station_parameter_long_name: Optional[str] = None
    station_parameter_no: Optional[str] = None

    # Time series
    ts_id: Optional[int] = None
    ts_name: Optional[str] = None
    ts_path: Optional[str] = None
    ts_short_name: Optional[str] = None
    ts_spacing: Optional[str] = None
    ts_type_id: Optional[int] = None
    ts_type_name: Optional[str] = None
    ts_unit_name: Optional[str] = None
    ts_unit_name_abs: Optional[str] = None
    ts_unit_symbol: Optional[str] = None
    ts_unit_symbol_abs: Optional[str] = None

    # Parameter type
    parameter_type_id: Optional[int] = None
    parameter_type_name: Optional[str] = None

    # Catchment
    catchment_id: Optional[int] = None
    catchment_name: Optional[str] = None
    catchment_no: Optional[str] = None

    problems: Optional[List[str]] = None

    def __setattr__(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)
        if name == "station_no" and value is not None:
            object.__setattr__(self, "loc_id", value)

    @classmethod
    def from_entry(cls, source: "CatalogEntry", deep_copy: bool = True) -> "CatalogEntry":
        """
        Copy ``source``.

        A deep copy duplicates the problem list. A shallow derived copy starts
        with no problems so the new entry can collect its own.
        """
        copy = dataclasses.replace(source)
        # replace() re-runs the station_no coupling, restore an overridden loc_id
        object.__setattr__(copy, "loc_id", source.loc_id)
        if deep_copy and source.problems is not None:
            copy.problems = list(source.problems)
        else:
            copy.problems = None
        return copy

    def copy(self, deep: bool = True) -> "CatalogEntry":
        return CatalogEntry.from_entry(self, deep_copy=deep)

    def add_problem(self, problem: str) -> None:
        if self.problems is None:
            self.problems = []
        self.problems.append(problem)

    def clear_problems(self) -> None:
        if self.problems is not None:
            self.problems.clear()

    def format_problems(self) -> str:
        """Return problems joined with ``"; "``, or an empty string."""
        if not self.problems:
            return ""
        return "; ".join(self.problems)

    @property
    def has_problems(self) -> bool:
        return bool(self.problems)

    def to_identifier(
        self, datastore: str = "", use_ts_id: bool = False, input_name: str = ""
    ) -> RequestedIdentifier:
        """
        Build the identifier that resolves back to this entry.

        The location is the station number, or ``ts_id:<id>`` when ``use_ts_id``
        is set.
        """
        location_type_tag = ""
        location = quote_if_needed(self.loc_id)
        if use_ts_id:
            if self.ts_id is None:
                raise ValueError("Catalog entry has no ts_id")
            location_type_tag = SERIES_ID_LOCATION_TYPE
            location = str(self.ts_id)
        return RequestedIdentifier(
            location=location,
            data_type=self.data_type or "",
            interval=self.data_interval or "",
            location_type_tag=location_type_tag,
            datastore=datastore,
            input_name=input_name,
        )

    @staticmethod
    def distinct_data_types(entries: Iterable["CatalogEntry"]) -> List[str]:
        """Distinct data types in first-seen order."""
        return _distinct(entry.data_type for entry in entries)

    @staticmethod
    def distinct_data_intervals(entries: Iterable["CatalogEntry"]) -> List[str]:
        """Distinct data intervals in first-seen order."""
        return _distinct(entry.data_interval for entry in entries)


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    seen = set()
    distinct = []
    for value in values:
        if value is None or value in seen:
            continue
        seen.add(value)
        distinct.append(value)
    return distinct


@dataclass
class RawValue:
    """One row of a KiWIS values response, before decoding."""

    timestamp: str
    value: str
    quality_code: str
    interpolation_type: str
