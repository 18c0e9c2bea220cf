"""
Normalized time series produced from KiWIS values.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, MutableMapping, Optional

from .interval import DataInterval, IntervalBase, format_datetime, naive_datetime

if TYPE_CHECKING:
    from .models import CatalogEntry

# Time series property name -> CatalogEntry attribute
CATALOG_PROPERTIES = {
    "catchment_id": "catchment_id",
    "catchment_name": "catchment_name",
    "catchment_no": "catchment_no",
    "parametertype_id": "parameter_type_id",
    "parametertype_name": "parameter_type_name",
    "site_id": "site_id",
    "site_name": "site_name",
    "site_no": "site_no",
    "station_id": "station_id",
    "station_latitude": "station_latitude",
    "station_longitude": "station_longitude",
    "station_longname": "station_long_name",
    "station_name": "station_name",
    "station_no": "station_no",
    "stationparameter_longname": "station_parameter_long_name",
    "stationparameter_name": "station_parameter_name",
    "stationparameter_no": "station_parameter_no",
    "ts_id": "ts_id",
    "ts_name": "ts_name",
    "ts_path": "ts_path",
    "ts_shortname": "ts_short_name",
    "ts_spacing": "ts_spacing",
    "ts_type_id": "ts_type_id",
    "ts_type_name": "ts_type_name",
    "ts_unitname": "ts_unit_name",
    "ts_unitname_abs": "ts_unit_name_abs",
    "ts_unitsymbol": "ts_unit_symbol",
    "ts_unitsymbol_abs": "ts_unit_symbol_abs",
}

VALUES_URL_PROPERTY = "ts.GetTimeSeriesValuesUrl"


def fill_properties(sink: MutableMapping[str, Any], entry: "CatalogEntry") -> None:
    """Copy every catalog field of ``entry`` into a string-keyed property mapping."""
    for name, attribute in CATALOG_PROPERTIES.items():
        sink[name] = getattr(entry, attribute)


@dataclass
class Period:
    """Period of a time series and of the original read request."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    original_start: Optional[datetime] = None
    original_end: Optional[datetime] = None

    def contains(self, dt: datetime) -> bool:
        """True if ``dt`` is within ``start``..``end``, open bounds always match."""
        if self.start is not None and naive_datetime(dt) < naive_datetime(self.start):
            return False
        if self.end is not None and naive_datetime(dt) > naive_datetime(self.end):
            return False
        return True


@dataclass
class TimeSeriesValue:
    timestamp: datetime
    value: float
    flag: str = ""


@dataclass
class TimeSeries:
    """A time series read from KiWIS, with interval-ending timestamps."""

    identifier: str
    requested_identifier: str
    interval: DataInterval
    precision: IntervalBase
    description: str = ""
    data_units: str = ""
    data_units_original: str = ""
    missing: float = math.nan
    period: Period = field(default_factory=Period)
    values: List[TimeSeriesValue] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    catalog_entry: Optional["CatalogEntry"] = None

    def set_property(self, name: str, value: Any) -> None:
        self.properties[name] = value

    def get_property(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def format_timestamp(self, dt: Optional[datetime]) -> str:
        """Format ``dt`` at the precision of this series."""
        return format_datetime(dt, self.precision)

    def __len__(self) -> int:
        return len(self.values)

    def to_records(self) -> List[Dict[str, Any]]:
        return [
            {"timestamp": v.timestamp, "value": v.value, "flag": v.flag}
            for v in self.values
        ]

    def to_pandas(self) -> Any:
        """Convert values to a pandas DataFrame with timestamp, value and flag columns."""
        try:
            import pandas as pd
        except ImportError:
            raise ImportError(
                "pandas is required for DataFrame conversion. Install with: pip install pandas"
            ) from None

        df = pd.DataFrame(self.to_records(), columns=["timestamp", "value", "flag"])
        df.attrs["identifier"] = self.identifier
        df.attrs["units"] = self.data_units
        df.attrs["interval"] = str(self.interval)
        return df

    def to_polars(self) -> Any:
        """Convert values to a polars DataFrame with timestamp, value and flag columns."""
        try:
            import polars as pl
        except ImportError:
            raise ImportError(
                "polars is required for DataFrame conversion. Install with: pip install polars"
            ) from None

        records = self.to_records()
        return pl.DataFrame(
            {
                "timestamp": [r["timestamp"] for r in records],
                "value": [r["value"] for r in records],
                "flag": [r["flag"] for r in records],
            }
        )

    def to_dataframe(self, library: str = "pandas") -> Any:
        if library.lower() == "pandas":
            return self.to_pandas()
        elif library.lower() == "polars":
            return self.to_polars()
        else:
            raise ValueError(
                f"Unsupported library: {library}. Choose 'pandas' or 'polars'."
            )
