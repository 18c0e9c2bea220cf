"""
Decoding of KiWIS catalog rows and time series value payloads.
"""

import csv
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .exceptions import TransportFailure
from .identifier import quote_if_needed
from .interval import spacing_to_interval
from .models import CatalogEntry, RawValue

logger = logging.getLogger(__name__)

VALUE_FIELD_COUNT = 4


@dataclass
class CatalogQueryResult(Sequence[CatalogEntry]):
    """
    Entries returned by a catalog query.

    A failed query is empty and carries the transport error, so callers can
    tell "nothing matched" apart from "the query failed".
    """

    entries: List[CatalogEntry] = field(default_factory=list)
    url: str = ""
    error: Optional[TransportFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def __getitem__(self, index):  # type: ignore[override]
        return self.entries[index]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _int(value: Any) -> Optional[int]:
    text = _text(value)
    return int(text) if text is not None else None


def _float(value: Any) -> Optional[float]:
    text = _text(value)
    return float(text) if text is not None else None


def decode_catalog_row(row: Dict[str, Any]) -> CatalogEntry:
    """
    Convert one ``getTimeseriesList`` row to a catalog entry.

    Raises:
        ValueError: If a numeric field cannot be converted.
        TypeError: If the row is not a mapping of field values.
    """
    entry = CatalogEntry(
        catchment_id=_int(row.get("catchment_id")),
        catchment_name=_text(row.get("catchment_name")),
        catchment_no=_text(row.get("catchment_no")),
        parameter_type_id=_int(row.get("parametertype_id")),
        parameter_type_name=_text(row.get("parametertype_name")),
        site_id=_int(row.get("site_id")),
        site_name=_text(row.get("site_name")),
        site_no=_text(row.get("site_no")),
        station_id=_int(row.get("station_id")),
        station_latitude=_float(row.get("station_latitude")),
        station_longitude=_float(row.get("station_longitude")),
        station_long_name=_text(row.get("station_longname")),
        station_name=_text(row.get("station_name")),
        station_no=_text(row.get("station_no")),
        station_parameter_long_name=_text(row.get("stationparameter_longname")),
        station_parameter_name=_text(row.get("stationparameter_name")),
        station_parameter_no=_text(row.get("stationparameter_no")),
        ts_id=_int(row.get("ts_id")),
        ts_name=_text(row.get("ts_name")),
        ts_path=_text(row.get("ts_path")),
        ts_short_name=_text(row.get("ts_shortname")),
        ts_spacing=_text(row.get("ts_spacing")),
        ts_type_id=_int(row.get("ts_type_id")),
        ts_type_name=_text(row.get("ts_type_name")),
        ts_unit_name=_text(row.get("ts_unitname")),
        ts_unit_name_abs=_text(row.get("ts_unitname_abs")),
        ts_unit_symbol=_text(row.get("ts_unitsymbol")),
        ts_unit_symbol_abs=_text(row.get("ts_unitsymbol_abs")),
    )

    station_parameter_no = entry.station_parameter_no or ""
    short_name = entry.ts_short_name or ""
    entry.data_type = f"{quote_if_needed(station_parameter_no)}-{quote_if_needed(short_name)}"
    if not station_parameter_no or not short_name:
        entry.add_problem(
            f"Missing stationparameter_no or ts_shortname for ts_id {entry.ts_id}"
        )

    entry.data_interval = spacing_to_interval(entry.ts_spacing)
    if entry.data_interval is None:
        entry.add_problem(f"Unrecognized ts_spacing '{entry.ts_spacing}'")

    entry.data_units = entry.ts_unit_symbol
    return entry


def decode_catalog_rows(rows: Any) -> List[CatalogEntry]:
    """Decode rows in remote order, skipping rows that cannot be converted."""
    if not isinstance(rows, list):
        raise TransportFailure(
            f"Unexpected catalog response, expecting a list of rows, got {type(rows).__name__}"
        )

    entries = []
    for index, row in enumerate(rows):
        try:
            entries.append(decode_catalog_row(row))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping catalog row {index}: {e}")
            continue
    return entries


def parse_values_csv(text: str) -> List[RawValue]:
    """
    Parse a ``getTimeseriesValues`` CSV payload.

    Rows are ``;`` separated ``Timestamp;Value;Quality Code;Interpolation Type``.
    Blank lines and ``#`` comment lines are skipped, as are rows with the wrong
    number of fields (reported once).
    """
    lines = _data_lines(text.splitlines())
    values = []
    bad_rows = 0
    for tokens in csv.reader(lines, delimiter=";"):
        if len(tokens) != VALUE_FIELD_COUNT:
            if bad_rows == 0:
                logger.warning(
                    f"Values row has {len(tokens)} fields, expecting {VALUE_FIELD_COUNT}: "
                    f"{';'.join(tokens)}"
                )
            bad_rows += 1
            continue
        values.append(RawValue(*(token.strip() for token in tokens)))
    if bad_rows > 1:
        logger.warning(f"Skipped {bad_rows} values rows with the wrong number of fields")
    return values


def _data_lines(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        yield stripped
