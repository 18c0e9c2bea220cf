"""
Catalog query building for the KiWIS ``getTimeseriesList`` request.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .identifier import split_quoted, strip_quotes

logger = logging.getLogger(__name__)

# Fields requested from getTimeseriesList, decoded by response.decode_catalog_row()
RETURN_FIELDS = [
    "catchment_id",
    "catchment_name",
    "catchment_no",
    "parametertype_id",
    "parametertype_name",
    "site_id",
    "site_name",
    "site_no",
    "station_id",
    "station_longitude",
    "station_longname",
    "station_latitude",
    "station_name",
    "station_no",
    "stationparameter_longname",
    "stationparameter_name",
    "stationparameter_no",
    "ts_id",
    "ts_name",
    "ts_path",
    "ts_shortname",
    "ts_spacing",
    "ts_type_id",
    "ts_type_name",
    "ts_unitname",
    "ts_unitsymbol",
    "ts_unitname_abs",
    "ts_unitsymbol_abs",
]

# Fields that can be filtered remotely, with whether the field is an integer
FILTER_FIELDS = {
    "catchment_name": False,
    "parametertype_name": False,
    "site_no": False,
    "station_id": True,
    "station_name": False,
    "station_no": False,
    "stationparameter_name": False,
    "stationparameter_no": False,
    "ts_id": True,
    "ts_name": False,
    "ts_path": False,
    "ts_shortname": False,
}

EQUALS = "="
MATCHES = "matches"
CONTAINS = "contains"
STARTS_WITH = "starts with"
ENDS_WITH = "ends with"

STRING_OPERATORS = (EQUALS, MATCHES, CONTAINS, STARTS_WITH, ENDS_WITH)
INTEGER_OPERATORS = (EQUALS,)

QueryParams = List[Tuple[str, str]]


@dataclass(frozen=True)
class FilterPredicate:
    """A ``(field, operator, value)`` catalog filter."""

    field: str
    operator: str
    value: str

    def to_param(self) -> Optional[Tuple[str, str]]:
        """
        Translate to a remote query parameter.

        Returns None if the predicate cannot be expressed as a KiWIS parameter.
        """
        field = self.field.strip().lower()
        operator = self.operator.strip().lower()
        value = (self.value or "").strip()

        if field not in FILTER_FIELDS or not value:
            return None
        allowed = INTEGER_OPERATORS if FILTER_FIELDS[field] else STRING_OPERATORS
        if operator not in allowed:
            return None
        if FILTER_FIELDS[field] and not value.isdigit():
            return None

        if operator == CONTAINS:
            value = f"*{value}*"
        elif operator == STARTS_WITH:
            value = f"{value}*"
        elif operator == ENDS_WITH:
            value = f"*{value}"
        return field, value


def is_wildcard(value: Optional[str]) -> bool:
    """True if ``value`` means no filter."""
    return value is None or value.strip() in ("", "*")


def data_type_params(data_type: str) -> QueryParams:
    """
    Parameters selecting a data type.

    A composite ``stationparameter_no-ts_shortname`` data type selects both
    fields, anything else is a station parameter number.
    """
    try:
        parts = split_quoted(data_type, "-")
    except ValueError:
        parts = [data_type]
    if len(parts) == 2 and all(parts):
        return [
            ("stationparameter_no", strip_quotes(parts[0])),
            ("ts_shortname", strip_quotes(parts[1])),
        ]
    return [("stationparameter_no", strip_quotes(data_type))]


def build_catalog_params(
    data_type: Optional[str] = None,
    filters: Optional[Iterable[FilterPredicate]] = None,
    ts_id: Optional[int] = None,
    ts_path: Optional[str] = None,
) -> QueryParams:
    """
    Build ``getTimeseriesList`` parameters.

    The data interval is not a remote filter, callers filter decoded entries.
    When nothing restricts the query ``station_no=*`` is added so that the
    service returns the full catalog.
    """
    params: QueryParams = [
        ("request", "getTimeseriesList"),
        ("format", "objson"),
        ("returnfields", ",".join(RETURN_FIELDS)),
    ]
    filter_params: QueryParams = []

    if not is_wildcard(data_type):
        filter_params.extend(data_type_params(data_type.strip()))  # type: ignore

    for predicate in filters or []:
        param = predicate.to_param()
        if param is None:
            logger.warning(
                f"Filter '{predicate.field} {predicate.operator} {predicate.value}' "
                "is not supported by the catalog query and has no effect"
            )
            continue
        filter_params.append(param)

    if ts_id is not None:
        filter_params.append(("ts_id", str(ts_id)))

    if ts_path:
        filter_params.append(("ts_path", ts_path))

    if not filter_params:
        filter_params.append(("station_no", "*"))

    return params + filter_params
