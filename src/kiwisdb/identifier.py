"""
Time series identifier parsing.

Identifiers have the form::

    [locType:]location.dataType.interval[.scenario[.source]][~datastore[~inputName]]

Sub-parts wrapped in single quotes may contain the ``.``, ``-``, ``~`` and ``:``
delimiters, e.g. ``0101.'Water.Level'-HG.1Day``.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from .exceptions import MalformedIdentifier
from .interval import DataInterval, IntervalBase, parse_interval

QUOTE = "'"
SERIES_ID_LOCATION_TYPE = "ts_id"


class LocationType(Enum):
    """How the location part of an identifier selects catalog entries."""

    BY_SERIES_ID = "by-series-id"
    BY_PATH_PARTS = "by-path-parts"


def split_quoted(text: str, delimiter: str) -> List[str]:
    """
    Split ``text`` on ``delimiter`` ignoring delimiters inside single quotes.

    Quotes are kept in the returned parts.

    Raises:
        ValueError: If a quote is not closed.
    """
    parts = []
    current = []
    in_quote = False
    for char in text:
        if char == QUOTE:
            in_quote = not in_quote
            current.append(char)
        elif char == delimiter and not in_quote:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    if in_quote:
        raise ValueError(f"Unbalanced quote in '{text}'")
    parts.append("".join(current))
    return parts


def strip_quotes(part: str) -> str:
    if len(part) >= 2 and part.startswith(QUOTE) and part.endswith(QUOTE):
        return part[1:-1]
    return part


RESERVED_CHARACTERS = "-.~:"


def quote_if_needed(part: str) -> str:
    """Single-quote ``part`` if it contains an identifier delimiter."""
    if any(char in part for char in RESERVED_CHARACTERS):
        return f"{QUOTE}{part}{QUOTE}"
    return part


@dataclass(frozen=True)
class RequestedIdentifier:
    """A parsed time series identifier."""

    location: str
    data_type: str
    interval: str
    scenario: str = ""
    source: Optional[str] = None
    location_type_tag: str = ""
    datastore: str = ""
    input_name: str = ""

    @classmethod
    def parse(cls, text: str) -> "RequestedIdentifier":
        """
        Parse an identifier string.

        Raises:
            MalformedIdentifier: If the text does not follow the identifier grammar.
        """
        if text is None or not text.strip():
            raise MalformedIdentifier("Time series identifier is empty")
        tsid = text.strip()

        try:
            tilde_parts = split_quoted(tsid, "~")
        except ValueError as e:
            raise MalformedIdentifier(f"Time series identifier '{tsid}': {e}") from e
        main = tilde_parts[0]
        datastore = tilde_parts[1] if len(tilde_parts) > 1 else ""
        input_name = "~".join(tilde_parts[2:]) if len(tilde_parts) > 2 else ""

        parts = split_quoted(main, ".")
        if len(parts) < 3 or len(parts) > 5:
            raise MalformedIdentifier(
                f"Time series identifier '{tsid}' has {len(parts)} parts, "
                "expecting location.dataType.interval[.scenario[.source]]"
            )
        location, data_type, interval = parts[0], parts[1], parts[2]
        scenario = parts[3] if len(parts) > 3 else ""
        source = parts[4] if len(parts) > 4 else None

        location_type_tag = ""
        if ":" in location and not location.startswith(QUOTE):
            location_type_tag, location = location.split(":", 1)

        identifier = cls(
            location=location,
            data_type=data_type,
            interval=interval,
            scenario=scenario,
            source=source,
            location_type_tag=location_type_tag,
            datastore=datastore,
            input_name=input_name,
        )
        identifier._validate(tsid)
        return identifier

    def _validate(self, tsid: str) -> None:
        if not self.interval.strip():
            raise MalformedIdentifier(f"Time series identifier '{tsid}' has no interval")
        try:
            parse_interval(self.interval)
        except ValueError as e:
            raise MalformedIdentifier(
                f"Time series identifier '{tsid}' has invalid interval: {e}"
            ) from e
        if not self.location.strip():
            raise MalformedIdentifier(f"Time series identifier '{tsid}' has no location")
        if self.location_type_tag:
            if self.location_type_tag.lower() != SERIES_ID_LOCATION_TYPE:
                raise MalformedIdentifier(
                    f"Time series identifier '{tsid}' has unsupported location type "
                    f"'{self.location_type_tag}'"
                )
            if not self.location.strip().isdigit():
                raise MalformedIdentifier(
                    f"Time series identifier '{tsid}' series id '{self.location}' "
                    "is not an integer"
                )

    @property
    def data_interval(self) -> DataInterval:
        return parse_interval(self.interval)

    @property
    def interval_base(self) -> IntervalBase:
        return self.data_interval.base

    @property
    def interval_multiplier(self) -> int:
        return self.data_interval.multiplier

    @property
    def is_regular_interval(self) -> bool:
        return self.data_interval.is_regular

    @property
    def location_type(self) -> LocationType:
        if self.location_type_tag.lower() == SERIES_ID_LOCATION_TYPE:
            return LocationType.BY_SERIES_ID
        return LocationType.BY_PATH_PARTS

    @property
    def series_id(self) -> int:
        """KiWIS ``ts_id`` for identifiers using the ``ts_id:`` location type."""
        if self.location_type is not LocationType.BY_SERIES_ID:
            raise ValueError(f"Identifier '{self}' does not use a series id location")
        return int(self.location)

    def data_type_parts(self) -> Tuple[str, str]:
        """
        Split the data type into station parameter number and series short name.

        Raises:
            MalformedIdentifier: If the data type does not have exactly two parts.
        """
        try:
            parts = split_quoted(self.data_type, "-")
        except ValueError as e:
            raise MalformedIdentifier(f"Time series identifier '{self}': {e}") from e
        if len(parts) != 2 or not all(strip_quotes(p) for p in parts):
            raise MalformedIdentifier(
                f"Time series identifier '{self}' data type '{self.data_type}' "
                "must be stationparameter_no-ts_shortname (quote parts containing '-' or '.')"
            )
        return strip_quotes(parts[0]), strip_quotes(parts[1])

    @property
    def location_id(self) -> str:
        """Location with any enclosing quotes removed."""
        return strip_quotes(self.location)

    def with_interval(self, interval: str) -> "RequestedIdentifier":
        return replace(self, interval=interval)

    def __str__(self) -> str:
        location = self.location
        if self.location_type_tag:
            location = f"{self.location_type_tag}:{location}"
        parts = [location, self.data_type, self.interval]
        if self.scenario or self.source is not None:
            parts.append(self.scenario)
        if self.source is not None:
            parts.append(self.source)
        text = ".".join(parts)
        if self.datastore:
            text += f"~{self.datastore}"
            if self.input_name:
                text += f"~{self.input_name}"
        return text
