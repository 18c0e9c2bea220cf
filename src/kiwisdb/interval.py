"""
Data interval grammar and datetime precision helpers.

Intervals are written as ``[N]Base`` for regular series (``1Day``,
``24Hour``, ``15Minute``) and ``Irreg[Base]`` for irregular series, where the
optional base of an irregular interval is the precision of its timestamps.
KiWIS catalogs describe spacing with ISO-8601 durations (``PT15M``, ``P1D``),
which :func:`spacing_to_interval` converts to interval strings.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)


class IntervalBase(Enum):
    """Base unit of a data interval, also used as datetime precision."""

    SECOND = 1
    MINUTE = 2
    HOUR = 3
    DAY = 4
    WEEK = 5
    MONTH = 6
    YEAR = 7
    IRREGULAR = 100

    @property
    def title(self) -> str:
        return self.name.capitalize()


# Approximate lengths, only used for ordering intervals
_APPROXIMATE_SECONDS = {
    IntervalBase.SECOND: 1,
    IntervalBase.MINUTE: 60,
    IntervalBase.HOUR: 3600,
    IntervalBase.DAY: 86400,
    IntervalBase.WEEK: 604800,
    IntervalBase.MONTH: 2629746,
    IntervalBase.YEAR: 31556952,
}

_BASE_NAMES: Dict[str, IntervalBase] = {
    "sec": IntervalBase.SECOND,
    "second": IntervalBase.SECOND,
    "min": IntervalBase.MINUTE,
    "minute": IntervalBase.MINUTE,
    "hour": IntervalBase.HOUR,
    "day": IntervalBase.DAY,
    "week": IntervalBase.WEEK,
    "month": IntervalBase.MONTH,
    "year": IntervalBase.YEAR,
}

_REGULAR_PATTERN = re.compile(r"^(\d*)([A-Za-z]+)$")

_ISO_DURATION_PATTERN = re.compile(
    r"^P(?:(?P<years>\d+)Y)?(?:(?P<months>\d+)M)?(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)

_DATETIME_FORMATS = {
    IntervalBase.YEAR: "%Y",
    IntervalBase.MONTH: "%Y-%m",
    IntervalBase.WEEK: "%Y-%m-%d",
    IntervalBase.DAY: "%Y-%m-%d",
    IntervalBase.HOUR: "%Y-%m-%dT%H",
    IntervalBase.MINUTE: "%Y-%m-%dT%H:%M",
    IntervalBase.SECOND: "%Y-%m-%dT%H:%M:%S",
}


@dataclass(frozen=True)
class DataInterval:
    """A parsed data interval."""

    base: IntervalBase
    multiplier: int = 1
    irregular_precision: Optional[IntervalBase] = None

    @property
    def is_regular(self) -> bool:
        return self.base is not IntervalBase.IRREGULAR

    @property
    def is_irregular(self) -> bool:
        return self.base is IntervalBase.IRREGULAR

    @property
    def precision(self) -> IntervalBase:
        """Natural precision of timestamps in a series with this interval."""
        if self.is_irregular:
            return self.irregular_precision or IntervalBase.SECOND
        if self.base is IntervalBase.WEEK:
            return IntervalBase.DAY
        return self.base

    def offset(self, count: int = 1) -> relativedelta:
        """Return the calendar offset spanning ``count`` intervals."""
        if self.is_irregular:
            raise ValueError("Irregular intervals have no fixed offset")
        amount = self.multiplier * count
        if self.base is IntervalBase.SECOND:
            return relativedelta(seconds=amount)
        if self.base is IntervalBase.MINUTE:
            return relativedelta(minutes=amount)
        if self.base is IntervalBase.HOUR:
            return relativedelta(hours=amount)
        if self.base is IntervalBase.DAY:
            return relativedelta(days=amount)
        if self.base is IntervalBase.WEEK:
            return relativedelta(weeks=amount)
        if self.base is IntervalBase.MONTH:
            return relativedelta(months=amount)
        return relativedelta(years=amount)

    def sort_key(self) -> Tuple[int, int]:
        if self.is_irregular:
            precision = self.irregular_precision or IntervalBase.SECOND
            return (1, _APPROXIMATE_SECONDS.get(precision, 0))
        return (0, _APPROXIMATE_SECONDS[self.base] * self.multiplier)

    def __str__(self) -> str:
        if self.is_irregular:
            if self.irregular_precision is None:
                return "Irreg"
            return f"Irreg{self.irregular_precision.title}"
        return f"{self.multiplier}{self.base.title}"


def parse_interval(text: str) -> DataInterval:
    """
    Parse an interval string such as ``1Day``, ``Hour`` or ``IrregMinute``.

    Raises:
        ValueError: If the text is not a valid interval.
    """
    if text is None:
        raise ValueError("Interval is empty")
    value = text.strip()
    if not value:
        raise ValueError("Interval is empty")

    lower = value.lower()
    if lower.startswith("irreg"):
        rest = lower[len("irregular") :] if lower.startswith("irregular") else lower[5:]
        if not rest:
            return DataInterval(IntervalBase.IRREGULAR)
        precision = _BASE_NAMES.get(rest.rstrip("s"))
        if precision is None or precision is IntervalBase.WEEK:
            raise ValueError(f"Invalid irregular interval precision in '{text}'")
        return DataInterval(IntervalBase.IRREGULAR, 1, precision)

    match = _REGULAR_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid interval '{text}'")
    multiplier_text, base_text = match.groups()
    base = _BASE_NAMES.get(base_text.lower().rstrip("s"))
    if base is None:
        raise ValueError(f"Invalid interval base in '{text}'")
    multiplier = int(multiplier_text) if multiplier_text else 1
    if multiplier <= 0:
        raise ValueError(f"Interval multiplier must be positive in '{text}'")
    return DataInterval(base, multiplier)


def spacing_to_interval(spacing: Optional[str]) -> Optional[str]:
    """
    Convert a KiWIS ``ts_spacing`` value to an interval string.

    Blank or zero spacing means an irregular series (``IrregSecond``). Spacing
    that is already an interval string is returned in canonical form. ``None``
    is returned for spacing that cannot be converted.
    """
    if spacing is None or not spacing.strip():
        return "IrregSecond"
    value = spacing.strip().upper()

    match = _ISO_DURATION_PATTERN.match(value)
    if not match:
        try:
            return str(parse_interval(spacing))
        except ValueError:
            logger.warning(f"Unrecognized time series spacing '{spacing}'")
            return None

    parts = {name: int(amount) for name, amount in match.groupdict().items() if amount}
    parts = {name: amount for name, amount in parts.items() if amount > 0}
    if not parts:
        return "IrregSecond"

    if len(parts) == 1:
        name, amount = next(iter(parts.items()))
        base = {
            "years": IntervalBase.YEAR,
            "months": IntervalBase.MONTH,
            "weeks": IntervalBase.WEEK,
            "days": IntervalBase.DAY,
            "hours": IntervalBase.HOUR,
            "minutes": IntervalBase.MINUTE,
            "seconds": IntervalBase.SECOND,
        }[name]
        return str(DataInterval(base, amount))

    if set(parts) <= {"years", "months"}:
        return str(
            DataInterval(
                IntervalBase.MONTH, parts.get("years", 0) * 12 + parts.get("months", 0)
            )
        )
    if "years" in parts or "months" in parts:
        logger.warning(f"Time series spacing '{spacing}' mixes calendar and clock units")
        return None

    seconds = (
        parts.get("weeks", 0) * 604800
        + parts.get("days", 0) * 86400
        + parts.get("hours", 0) * 3600
        + parts.get("minutes", 0) * 60
        + parts.get("seconds", 0)
    )
    if seconds % 3600 == 0:
        return str(DataInterval(IntervalBase.HOUR, seconds // 3600))
    if seconds % 60 == 0:
        return str(DataInterval(IntervalBase.MINUTE, seconds // 60))
    return str(DataInterval(IntervalBase.SECOND, seconds))


def naive_datetime(dt: datetime) -> datetime:
    """Wall-clock time of ``dt`` without its UTC offset, for ordering mixed stamps."""
    return dt.replace(tzinfo=None)


def truncate_datetime(dt: datetime, precision: IntervalBase) -> datetime:
    """Zero the fields of ``dt`` that are finer than ``precision``."""
    if precision is IntervalBase.YEAR:
        return dt.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    if precision is IntervalBase.MONTH:
        return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if precision in (IntervalBase.DAY, IntervalBase.WEEK):
        return dt.replace(hour=0, minute=0, second=0, microsecond=0)
    if precision is IntervalBase.HOUR:
        return dt.replace(minute=0, second=0, microsecond=0)
    if precision is IntervalBase.MINUTE:
        return dt.replace(second=0, microsecond=0)
    return dt.replace(microsecond=0)


def format_datetime(dt: Optional[datetime], precision: IntervalBase) -> str:
    """Format ``dt`` showing only the fields down to ``precision``."""
    if dt is None:
        return ""
    return dt.strftime(_DATETIME_FORMATS.get(precision, _DATETIME_FORMATS[IntervalBase.SECOND]))


def parse_timestamp(text: str) -> datetime:
    """
    Parse a KiWIS timestamp such as ``2023-01-02T00:00:00.000-07:00``.

    Raises:
        ValueError: If the text is not a recognized timestamp.
    """
    value = text.strip()
    if not value:
        raise ValueError("Timestamp is empty")
    if "T" in value or " " in value:
        value = value.replace("Z", "+00:00")
        return datetime.fromisoformat(value)
    return datetime.strptime(value, "%Y-%m-%d")
