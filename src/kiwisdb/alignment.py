"""
Temporal alignment of KiWIS timestamps to the interval-ending convention.

KiWIS stamps some series at the beginning of each interval (interpolation
types ``x02`` and ``x04``) and daily series at midnight ending the day, so
``2023-01-02T00:00`` holds the value for 2023-01-01. Values are moved so
that every timestamp marks the end of its interval, and daily timestamps are
shifted back to the calendar day they describe.

How a timestamp is shifted depends only on the class of the source interval
and the alignment mode, see :data:`ALIGNMENT_RULES`.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from .config import as_bool
from .exceptions import IncompatibleAlignmentOption, ValueDecodeFailure
from .interval import (
    DataInterval,
    IntervalBase,
    naive_datetime,
    parse_interval,
    parse_timestamp,
    truncate_datetime,
)
from .models import RawValue
from .timeseries import Period, TimeSeriesValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlignmentOptions:
    """Per-request options controlling how source intervals are reinterpreted."""

    irregular_interval: Optional[str] = None
    read_24hour_as_day: bool = False
    read_day_as_24hour: bool = False

    def __post_init__(self) -> None:
        if self.irregular_interval is not None and not self.irregular_interval.strip():
            object.__setattr__(self, "irregular_interval", None)
        if self.irregular_interval is not None:
            try:
                interval = parse_interval(self.irregular_interval)
            except ValueError as e:
                raise IncompatibleAlignmentOption(
                    f"Invalid irregular interval '{self.irregular_interval}': {e}"
                ) from e
            if not interval.is_irregular:
                raise IncompatibleAlignmentOption(
                    f"Irregular interval '{self.irregular_interval}' is not an irregular interval"
                )
        if self.read_24hour_as_day and self.read_day_as_24hour:
            raise IncompatibleAlignmentOption(
                "Read24HourAsDay and ReadDayAs24Hour cannot both be set"
            )

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "AlignmentOptions":
        """Build options from ``IrregularInterval``, ``Read24HourAsDay`` and ``ReadDayAs24Hour``."""
        return cls(
            irregular_interval=properties.get("IrregularInterval") or None,
            read_24hour_as_day=as_bool(properties.get("Read24HourAsDay", False)),
            read_day_as_24hour=as_bool(properties.get("ReadDayAs24Hour", False)),
        )

    @property
    def irregular(self) -> Optional[DataInterval]:
        if self.irregular_interval is None:
            return None
        return parse_interval(self.irregular_interval)

    def output_interval(self) -> Optional[str]:
        """Interval that replaces the requested one in the output identifier."""
        irregular = self.irregular
        if irregular is not None:
            return str(irregular)
        if self.read_day_as_24hour:
            return "24Hour"
        if self.read_24hour_as_day:
            return "1Day"
        return None


class SourceIntervalClass(Enum):
    DAY = "1Day"
    HOUR24 = "24Hour"
    REGULAR = "regular"
    IRREGULAR = "irregular"


class AlignmentMode(Enum):
    DEFAULT = "default"
    DAY_AS_24HOUR = "read day as 24 hour"
    HOUR24_AS_DAY = "read 24 hour as day"
    IRREGULAR_DAY = "irregular with day precision"
    IRREGULAR = "irregular"


@dataclass(frozen=True)
class AlignmentRule:
    """
    Shift applied to a timestamp.

    ``day_shift`` days are added and, when non-zero, the hour is reset to 0.
    ``precision`` of None keeps the natural precision of the source interval.
    """

    day_shift: int = 0
    precision: Optional[IntervalBase] = None


NO_SHIFT = AlignmentRule()

ALIGNMENT_RULES: Dict[Tuple[SourceIntervalClass, AlignmentMode], AlignmentRule] = {
    (SourceIntervalClass.DAY, AlignmentMode.DEFAULT): AlignmentRule(-1, IntervalBase.DAY),
    (SourceIntervalClass.DAY, AlignmentMode.IRREGULAR_DAY): AlignmentRule(-1, IntervalBase.DAY),
    (SourceIntervalClass.DAY, AlignmentMode.IRREGULAR): NO_SHIFT,
    (SourceIntervalClass.DAY, AlignmentMode.DAY_AS_24HOUR): AlignmentRule(0, IntervalBase.HOUR),
    (SourceIntervalClass.HOUR24, AlignmentMode.HOUR24_AS_DAY): AlignmentRule(-1, IntervalBase.DAY),
    (SourceIntervalClass.HOUR24, AlignmentMode.DEFAULT): NO_SHIFT,
    (SourceIntervalClass.HOUR24, AlignmentMode.IRREGULAR): NO_SHIFT,
    (SourceIntervalClass.REGULAR, AlignmentMode.DEFAULT): NO_SHIFT,
    (SourceIntervalClass.REGULAR, AlignmentMode.IRREGULAR): NO_SHIFT,
    (SourceIntervalClass.IRREGULAR, AlignmentMode.DEFAULT): NO_SHIFT,
}


def classify_interval(interval: DataInterval) -> SourceIntervalClass:
    if interval.is_irregular:
        return SourceIntervalClass.IRREGULAR
    if interval.base is IntervalBase.DAY and interval.multiplier == 1:
        return SourceIntervalClass.DAY
    if interval.base is IntervalBase.HOUR and interval.multiplier == 24:
        return SourceIntervalClass.HOUR24
    return SourceIntervalClass.REGULAR


def alignment_mode(options: AlignmentOptions) -> AlignmentMode:
    if options.read_day_as_24hour:
        return AlignmentMode.DAY_AS_24HOUR
    if options.read_24hour_as_day:
        return AlignmentMode.HOUR24_AS_DAY
    irregular = options.irregular
    if irregular is not None:
        if irregular.irregular_precision is IntervalBase.DAY:
            return AlignmentMode.IRREGULAR_DAY
        return AlignmentMode.IRREGULAR
    return AlignmentMode.DEFAULT


def rule_for(interval: DataInterval, options: AlignmentOptions) -> AlignmentRule:
    return ALIGNMENT_RULES.get((classify_interval(interval), alignment_mode(options)), NO_SHIFT)


class TimestampPosition(Enum):
    """Where in its interval a KiWIS timestamp sits."""

    BEGIN = -1
    POINT = 0
    END = 1


@dataclass(frozen=True)
class InterpolationType:
    code: int
    name: str
    timestamp_position: TimestampPosition


_INTERPOLATION_SUFFIXES = {
    1: ("instantaneous", TimestampPosition.POINT),
    2: ("constant until next", TimestampPosition.BEGIN),
    3: ("constant since previous", TimestampPosition.END),
    4: ("linear until next", TimestampPosition.BEGIN),
    5: ("linear since previous", TimestampPosition.END),
}

INTERPOLATION_TYPES: Dict[int, InterpolationType] = {
    family * 100 + suffix: InterpolationType(family * 100 + suffix, name, position)
    for family in range(1, 7)
    for suffix, (name, position) in _INTERPOLATION_SUFFIXES.items()
}
INTERPOLATION_TYPES[255] = InterpolationType(255, "undefined", TimestampPosition.POINT)


def lookup_interpolation_type(code: Optional[str]) -> Optional[InterpolationType]:
    """Return the interpolation type for a KiWIS code, or None if unknown."""
    if code is None:
        return None
    try:
        return INTERPOLATION_TYPES.get(int(code.strip()))
    except ValueError:
        return None


@dataclass
class AlignmentDiagnostics:
    """Counts collected while aligning one batch of values."""

    timestamps_adjusted: int = 0
    day_non_zero_hour: int = 0
    not_inserted: int = 0
    value_errors: int = 0
    bad_timestamps: int = 0
    bad_values: int = 0
    bad_interpolation_types: int = 0
    max_decode_errors: int = 0

    def decode_errors(self) -> List[str]:
        errors = []
        if self.bad_timestamps > self.max_decode_errors:
            errors.append(f"{self.bad_timestamps} bad timestamps")
        if self.bad_values > self.max_decode_errors:
            errors.append(f"{self.bad_values} bad data values")
        if self.bad_interpolation_types > self.max_decode_errors:
            errors.append(f"{self.bad_interpolation_types} bad interpolation types")
        return errors

    def raise_for_errors(self, tsid: str) -> None:
        """
        Raises:
            ValueDecodeFailure: If any decode error count is above the threshold.
        """
        errors = self.decode_errors()
        if errors:
            raise ValueDecodeFailure(
                f"Time series '{tsid}' had {', '.join(errors)}. See the log file.", self
            )
        if self.value_errors:
            logger.warning(
                f"Time series '{tsid}' had {self.value_errors} errors setting values"
            )

    def to_properties(self) -> Dict[str, int]:
        return {
            "ts.TimestampsAdjustedToIntervalEndCount": self.timestamps_adjusted,
            "ts.DayNonZeroHourCount": self.day_non_zero_hour,
            "ts.NotInsertedCount": self.not_inserted,
            "ts.SetDataValueErrorCount": self.value_errors,
        }


@dataclass
class AlignmentResult:
    period: Period
    values: List[TimeSeriesValue] = field(default_factory=list)
    diagnostics: AlignmentDiagnostics = field(default_factory=AlignmentDiagnostics)


class TemporalAligner:
    """Aligns raw KiWIS values for a series with a known source interval."""

    def __init__(
        self,
        interval: DataInterval,
        options: Optional[AlignmentOptions] = None,
        debug: bool = False,
    ):
        """
        Args:
            interval: Interval of the source series.
            options: Alignment options for the request.
            debug: Log a debug record for every raw value.
        """
        self.interval = interval
        self.debug = debug
        self.options = options or AlignmentOptions()
        self.interval_class = classify_interval(interval)
        self.rule = rule_for(interval, self.options)

        irregular = self.options.irregular
        if irregular is not None:
            self.precision = irregular.precision
        else:
            self.precision = self.rule.precision or interval.precision

    @property
    def output_is_regular(self) -> bool:
        return self.interval.is_regular and self.options.irregular is None

    def shift_to_interval_end(
        self, dt: datetime, interpolation_type: Optional[InterpolationType]
    ) -> Tuple[datetime, bool]:
        """Move an interval-beginning timestamp of a regular series to the interval end."""
        if (
            interpolation_type is None
            or not self.interval.is_regular
            or interpolation_type.timestamp_position is not TimestampPosition.BEGIN
        ):
            return dt, False
        return dt + self.interval.offset(), True

    def align(self, dt: datetime) -> datetime:
        """Apply the interval rule and output precision to one timestamp."""
        if self.rule.day_shift:
            dt = (dt + relativedelta(days=self.rule.day_shift)).replace(hour=0)
        return truncate_datetime(dt, self.precision)

    def _align_bound(
        self, dt: Optional[datetime], interpolation_type: Optional[InterpolationType]
    ) -> Optional[datetime]:
        if dt is None:
            return None
        dt, _ = self.shift_to_interval_end(dt, interpolation_type)
        return self.align(dt)

    def align_period(
        self,
        raw_values: Sequence[RawValue],
        read_start: Optional[datetime] = None,
        read_end: Optional[datetime] = None,
    ) -> Period:
        """
        Determine the period of the aligned series.

        The period spans the first and last raw timestamps, falling back to the
        read period, and is shifted like the values. The interval-end shift
        uses the first interpolation type that needs it.
        """
        if not raw_values:
            return Period(read_start, read_end, read_start, read_end)

        start = _parse_or_default(raw_values[0].timestamp, read_start)
        end = _parse_or_default(raw_values[-1].timestamp, read_end)

        trigger = None
        for raw in raw_values:
            interpolation_type = lookup_interpolation_type(raw.interpolation_type)
            if (
                interpolation_type is not None
                and interpolation_type.timestamp_position is TimestampPosition.BEGIN
            ):
                trigger = interpolation_type
                break

        return Period(
            start=self._align_bound(start, trigger),
            end=self._align_bound(end, trigger),
            original_start=self._align_bound(read_start, trigger),
            original_end=self._align_bound(read_end, trigger),
        )

    def align_values(
        self,
        raw_values: Sequence[RawValue],
        read_start: Optional[datetime] = None,
        read_end: Optional[datetime] = None,
    ) -> AlignmentResult:
        """
        Decode and align a batch of raw values.

        Values that cannot be decoded are counted and skipped. Call
        ``result.diagnostics.raise_for_errors()`` to fail the batch.
        """
        period = self.align_period(raw_values, read_start, read_end)
        diagnostics = AlignmentDiagnostics()
        regular = self.output_is_regular
        aligned: Dict[datetime, TimeSeriesValue] = {}
        irregular_values: List[TimeSeriesValue] = []

        for raw in raw_values:
            if self.debug:
                logger.debug(
                    f"Processing timestamp={raw.timestamp} value={raw.value} "
                    f"quality code={raw.quality_code} interpolation type={raw.interpolation_type}"
                )
            try:
                dt = parse_timestamp(raw.timestamp)
            except ValueError:
                logger.warning(f"Error parsing date/time: {raw.timestamp}")
                diagnostics.bad_timestamps += 1
                continue

            if not raw.value:
                continue
            try:
                value = float(raw.value)
            except ValueError:
                logger.warning(f"Error parsing {raw.timestamp} data value: {raw.value}")
                diagnostics.bad_values += 1
                continue

            interpolation_type = lookup_interpolation_type(raw.interpolation_type)
            if interpolation_type is None:
                logger.warning(
                    f"Unknown interpolation type {raw.interpolation_type} "
                    f"at {raw.timestamp} - skipping value."
                )
                diagnostics.bad_interpolation_types += 1
                continue

            try:
                dt, adjusted = self.shift_to_interval_end(dt, interpolation_type)
                if adjusted:
                    diagnostics.timestamps_adjusted += 1
                if self.interval_class is SourceIntervalClass.DAY and dt.hour != 0:
                    diagnostics.day_non_zero_hour += 1
                dt = self.align(dt)
            except (OverflowError, ValueError) as e:
                diagnostics.value_errors += 1
                logger.warning(f"Error processing value at {raw.timestamp} ({e}).")
                continue

            ts_value = TimeSeriesValue(dt, value, raw.quality_code)
            if not regular:
                irregular_values.append(ts_value)
            elif not period.contains(dt):
                diagnostics.not_inserted += 1
            else:
                aligned[naive_datetime(dt)] = ts_value

        values = irregular_values if not regular else list(aligned.values())
        values.sort(key=lambda v: naive_datetime(v.timestamp))
        return AlignmentResult(period=period, values=values, diagnostics=diagnostics)


def _parse_or_default(text: str, default: Optional[datetime]) -> Optional[datetime]:
    try:
        return parse_timestamp(text)
    except ValueError:
        return default
