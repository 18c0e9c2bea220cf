"""
KiWIS time series catalog: querying and in-memory caching.
"""

import logging
import threading
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .exceptions import TransportFailure
from .interval import parse_interval
from .models import CatalogEntry
from .query import FilterPredicate, build_catalog_params, is_wildcard
from .response import CatalogQueryResult, decode_catalog_rows

logger = logging.getLogger(__name__)

WILDCARD = "*"

# Catalog fields offered as filter choices, mapped to entry attributes
FILTER_CHOICE_FIELDS = {
    "station_id": "station_id",
    "station_name": "station_name",
    "station_no": "station_no",
    "stationparameter_name": "station_parameter_name",
    "ts_id": "ts_id",
    "ts_name": "ts_name",
    "ts_path": "ts_path",
    "ts_shortname": "ts_short_name",
}


NON_UNIQUE_PROBLEM = "Non-unique time series identifier"


def _has_decode_problem(entry: CatalogEntry) -> bool:
    return any(not problem.startswith(NON_UNIQUE_PROBLEM) for problem in entry.problems or [])


def check_unique(entries: Iterable[CatalogEntry]) -> int:
    """
    Record a problem on entries sharing ``(loc_id, data_type, data_interval)``.

    Entries that already have a decode problem are not grouped, their
    identifier parts are incomplete. Each conflicting entry gets one problem
    per check. Returns the number of entries with a conflict.
    """
    groups: Dict[Tuple[str, Optional[str], Optional[str]], List[CatalogEntry]] = defaultdict(list)
    for entry in entries:
        if _has_decode_problem(entry):
            continue
        groups[(entry.loc_id, entry.data_type, entry.data_interval)].append(entry)

    conflicts = 0
    for (loc_id, data_type, data_interval), group in groups.items():
        if len(group) < 2:
            continue
        ts_ids = ", ".join(str(entry.ts_id) for entry in group)
        problem = (
            f"{NON_UNIQUE_PROBLEM} {loc_id}.{data_type}.{data_interval} "
            f"matches {len(group)} catalog entries (ts_id {ts_ids})"
        )
        for entry in group:
            if problem not in (entry.problems or []):
                entry.add_problem(problem)
        conflicts += len(group)
    if conflicts:
        logger.warning(f"{conflicts} catalog entries have non-unique identifiers")
    return conflicts


class CatalogQueryEngine:
    """Runs filtered ``getTimeseriesList`` queries and decodes the results."""

    def __init__(self, client):
        """
        Args:
            client: Object with ``build_url(params)`` and ``get_rows(url)``,
                normally a :class:`~kiwisdb.client.KiWISClient`.
        """
        self.client = client

    def query(
        self,
        data_type: Optional[str] = None,
        data_interval: Optional[str] = None,
        filters: Optional[Sequence[FilterPredicate]] = None,
        ts_id: Optional[int] = None,
        ts_path: Optional[str] = None,
    ) -> CatalogQueryResult:
        """
        Query the catalog.

        Args:
            data_type: Station parameter number, or ``stationparameter_no-ts_shortname``.
            data_interval: Interval string compared with each entry's interval.
            filters: Additional remote filters.
            ts_id: Exact series id.
            ts_path: Exact series path, may start with ``*/``.

        Returns:
            Matching entries in remote order. Transport errors are logged and
            returned as an empty, failed result.
        """
        params = build_catalog_params(
            data_type=data_type, filters=filters, ts_id=ts_id, ts_path=ts_path
        )
        url = self.client.build_url(params)

        try:
            rows = self.client.get_rows(url)
            entries = decode_catalog_rows(rows)
        except TransportFailure as e:
            logger.error(f"Catalog query failed: {e}")
            return CatalogQueryResult(url=url, error=e)

        if not is_wildcard(data_interval):
            entries = _filter_interval(entries, data_interval)  # type: ignore

        check_unique(entries)
        logger.info(f"Catalog query returned {len(entries)} time series")
        return CatalogQueryResult(entries=entries, url=url)


def _filter_interval(entries: List[CatalogEntry], data_interval: str) -> List[CatalogEntry]:
    try:
        requested = str(parse_interval(data_interval))
    except ValueError:
        requested = data_interval.strip()
    return [
        entry
        for entry in entries
        if entry.data_interval is not None
        and entry.data_interval.lower() == requested.lower()
    ]


class CatalogStore:
    """
    In-memory cache of the full catalog.

    The cache is an immutable tuple replaced as a whole on reload, so readers
    always see a complete snapshot.
    """

    def __init__(self, engine: CatalogQueryEngine):
        self.engine = engine
        self._entries: Tuple[CatalogEntry, ...] = ()
        self._lock = threading.Lock()
        self.last_result: Optional[CatalogQueryResult] = None

    @property
    def cached(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def load(self, force: bool = False) -> Tuple[CatalogEntry, ...]:
        """
        Return the cached catalog, reading it first if ``force`` is set.

        A failed reload keeps the previous cache.
        """
        if not force:
            return self._entries

        with self._lock:
            result = self.engine.query()
            self.last_result = result
            if result.failed:
                logger.warning(
                    f"Catalog reload failed, keeping {len(self._entries)} cached entries"
                )
                return self._entries
            self._entries = tuple(result)
            logger.info(f"Cached {len(self._entries)} catalog entries")
            return self._entries

    def data_types(
        self, data_interval: Optional[str] = None, include_wildcards: bool = True
    ) -> List[str]:
        """Sorted distinct data types, optionally for one interval."""
        entries = self._entries
        if not is_wildcard(data_interval):
            entries = tuple(_filter_interval(list(entries), data_interval))  # type: ignore
        data_types = sorted(CatalogEntry.distinct_data_types(entries), key=str.lower)
        return _with_wildcards(data_types) if include_wildcards else data_types

    def data_intervals(
        self, data_type: Optional[str] = None, include_wildcards: bool = True
    ) -> List[str]:
        """Distinct data intervals ordered by duration, optionally for one data type."""
        entries: Iterable[CatalogEntry] = self._entries
        if not is_wildcard(data_type):
            entries = [entry for entry in entries if entry.data_type == data_type]
        intervals = sorted(CatalogEntry.distinct_data_intervals(entries), key=_interval_sort_key)
        return _with_wildcards(intervals) if include_wildcards else intervals

    def filter_choices(self) -> Dict[str, List[str]]:
        """Sorted distinct values of each filterable field."""
        choices = {}
        for field, attribute in FILTER_CHOICE_FIELDS.items():
            values = {
                str(getattr(entry, attribute))
                for entry in self._entries
                if getattr(entry, attribute) is not None
            }
            choices[field] = sorted(values, key=str.lower)
        return choices


def _interval_sort_key(interval: str):
    try:
        return (0,) + parse_interval(interval).sort_key() + (interval,)
    except ValueError:
        return (1, 0, 0, interval)


def _with_wildcards(values: List[str]) -> List[str]:
    if values:
        return [WILDCARD] + values + [WILDCARD]
    return [WILDCARD]
