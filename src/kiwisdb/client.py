"""
HTTP client for KiWIS (Kisters Web Interoperability Solution) query services.
"""

import json
import logging
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple, Union

import httpx

from .config import DEFAULT_TIMEOUT, ClientConfig
from .exceptions import TransportFailure
from .models import RawValue
from .response import parse_values_csv

logger = logging.getLogger(__name__)

QueryParams = Sequence[Tuple[str, str]]

VALUES_RETURN_FIELDS = "Timestamp,Value,Quality Code,Interpolation Type"
REQUEST_DATETIME_FORMAT = "%Y-%m-%d %H:%M"


class KiWISClient:
    """
    Client for a KiWIS ``queryServices`` endpoint.

    The service root URL normally already carries the service selection, for
    example ``https://host/KiWIS/KiWIS?service=kisters&type=queryServices&datasource=0``.
    Request parameters are merged into that URL.
    """

    def __init__(
        self,
        service_root_url: Union[str, ClientConfig],
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if isinstance(service_root_url, ClientConfig):
            timeout = service_root_url.timeout
            service_root_url = service_root_url.service_root_url
        self.service_root_url = service_root_url
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": "kiwisdb-client/0.1.0"},
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "KiWISClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def build_url(self, params: QueryParams) -> str:
        """Merge ``params`` into the service root URL."""
        url = httpx.URL(self.service_root_url)
        return str(url.copy_merge_params(list(params)))

    def _make_request(self, url: str) -> httpx.Response:
        """Make a GET request with error handling."""
        logger.debug(f"Requesting {url}")
        try:
            response = self._client.get(url)
            response.raise_for_status()
            return response

        except httpx.TimeoutException as e:
            raise TransportFailure(f"Request timeout after {self.timeout}s: {url}") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise TransportFailure(f"KiWIS service not found: {url}") from e
            elif e.response.status_code == 429:
                raise TransportFailure("Rate limit exceeded") from e
            elif e.response.status_code >= 500:
                raise TransportFailure("KiWIS service temporarily unavailable") from e
            else:
                raise TransportFailure(
                    f"HTTP error {e.response.status_code}: {e}"
                ) from e
        except httpx.RequestError as e:
            raise TransportFailure(f"Network error: {e}") from e

    def get_rows(self, url: str) -> Any:
        """Request ``url`` and return the decoded JSON body."""
        response = self._make_request(url)
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise TransportFailure(f"Invalid JSON response: {e}") from e

    def get_text(self, url: str) -> str:
        return self._make_request(url).text

    def values_url(
        self,
        ts_id: int,
        read_start: Optional[datetime] = None,
        read_end: Optional[datetime] = None,
    ) -> str:
        """
        Build the ``getTimeseriesValues`` URL for one series.

        Without a read period the complete period of record is requested.
        """
        params = [
            ("request", "getTimeseriesValues"),
            ("format", "csv"),
            ("ts_id", str(ts_id)),
            ("returnfields", VALUES_RETURN_FIELDS),
        ]
        if read_start is not None:
            params.append(("from", read_start.strftime(REQUEST_DATETIME_FORMAT)))
        if read_end is not None:
            params.append(("to", read_end.strftime(REQUEST_DATETIME_FORMAT)))
        if read_start is None and read_end is None:
            params.append(("period", "complete"))
        return self.build_url(params)

    def get_timeseries_values(
        self,
        ts_id: int,
        read_start: Optional[datetime] = None,
        read_end: Optional[datetime] = None,
    ) -> Tuple[List[RawValue], str]:
        """
        Read raw values for one series.

        Returns:
            The raw values in service order and the request URL.
        """
        url = self.values_url(ts_id, read_start, read_end)
        values = parse_values_csv(self.get_text(url))
        logger.info(f"Read {len(values)} values for ts_id {ts_id}")
        return values, url
