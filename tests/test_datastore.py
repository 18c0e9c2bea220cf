"""
Tests for the KiWIS datastore.
"""

import logging
import math
from datetime import datetime
from unittest.mock import patch

import pytest

from conftest import SERVICE_URL, make_row
from kiwisdb.alignment import TemporalAligner
from kiwisdb.client import KiWISClient
from kiwisdb.config import ClientConfig
from kiwisdb.datastore import KiWISDataStore, strip_note
from kiwisdb.exceptions import (
    MalformedIdentifier,
    TransportFailure,
    UnsupportedIntervalRequest,
    ValueDecodeFailure,
)
from kiwisdb.interval import IntervalBase
from kiwisdb.models import RawValue
from kiwisdb.query import FilterPredicate


@pytest.fixture
def config():
    return ClientConfig(
        service_root_url=SERVICE_URL,
        name="KiWIS-Test",
        service_version="2.1.3",
        properties={"system_id": "CO-District-MHFD"},
    )


@pytest.fixture
def datastore(config, client):
    return KiWISDataStore(config, client=client)


@pytest.fixture
def daily_values():
    return [
        RawValue("2023-01-02T00:00:00.000-07:00", "4.21", "200", "103"),
        RawValue("2023-01-03T00:00:00.000-07:00", "4.35", "200", "103"),
        RawValue("2023-01-04T00:00:00.000-07:00", "", "255", "103"),
    ]


class TestKiWISDataStore:
    """Test KiWISDataStore functionality."""

    def test_identity(self, datastore):
        """Test name and description come from the config."""
        assert datastore.name == "KiWIS-Test"
        assert datastore.description == "KiWIS web services"

    def test_plugin_properties(self):
        """Test plugin properties."""
        properties = KiWISDataStore.plugin_properties()
        assert properties["Name"] == "KiWIS"
        assert set(properties) == {"Name", "Description", "Author", "Version"}

    def test_from_properties(self):
        """Test creating a datastore from configuration properties."""
        with KiWISDataStore.from_properties(
            {"Name": "Basin", "ServiceRootURI": SERVICE_URL}
        ) as datastore:
            assert datastore.name == "Basin"
            assert isinstance(datastore.client, KiWISClient)

    def test_debug_does_not_change_logger_level(self, client):
        """Test a debugging datastore leaves the package log level alone."""
        package_logger = logging.getLogger("kiwisdb")
        level = package_logger.level
        datastore = KiWISDataStore(ClientConfig(SERVICE_URL, debug=True), client=client)

        assert package_logger.level == level
        with patch.object(client, "get_rows", return_value=[make_row()]), patch.object(
            client, "get_timeseries_values", return_value=([], "https://values")
        ), patch("kiwisdb.datastore.TemporalAligner", wraps=TemporalAligner) as mock_aligner:
            datastore.read_time_series("0101.WaterLevelRiver-HG.1Day")

        assert mock_aligner.call_args.kwargs["debug"] is True

    def test_read_time_series(self, datastore, client, daily_values):
        """Test reading a daily series end to end."""
        with patch.object(client, "get_rows", return_value=[make_row()]), patch.object(
            client, "get_timeseries_values", return_value=(daily_values, "https://values")
        ) as mock_values:
            ts = datastore.read_time_series(
                "0101.WaterLevelRiver-HG.1Day~KiWIS-Test",
                read_start=datetime(2023, 1, 2),
                read_end=datetime(2023, 1, 4),
            )

        mock_values.assert_called_once_with(8001, datetime(2023, 1, 2), datetime(2023, 1, 4))
        assert ts.identifier == "0101.WaterLevelRiver-HG.1Day~KiWIS-Test"
        assert ts.description == "North Fork Bridge"
        assert ts.data_units == "ft"
        assert math.isnan(ts.missing)
        assert ts.precision is IntervalBase.DAY
        assert [ts.format_timestamp(v.timestamp) for v in ts.values] == ["2023-01-01", "2023-01-02"]
        assert [v.value for v in ts.values] == [4.21, 4.35]
        assert ts.format_timestamp(ts.period.start) == "2023-01-01"
        assert ts.format_timestamp(ts.period.end) == "2023-01-03"
        assert ts.format_timestamp(ts.period.original_start) == "2023-01-01"

        assert ts.get_property("station_no") == "0101"
        assert ts.get_property("stationparameter_no") == "WaterLevelRiver"
        assert ts.get_property("ts_spacing") == "P1D"
        assert ts.get_property("catchment_id") == 12
        assert ts.get_property("ts.GetTimeSeriesValuesUrl") == "https://values"
        assert ts.get_property("ts.TimestampsAdjustedToIntervalEndCount") == 0
        assert ts.get_property("ts.DayNonZeroHourCount") == 0
        assert ts.get_property("ts.NotInsertedCount") == 0

    def test_read_day_as_24hour(self, datastore, client, daily_values):
        """Test option mappings rename the output interval."""
        with patch.object(client, "get_rows", return_value=[make_row()]), patch.object(
            client, "get_timeseries_values", return_value=(daily_values, "https://values")
        ):
            ts = datastore.read_time_series(
                "0101.WaterLevelRiver-HG.1Day", options={"ReadDayAs24Hour": "true"}
            )

        assert ts.identifier == "0101.WaterLevelRiver-HG.24Hour"
        assert ts.requested_identifier == "0101.WaterLevelRiver-HG.1Day"
        assert str(ts.interval) == "24Hour"
        assert [ts.format_timestamp(v.timestamp) for v in ts.values] == ["2023-01-02T00", "2023-01-03T00"]

    def test_read_metadata_only(self, datastore, client):
        """Test values are not requested without read_data."""
        with patch.object(client, "get_rows", return_value=[make_row()]), patch.object(
            client, "get_timeseries_values"
        ) as mock_values:
            ts = datastore.read_time_series("0101.WaterLevelRiver-HG.1Day", read_data=False)

        mock_values.assert_not_called()
        assert ts.values == []
        assert ts.get_property("ts_id") == 8001
        assert "ts.GetTimeSeriesValuesUrl" not in ts.properties

    def test_invalid_identifier_makes_no_request(self, datastore, client):
        """Test identifier errors are raised before any request."""
        with patch.object(client, "get_rows") as mock_get_rows:
            with pytest.raises(MalformedIdentifier):
                datastore.read_time_series("ABC..1Hour.")
            with pytest.raises(UnsupportedIntervalRequest):
                datastore.read_time_series("0101.WaterLevelRiver-HG.3Day")

        mock_get_rows.assert_not_called()

    def test_bad_values_fail_read(self, datastore, client):
        """Test any bad value fails the whole read."""
        values = [
            RawValue("2023-01-02T00:00:00", "4.21", "200", "103"),
            RawValue("2023-01-03T00:00:00", "four", "200", "103"),
        ]
        with patch.object(client, "get_rows", return_value=[make_row()]), patch.object(
            client, "get_timeseries_values", return_value=(values, "https://values")
        ):
            with pytest.raises(ValueDecodeFailure, match="1 bad data values"):
                datastore.read_time_series("0101.WaterLevelRiver-HG.1Day")

    def test_values_transport_failure(self, datastore, client):
        """Test value request failures are raised with the identifier."""
        with patch.object(client, "get_rows", return_value=[make_row()]), patch.object(
            client, "get_timeseries_values", side_effect=TransportFailure("Network error")
        ):
            with pytest.raises(TransportFailure, match="0101.WaterLevelRiver-HG.1Day"):
                datastore.read_time_series("0101.WaterLevelRiver-HG.1Day")

    def test_catalog_and_choices(self, datastore, client):
        """Test the catalog cache and derived choices."""
        rows = [make_row(ts_id="1"), make_row(ts_id="2", ts_shortname="HG15", ts_spacing="PT15M")]
        with patch.object(client, "get_rows", return_value=rows) as mock_get_rows:
            assert datastore.get_time_series_catalog() == ()
            catalog = datastore.get_time_series_catalog(read_data=True)
            assert datastore.get_time_series_catalog() is catalog

        assert mock_get_rows.call_count == 1
        assert datastore.data_type_strings() == ["*", "WaterLevelRiver-HG", "WaterLevelRiver-HG15", "*"]
        assert datastore.data_interval_strings("WaterLevelRiver-HG15 - 15 minute gage height") == [
            "*",
            "15Minute",
            "*",
        ]
        assert datastore.filter_choices()["ts_shortname"] == ["HG", "HG15"]

    def test_list_time_series(self, datastore, client):
        """Test listing time series strips display notes."""
        with patch.object(client, "get_rows", return_value=[make_row()]) as mock_get_rows:
            result = datastore.list_time_series(
                data_type="WaterLevelRiver - River stage",
                data_interval="1Day - daily",
                filters=[FilterPredicate("station_no", "=", "0101")],
            )

        assert [e.ts_id for e in result] == [8001]
        url = mock_get_rows.call_args[0][0]
        assert "stationparameter_no=WaterLevelRiver" in url

    def test_identifier_for_entry(self, datastore, client):
        """Test identifiers built from catalog entries resolve."""
        with patch.object(client, "get_rows", return_value=[make_row()]):
            entry = datastore.list_time_series()[0]
            tsid = datastore.identifier_for_entry(entry)
            assert str(tsid) == "0101.WaterLevelRiver-HG.1Day~KiWIS-Test"
            ts = datastore.read_time_series(str(tsid), read_data=False)

        assert ts.catalog_entry.ts_id == 8001

    def test_check_requirement(self, datastore):
        """Test requirement checks against the configured datastore."""
        assert datastore.check_requirement("@require datastore KiWIS-Test version >= 1.5.5").met
        assert not datastore.check_requirement("@require datastore KiWIS-Test version >= 3").met
        assert datastore.check_requirement(
            "@require datastore KiWIS-Test configuration system_id == CO-District-MHFD"
        ).met


class TestStripNote:
    """Test removing display notes from choices."""

    def test_strip_note(self):
        assert strip_note("WaterLevelRiver-HG - River stage") == "WaterLevelRiver-HG"
        assert strip_note("1Day") == "1Day"
        assert strip_note(None) is None
