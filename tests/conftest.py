"""
Shared fixtures for kiwisdb tests.
"""

from typing import Any, Dict

import pytest

from kiwisdb.client import KiWISClient

SERVICE_URL = "https://kiwis.example.org/KiWIS/KiWIS?service=kisters&type=queryServices&datasource=0"


def make_row(**overrides: Any) -> Dict[str, Any]:
    """A getTimeseriesList objson row, as KiWIS returns it (all strings)."""
    row = {
        "catchment_id": "12",
        "catchment_name": "Upper Basin",
        "catchment_no": "UB",
        "parametertype_id": "560",
        "parametertype_name": "H",
        "site_id": "33",
        "site_name": "North Fork",
        "site_no": "NF",
        "station_id": "4501",
        "station_latitude": "39.75",
        "station_longitude": "-105.2",
        "station_longname": "North Fork at Bridge",
        "station_name": "North Fork Bridge",
        "station_no": "0101",
        "stationparameter_longname": "River water level",
        "stationparameter_name": "Water Level River",
        "stationparameter_no": "WaterLevelRiver",
        "ts_id": "8001",
        "ts_name": "HG.Day.Mean",
        "ts_path": "NF/0101/WaterLevelRiver/HG",
        "ts_shortname": "HG",
        "ts_spacing": "P1D",
        "ts_type_id": "1",
        "ts_type_name": "Processing",
        "ts_unitname": "feet",
        "ts_unitsymbol": "ft",
        "ts_unitname_abs": "feet",
        "ts_unitsymbol_abs": "ft",
    }
    row.update(overrides)
    return row


@pytest.fixture
def client():
    """Create a test client."""
    client = KiWISClient(SERVICE_URL, timeout=5)
    yield client
    client.close()
