"""
Tests for catalog entry data model.
"""

from kiwisdb.identifier import LocationType, RequestedIdentifier
from kiwisdb.models import CatalogEntry


class TestCatalogEntry:
    """Test CatalogEntry behavior."""

    def test_construct_empty(self):
        """Test an empty entry has no problems and an empty location."""
        entry = CatalogEntry()
        assert entry.loc_id == ""
        assert entry.problems is None
        assert entry.format_problems() == ""
        assert not entry.has_problems

    def test_station_no_sets_loc_id(self):
        """Test assigning the station number also assigns the location."""
        entry = CatalogEntry()
        entry.station_no = "0101"
        assert entry.loc_id == "0101"

        entry.loc_id = "override"
        assert entry.loc_id == "override"
        assert entry.station_no == "0101"

    def test_station_no_in_constructor(self):
        """Test the coupling also applies at construction."""
        assert CatalogEntry(station_no="0202").loc_id == "0202"

    def test_add_problem_allocates_list(self):
        """Test problems are allocated on first append."""
        entry = CatalogEntry()
        entry.add_problem("first")
        entry.add_problem("second")
        assert entry.problems == ["first", "second"]
        assert entry.format_problems() == "first; second"

    def test_clear_problems(self):
        """Test clearing problems."""
        entry = CatalogEntry()
        entry.clear_problems()
        entry.add_problem("problem")
        entry.clear_problems()
        assert entry.format_problems() == ""

    def test_deep_copy_duplicates_problems(self):
        """Test a deep copy does not share the problem list."""
        source = CatalogEntry(station_no="0101", ts_id=8001)
        source.add_problem("original")

        copy = CatalogEntry.from_entry(source, deep_copy=True)
        copy.add_problem("copy only")

        assert source.problems == ["original"]
        assert copy.problems == ["original", "copy only"]
        assert copy.ts_id == 8001
        assert copy.loc_id == "0101"

    def test_shallow_copy_resets_problems(self):
        """Test a shallow derived copy starts with no problems."""
        source = CatalogEntry(station_no="0101", data_type="WaterLevelRiver-HG")
        source.add_problem("original")

        copy = source.copy(deep=False)

        assert copy.problems is None
        assert copy.data_type == "WaterLevelRiver-HG"
        assert source.problems == ["original"]

    def test_copy_keeps_overridden_loc_id(self):
        """Test copies keep a location assigned after the station number."""
        source = CatalogEntry(station_no="0101")
        source.loc_id = "custom"
        assert source.copy().loc_id == "custom"

    def test_distinct_data_types(self):
        """Test distinct data types keep first-seen order and skip None."""
        entries = [
            CatalogEntry(data_type="Q-15"),
            CatalogEntry(data_type="H-HG"),
            CatalogEntry(data_type=None),
            CatalogEntry(data_type="Q-15"),
            CatalogEntry(data_type="A-1"),
        ]
        assert CatalogEntry.distinct_data_types(entries) == ["Q-15", "H-HG", "A-1"]

    def test_distinct_data_intervals(self):
        """Test distinct data intervals keep first-seen order and skip None."""
        entries = [
            CatalogEntry(data_interval="1Day"),
            CatalogEntry(data_interval=None),
            CatalogEntry(data_interval="15Minute"),
            CatalogEntry(data_interval="1Day"),
        ]
        assert CatalogEntry.distinct_data_intervals(entries) == ["1Day", "15Minute"]
        assert CatalogEntry.distinct_data_intervals([]) == []

    def test_to_identifier(self):
        """Test building identifiers from an entry."""
        entry = CatalogEntry(
            station_no="0101", data_type="WaterLevelRiver-HG", data_interval="1Day", ts_id=8001
        )

        by_path = entry.to_identifier("KiWIS")
        assert str(by_path) == "0101.WaterLevelRiver-HG.1Day~KiWIS"
        assert by_path.location_type is LocationType.BY_PATH_PARTS

        by_id = entry.to_identifier("KiWIS", use_ts_id=True)
        assert str(by_id) == "ts_id:8001.WaterLevelRiver-HG.1Day~KiWIS"
        assert by_id.series_id == 8001

    def test_to_identifier_quotes_location(self):
        """Test a location containing delimiters is quoted and parses back."""
        entry = CatalogEntry(station_no="01.01", data_type="WL-HG", data_interval="1Day")

        tsid = entry.to_identifier()
        assert str(tsid) == "'01.01'.WL-HG.1Day"

        parsed = RequestedIdentifier.parse(str(tsid))
        assert parsed.location_id == "01.01"
        assert parsed.data_type == "WL-HG"
        assert parsed.interval == "1Day"
