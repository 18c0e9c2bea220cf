"""
Tests for datastore configuration.
"""

import pytest

from kiwisdb.config import DEFAULT_TIMEOUT, ClientConfig, as_bool


class TestClientConfig:
    """Test ClientConfig construction."""

    def test_defaults(self):
        config = ClientConfig("https://kiwis.example.org/KiWIS")
        assert config.name == "KiWIS"
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.debug is False
        assert config.service_version is None
        assert config.properties == {}

    def test_requires_url(self):
        """Test the service root URL is required."""
        with pytest.raises(ValueError, match="root URL"):
            ClientConfig("")

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError, match="Timeout"):
            ClientConfig("https://kiwis.example.org/KiWIS", timeout=0)

    def test_from_properties(self):
        """Test datastore configuration properties."""
        config = ClientConfig.from_properties(
            {
                "Name": "Basin",
                "Description": "Basin KiWIS",
                "ServiceRootURI": " https://kiwis.example.org/KiWIS ",
                "Timeout": "60",
                "Debug": "True",
                "ServiceVersion": "1.5.5",
                "system_id": "CO-District-MHFD",
            }
        )
        assert config.name == "Basin"
        assert config.description == "Basin KiWIS"
        assert config.service_root_url == "https://kiwis.example.org/KiWIS"
        assert config.timeout == 60.0
        assert config.debug is True
        assert config.service_version == "1.5.5"
        assert config.properties["system_id"] == "CO-District-MHFD"

    def test_from_properties_blank_timeout(self):
        config = ClientConfig.from_properties(
            {"ServiceRootURI": "https://kiwis.example.org/KiWIS", "Timeout": ""}
        )
        assert config.timeout == DEFAULT_TIMEOUT

    def test_from_env(self):
        """Test reading KIWIS_* environment variables."""
        config = ClientConfig.from_env(
            {
                "KIWIS_SERVICE_ROOT_URL": "https://kiwis.example.org/KiWIS",
                "KIWIS_NAME": "Env",
                "KIWIS_TIMEOUT": "12.5",
                "KIWIS_DEBUG": "yes",
                "KIWIS_SYSTEM_ID": "District",
            }
        )
        assert config.name == "Env"
        assert config.timeout == 12.5
        assert config.debug is True
        assert config.service_version is None
        assert config.properties["system_id"] == "District"

    def test_from_env_requires_url(self):
        with pytest.raises(ValueError):
            ClientConfig.from_env({})

    def test_from_env_prefix(self):
        config = ClientConfig.from_env(
            {"BASIN_SERVICE_ROOT_URL": "https://kiwis.example.org/KiWIS"}, prefix="BASIN_"
        )
        assert config.service_root_url == "https://kiwis.example.org/KiWIS"
        assert "system_id" not in config.properties


class TestAsBool:
    """Test boolean property parsing."""

    @pytest.mark.parametrize("value", [True, "true", "True", " yes ", "1", "on"])
    def test_true(self, value):
        assert as_bool(value) is True

    @pytest.mark.parametrize("value", [False, "false", "no", "0", "", None])
    def test_false(self, value):
        assert as_bool(value) is False
