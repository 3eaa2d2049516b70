"""Tests for configuration loading and validation."""

import pytest

from tablebot.config import (
    AppConfig,
    DialogConfig,
    RestaurantConfig,
    StorageConfig,
    _csv_tuple,
    _safe_int,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_no_locations(self):
        config = AppConfig(restaurant=RestaurantConfig(locations=()))
        with pytest.raises(ValueError, match="RESTAURANT_LOCATIONS"):
            _validate_config(config)

    def test_open_hour_out_of_range(self):
        config = AppConfig(restaurant=RestaurantConfig(open_hour=25, last_seating_hour=26))
        with pytest.raises(ValueError, match="OPEN_HOUR"):
            _validate_config(config)

    def test_last_seating_before_opening(self):
        config = AppConfig(restaurant=RestaurantConfig(open_hour=18, last_seating_hour=9))
        with pytest.raises(ValueError, match="LAST_SEATING_HOUR"):
            _validate_config(config)

    def test_invalid_min_party_size(self):
        config = AppConfig(restaurant=RestaurantConfig(min_party_size=0))
        with pytest.raises(ValueError, match="MIN_PARTY_SIZE"):
            _validate_config(config)

    def test_max_party_below_min(self):
        config = AppConfig(restaurant=RestaurantConfig(min_party_size=4, max_party_size=2))
        with pytest.raises(ValueError, match="MAX_PARTY_SIZE"):
            _validate_config(config)

    def test_invalid_confirmation_attempts(self):
        config = AppConfig(dialog=DialogConfig(max_confirmation_attempts=0))
        with pytest.raises(ValueError, match="MAX_CONFIRMATION_ATTEMPTS"):
            _validate_config(config)

    def test_unknown_state_backend(self):
        config = AppConfig(storage=StorageConfig(backend="redis"))
        with pytest.raises(ValueError, match="STATE_BACKEND"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("TABLEBOT_TEST_INT", "7")
        assert _safe_int("TABLEBOT_TEST_INT", "1") == 7

    def test_safe_int_names_bad_var(self, monkeypatch):
        monkeypatch.setenv("TABLEBOT_TEST_INT", "seven")
        with pytest.raises(ValueError, match="TABLEBOT_TEST_INT"):
            _safe_int("TABLEBOT_TEST_INT", "1")

    def test_csv_tuple_strips_blanks(self, monkeypatch):
        monkeypatch.setenv("TABLEBOT_TEST_CSV", " Seattle, ,Bellevue ,")
        assert _csv_tuple("TABLEBOT_TEST_CSV", "") == ("Seattle", "Bellevue")
