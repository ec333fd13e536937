import pytest

from pitchengine.settings import (
    DEFAULT_SETTINGS, ConfigurationError, detectable_range, merge_settings, validate_settings
)


def test_defaults_are_valid():
    settings = validate_settings({})
    assert settings["sample_window_length"] == 32768
    assert settings["update_interval_ms"] == 200.0
    assert settings["smoothing_window_size"] == 5


def test_values_are_coerced_from_strings():
    settings = validate_settings({"max_lag_samples": "441", "sample_rate": "48000"})
    assert settings["max_lag_samples"] == 441
    assert settings["sample_rate"] == 48000.0


def test_merge_does_not_touch_defaults():
    merged = merge_settings({"smoothing_window_size": 9})
    assert merged["smoothing_window_size"] == 9
    assert DEFAULT_SETTINGS["smoothing_window_size"] == 5


@pytest.mark.parametrize("override", [
    {"sample_window_length": 512},
    {"sample_window_length": 1000},
    {"min_lag_samples": 0},
    {"min_lag_samples": 441},
    {"update_interval_ms": 0},
    {"smoothing_window_size": 0},
    {"sample_rate": -1},
    {"frame_rate": 0},
    {"max_lag_samples": "many"},
    {"lowpass_cutoff_hz": -1},
    {"lowpass_cutoff_hz": 22050},
])
def test_invalid_settings(override):
    with pytest.raises(ConfigurationError):
        validate_settings(override)


def test_window_exactly_twice_max_lag():
    settings = validate_settings({"sample_window_length": 1024, "max_lag_samples": 512})
    assert settings["max_lag_samples"] == 512


def test_detectable_range_defaults():
    low, high = detectable_range(DEFAULT_SETTINGS)
    assert low == pytest.approx(100.0)
    assert high == pytest.approx(1470.0)


def test_lowpass_can_be_disabled():
    assert validate_settings({})["lowpass_cutoff_hz"] == 1000.0
    assert validate_settings({"lowpass_cutoff_hz": "0"})["lowpass_cutoff_hz"] == 0.0
