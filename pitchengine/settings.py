# v1.1
import logging
from typing import Dict, Any, Optional, Tuple

DEFAULT_SETTINGS: Dict[str, Any] = {
    "sample_rate": 44100,
    "sample_window_length": 32768,
    # 44100 / 30 = 1470Hz が上限
    "min_lag_samples": 30,
    # 44100 * 0.01 = 441 サンプル -> 最低 100Hz
    "max_lag_samples": 441,
    "update_interval_ms": 200,
    "smoothing_window_size": 5,
    "frame_rate": 60,
    # 入力前段のローパス (0 で無効)
    "lowpass_cutoff_hz": 1000.0,
}


class ConfigurationError(ValueError):
    """設定値の前提条件違反。起動時にのみ送出され、ストリーム中には発生しない。"""


def merge_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    settings = dict(DEFAULT_SETTINGS)
    if config:
        settings.update(config)
    return settings


def validate_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    設定辞書を検証し、型を揃えた新しい辞書を返す。

    窓長はラグ探索範囲 (プローブ長 = max_lag) を読み切れる長さが必要:
    window_length >= max_lag + max_lag。
    """
    settings = merge_settings(config)
    try:
        sample_rate = float(settings["sample_rate"])
        window_length = int(settings["sample_window_length"])
        min_lag = int(settings["min_lag_samples"])
        max_lag = int(settings["max_lag_samples"])
        interval = float(settings["update_interval_ms"])
        smoothing = int(settings["smoothing_window_size"])
        frame_rate = float(settings["frame_rate"])
        cutoff = float(settings["lowpass_cutoff_hz"])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid setting value: {e}") from e

    if sample_rate <= 0:
        raise ConfigurationError(f"sample_rate must be positive: {sample_rate}")
    if min_lag < 1:
        raise ConfigurationError(f"min_lag_samples must be >= 1: {min_lag}")
    if max_lag <= min_lag:
        raise ConfigurationError(
            f"max_lag_samples ({max_lag}) must be greater than min_lag_samples ({min_lag})"
        )
    if window_length <= 0 or window_length & (window_length - 1):
        raise ConfigurationError(
            f"sample_window_length must be a power of two: {window_length}"
        )
    if window_length < max_lag * 2:
        raise ConfigurationError(
            f"sample_window_length ({window_length}) is too short for "
            f"max_lag_samples ({max_lag}); need at least {max_lag * 2}"
        )
    if interval <= 0:
        raise ConfigurationError(f"update_interval_ms must be positive: {interval}")
    if smoothing < 1:
        raise ConfigurationError(f"smoothing_window_size must be >= 1: {smoothing}")
    if frame_rate <= 0:
        raise ConfigurationError(f"frame_rate must be positive: {frame_rate}")
    if cutoff < 0 or cutoff >= sample_rate / 2:
        raise ConfigurationError(
            f"lowpass_cutoff_hz must be 0 (off) or below Nyquist ({sample_rate / 2}): {cutoff}"
        )

    settings.update({
        "sample_rate": sample_rate,
        "sample_window_length": window_length,
        "min_lag_samples": min_lag,
        "max_lag_samples": max_lag,
        "update_interval_ms": interval,
        "smoothing_window_size": smoothing,
        "frame_rate": frame_rate,
        "lowpass_cutoff_hz": cutoff,
    })
    logging.debug(f"Settings validated: {settings}")
    return settings


def detectable_range(config: Dict[str, Any]) -> Tuple[float, float]:
    """探索ラグ範囲 [min_lag, max_lag) に対応する (最低周波数, 最高周波数) を返す。"""
    settings = merge_settings(config)
    sample_rate = float(settings["sample_rate"])
    low = sample_rate / int(settings["max_lag_samples"])
    high = sample_rate / int(settings["min_lag_samples"])
    return low, high
