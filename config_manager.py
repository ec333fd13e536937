# v2.0
import configparser
import logging
from pathlib import Path
from typing import Dict, Any

from pitchengine.settings import DEFAULT_SETTINGS

class ConfigManager:
    """
    config.ini ファイルの読み書きを管理するクラス。
    v2.0: 自己相関ピッチ推定 (窓長、ラグ範囲、更新間隔、平滑化窓) の設定項目に置き換え。
    """
    SEC_SETTINGS = "SETTINGS"

    def __init__(self, config_path: str = "config.ini"):
        self.config_path = Path(config_path)
        self.config = configparser.ConfigParser()
        self._load_config()

    def _load_config(self):
        if self.config_path.exists():
            try:
                self.config.read(self.config_path, encoding="utf-8")
            except configparser.Error as e:
                logging.error(f"Config read error: {e}")
                self.config = configparser.ConfigParser()

        if not self.config.has_section(self.SEC_SETTINGS):
            self._create_default_config()

    def _create_default_config(self):
        self.config[self.SEC_SETTINGS] = {
            key: str(value) for key, value in DEFAULT_SETTINGS.items()
        }
        self._save_to_disk()

    def _save_to_disk(self):
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                self.config.write(f)
        except OSError as e:
            logging.error(f"Config save error: {e}")

    def _ensure_section(self, section: str):
        if not self.config.has_section(section):
            self.config.add_section(section)

    def _set(self, key: str, value: Any):
        self._ensure_section(self.SEC_SETTINGS)
        self.config[self.SEC_SETTINGS][key] = str(value)
        self._save_to_disk()

    def _getint(self, key: str) -> int:
        try:
            return self.config.getint(self.SEC_SETTINGS, key, fallback=DEFAULT_SETTINGS[key])
        except ValueError as e:
            logging.error(f"Config value error ({key}): {e}")
            return DEFAULT_SETTINGS[key]

    def _getfloat(self, key: str) -> float:
        try:
            return self.config.getfloat(self.SEC_SETTINGS, key, fallback=DEFAULT_SETTINGS[key])
        except ValueError as e:
            logging.error(f"Config value error ({key}): {e}")
            return float(DEFAULT_SETTINGS[key])

    # --- Capture ---
    # 構造系の値は config.ini を直接編集して再起動で反映 (UIからは変更しない)
    def get_sample_rate(self) -> int:
        return self._getint("sample_rate")

    def get_sample_window_length(self) -> int:
        return self._getint("sample_window_length")

    def get_lowpass_cutoff_hz(self) -> float:
        return self._getfloat("lowpass_cutoff_hz")

    # --- Search Range ---
    def get_min_lag_samples(self) -> int:
        return self._getint("min_lag_samples")

    def get_max_lag_samples(self) -> int:
        return self._getint("max_lag_samples")

    # --- Cadence & Smoothing ---
    def get_update_interval_ms(self) -> float:
        return self._getfloat("update_interval_ms")

    def set_update_interval_ms(self, value: float):
        self._set("update_interval_ms", f"{float(value):g}")

    def get_smoothing_window_size(self) -> int:
        return self._getint("smoothing_window_size")

    def set_smoothing_window_size(self, value: int):
        self._set("smoothing_window_size", int(value))

    def get_frame_rate(self) -> float:
        return self._getfloat("frame_rate")

    def get_all_settings_dict(self) -> Dict[str, Any]:
        """PitchSessionへ渡すための全設定辞書を作成"""
        return {
            "sample_rate": self.get_sample_rate(),
            "sample_window_length": self.get_sample_window_length(),
            "min_lag_samples": self.get_min_lag_samples(),
            "max_lag_samples": self.get_max_lag_samples(),
            "update_interval_ms": self.get_update_interval_ms(),
            "smoothing_window_size": self.get_smoothing_window_size(),
            "frame_rate": self.get_frame_rate(),
            "lowpass_cutoff_hz": self.get_lowpass_cutoff_hz(),
        }
