# v1.1
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Dict, Any

import numpy as np

from pitchengine.autocorrelation import AutocorrelationEstimator
from pitchengine.frequency_smoother import MedianSmoother
from pitchengine.sample_window import SampleWindow
from pitchengine.settings import ConfigurationError, validate_settings
from pitchengine.update_scheduler import UpdateScheduler


@dataclass(frozen=True)
class RawEstimate:
    frequency_hz: float
    timestamp_ms: float


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PitchSession:
    """
    推定パイプラインの状態をまとめて保持するセッション。

    外部のフレームドライバから tick() が1フレームにつき1回呼ばれる。
    1回の tick では次の順に処理する:
      1. 録音中でなければ何もしない (キャンセル)
      2. サンプル窓をソースから更新 (データが無ければこのティックは丸ごとスキップ)
      3. スケジューラのゲートが開いていれば 推定 -> 中央値平滑化 -> on_frequency
      4. 窓を on_waveform へ毎回転送

    source は `read_into(samples: np.ndarray) -> bool` を持つオブジェクト。
    """
    RUNTIME_KEYS = {"update_interval_ms", "smoothing_window_size"}

    def __init__(self,
                 config: Optional[Dict[str, Any]],
                 source,
                 on_frequency: Optional[Callable[[float], None]] = None,
                 on_waveform: Optional[Callable[[np.ndarray], None]] = None,
                 clock: Callable[[], float] = monotonic_ms):

        # 前提条件違反 (窓が短すぎる等) はここで ConfigurationError
        self.settings = validate_settings(config or {})

        self.source = source
        self.on_frequency = on_frequency
        self.on_waveform = on_waveform
        self.clock = clock

        self.window = SampleWindow(
            self.settings["sample_window_length"], self.settings["sample_rate"]
        )
        self.estimator = AutocorrelationEstimator(
            self.settings["min_lag_samples"], self.settings["max_lag_samples"]
        )
        self.smoother = MedianSmoother(self.settings["smoothing_window_size"])
        self.scheduler = UpdateScheduler(self.settings["update_interval_ms"])

        self.is_recording = False
        self.smoothed_hz = 0.0
        self.last_estimate: Optional[RawEstimate] = None

        # UIスレッドからの設定変更と解析の衝突を防ぐロック
        self.analysis_lock = threading.Lock()

        logging.info(
            f"PitchSession initialized (window={len(self.window)}, "
            f"lags={self.estimator.min_lag}-{self.estimator.max_lag}, "
            f"interval={self.scheduler.interval_ms}ms, "
            f"smoothing={self.smoother.window_size})"
        )

    def start(self):
        with self.analysis_lock:
            self.scheduler.reset()
            self.smoother.reset()
            self.window.clear()
            self.smoothed_hz = 0.0
            self.last_estimate = None
            self.is_recording = True
        logging.info("Pitch session started.")

    def stop(self):
        if not self.is_recording:
            return
        self.is_recording = False
        logging.info("Pitch session stopped.")

    def update_settings(self, new_config: Dict[str, Any]):
        """間隔と平滑化窓のみ実行中に変更できる。窓長・ラグ範囲の変更はセッションを作り直す。"""
        fixed_keys = set(new_config) - self.RUNTIME_KEYS
        if fixed_keys:
            raise ConfigurationError(
                f"Settings {sorted(fixed_keys)} cannot change on a running session"
            )

        with self.analysis_lock:
            merged = dict(self.settings)
            merged.update(new_config)
            validated = validate_settings(merged)

            if "update_interval_ms" in new_config:
                self.scheduler.interval_ms = validated["update_interval_ms"]
            if "smoothing_window_size" in new_config:
                self.smoother.update_config(validated)
            self.settings = validated

    def tick(self, now_ms: Optional[float] = None) -> Optional[RawEstimate]:
        if not self.is_recording:
            return None

        if not self.source.read_into(self.window.samples):
            return None

        if now_ms is None:
            now_ms = self.clock()

        estimate = None
        with self.analysis_lock:
            if self.scheduler.should_run(now_ms):
                estimate = self._run_pipeline(now_ms)
                smoothed = self.smoothed_hz

        # コールバックはロックの外で呼ぶ
        if estimate is not None:
            self._emit(self.on_frequency, smoothed)
        self._emit(self.on_waveform, self.window.samples)
        return estimate

    def _run_pipeline(self, now_ms: float) -> RawEstimate:
        raw_freq = self.estimator.estimate(self.window.samples, self.window.sample_rate)
        estimate = RawEstimate(frequency_hz=raw_freq, timestamp_ms=now_ms)
        self.last_estimate = estimate

        self.smoothed_hz = self.smoother.push(raw_freq)

        if logging.getLogger().isEnabledFor(logging.DEBUG):
            candidates = self.estimator.top_candidates(self.window.sample_rate)
            logging.debug(
                f"raw={raw_freq:.2f}Hz smoothed={self.smoothed_hz:.2f}Hz "
                f"top={[(lag, round(freq, 2)) for lag, _, freq in candidates]}"
            )
        return estimate

    def _emit(self, callback, value):
        if callback is None:
            return
        try:
            callback(value)
        except Exception as e:
            # 表示側のエラーでループは止めない
            logging.warning(f"Presentation callback error: {e}")
