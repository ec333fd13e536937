# v1.0
import logging
import time
from typing import List, Tuple

import numpy as np

from pitchengine.settings import ConfigurationError


class AutocorrelationEstimator:
    """
    時間領域の自己相関による基本周波数推定。

    ラグ探索範囲 [min_lag, max_lag) の各ラグについて、先頭 max_lag サンプルの
    プローブとラグ分ずらした信号との積和を max_lag で割った値を求め、
    最大値をとるラグから sample_rate / lag を返す。
    振幅での正規化は行わない (エネルギー重み付きの生の相関値)。

    計算量は O((max_lag - min_lag) * max_lag)。パイプライン全体で最も重い処理なので、
    描画周期ではなく UpdateScheduler の周期で呼ぶこと。
    """

    def __init__(self, min_lag: int, max_lag: int):
        if min_lag < 1 or max_lag <= min_lag:
            raise ConfigurationError(
                f"Invalid lag range: min_lag={min_lag}, max_lag={max_lag}"
            )
        self.min_lag = int(min_lag)
        self.max_lag = int(max_lag)

        # 作業バッファ。呼び出しごとに再確保せず使い回す
        self._profile = np.zeros(self.max_lag, dtype=np.float64)
        self._signal = np.zeros(self.required_length, dtype=np.float64)

    @property
    def required_length(self) -> int:
        """窓に必要な最小サンプル数 (最大ラグ + プローブ長)。"""
        return self.max_lag * 2

    def estimate(self, window: np.ndarray, sample_rate: float) -> float:
        """
        窓から基本周波数 (Hz) を推定する。0.0 は「ピッチなし」を意味する。
        入力窓は変更しない。
        """
        if len(window) == 0:
            return 0.0

        started = time.perf_counter()
        profile = self._profile
        profile.fill(0.0)

        # 窓が required_length より短い場合はここで ValueError (呼び出し側の契約違反)
        signal = self._signal
        signal[:] = window[:self.required_length]

        probe_len = self.max_lag
        probe = signal[:probe_len]

        for lag in range(self.min_lag, self.max_lag):
            profile[lag] = np.dot(probe, signal[lag:lag + probe_len])

        profile[self.min_lag:] /= probe_len

        # しきい値 0 から厳密に上回ったラグのみ採用 (argmax は最初の最大値を返す)
        search = profile[self.min_lag:self.max_lag]
        best_index = int(np.argmax(search))
        best_correlation = search[best_index]

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logging.debug(f"Frequency estimation took {elapsed_ms:.2f} ms")

        if not best_correlation > 0.0:
            return 0.0

        best_lag = best_index + self.min_lag
        return float(sample_rate) / best_lag

    def top_candidates(self, sample_rate: float, count: int = 3) -> List[Tuple[int, float, float]]:
        """直前の estimate で得た相関値の上位 count 件を (lag, score, freq) で返す。"""
        search = self._profile[self.min_lag:self.max_lag]
        order = np.argsort(-search, kind="stable")[:count]
        return [
            (int(i) + self.min_lag, float(search[i]), float(sample_rate) / (int(i) + self.min_lag))
            for i in order
        ]
