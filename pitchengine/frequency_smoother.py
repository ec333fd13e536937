# v1.1
import statistics
from collections import deque
from typing import Dict, Any, Iterable, Tuple

from pitchengine.settings import ConfigurationError


def median(values: Iterable[float]) -> float:
    """中央値。偶数個なら中央2つの平均、空なら 0.0。"""
    values = list(values)
    return statistics.median(values) if values else 0.0


class MedianSmoother:
    """
    生の推定周波数の履歴を保持し、中央値で平滑化した値を返すクラス。

    平均ではなく中央値を使うことで、オクターブ誤検知や 0Hz (ピッチなし) の
    単発の外れ値に引きずられない。0Hz も履歴に入れて中央値の計算に含める。
    """
    def __init__(self, window_size: int = 5):
        self.history: deque = deque(maxlen=self._checked_size(window_size))
        self.last_value = 0.0

    @staticmethod
    def _checked_size(window_size: int) -> int:
        size = int(window_size)
        if size < 1:
            raise ConfigurationError(f"smoothing window size must be >= 1: {window_size}")
        return size

    @property
    def window_size(self) -> int:
        return self.history.maxlen

    def update_config(self, config: Dict[str, Any]):
        size = self._checked_size(config.get("smoothing_window_size", self.window_size))
        if size != self.window_size:
            # 新しい方から size 個を残す
            self.history = deque(self.history, maxlen=size)
            self.last_value = median(self.history)

    def reset(self):
        self.history.clear()
        self.last_value = 0.0

    def snapshot(self) -> Tuple[float, ...]:
        return tuple(self.history)

    def push(self, raw_freq: float) -> float:
        # maxlen を超えると最古の値が1つ捨てられる (FIFO)
        self.history.append(float(raw_freq))
        self.last_value = median(self.history)
        return self.last_value
