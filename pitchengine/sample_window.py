# v1.0
import numpy as np


class SampleWindow:
    """
    直近の音声サンプルを保持する固定長バッファ。

    Attributes:
        samples (np.ndarray): 正規化済み float32 サンプル [-1.0, 1.0]。
                              キャプチャ側がティックごとにその場で上書きする。
        sample_rate (float): サンプリング周波数 (Hz)。
    """

    def __init__(self, length: int, sample_rate: float):
        self.samples = np.zeros(length, dtype=np.float32)
        self.sample_rate = float(sample_rate)

    def __len__(self) -> int:
        return len(self.samples)

    def clear(self):
        self.samples.fill(0.0)
