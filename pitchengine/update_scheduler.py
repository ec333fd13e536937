# v1.0
from typing import Optional

from pitchengine.settings import ConfigurationError


class UpdateScheduler:
    """
    推定パイプラインを描画ループから切り離し、一定間隔でのみ実行させるゲート。

    初回は必ず実行。以降は基準時刻から interval_ms 以上経過したティックで実行し、
    基準時刻を「now_ms を超えない直近の interval 境界」まで進める。
    (0, 50, 120, 210, 400ms / 200ms 間隔 -> 0, 210, 400 で実行)
    """
    def __init__(self, interval_ms: float = 200.0):
        interval_ms = float(interval_ms)
        if interval_ms <= 0:
            raise ConfigurationError(f"update interval must be positive: {interval_ms}")
        self.interval_ms = interval_ms
        self.last_run_ms: Optional[float] = None
        self._reference_ms: Optional[float] = None

    def reset(self):
        self.last_run_ms = None
        self._reference_ms = None

    def should_run(self, now_ms: float) -> bool:
        if self._reference_ms is None:
            self._reference_ms = now_ms
            self.last_run_ms = now_ms
            return True

        elapsed = now_ms - self._reference_ms
        if elapsed < self.interval_ms:
            return False

        periods = elapsed // self.interval_ms
        self._reference_ms += periods * self.interval_ms
        self.last_run_ms = now_ms
        return True
