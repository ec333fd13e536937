# v1.0
import logging
import threading
import time
from typing import Callable, Optional


class FrameDriver:
    """
    描画フレームごとのコールバックの代わりに tick を一定レートで呼び続けるスレッド。
    tick は常に1つずつ直列に実行される。
    """
    def __init__(self, tick: Callable[[], object], frame_rate: float = 60.0):
        self.tick = tick
        self.frame_interval = 1.0 / float(frame_rate)
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.frame_count = 0

    @property
    def is_alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self):
        if self.is_alive: return
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._loop, name="FrameDriver", daemon=True)
        self.thread.start()
        logging.info(f"Frame driver started ({1.0 / self.frame_interval:.0f} fps).")

    def stop(self, timeout: float = 0.5):
        self.stop_event.set()
        if self.thread and self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)
        self.thread = None

    def _loop(self):
        next_frame = time.monotonic()
        while not self.stop_event.is_set():
            try:
                self.tick()
                self.frame_count += 1
            except Exception as e:
                # エラーが出てもループは止めない
                logging.warning(f"Frame tick error: {e}")

            next_frame += self.frame_interval
            delay = next_frame - time.monotonic()
            if delay < 0:
                # 処理が間に合わなかったフレームは詰めずに捨てる
                next_frame = time.monotonic()
                delay = 0
            self.stop_event.wait(delay)
