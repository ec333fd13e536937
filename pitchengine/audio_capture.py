# v1.1
import pyaudio
import numpy as np
import logging
import threading
from typing import Optional
from scipy import signal as scipy_signal


class AudioCapture:
    """
    マイク入力 (PyAudio) を受け取り、直近 window_length サンプルを保持するソース。

    PyAudio のコールバックスレッドが唯一の書き込み手、PitchSession.tick() が
    唯一の読み手。リングバッファは2倍長のダブルバッファで、常に連続した
    スライスとして最新の窓を取り出せる。

    書き込み前に Butterworth ローパスを通す。フィルタ状態はチャンクを跨いで
    引き継ぐので、分割して書いても一括で書いた場合と同じ波形になる。
    """
    CHUNK = 2048
    LOWPASS_ORDER = 2

    def __init__(self, sample_rate: float = 44100, window_length: int = 32768,
                 chunk: int = CHUNK, input_device_index: Optional[int] = None,
                 lowpass_cutoff_hz: float = 1000.0):
        self.sample_rate = int(sample_rate)
        self.window_length = int(window_length)
        self.chunk = int(chunk)
        self.input_device_index = input_device_index

        # cutoff 0 はフィルタ無し
        self.lowpass_cutoff_hz = float(lowpass_cutoff_hz)
        self._sos = None
        self._zi = None
        if self.lowpass_cutoff_hz > 0:
            self._sos = scipy_signal.butter(
                self.LOWPASS_ORDER, self.lowpass_cutoff_hz,
                btype="lowpass", fs=self.sample_rate, output="sos"
            )
            self._zi = np.zeros((self._sos.shape[0], 2))

        self.pa: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None
        self._is_running = False

        self._ring = np.zeros(self.window_length * 2, dtype=np.float32)
        self._ptr = 0
        self._frames_received = 0
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._is_running

    def reset(self):
        with self._lock:
            self._ring.fill(0.0)
            self._ptr = 0
            self._frames_received = 0
            if self._zi is not None:
                self._zi.fill(0.0)

    def start(self):
        if self.stream and self.stream.is_active(): return

        self.reset()
        try:
            self.pa = pyaudio.PyAudio()
            self._is_running = True
            self.stream = self.pa.open(
                format=pyaudio.paFloat32, channels=1, rate=self.sample_rate,
                input=True, frames_per_buffer=self.chunk,
                input_device_index=self.input_device_index,
                stream_callback=self._pyaudio_callback
            )
            self.stream.start_stream()
            logging.info(f"Audio stream started ({self.sample_rate}Hz, chunk={self.chunk}).")
        except Exception as e:
            self._is_running = False
            logging.error(f"Stream start error: {e}")
            self.stop()
            raise

    def stop(self):
        self._is_running = False

        if self.stream:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logging.warning(f"Stream close error: {e}")
            self.stream = None

        if self.pa:
            self.pa.terminate()
            self.pa = None

    def _pyaudio_callback(self, in_data, frame_count, time_info, status):
        if not self._is_running: return (None, pyaudio.paComplete)

        if status:
            logging.debug(f"PyAudio status flags: {status}")

        samples = np.frombuffer(in_data, dtype=np.float32)
        self.write(samples)
        return (None, pyaudio.paContinue)

    def write(self, samples: np.ndarray):
        """新しいサンプルをローパスに通してからダブルバッファへ書き込む。"""
        data = np.asarray(samples, dtype=np.float32)
        n = len(data)
        if n == 0:
            return

        with self._lock:
            # フィルタ状態を保つため、切り詰める前に全サンプルを通す
            if self._sos is not None:
                filtered, self._zi = scipy_signal.sosfilt(
                    self._sos, data.astype(np.float64), zi=self._zi
                )
                data = filtered.astype(np.float32)
            data = np.clip(data, -1.0, 1.0)

            N = self.window_length
            if n > N:
                data = data[-N:]
                n = N

            ptr = self._ptr
            remain_space = N - ptr
            if n <= remain_space:
                self._ring[ptr : ptr + n] = data
                self._ring[ptr + N : ptr + N + n] = data
                self._ptr = (ptr + n) % N
            else:
                chunk1 = data[:remain_space]
                self._ring[ptr : N] = chunk1
                self._ring[ptr + N : 2 * N] = chunk1

                chunk2 = data[remain_space:]
                len2 = len(chunk2)
                self._ring[0 : len2] = chunk2
                self._ring[N : N + len2] = chunk2
                self._ptr = len2
            self._frames_received += 1

    def read_into(self, out: np.ndarray) -> bool:
        """
        最新 len(out) サンプルを古い順に out へコピーする。
        start() 以降まだ何も届いていなければ False を返し、out は変更しない。
        """
        with self._lock:
            if self._frames_received == 0:
                return False
            N = self.window_length
            count = len(out)
            end = self._ptr + N
            out[:] = self._ring[end - count : end]
        return True
