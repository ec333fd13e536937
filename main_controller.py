# v6.1
import logging
import flet as ft
import numpy as np
from pathlib import Path
from typing import Optional, Tuple, TYPE_CHECKING

from config_manager import ConfigManager
from pitchengine.audio_capture import AudioCapture
from pitchengine.frame_driver import FrameDriver
from pitchengine.pitch_session import PitchSession
from pitchengine.settings import detectable_range, validate_settings

if TYPE_CHECKING:
    from main_view import MainView

class MainController:
    """
    アプリのロジック、イベント処理、状態管理を担当するクラス。
    v6.0: 録音開始/停止、推定周波数と波形のUI反映、更新間隔/平滑化の設定変更。
    """
    # 波形の page.update() は数フレームに1回に間引く
    WAVEFORM_UPDATE_EVERY = 3

    def __init__(self, page: ft.Page, config_path: Path):
        self.page = page
        self.is_closing = False

        self.config_manager = ConfigManager(str(config_path))
        # 設定が不正な場合はここで ConfigurationError (起動時に失敗させる)
        settings = validate_settings(self.config_manager.get_all_settings_dict())

        self.capture = AudioCapture(
            sample_rate=settings["sample_rate"],
            window_length=settings["sample_window_length"],
            lowpass_cutoff_hz=settings["lowpass_cutoff_hz"]
        )
        self.session = PitchSession(
            settings, self.capture,
            on_frequency=self._on_frequency,
            on_waveform=self._on_waveform
        )
        self.driver = FrameDriver(self.session.tick, frame_rate=self.session.settings["frame_rate"])

        self.view: Optional["MainView"] = None
        self._frame_count = 0

    def set_view(self, view: "MainView"):
        self.view = view
        self._initialize_ui_values()

    def detectable_range(self) -> Tuple[float, float]:
        return detectable_range(self.session.settings)

    def _initialize_ui_values(self):
        """設定値に基づいてUIコンポーネントの初期状態を設定"""
        if not self.view: return

        interval = self.config_manager.get_update_interval_ms()
        self.view.interval_slider.value = min(max(interval, self.view.interval_slider.min), self.view.interval_slider.max)
        self.view.interval_text.value = f"更新間隔: {interval:.0f} ms"

        smoothing = self.config_manager.get_smoothing_window_size()
        self.view.smoothing_slider.value = min(max(smoothing, self.view.smoothing_slider.min), self.view.smoothing_slider.max)
        self.view.smoothing_text.value = f"平滑化: {smoothing}"

    # --- Recording Handlers ---

    def on_start_click(self, e):
        if self.session.is_recording: return
        try:
            self.capture.start()
        except Exception as ex:
            logging.error(f"マイク開始失敗: {ex}")
            self.page.open(ft.SnackBar(ft.Text(f"マイクのアクセスに失敗しました: {ex}")))
            return

        self.session.start()
        self.driver.start()
        self.view.set_recording(True)
        self.page.update()

    def on_stop_click(self, e):
        self._stop_recording()
        self.view.set_recording(False)
        self.page.update()

    def _stop_recording(self):
        # 先にフラグを落として以降のティックを止めてから、ドライバとストリームを閉じる
        self.session.stop()
        self.driver.stop()
        self.capture.stop()

    # --- Setting Handlers ---

    def on_interval_change(self, e):
        val = float(e.control.value)
        self.view.interval_text.value = f"更新間隔: {val:.0f} ms"
        self.session.update_settings({"update_interval_ms": val})
        self.page.update()

    def on_interval_change_end(self, e):
        self.config_manager.set_update_interval_ms(float(e.control.value))

    def on_smoothing_change(self, e):
        val = int(e.control.value)
        self.view.smoothing_text.value = f"平滑化: {val}"
        self.session.update_settings({"smoothing_window_size": val})
        self.page.update()

    def on_smoothing_change_end(self, e):
        self.config_manager.set_smoothing_window_size(int(e.control.value))

    # --- Pipeline Callbacks (FrameDriver thread) ---

    def _on_frequency(self, freq_hz: float):
        if self.is_closing or not self.view: return
        self.view.show_frequency(freq_hz)
        self.page.update()

    def _on_waveform(self, samples: np.ndarray):
        if self.is_closing or not self.view: return
        self._frame_count += 1
        if self._frame_count % self.WAVEFORM_UPDATE_EVERY != 0: return

        self.view.show_waveform(samples)
        self.view.waveform_canvas.update()

    def cleanup(self):
        self.is_closing = True
        self._stop_recording()
