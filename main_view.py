# v6.0
import flet as ft
import flet.canvas as cv
import numpy as np
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from main_controller import MainController


def format_frequency(freq_hz: float) -> str:
    return f"周波数: {freq_hz:.2f} Hz"


def waveform_points(samples: np.ndarray, width: float, height: float,
                    max_points: int = 512) -> List[Tuple[float, float]]:
    """波形を描画用の座標列に間引く。[-1, 1] を [0, height] に写像する。"""
    count = len(samples)
    if count == 0:
        return []
    step = max(1, count // max_points)
    picked = np.asarray(samples[::step], dtype=np.float32)
    xs = np.linspace(0.0, width, num=len(picked), endpoint=False)
    ys = (picked * 0.5 + 0.5) * height
    return list(zip(xs.tolist(), ys.tolist()))


class MainView:
    """
    メイン画面のレイアウトとUIコンポーネントの定義を行うクラス。
    v6.0: 推定周波数の表示と入力波形のキャンバス描画に特化。
    """
    def __init__(self, controller: "MainController"):
        self.c = controller

        self.waveform_width = 400
        self.waveform_height = 160

        self.freq_text = ft.Text(
            value=format_frequency(0.0), size=32, weight="bold",
            color=ft.Colors.CYAN_200, text_align=ft.TextAlign.CENTER
        )

        low, high = self.c.detectable_range()
        self.range_text = ft.Text(
            f"検出範囲: {low:.0f} - {high:.0f} Hz", size=12, color=ft.Colors.GREY_500
        )

        self.waveform_path = cv.Path(
            [],
            paint=ft.Paint(
                stroke_width=2, style=ft.PaintingStyle.STROKE, color=ft.Colors.LIME
            )
        )
        self.waveform_canvas = cv.Canvas(
            [self.waveform_path],
            width=self.waveform_width, height=self.waveform_height
        )

        self.start_button = ft.ElevatedButton(
            text="録音開始", icon=ft.Icons.MIC,
            on_click=self.c.on_start_click, width=150, height=45,
            style=ft.ButtonStyle(shape=ft.RoundedRectangleBorder(radius=10), bgcolor=ft.Colors.BLUE_700, color=ft.Colors.WHITE)
        )
        self.stop_button = ft.ElevatedButton(
            text="停止", icon=ft.Icons.STOP_CIRCLE,
            on_click=self.c.on_stop_click, width=150, height=45, disabled=True,
            style=ft.ButtonStyle(shape=ft.RoundedRectangleBorder(radius=10), bgcolor=ft.Colors.RED_700, color=ft.Colors.WHITE)
        )

        # 設定パネル
        self.interval_text = ft.Text("更新間隔: -- ms", size=12)
        self.interval_slider = ft.Slider(
            min=50, max=1000, divisions=19, label="{value}ms",
            on_change=self.c.on_interval_change, on_change_end=self.c.on_interval_change_end
        )

        self.smoothing_text = ft.Text("平滑化: --", size=12)
        self.smoothing_slider = ft.Slider(
            min=1, max=15, divisions=14, label="{value}",
            on_change=self.c.on_smoothing_change, on_change_end=self.c.on_smoothing_change_end
        )

        self.settings_column = ft.Column(
            [
                ft.Divider(height=20, color=ft.Colors.GREY_700),
                self.interval_text, self.interval_slider,
                ft.Divider(height=10, color=ft.Colors.TRANSPARENT),
                self.smoothing_text, self.smoothing_slider,
                ft.Text("(1 にすると平滑化なし)", size=10, color=ft.Colors.GREY_500)
            ],
            visible=False, horizontal_alignment="center"
        )

    def build(self):
        waveform_panel = ft.Container(
            content=self.waveform_canvas,
            width=self.waveform_width, height=self.waveform_height,
            bgcolor=ft.Colors.BLACK,
            border=ft.border.all(1, ft.Colors.GREY_800),
            border_radius=5
        )

        top_panel = ft.Container(
            content=ft.Column([
                ft.Row([
                    ft.Text("ピッチ解析", size=14, color=ft.Colors.GREY_400),
                    ft.IconButton(ft.Icons.SETTINGS, on_click=self.toggle_settings_visibility)
                ], alignment="spaceBetween"),
                ft.Container(content=self.freq_text, height=80, alignment=ft.alignment.center),
                self.range_text,
                self.settings_column
            ], horizontal_alignment="center"),
            padding=20, bgcolor=ft.Colors.GREY_900, border_radius=15
        )

        return ft.Column([
            top_panel,
            ft.Divider(height=20),
            ft.Text("波形", weight="bold"),
            waveform_panel,
            ft.Row([self.start_button, self.stop_button], alignment="center"),
        ], expand=True, horizontal_alignment="center")

    def show_frequency(self, freq_hz: float):
        self.freq_text.value = format_frequency(freq_hz)
        self.freq_text.color = ft.Colors.CYAN_200 if freq_hz > 0 else ft.Colors.GREY_500

    def show_waveform(self, samples: np.ndarray):
        points = waveform_points(samples, self.waveform_width, self.waveform_height)
        if not points:
            self.waveform_path.elements = []
            return
        (x0, y0), rest = points[0], points[1:]
        self.waveform_path.elements = [cv.Path.MoveTo(x0, y0)] + [
            cv.Path.LineTo(x, y) for x, y in rest
        ]

    def set_recording(self, recording: bool):
        self.start_button.disabled = recording
        self.stop_button.disabled = not recording

    def toggle_settings_visibility(self, e):
        self.settings_column.visible = not self.settings_column.visible
        self.page.update()

    @property
    def page(self):
        return self.c.page
