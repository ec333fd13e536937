import flet as ft
import logging
import sys
from pathlib import Path
from typing import Optional

from utils.logger_manager import LoggerManager
from main_controller import MainController
from main_view import MainView
from pitchengine.settings import ConfigurationError

# --- パス設定 ---
def get_base_dir() -> Path:
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).resolve().parent

BASE_DIR = get_base_dir()
LOG_DIR = BASE_DIR / "log"
CONFIG_FILE_PATH = BASE_DIR / "config.ini"


class PitchScopeApp:
    def __init__(self, page: ft.Page):
        self.page = page
        self.page.title = "🎤 ピッチスコープ"
        self.page.window.width = 450
        self.page.window.height = 620
        self.page.window.resizable = False
        self.page.padding = 20
        self.page.theme_mode = ft.ThemeMode.DARK

        self.controller: Optional[MainController] = None

        try:
            self.controller = MainController(page, CONFIG_FILE_PATH)
        except ConfigurationError as e:
            logging.error(f"設定エラー: {e}")
            self.page.add(ft.Text(f"設定エラー (config.ini): {e}", color="red"))
            return

        view = MainView(self.controller)
        self.page.add(view.build())
        self.controller.set_view(view)
        self.page.update()

    def on_close(self, e):
        logging.info("終了処理...")
        if self.controller:
            self.controller.cleanup()
        self.page.window.destroy()


def main(page: ft.Page):
    app = PitchScopeApp(page)
    page.window.prevent_close = True
    page.window.on_event = lambda e: app.on_close(e) if e.data == "close" else None


def run():
    LoggerManager.setup_logging(LOG_DIR)
    ft.app(target=main)


if __name__ == "__main__":
    run()
