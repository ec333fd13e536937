# v3.2
#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

class LoggerManager:
    """ルートロガーをファイルとコンソールの2系統に向ける。"""

    @staticmethod
    def setup_logging(log_dir: Path, log_file: str = "app.log", level: int = logging.INFO) -> Path:
        """
        log_dir/log_file へ書き出すよう root を組み直し、ログファイルのパスを返す。
        ファイルは 1MB で切り替えて 3 本まで残す。
        DEBUG では推定1回ごとの所要時間と相関上位ラグが出る。
        """
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / log_file

        formatter = logging.Formatter(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=1024 * 1024, # 1MB
            backupCount=3,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        # 二重出力にならないよう前回のハンドラは閉じて外す
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

        # flet の描画ログは WARNING 以上だけ
        for name in ("flet", "flet_core", "flet_desktop", "asyncio"):
            logging.getLogger(name).setLevel(logging.WARNING)

        logging.info("--- Logging System Initialized (v3.2) ---")
        logging.info(f"Log file: {log_path}")
        return log_path
