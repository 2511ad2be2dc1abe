from __future__ import annotations

import logging
import logging.config
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from fogview.app.app_settings_manager import AppSettingsManager, RunMode
from fogview.utils.log_util import level_from_name

LOG_DIR_ENV = "FOGVIEW_LOG_DIR"
LOG_LEVEL_ENV = "FOGVIEW_LOG_LEVEL"
LOG_BACKUP_COUNT_ENV = "FOGVIEW_LOG_BACKUP_COUNT"

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(process)d %(threadName)s %(name)s %(message)s"
CONSOLE_FORMAT = "%(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_LOG_BYTES = 5 * 1024 * 1024


def _install_dir() -> Path:
    """
    Directory the application runs from.

    Frozen builds: the directory of the executable.
    Source checkout: the project root (fogview/app/logging_setup.py -> parents[2]).
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


def _is_writable_dir(d: Path) -> bool:
    try:
        d.mkdir(parents=True, exist_ok=True)
        marker = d / ".write_test"
        marker.write_text("ok", encoding="utf-8")
        marker.unlink(missing_ok=True)
    except OSError:
        return False
    return True


def default_log_dir(app_name: str) -> Path:
    """
    最初に書き込めたディレクトリをログ出力先にする
    1. $FOGVIEW_LOG_DIR
    2. <install dir>/logs
    3. ~/.<app_name>/logs
    4. ./logs
    """
    candidates = [
        _install_dir() / "logs",
        Path.home() / f".{app_name.lower()}" / "logs",
    ]
    env_dir = os.getenv(LOG_DIR_ENV)
    if env_dir:
        candidates.insert(0, Path(env_dir))

    for d in candidates:
        if _is_writable_dir(d):
            return d
    fallback = Path.cwd() / "logs"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def build_config(
        app_name: str,
        root_level: int | str | None = None,
        console_level: int | str | None = None,
        log_dir: Path | None = None,
) -> dict:
    """
    dictConfig 用の設定を組み立てる。

    The rotating file handler runs behind the queue listener and is not part of
    the dict; its parameters travel under ``_file_settings``, which must be
    popped before calling dictConfig.
    """
    root_level = level_from_name(root_level or os.getenv(LOG_LEVEL_ENV, "INFO"))
    console_level = level_from_name(console_level, default=logging.INFO)
    log_dir = log_dir or default_log_dir(app_name)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT},
        },
        "handlers": {
            # ファイル出力はキュー経由
            "queue": {"class": "logging.handlers.QueueHandler", "queue": queue.Queue(-1)},
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": console_level,
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": root_level, "handlers": ["queue", "console"]},
        "_file_settings": {
            "filename": str(log_dir / f"{app_name}.log"),
            "maxBytes": MAX_LOG_BYTES,
            "backupCount": int(os.getenv(LOG_BACKUP_COUNT_ENV, 5)),
            "encoding": "utf-8",
        },
    }


class LogSystem:
    """
    Root logging with a console handler and a queued rotating log file.

    Usable as a context manager; ``stop()`` flushes the queue and closes the file.
    """

    def __init__(self, app_name: str, level: int | str | None = None,
                 console_level: int | str | None = None, log_dir: Path | None = None):
        cfg = build_config(app_name, level, console_level, log_dir)
        file_settings = cfg.pop("_file_settings")
        logging.config.dictConfig(cfg)

        root_handlers = logging.getLogger().handlers
        queue_handler = next((h for h in root_handlers if isinstance(h, QueueHandler)), None)
        if queue_handler is None:
            raise RuntimeError("QueueHandler not found.")
        self._console_handler: logging.Handler | None = next(
            (h for h in root_handlers if type(h) is logging.StreamHandler), None)

        self.log_file = Path(file_settings["filename"])
        self._file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=file_settings["maxBytes"],
            backupCount=file_settings["backupCount"],
            encoding=file_settings["encoding"],
        )
        self._file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

        self.listener = QueueListener(queue_handler.queue, self._file_handler, respect_handler_level=True)
        self.listener.start()
        self._stopped = False

    @classmethod
    def from_levels(cls, app_name: str, *, root_level: int, console_level: int,
                    log_dir: Path | None = None) -> LogSystem:
        return cls(app_name, level=root_level, console_level=console_level, log_dir=log_dir)

    def apply_levels(self, root_level: int, console_level: int | None = None, file_level: int | None = None) -> None:
        """起動後にログレベルを更新する"""
        logging.getLogger().setLevel(root_level)
        if console_level is not None and self._console_handler is not None:
            self._console_handler.setLevel(console_level)
        if file_level is not None:
            self._file_handler.setLevel(file_level)

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self.listener.stop()
        self._file_handler.close()

    def __enter__(self) -> LogSystem:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            logging.getLogger(__name__).critical("Unhandled error", exc_info=(exc_type, exc, tb))
        self.stop()


# run mode -> (root, console, file)
_POLICY_LEVELS = {
    RunMode.DEVELOPMENT: (logging.DEBUG, logging.DEBUG, logging.DEBUG),
    RunMode.VERBOSE: (logging.DEBUG, logging.DEBUG, logging.DEBUG),
}


def apply_logging_policy(logs: LogSystem, settings: AppSettingsManager) -> None:
    """実行モードに応じて、ログの出力レベルを切り替える"""
    mode = getattr(settings, "run_mode", None) or RunMode.PRODUCTION
    levels = _POLICY_LEVELS.get(mode)
    if levels is None:
        levels = (level_from_name(getattr(settings, "logging_level", "INFO")), logging.INFO, logging.DEBUG)
    root, console, file = levels
    logs.apply_levels(root_level=root, console_level=console, file_level=file)
