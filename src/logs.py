"""
Process-wide logging for the CLI and the analysis engine:
- Rich console for humans (default).
- Optional rotating file logs.
- Optional JSON logs.
- QueueHandler/QueueListener, so session worker threads never block on sinks.

Usage:
    from logs import init_logging, get_logger

    init_logging(level="INFO", to_file=True, json=False)
    log = get_logger("pclean.engine")
    log.info("snapshot emitted")

Env vars:
    PCLEAN_LOG_LEVEL   = DEBUG|INFO|WARNING|ERROR (default INFO)
    PCLEAN_LOG_JSON    = 0|1  (default 0)
    PCLEAN_LOG_TO_FILE = 0|1  (default 0)
    PCLEAN_LOG_FILE    = path to log file (default .pclean/logs/app.log)
"""

from __future__ import annotations

import atexit
import json
import logging
import os
import queue
import sys
from dataclasses import dataclass
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

APP_LOGGER = "pclean"
DEFAULT_LOG_FILE = Path(".pclean/logs/app.log")


@dataclass
class LogConfig:
    level: str = "INFO"
    json: bool = False
    to_file: bool = False
    file_path: Path = DEFAULT_LOG_FILE
    max_bytes: int = 5 * 1024 * 1024  # 5 MB per file
    backup_count: int = 3

    @classmethod
    def resolve(
        cls,
        level: Optional[str],
        json_: Optional[bool],
        to_file: Optional[bool],
        file_path: Optional[Path],
    ) -> "LogConfig":
        """Explicit arguments win; otherwise fall back to PCLEAN_* env vars."""
        return cls(
            level=(level or os.getenv("PCLEAN_LOG_LEVEL") or "INFO").upper(),
            json=json_ if json_ is not None else os.getenv("PCLEAN_LOG_JSON") == "1",
            to_file=(
                to_file
                if to_file is not None
                else os.getenv("PCLEAN_LOG_TO_FILE") == "1"
            ),
            file_path=Path(os.getenv("PCLEAN_LOG_FILE") or file_path or DEFAULT_LOG_FILE),
        )


_CONSOLE = Console(stderr=True, highlight=False, soft_wrap=True)
_QUEUE: Optional["queue.Queue[logging.LogRecord]"] = None
_LISTENER: Optional[QueueListener] = None
_INITIALIZED = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line, stable keys."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "level": record.levelname,
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "logger": record.name,
            "msg": record.getMessage(),
            "thread": record.threadName,
            "file": record.filename,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _build_sinks(cfg: LogConfig) -> List[logging.Handler]:
    sinks: List[logging.Handler] = []

    if cfg.json:
        console: logging.Handler = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(JsonFormatter())
    else:
        console = RichHandler(
            console=_CONSOLE, show_time=True, show_path=False, markup=True
        )
        console.setFormatter(logging.Formatter("%(message)s"))
    sinks.append(console)

    if cfg.to_file:
        try:
            cfg.file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                cfg.file_path,
                maxBytes=cfg.max_bytes,
                backupCount=cfg.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            # File logging is optional; report it on the console and go on.
            _CONSOLE.print(f"log file unavailable ({cfg.file_path}): {exc}")
        else:
            file_handler.setFormatter(
                JsonFormatter()
                if cfg.json
                else logging.Formatter(
                    "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"
                )
            )
            sinks.append(file_handler)

    return sinks


def init_logging(
    level: Optional[str] = None,
    *,
    json: Optional[bool] = None,
    to_file: Optional[bool] = None,
    file_path: Optional[Path] = None,
) -> None:
    """
    Initialize process-wide logging. Safe to call multiple times (idempotent).

    - Installs a QueueHandler on the root logger.
    - Starts a QueueListener feeding the console/file sinks.
    - Honors env vars when arguments are not provided.
    """
    global _INITIALIZED, _QUEUE, _LISTENER

    if _INITIALIZED:
        return

    cfg = LogConfig.resolve(level, json, to_file, file_path)

    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.level, logging.INFO))

    if not any(isinstance(h, QueueHandler) for h in root.handlers):
        _QUEUE = queue.Queue(-1)
        root.addHandler(QueueHandler(_QUEUE))

    if _QUEUE is not None:
        _LISTENER = QueueListener(
            _QUEUE, *_build_sinks(cfg), respect_handler_level=True
        )
        _LISTENER.start()
        atexit.register(_stop_listener)

    logging.getLogger("PIL").setLevel(logging.WARNING)

    _INITIALIZED = True


def _stop_listener() -> None:
    global _LISTENER
    if _LISTENER is not None:
        _LISTENER.stop()
        _LISTENER = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Namespaced logger under `pclean`. Cheap; configure sinks once with
    `init_logging()` at the program entrypoint.
    """
    return logging.getLogger(name or APP_LOGGER)
