"""Утилиты для настройки логирования приложения."""
from __future__ import annotations

import logging
import os
from pathlib import Path

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Настроить логирование в файл и консоль.

    Уровень и путь берутся из ``DOCCHAT_LOG_LEVEL`` и ``DOCCHAT_LOG_FILE``,
    если не переданы явно. Повторный вызов ничего не делает.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    level_name = (level or os.getenv("DOCCHAT_LOG_LEVEL", "INFO")).upper()
    resolved_level = getattr(logging, level_name, logging.INFO)
    log_path = Path(log_file or os.getenv("DOCCHAT_LOG_FILE", "docchat.log"))
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(_FORMAT)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger.setLevel(resolved_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)
    # urllib3 логирует каждый запрос к Gemini на уровне DEBUG
    logging.getLogger("urllib3").setLevel(max(resolved_level, logging.INFO))


__all__ = ["setup_logging"]
