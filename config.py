# config.py – 環境変数で上書きできる既定値 + ロガー設定
from __future__ import annotations
import logging
import os
from typing import Optional

# ======= 出現位置 (SRS 準拠: 中心 x=4, 盤面の上に余白を取る) =======
SPAWN_X         = int(os.getenv("PC_SPAWN_X", "4"))
SPAWN_MARGIN    = int(os.getenv("PC_SPAWN_MARGIN", "2"))

# ======= 盤面 =======
HEIGHT          = int(os.getenv("PC_HEIGHT", "4"))        # binder の既定ライン数
MAX_HEIGHT      = int(os.getenv("PC_MAX_HEIGHT", "20"))

# ======= 操作ルール =======
MOVE_TYPE       = os.getenv("PC_MOVE_TYPE", "softdrop")   # softdrop | harddrop
ALLOWS_HOLD     = int(os.getenv("PC_ALLOWS_HOLD", "1")) != 0

# ======= 実行 =======
WORKERS         = int(os.getenv("PC_WORKERS", "1"))
MOVE_CACHE_SIZE = int(os.getenv("PC_MOVE_CACHE_SIZE", "200000"))

# ======= ログ =======
LOGGER_NAME     = "pcfinder"
LOG_LEVEL       = os.getenv("PC_LOG_LEVEL", "WARNING")
LOG_FILE        = os.getenv("PC_LOG_FILE", "")


class CFG:
    SPAWN_X         = SPAWN_X
    SPAWN_MARGIN    = SPAWN_MARGIN

    HEIGHT          = HEIGHT
    MAX_HEIGHT      = MAX_HEIGHT

    MOVE_TYPE       = MOVE_TYPE
    ALLOWS_HOLD     = ALLOWS_HOLD

    WORKERS         = WORKERS
    MOVE_CACHE_SIZE = MOVE_CACHE_SIZE

    LOGGER_NAME     = LOGGER_NAME
    LOG_LEVEL       = LOG_LEVEL
    LOG_FILE        = LOG_FILE


def get_logger(name: str) -> logging.Logger:
    """モジュール用の子ロガー (pcfinder.<name>)"""
    return logging.getLogger(f"{CFG.LOGGER_NAME}.{name}")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    pcfinder ロガーにハンドラを 1 つだけ付ける。2 回目以降は何もしない。
    log_file が空ならstderr へ出す。
    """
    logger = logging.getLogger(CFG.LOGGER_NAME)
    if logger.handlers:
        return logger
    path = log_file if log_file is not None else CFG.LOG_FILE
    handler: logging.Handler
    if path:
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    logger.setLevel((level or CFG.LOG_LEVEL).upper())
    logger.propagate = False
    return logger


__all__ = ["CFG", "get_logger", "setup_logging"]
