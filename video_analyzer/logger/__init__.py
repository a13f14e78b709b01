from loguru import logger

from .logging import LogConfig

__all__ = ["logger", "LogConfig"]
