"""Log config

Two sinks: one JSON object per line in a rotating file (for collection) and a
coloured console line. Pipeline runs bind ``record_id`` through
logger.contextualize, stage-specific warnings bind ``event``.
"""

import os
import json
import sys
import traceback
from loguru import logger
from pathlib import Path
from typing import Callable, Optional

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<5}</level> | "
    "<cyan>{extra[caller]}</cyan> | "
    "<magenta>{extra[record_id]}</magenta> "
    "<level>{message}</level>\n"
    "{exception}"
)


def _json_patcher(project_root: str) -> Callable[[dict], None]:
    def patcher(record):
        # 时间格式化（保留毫秒）
        timestamp = record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        abs_path = record["file"].path
        try:
            rel_path = os.path.relpath(abs_path, start=project_root)
        except ValueError:
            rel_path = abs_path
        caller = f"{rel_path}:{record['line']}"

        stacktrace = ""
        exception = record.get("exception")
        if exception:
            stacktrace = "".join(
                traceback.format_exception(exception.type, exception.value, exception.traceback)
            )

        extra = record["extra"]
        extra.setdefault("record_id", "")
        extra["caller"] = caller
        extra["_json_"] = json.dumps(
            {
                "level": record["level"].name,
                "time": timestamp,
                "caller": caller,
                "msg": record["message"],
                "stacktrace": stacktrace,
                "event": extra.get("event", ""),
                "record_id": extra["record_id"],
            },
            ensure_ascii=False,
        )

    return patcher


class LogConfig:
    @staticmethod
    def init_logger(
        project_root: Optional[str] = None,
        log_path: Optional[str] = None,
        level: str = "INFO",
    ):
        """初始化JSON格式日志配置

        Args:
            project_root: 项目根目录路径（用于生成相对路径）
            log_path: JSON日志文件路径，默认读取 LOG_PATH 环境变量
            level: 最低日志级别
        """
        if not project_root:
            project_root = str(Path(__file__).parent.parent.parent)
        if not log_path:
            log_path = os.getenv("LOG_PATH", "logs/app.log")

        # 清除默认配置并添加新配置
        logger.remove()
        logger.configure(patcher=_json_patcher(project_root))

        logger.add(
            sink=log_path,
            format=lambda _: "{extra[_json_]}\n",
            rotation="500 MB",
            retention="7 days",
            compression="zip",
            level=level,
            enqueue=True,  # 线程安全
            backtrace=True,
            diagnose=False,
        )
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )
        logger.info("Logger init...")
