from .config import (
    feishu_config_complete,
    load_ai_config,
    load_feishu_config,
    load_ffmpeg_config,
    load_server_config,
)

__all__ = [
    "feishu_config_complete",
    "load_ai_config",
    "load_feishu_config",
    "load_ffmpeg_config",
    "load_server_config",
]
