import os
from typing import Dict, Any
from dotenv import load_dotenv

load_dotenv()

DEFAULT_AI_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"
DEFAULT_AI_MODEL = "dashscope/qwen-vl-max"
DEFAULT_REPORT_FIELD = "分析报告"


def _missing_env(config: Dict[str, Any], env_vars: Dict[str, str]) -> None:
    missing_keys = [key for key in env_vars if not config.get(key)]
    if missing_keys:
        missing_vars = [env_vars[key] for key in missing_keys]
        raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")


def load_ffmpeg_config() -> Dict[str, Any]:
    """Loads ffmpeg / video directory configuration.

    Returns:
        ffmpeg configuration dictionary.

    Raises:
        ValueError: When VIDEO_DIR is missing.
    """
    ffmpeg_config = {
        "ffmpeg_path": os.getenv("FFMPEG_PATH", "ffmpeg"),
        "video_dir": os.getenv("VIDEO_DIR"),
    }
    _missing_env(ffmpeg_config, {"video_dir": "VIDEO_DIR"})
    return ffmpeg_config


def load_ai_config() -> Dict[str, Any]:
    """Loads the multimodal model configuration.

    Raises:
        ValueError: When AI_API_KEY is missing.
    """
    ai_config = {
        "api_key": os.getenv("AI_API_KEY"),
        "base_url": os.getenv("AI_BASE_URL", DEFAULT_AI_BASE_URL),
        "model": os.getenv("AI_MODEL", DEFAULT_AI_MODEL),
        "prompt_path": os.getenv("AI_PROMPT_PATH", "prompt/prompt1.txt"),
        "inline_limit_mb": float(os.getenv("AI_INLINE_LIMIT_MB", "20")),
    }
    _missing_env(ai_config, {"api_key": "AI_API_KEY"})
    return ai_config


def load_feishu_config() -> Dict[str, Any]:
    """Loads Feishu bitable configuration.

    Never raises: an incomplete configuration disables result delivery
    instead, see feishu_config_complete.
    """
    return {
        "app_id": os.getenv("FEISHU_APP_ID", ""),
        "app_secret": os.getenv("FEISHU_APP_SECRET", ""),
        "app_token": os.getenv("FEISHU_APP_TOKEN", ""),
        "table_id": os.getenv("FEISHU_TABLE_ID", ""),
        "field_mapping": {
            "report": os.getenv("FEISHU_FIELD_REPORT", DEFAULT_REPORT_FIELD),
            "error": os.getenv("FEISHU_FIELD_ERROR", ""),
        },
    }


def feishu_config_complete(feishu_config: Dict[str, Any]) -> bool:
    return all(
        (feishu_config.get(key) or "").strip()
        for key in ("app_id", "app_secret", "app_token", "table_id")
    )


def load_server_config() -> Dict[str, Any]:
    return {
        "verify_token": os.getenv("FEISHU_VERIFY_TOKEN", ""),
        "max_concurrent": int(os.getenv("MAX_CONCURRENT_ANALYSES", "2")),
    }
