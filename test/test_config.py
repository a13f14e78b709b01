import pytest

from video_analyzer.config import (
    feishu_config_complete,
    load_ai_config,
    load_feishu_config,
    load_ffmpeg_config,
    load_server_config,
)
from video_analyzer.config.config import DEFAULT_AI_MODEL, DEFAULT_REPORT_FIELD


def test_ffmpeg_config_requires_video_dir():
    with pytest.raises(ValueError, match="VIDEO_DIR"):
        load_ffmpeg_config()


def test_ffmpeg_config_defaults(monkeypatch):
    monkeypatch.setenv("VIDEO_DIR", "/data/videos")

    assert load_ffmpeg_config() == {"ffmpeg_path": "ffmpeg", "video_dir": "/data/videos"}


def test_ai_config(monkeypatch):
    with pytest.raises(ValueError, match="AI_API_KEY"):
        load_ai_config()

    monkeypatch.setenv("AI_API_KEY", "sk-test")
    monkeypatch.setenv("AI_INLINE_LIMIT_MB", "5")
    config = load_ai_config()

    assert config["model"] == DEFAULT_AI_MODEL
    assert config["prompt_path"] == "prompt/prompt1.txt"
    assert config["inline_limit_mb"] == 5.0


def test_feishu_config_never_raises():
    config = load_feishu_config()

    assert config["field_mapping"] == {"report": DEFAULT_REPORT_FIELD, "error": ""}
    assert feishu_config_complete(config) is False


def test_feishu_config_complete(monkeypatch):
    for key, value in {
        "FEISHU_APP_ID": "cli_a",
        "FEISHU_APP_SECRET": "secret",
        "FEISHU_APP_TOKEN": "bascn",
        "FEISHU_TABLE_ID": "tbl",
        "FEISHU_FIELD_ERROR": "错误信息",
    }.items():
        monkeypatch.setenv(key, value)

    config = load_feishu_config()

    assert feishu_config_complete(config) is True
    assert config["field_mapping"]["error"] == "错误信息"
    assert feishu_config_complete(dict(config, app_secret="  ")) is False


def test_server_config(monkeypatch):
    assert load_server_config() == {"verify_token": "", "max_concurrent": 2}

    monkeypatch.setenv("MAX_CONCURRENT_ANALYSES", "4")
    monkeypatch.setenv("FEISHU_VERIFY_TOKEN", "abc")

    assert load_server_config() == {"verify_token": "abc", "max_concurrent": 4}
