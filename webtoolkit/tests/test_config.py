from __future__ import annotations

import logging

from webtoolkit.api.tools import Tools
from webtoolkit.core.config import DEFAULT_MAX_JSON_BYTES, DEFAULT_MAX_UPLOAD_BYTES, ToolkitConfig

_ENV = (
    "WEBTOOLKIT_MAX_UPLOAD_BYTES",
    "WEBTOOLKIT_ALLOWED_FILE_TYPES",
    "WEBTOOLKIT_MAX_JSON_BYTES",
    "WEBTOOLKIT_ALLOW_UNKNOWN_FIELDS",
    "WEBTOOLKIT_LOG_LEVEL",
)


def test_config_defaults():
    cfg = ToolkitConfig()
    assert cfg.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 1024 * 1024 * 1024
    assert cfg.max_json_bytes == DEFAULT_MAX_JSON_BYTES == 1024 * 1024
    assert cfg.allowed_file_types == frozenset()
    assert cfg.allow_unknown_fields is False


def test_config_non_positive_sizes_fall_back_to_defaults():
    cfg = ToolkitConfig(max_upload_bytes=0, max_json_bytes=-5, allowed_file_types=["image/png"])
    assert cfg.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert cfg.max_json_bytes == DEFAULT_MAX_JSON_BYTES
    assert cfg.allowed_file_types == frozenset({"image/png"})


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("WEBTOOLKIT_MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("WEBTOOLKIT_ALLOWED_FILE_TYPES", "image/png, image/jpeg,,")
    monkeypatch.setenv("WEBTOOLKIT_MAX_JSON_BYTES", "not-a-number")
    monkeypatch.setenv("WEBTOOLKIT_ALLOW_UNKNOWN_FIELDS", "1")

    cfg = ToolkitConfig.from_env()
    assert cfg.max_upload_bytes == 2048
    assert cfg.allowed_file_types == frozenset({"image/png", "image/jpeg"})
    assert cfg.max_json_bytes == DEFAULT_MAX_JSON_BYTES
    assert cfg.allow_unknown_fields is True


def test_tools_from_env_applies_config_and_log_level(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WEBTOOLKIT_MAX_JSON_BYTES", "16")
    monkeypatch.setenv("WEBTOOLKIT_LOG_LEVEL", "debug")

    logger = logging.getLogger("webtoolkit")
    old_level = logger.level
    try:
        tools = Tools.from_env()
        assert logger.level == logging.DEBUG
    finally:
        logger.setLevel(old_level)

    assert tools.config.max_json_bytes == 16
    assert tools.config.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert tools.config.allow_unknown_fields is False


def test_tools_from_env_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("WEBTOOLKIT_LOG_LEVEL", "chatty")

    logger = logging.getLogger("webtoolkit")
    old_level = logger.level
    try:
        Tools.from_env()
        assert logger.level == logging.INFO
    finally:
        logger.setLevel(old_level)
