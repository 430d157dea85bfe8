from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from app import main as app_main


def test_main_renders_inline(monkeypatch, tmp_path) -> None:
    called = {}

    def fake_streamlit_app(*, default_settings=None, default_cache_ttl=None):
        called["default_settings"] = default_settings
        called["default_cache_ttl"] = default_cache_ttl

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RWATCH_API_BASE_URL", raising=False)
    monkeypatch.setenv("STREAMLIT_SERVER_PORT", "1")
    # Patch the imported symbol used inside app.main (not the package attribute)
    monkeypatch.setattr(app_main, "streamlit_app", fake_streamlit_app, raising=True)

    app_main.main(["--base-url", "https://api.test/avs", "--max-concurrency", "4", "--cache-ttl", "30"])

    settings = called["default_settings"]
    assert settings.base_url == "https://api.test/avs"
    assert settings.max_concurrency == 4
    assert settings.cache_ttl == 30
    assert called["default_cache_ttl"] is None


def test_main_execs_streamlit(monkeypatch, tmp_path) -> None:
    # Ensure not in Streamlit context
    monkeypatch.delenv("STREAMLIT_SERVER_PORT", raising=False)

    captured = {}

    def fake_execv(exe: str, cmd: list[str]) -> None:
        captured["exe"] = exe
        captured["cmd"] = cmd
        # Prevent process handoff
        raise SystemExit

    monkeypatch.setattr(os, "execv", fake_execv, raising=True)

    cfg = str(tmp_path / "rwatch.toml")
    with pytest.raises(SystemExit):
        app_main.main(["--base-url", "https://api.test/avs", "--cache-ttl", "3", "--config", cfg])

    assert captured["cmd"][0] == captured["exe"]
    # Assert we launch `python -m streamlit run <path>`
    assert captured["cmd"][1:4] == ["-m", "streamlit", "run"]
    # The script path should be the path to app.main
    expected_main_path = str(Path(app_main.__file__).resolve())
    assert captured["cmd"][4] == expected_main_path
    # Passthrough args present after `--`
    assert "--" in captured["cmd"]
    dashdash_idx = captured["cmd"].index("--")
    passthrough = captured["cmd"][dashdash_idx + 1 :]
    assert passthrough == ["--base-url", "https://api.test/avs", "--cache-ttl", "3", "--config", cfg]


def test_settings_from_args_reads_explicit_config(tmp_path) -> None:
    cfg = tmp_path / "custom.toml"
    cfg.write_text('[api]\nbase_url = "https://toml.test/avs"\npage_size = 5\n')
    ns = app_main._build_parser().parse_args(["--config", str(cfg), "--max-concurrency", "2"])

    s = app_main.settings_from_args(ns)

    assert s.base_url == "https://toml.test/avs"
    assert s.page_size == 5
    assert s.max_concurrency == 2


def test_configure_logging_reads_env_level(monkeypatch) -> None:
    monkeypatch.setenv(app_main.LOG_LEVEL_ENV, "debug")
    assert app_main.configure_logging() == logging.DEBUG
    assert app_main.configure_logging("bogus") == logging.INFO
