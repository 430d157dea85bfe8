from __future__ import annotations

from pathlib import Path

import pytest

from rwatch.io.config import DEFAULT_BASE_URL, ApiSettings
from rwatch.io.errors import ApiConfigError

_ENV_KEYS = [
    "RWATCH_API_BASE_URL",
    "RWATCH_API_DATE_START",
    "RWATCH_API_DATE_END",
    "RWATCH_API_TIMEOUT",
    "RWATCH_API_MAX_CONCURRENCY",
    "RWATCH_API_TOP_N",
    "RWATCH_API_PAGE_SIZE",
    "RWATCH_API_CACHE_TTL",
    "RWATCH_API_STRATEGY_URL",
]


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_rwatch_toml(tmp: Path, content: str) -> Path:
    p = tmp / "rwatch.toml"
    p.write_text(content)
    return p


def test_api_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_rwatch_toml(
        tmp_path,
        """
        [api]
        base_url = "https://toml.invalid/avs"
        max_concurrency = 2
        timeout = 5
        """.strip(),
    )
    # Ensure cwd for ApiSettings.from_toml() search
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("RWATCH_API_BASE_URL", "https://env.invalid/avs")
    monkeypatch.setenv("RWATCH_API_MAX_CONCURRENCY", "8")

    # Act
    s = ApiSettings.load()

    # Assert precedence: env > TOML
    assert s.base_url == "https://env.invalid/avs"
    assert s.max_concurrency == 8  # env override
    assert s.timeout == 5.0  # TOML value kept


def test_api_settings_from_toml_when_no_env(tmp_path: Path, monkeypatch) -> None:
    _write_rwatch_toml(
        tmp_path,
        """
        [api]
        base_url = "https://toml.invalid/avs"
        date_start = "2024-01-01"
        date_end = 2024-12-31
        page_size = 50
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = ApiSettings.load()

    assert s.base_url == "https://toml.invalid/avs"
    assert s.date_start == "2024-01-01"
    # TOML date literals are accepted too
    assert s.date_end == "2024-12-31"
    assert s.page_size == 50


def test_api_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [tool.rwatch.api]
        top_n = 3
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert ApiSettings.load().top_n == 3


@pytest.mark.parametrize(
    "content",
    [
        "[tool]\nrwatch = \"x\"",
        "tool = 3",
        "[tool.rwatch]\napi = \"x\"",
    ],
)
def test_pyproject_with_non_table_sections_yields_defaults(
    tmp_path: Path, monkeypatch, content: str
) -> None:
    (tmp_path / "pyproject.toml").write_text(content)
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert ApiSettings.load() == ApiSettings()


def test_api_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    # No TOML, no env
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = ApiSettings.load()

    assert s.base_url == DEFAULT_BASE_URL
    assert (s.date_start, s.date_end) == ("2020-01-01", "2099-12-31")
    assert s.timeout is None
    assert s.max_concurrency == 1
    assert s.top_n == 10
    assert s.page_size == 20


def test_invalid_values_are_ignored(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("RWATCH_API_MAX_CONCURRENCY", "many")
    monkeypatch.setenv("RWATCH_API_DATE_START", "01/02/2024")
    monkeypatch.setenv("RWATCH_API_TIMEOUT", "none")

    s = ApiSettings.load()

    assert s.max_concurrency == 1
    assert s.date_start == "2020-01-01"
    assert s.timeout is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": "  "},
        {"max_concurrency": 0},
        {"date_start": "2025-01-02", "date_end": "2025-01-01"},
        {"page_size": 0},
    ],
)
def test_validate_rejects_unusable_settings(kwargs: dict) -> None:
    with pytest.raises(ApiConfigError):
        ApiSettings(**kwargs).validate()


def test_validate_returns_self() -> None:
    s = ApiSettings(max_concurrency=4)
    assert s.validate() is s
