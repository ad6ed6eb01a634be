from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ddaylabeler.config import ConfigError, LabelerConfig


def test_config_defaults(tmp_path):
    config = LabelerConfig.load(tmp_path, environ={})

    assert config.repo is None
    assert config.token is None
    assert config.api_url == "https://api.github.com"
    assert config.state == "open"
    assert config.max_dday == 10
    assert config.timezone is None


def test_config_load_file(tmp_path):
    (tmp_path / "dday-labeler.yml").write_text(
        """
repo: owner/repo
max_dday: 7
timezone: Asia/Seoul
state: all
        """.strip()
    )

    config = LabelerConfig.load(tmp_path, environ={})

    assert config.repo == "owner/repo"
    assert config.max_dday == 7
    assert config.timezone == "Asia/Seoul"
    assert config.state == "all"


def test_config_environment_overrides_file(tmp_path):
    (tmp_path / "dday-labeler.yml").write_text("repo: owner/repo\ntimezone: UTC")
    environ = {
        "GITHUB_TOKEN": "secret",
        "GITHUB_REPOSITORY": "other/repo",
        "GITHUB_API_URL": "https://ghe.example.com/api/v3",
        "DDAY_TIMEZONE": "Europe/Moscow",
    }

    config = LabelerConfig.load(tmp_path, environ=environ)

    assert config.token == "secret"
    assert config.repo == "other/repo"
    assert config.api_url == "https://ghe.example.com/api/v3"
    assert config.timezone == "Europe/Moscow"


def test_config_empty_environment_values_ignored(tmp_path):
    (tmp_path / "dday-labeler.yml").write_text("repo: owner/repo")

    config = LabelerConfig.load(tmp_path, environ={"GITHUB_REPOSITORY": ""})

    assert config.repo == "owner/repo"


def test_config_explicit_path_must_exist(tmp_path):
    with pytest.raises(ConfigError):
        LabelerConfig.load(tmp_path, config_path=tmp_path / "missing.yml", environ={})


def test_config_file_must_be_mapping(tmp_path):
    (tmp_path / "dday-labeler.yml").write_text("- just\n- a list")

    with pytest.raises(ConfigError):
        LabelerConfig.load(tmp_path, environ={})


def test_with_overrides_skips_none():
    config = LabelerConfig(repo="owner/repo", max_dday=10)

    updated = config.with_overrides(repo=None, max_dday=3)

    assert updated.repo == "owner/repo"
    assert updated.max_dday == 3
    assert config.max_dday == 10


def test_validate_requires_repo_and_token():
    with pytest.raises(ConfigError, match="Repository"):
        LabelerConfig(token="secret").validate()
    with pytest.raises(ConfigError, match="token"):
        LabelerConfig(repo="owner/repo").validate()

    LabelerConfig(repo="owner/repo", token="secret").validate()


def test_validate_rejects_bad_values():
    with pytest.raises(ConfigError, match="max_dday"):
        LabelerConfig(repo="owner/repo", token="secret", max_dday="ten").validate()
    with pytest.raises(ConfigError, match="timezone"):
        LabelerConfig(repo="owner/repo", token="secret", timezone="Mars/Olympus").validate()


def test_now_in_configured_timezone():
    config = LabelerConfig(timezone="UTC")

    now = config.now()

    assert now.tzinfo is None
    assert abs((now - datetime.now(timezone.utc).replace(tzinfo=None)).total_seconds()) < 5
