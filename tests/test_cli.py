"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from mail_notifier import cli
from mail_notifier.core.config import REQUIRED_ENV_VARS, load_app_settings
from mail_notifier.core.interfaces import MailboxError
from mail_notifier.core.models import ErrorKind


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Strip real credentials from the environment and reset cached settings."""

    for name in REQUIRED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    load_app_settings.cache_clear()


def write_env(tmp_path: Path, **values: str) -> Path:
    env_file = tmp_path / "notifier.env"
    env_file.write_text(
        "".join(f"{key}={value}\n" for key, value in values.items()),
        encoding="utf-8",
    )
    return env_file


def test_run_without_configuration_exits_non_zero(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = write_env(tmp_path, GMAIL_EMAIL="me@gmail.com")

    status = cli.main(["--env-file", str(env_file), "run"])

    assert status == 1
    assert "DISCORD_TOKEN=your_discord_bot_token" in capsys.readouterr().err


def test_invalid_user_id_exits_non_zero(tmp_path: Path) -> None:
    env_file = write_env(tmp_path, DISCORD_USER_ID="abc")

    assert cli.main(["--env-file", str(env_file)]) == 1


def test_info_reports_missing_values(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = write_env(tmp_path, GMAIL_EMAIL="me@gmail.com")

    status = cli.main(["--env-file", str(env_file), "info"])

    output = capsys.readouterr().out
    assert status == 0
    assert "imap.gmail.com:993" in output
    assert "Gmail account: me@gmail.com" in output
    assert "Missing: DISCORD_TOKEN, DISCORD_USER_ID, GMAIL_APP_PASSWORD" in output


def test_bootstrap_failure_exits_non_zero(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = write_env(
        tmp_path,
        DISCORD_TOKEN="token",
        DISCORD_USER_ID="42",
        GMAIL_EMAIL="me@gmail.com",
        GMAIL_APP_PASSWORD="secret",
    )

    def refuse(self: cli.ImapClient) -> None:
        raise MailboxError("IMAP login failed", ErrorKind.CONNECTION)

    monkeypatch.setattr(cli.ImapClient, "connect", refuse)

    assert cli.main(["--env-file", str(env_file), "run"]) == 1
