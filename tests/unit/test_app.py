"""Unit tests for process bootstrap."""

import os
from unittest.mock import AsyncMock, patch

import pytest
from telegram.error import InvalidToken

from arkwatch.app import ArkWatchService, StartupError, main
from arkwatch.config.manager import load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("ARKWATCH_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config_file(tmp_path):
    def _write(db_path) -> str:
        path = tmp_path / "config.toml"
        path.write_text(
            f'[database]\npath = "{db_path}"\n\n'
            '[[servers]]\nname = "Island"\nhost = "127.0.0.1"\nport = 27015\n'
        )
        return str(path)
    return _write


def test_main_missing_token_exits_2(config_file, tmp_path):
    argv = ["--config", config_file(tmp_path / "a.db"), "--env-file", str(tmp_path / "none.env")]
    assert main(argv) == 2


def test_main_missing_config_file_exits_2(tmp_path, monkeypatch):
    monkeypatch.setenv("ARKWATCH_TELEGRAM_BOT_TOKEN", "123:abc")

    argv = ["--config", str(tmp_path / "missing.toml"), "--env-file", str(tmp_path / "none.env")]
    assert main(argv) == 2


def test_main_invalid_config_exits_2(tmp_path, monkeypatch):
    monkeypatch.setenv("ARKWATCH_TELEGRAM_BOT_TOKEN", "123:abc")
    bad = tmp_path / "bad.toml"
    bad.write_text("[poll]\ninterval_ms = 1\n")

    assert main(["--config", str(bad), "--env-file", str(tmp_path / "none.env")]) == 2


@pytest.mark.asyncio
async def test_unreadable_store_raises_startup_error(config_file, tmp_path, monkeypatch):
    monkeypatch.setenv("ARKWATCH_TELEGRAM_BOT_TOKEN", "123:abc")
    db_dir = tmp_path / "db-is-a-directory"
    db_dir.mkdir()
    config = load_config(config_file(db_dir), tmp_path / "none.env")

    service = ArkWatchService(config)
    with pytest.raises(StartupError, match="Cannot load subscriber store"):
        await service.start()
    await service.stop()


def test_rate_limit_task_only_when_enabled(config_file, tmp_path, monkeypatch):
    monkeypatch.setenv("ARKWATCH_TELEGRAM_BOT_TOKEN", "123:abc")
    config = load_config(config_file(tmp_path / "a.db"), tmp_path / "none.env")
    assert ArkWatchService(config).rate_limit_task is None

    monkeypatch.setenv("ARKWATCH_RATE_LIMIT_ENABLED", "true")
    config = load_config(config_file(tmp_path / "a.db"), tmp_path / "none.env")
    service = ArkWatchService(config)
    assert service.rate_limit_task is not None
    assert service.rate_limit_task.interval_seconds == 60
    assert service.poller.task.interval_seconds == 60.0


@pytest.mark.asyncio
async def test_rejected_token_raises_startup_error(config_file, tmp_path, monkeypatch):
    monkeypatch.setenv("ARKWATCH_TELEGRAM_BOT_TOKEN", "123:abc")
    config = load_config(config_file(tmp_path / "a.db"), tmp_path / "none.env")
    service = ArkWatchService(config)

    with patch.object(service.telegram, "start", AsyncMock(side_effect=InvalidToken())):
        with pytest.raises(StartupError, match="Cannot start Telegram gateway"):
            await service.start()
    await service.stop()

    assert not service.poller.task.running


def test_main_rejected_token_exits_1(config_file, tmp_path, monkeypatch):
    monkeypatch.setenv("ARKWATCH_TELEGRAM_BOT_TOKEN", "123:abc")
    argv = ["--config", config_file(tmp_path / "a.db"), "--env-file", str(tmp_path / "none.env")]

    with patch("arkwatch.app.TelegramClient.start", AsyncMock(side_effect=InvalidToken())):
        assert main(argv) == 1
