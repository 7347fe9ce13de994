# ruff: noqa: INP001
"""Port selection for `queuewatch serve` and settings defaults."""

from __future__ import annotations

import socket
from pathlib import Path

import pytest

from queuewatch import cli
from queuewatch.core.config import DEFAULT_WORKER_TYPES, Settings


def _bound_socket() -> tuple[socket.socket, int]:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    return sock, sock.getsockname()[1]


def test_find_available_port_returns_start_port_when_free() -> None:
    sock, port = _bound_socket()
    sock.close()

    assert cli.find_available_port("127.0.0.1", port, 1) == port


def test_find_available_port_skips_bound_port() -> None:
    sock, port = _bound_socket()
    try:
        chosen = cli.find_available_port("127.0.0.1", port, 5)
    finally:
        sock.close()

    assert port < chosen < port + 5


def test_find_available_port_gives_up_after_max_attempts() -> None:
    sock, port = _bound_socket()
    try:
        with pytest.raises(cli.NoFreePortError, match="after 1 attempts"):
            cli.find_available_port("127.0.0.1", port, 1)
    finally:
        sock.close()


def test_main_exits_non_zero_when_no_port(monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_port(host: str, start_port: int, max_attempts: int) -> int:
        raise cli.NoFreePortError("Could not find available port after 10 attempts")

    def _unexpected_run(*args: object, **kwargs: object) -> None:
        raise AssertionError("server must not start")

    monkeypatch.setattr(cli, "find_available_port", _no_port)
    monkeypatch.setattr(cli.uvicorn, "run", _unexpected_run)

    assert cli.main(["serve"]) == 1


def test_main_runs_uvicorn_on_found_port(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(cli, "find_available_port", lambda host, start, attempts: start + 2)
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.append({"app": app, **kwargs}))

    assert cli.main(["serve", "--host", "0.0.0.0", "--port", "4000"]) == 0
    assert calls[0]["app"] == "queuewatch.main:app"
    assert calls[0]["port"] == 4002
    assert calls[0]["host"] == "0.0.0.0"
    assert calls[0]["reload"] is False


def test_settings_derive_store_and_scripts_from_project_root(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, project_root=tmp_path, database_url="")

    assert settings.database_url == f"sqlite+aiosqlite:///{tmp_path.resolve() / '.agent-queue.db'}"
    assert settings.agent_scripts_dir == tmp_path.resolve() / "scripts"
    assert settings.worker_types == list(DEFAULT_WORKER_TYPES)


def test_settings_reload_defaults_follow_environment(tmp_path: Path) -> None:
    dev = Settings(_env_file=None, project_root=tmp_path, environment="dev", reload_enabled=None)
    prod = Settings(_env_file=None, project_root=tmp_path, environment="prod", reload_enabled=None)
    forced = Settings(_env_file=None, project_root=tmp_path, environment="prod", reload_enabled=True)

    assert dev.reload_enabled is True
    assert prod.reload_enabled is False
    assert forced.reload_enabled is True


def test_settings_strip_trailing_slash_from_pr_base_url(tmp_path: Path) -> None:
    settings = Settings(
        _env_file=None,
        project_root=tmp_path,
        pr_base_url="https://github.com/acme/widgets/pull/",
    )

    assert settings.pr_base_url == "https://github.com/acme/widgets/pull"
