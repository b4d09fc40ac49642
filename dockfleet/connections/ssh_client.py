"""Обёртка над paramiko: открытие сессии, выполнение команды, закрытие."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, List, Tuple

import paramiko

from dockfleet.connections.models import SSHCredentials
from dockfleet.exceptions import SSHConnectionError

LOGGER = logging.getLogger(__name__)

_READ_CHUNK = 32768
_POLL_INTERVAL_SEC = 0.05


@dataclass(slots=True, frozen=True)
class SSHOptions:
    """Таймауты и политика аутентификации для новых сессий."""

    connect_timeout_sec: float = 10
    auth_timeout_sec: float = 10
    allow_agent: bool = False
    look_for_keys: bool = False


class SSHSession:
    """Одна аутентифицированная SSH-сессия с удалённым хостом.

    Все методы блокирующие; асинхронный код вызывает их через
    ``asyncio.to_thread``.
    """

    def __init__(
        self,
        credentials: SSHCredentials,
        options: SSHOptions | None = None,
        raw_client: Any | None = None,
    ) -> None:
        self.credentials = credentials
        self.options = options or SSHOptions()
        self._client = raw_client or self._create_client()

    def _create_client(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self.credentials.host,
                port=self.credentials.port,
                username=self.credentials.username,
                password=self.credentials.password,
                key_filename=self.credentials.key_path,
                timeout=self.options.connect_timeout_sec,
                auth_timeout=self.options.auth_timeout_sec,
                banner_timeout=self.options.connect_timeout_sec,
                allow_agent=self.options.allow_agent,
                look_for_keys=self.options.look_for_keys,
            )
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise SSHConnectionError(
                self.credentials.host, self.credentials.username, str(exc) or type(exc).__name__
            ) from exc
        LOGGER.info(
            "SSH session opened: %s@%s:%s",
            self.credentials.username,
            self.credentials.host,
            self.credentials.port,
        )
        return client

    def is_active(self) -> bool:
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def exec_command(self, command: str) -> Tuple[int, str, str]:
        """Выполняет команду и возвращает (exit status, stdout, stderr)."""

        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise SSHConnectionError(
                self.credentials.host, self.credentials.username, "SSH session is not active"
            )
        try:
            channel = transport.open_session()
        except paramiko.SSHException as exc:
            raise SSHConnectionError(
                self.credentials.host, self.credentials.username, str(exc)
            ) from exc
        with channel:
            channel.exec_command(command)
            channel.shutdown_write()
            stdout, stderr = _drain(channel)
            exit_status = channel.recv_exit_status()
        return exit_status, stdout, stderr

    def close(self) -> None:
        self._client.close()
        LOGGER.info(
            "SSH session closed: %s@%s", self.credentials.username, self.credentials.host
        )


def _drain(channel: Any) -> Tuple[str, str]:
    """Читает stdout и stderr попеременно, чтобы ни один буфер не переполнился."""

    stdout_chunks: List[bytes] = []
    stderr_chunks: List[bytes] = []
    while True:
        received = False
        if channel.recv_ready():
            stdout_chunks.append(channel.recv(_READ_CHUNK))
            received = True
        if channel.recv_stderr_ready():
            stderr_chunks.append(channel.recv_stderr(_READ_CHUNK))
            received = True
        pending = channel.recv_ready() or channel.recv_stderr_ready()
        if channel.exit_status_ready() and not pending:
            break
        if not received:
            time.sleep(_POLL_INTERVAL_SEC)
    # остаток после exit-status, если он пришёл раньше EOF
    while True:
        chunk = channel.recv(_READ_CHUNK)
        if not chunk:
            break
        stdout_chunks.append(chunk)
    while True:
        chunk = channel.recv_stderr(_READ_CHUNK)
        if not chunk:
            break
        stderr_chunks.append(chunk)
    return (
        b"".join(stdout_chunks).decode("utf-8", errors="replace"),
        b"".join(stderr_chunks).decode("utf-8", errors="replace"),
    )
