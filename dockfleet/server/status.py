"""Состояние удалённого хоста: ресурсы, системные сервисы, установка."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dockfleet.commands.builder import SYSTEM_SERVICE, CommandBuilder, check
from dockfleet.commands.executor import CommandExecutor
from dockfleet.commands.models import CommandResult, SuccessPolicy
from dockfleet.docker_api.parsers import parse_table
from dockfleet.exceptions import ValidationError
from dockfleet.server.metrics import ResourceSnapshot, parse_cpu, parse_disk, parse_memory

LOGGER = logging.getLogger(__name__)

MEMORY_COMMAND = "free -m"
CPU_COMMAND = "top -bn1 | head -n 5"
DISK_COMMAND = "df -BG --total"
SOCKETS_COMMAND = "ss -tul"

_SOCKET_COLUMNS = ("netid", "state", "recv_q", "send_q", "local", "peer")
_SYSTEMD_UNITS = {"psql": "postgresql"}
NOT_AVAILABLE = "N/A"


@dataclass(slots=True)
class ServiceStatus:
    service: str
    is_installed: bool
    is_active: bool = False
    port: str = ""
    memory_usage: str = NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "is_installed": self.is_installed,
            "is_active": self.is_active,
            "port": self.port,
            "memory_usage": self.memory_usage,
        }


class ServerInspector:
    """Снимает показатели хоста короткоживущими сессиями."""

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    async def server_status(self, connection_id: str) -> ResourceSnapshot:
        """Память, CPU и диск запрашиваются параллельно и собираются по позиции."""

        memory, cpu, disk = await asyncio.gather(
            self._executor.run(connection_id, MEMORY_COMMAND, ephemeral=True),
            self._executor.run(connection_id, CPU_COMMAND, ephemeral=True),
            self._executor.run(connection_id, DISK_COMMAND, ephemeral=True),
        )
        snapshot = ResourceSnapshot()
        snapshot.add("ram", parse_memory(memory.stdout), "MB")
        snapshot.add("cpu", parse_cpu(cpu.stdout), "%")
        snapshot.add("disk", parse_disk(disk.stdout), "GB")
        LOGGER.debug("Resource snapshot for %s: %s", connection_id, snapshot.to_dict())
        return snapshot

    async def get_service(self, connection_id: str, service: str) -> ServiceStatus:
        """Установлен ли сервис, активен ли он, его порт и занимаемый объём."""

        check("service", service, SYSTEM_SERVICE)
        located = await self._probe(connection_id, CommandBuilder("which").arg(service).build())
        if not (located.success and located.output):
            return ServiceStatus(service=service, is_installed=False)

        sockets = await self._executor.run(connection_id, SOCKETS_COMMAND, ephemeral=True)
        unit = _SYSTEMD_UNITS.get(service, service)
        activity = await self._probe(
            connection_id, CommandBuilder("systemctl is-active").arg(unit).build()
        )
        return ServiceStatus(
            service=service,
            is_installed=True,
            is_active=activity.output == "active",
            port=self._find_port(sockets.stdout, service),
            memory_usage=await self._memory_usage(connection_id, service),
        )

    async def setup_service(self, connection_id: str, script: str) -> CommandResult:
        """Выполняет скрипт установки; менеджеры пакетов пишут в stderr, решает код возврата."""

        if not isinstance(script, str) or not script.strip():
            raise ValidationError("script", script, "installation script must not be empty")
        LOGGER.info("Running setup script on %s", connection_id)
        return await self._executor.run(
            connection_id, script.strip(), ephemeral=True, policy=SuccessPolicy.EXIT_CODE
        )

    # ------------------------------------------------------------------ helpers
    async def _probe(self, connection_id: str, command: str) -> CommandResult:
        # which и systemctl is-active сообщают отрицательный ответ кодом возврата
        return await self._executor.run(
            connection_id, command, ephemeral=True, policy=SuccessPolicy.EXIT_CODE, check=False
        )

    async def _memory_usage(self, connection_id: str, service: str) -> str:
        if service == "docker":
            result = await self._executor.run(
                connection_id,
                "docker stats --no-stream --format '{{.MemUsage}}'",
                ephemeral=True,
            )
            return result.output or NOT_AVAILABLE
        result = await self._probe(
            connection_id, CommandBuilder("du -sh").arg(f"/var/lib/{service}").build()
        )
        if not result.success or not result.output:
            return NOT_AVAILABLE
        return result.output.split("\t", 1)[0].strip()

    @staticmethod
    def _find_port(output: str, service: str) -> str:
        pattern = re.compile(rf":{re.escape(service)}$")
        rows = parse_table(output, _SOCKET_COLUMNS, source="ss", skip_header=True)
        for row in rows:
            if pattern.search(row["local"]):
                return row["local"]
        return ""
