"""Результат выполнения удалённой команды и политика успеха."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from dockfleet.exceptions import CommandExecutionError


class SuccessPolicy(str, Enum):
    """Как решается, что команда завершилась успешно."""

    EXIT_CODE = "exit_code"  # только код возврата
    STRICT = "strict"  # код возврата 0 и пустой stderr

    def is_success(self, exit_status: int, stderr: str) -> bool:
        if exit_status != 0:
            return False
        if self is SuccessPolicy.STRICT:
            return not stderr.strip()
        return True


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Нормализованный результат: код, потоки вывода и вычисленный флаг успеха."""

    command: str
    exit_status: int
    stdout: str
    stderr: str
    success: bool

    @classmethod
    def evaluate(
        cls,
        command: str,
        exit_status: int,
        stdout: str,
        stderr: str,
        policy: SuccessPolicy,
    ) -> "CommandResult":
        return cls(
            command=command,
            exit_status=exit_status,
            stdout=stdout,
            stderr=stderr,
            success=policy.is_success(exit_status, stderr),
        )

    @property
    def output(self) -> str:
        """stdout без ведущих и завершающих пробелов."""

        return self.stdout.strip()

    def raise_for_status(self) -> "CommandResult":
        if not self.success:
            raise CommandExecutionError(self.command, self.exit_status, self.stderr, self.stdout)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "exit_status": self.exit_status,
            "success": self.success,
            "data": self.output,
            "stderr": self.stderr.strip(),
        }
