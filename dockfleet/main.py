"""Точка входа командной строки dockfleet."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from dockfleet import __version__
from dockfleet.exceptions import CommandExecutionError, DockfleetError
from dockfleet.service import FleetService, create_service
from dockfleet.settings.observers import LoggingSettingsObserver
from dockfleet.settings.registry import SettingsRegistry
from dockfleet.utils.logger import configure_logging
from dockfleet.utils.paths import resolve_config_dir

LOGGER = logging.getLogger(__name__)

PASSWORD_ENV = "DOCKFLEET_PASSWORD"
CLI_OWNER = "cli"


def initialize_settings(config_path: Path) -> SettingsRegistry:
    """Получает singleton реестр настроек и загружает config.json."""

    registry = SettingsRegistry(config_path=config_path)
    registry.load_from_disk()
    registry.register_observer(LoggingSettingsObserver())
    return registry


def setup_logging_from_settings(base_dir: Path, settings: SettingsRegistry) -> None:
    """Настраивает логирование в соответствии с LoggingSettings."""

    logging_settings = settings.get_group("logging")
    if not logging_settings.get("enabled"):
        logging.disable(logging.CRITICAL)
        return

    logging.disable(logging.NOTSET)
    configure_logging(
        log_dir=base_dir / "logs",
        level_name=logging_settings.get("level", "INFO"),
        max_bytes=logging_settings.get("max_file_size_mb", 10) * 1024 * 1024,
        backup_count=logging_settings.get("max_archived_files", 5),
    )


def initialize_workdir(base_dir: Path) -> bool:
    """Создаёт рабочую структуру (~/.dockfleet, logs)."""

    try:
        base_dir.mkdir(parents=True, exist_ok=True)
        (base_dir / "logs").mkdir(exist_ok=True)
        return True
    except OSError as exc:
        LOGGER.error("Не удалось инициализировать рабочую директорию: %s", exc)
        return False


def build_parser() -> argparse.ArgumentParser:
    remote = argparse.ArgumentParser(add_help=False)
    remote.add_argument("host", help="адрес удалённого хоста")
    remote.add_argument("-u", "--user", required=True, help="имя пользователя SSH")
    remote.add_argument("-p", "--port", type=int, default=None, help="порт SSH")
    remote.add_argument("-i", "--identity", default=None, help="путь к приватному ключу")

    parser = argparse.ArgumentParser(
        prog="dockfleet", description="Управление удалёнными Docker-хостами через SSH."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", parents=[remote], help="память, CPU и диск хоста")
    commands.add_parser("containers", parents=[remote], help="список контейнеров")
    commands.add_parser(
        "images", parents=[remote], help="список образов с признаком использования"
    )
    exec_parser = commands.add_parser(
        "exec",
        parents=[remote],
        help="выполнить произвольную команду",
        usage="%(prog)s -u USER [-p PORT] [-i IDENTITY] [--ephemeral] host [--] command ...",
        description="Опции указываются до адреса хоста; всё после адреса уходит на хост.",
    )
    exec_parser.add_argument("--ephemeral", action="store_true", help="в отдельной сессии")
    exec_parser.add_argument("remote_command", nargs=argparse.REMAINDER)

    config = commands.add_parser("config", help="просмотр и изменение config.json")
    config_commands = config.add_subparsers(dest="config_command", required=True)
    config_commands.add_parser("show", help="текущие настройки")
    config_commands.add_parser("reset", help="вернуть значения по умолчанию")
    set_parser = config_commands.add_parser("set", help="изменить одно значение")
    set_parser.add_argument("group")
    set_parser.add_argument("key")
    set_parser.add_argument("value")
    return parser


def run_config(settings: SettingsRegistry, args: argparse.Namespace) -> Dict[str, Any]:
    """Команды config: изменения сразу сохраняются в config.json."""

    if args.config_command == "set":
        value = settings.set_from_text(args.group, args.key, args.value)
        settings.save_to_disk()
        LOGGER.info("Saved %s.%s to %s", args.group, args.key, settings.config_path)
        return {args.group: {args.key: value}}
    if args.config_command == "reset":
        settings.reset_to_defaults()
        settings.save_to_disk()
    return settings.to_dict()


async def run_command(service: FleetService, args: argparse.Namespace) -> Any:
    """Подключается, выполняет одну команду и возвращает сериализуемый результат."""

    connection_id = await service.connect(
        args.host,
        args.user,
        os.environ.get(PASSWORD_ENV),
        CLI_OWNER,
        port=args.port,
        key_path=args.identity,
    )
    if args.command == "status":
        return (await service.server_status(connection_id)).to_dict()
    if args.command == "containers":
        return [record.to_dict() for record in await service.list_containers(connection_id)]
    if args.command == "images":
        return [record.to_dict() for record in await service.list_images(connection_id)]
    parts = list(args.remote_command)
    if parts and parts[0] == "--":
        parts = parts[1:]
    remote_command = " ".join(parts).strip()
    if not remote_command:
        raise ValueError("exec requires a command")
    return (
        await service.execute(connection_id, remote_command, ephemeral=args.ephemeral)
    ).to_dict()


async def _run(service: FleetService, args: argparse.Namespace) -> Any:
    async with service:
        return await run_command(service, args)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Основная точка входа: готовит окружение, выполняет команду, закрывает сессии."""

    args = build_parser().parse_args(argv)
    base_dir = resolve_config_dir()
    if not initialize_workdir(base_dir):
        return 1

    settings = initialize_settings(base_dir / "config.json")
    setup_logging_from_settings(base_dir, settings)
    try:
        if args.command == "config":
            payload = run_config(settings, args)
        else:
            LOGGER.info("Dockfleet %s: %s on %s", __version__, args.command, args.host)
            payload = asyncio.run(_run(create_service(settings), args))
    except CommandExecutionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (DockfleetError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
