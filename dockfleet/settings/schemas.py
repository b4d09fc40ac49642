"""Дефолтная схема config.json."""

from __future__ import annotations

from typing import Any, Dict

# DEFAULT_CONFIG служит шаблоном для начального config.json
DEFAULT_CONFIG: Dict[str, Any] = {
    "version": "1.0.0",
    "logging": {
        "enabled": True,
        "level": "INFO",
        "max_file_size_mb": 10,
        "max_archived_files": 5,
    },
    "ssh": {
        "port": 22,
        "connect_timeout_sec": 10,
        "auth_timeout_sec": 10,
        "allow_agent": False,
        "look_for_keys": False,
    },
    "repositories": {
        "base_folder": "projects",
        "clone_timeout_sec": 300,
        "pull_timeout_sec": 120,
        "compose_file": "docker-compose.yml",
        "env_file": ".env",
    },
    "docker": {
        "compose_command": "docker compose",
    },
}
