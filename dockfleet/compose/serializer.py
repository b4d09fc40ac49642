"""Преобразование списка сервисов в docker-compose.yml и обратно.

Пустые ports/environment/volumes в вывод не попадают, поэтому
сгенерированный документ минимален и стабилен при повторном чтении.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import yaml
from docker.utils.ports import split_port

from dockfleet.compose.models import ComposeDocument, EnvVar, ServiceDefinition, VolumeMount
from dockfleet.exceptions import ParseError, ValidationError

SOURCE = "docker-compose"


# ------------------------------------------------------------------- serialize --
def build_compose_mapping(
    definitions: Iterable[ServiceDefinition], base_name: str
) -> Dict[str, Any]:
    """Строит словарь compose-документа (до выгрузки в YAML)."""

    document = ComposeDocument(definitions)
    services: Dict[str, Any] = {}
    for service in document:
        entry: Dict[str, Any] = {}
        if service.build_context:
            entry["build"] = {"context": service.build_context}
        entry["image"] = service.resolved_image(base_name)
        if service.env_file:
            entry["env_file"] = service.env_file
        if service.ports:
            entry["ports"] = [_checked_port(service.name, port) for port in service.ports]
        if service.environment:
            entry["environment"] = [item.to_entry() for item in service.environment]
        if service.volumes:
            entry["volumes"] = [item.to_entry() for item in service.volumes]
        services[service.name] = entry
    return {"services": services}


def serialize(definitions: Iterable[ServiceDefinition], base_name: str) -> str:
    mapping = build_compose_mapping(definitions, base_name)
    return yaml.safe_dump(mapping, sort_keys=False, default_flow_style=False, allow_unicode=True)


def _checked_port(service_name: str, port: str) -> str:
    value = str(port).strip()
    if "$" in value:
        # подстановка переменных выполняется самим compose
        return value
    try:
        split_port(value)
    except ValueError as exc:
        raise ValidationError(f"{service_name}.ports", value, str(exc)) from exc
    return value


# ----------------------------------------------------------------- deserialize --
def deserialize(text: str) -> List[ServiceDefinition]:
    """Читает compose-документ; отсутствующие секции дают пустые списки."""

    try:
        content = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParseError(SOURCE, f"invalid YAML: {exc}") from exc
    if not isinstance(content, dict) or not isinstance(content.get("services"), dict):
        raise ParseError(SOURCE, "document has no 'services' mapping")

    document = ComposeDocument()
    for name, raw in content["services"].items():
        service = raw or {}
        if not isinstance(service, dict):
            raise ParseError(SOURCE, f"service '{name}' must be a mapping")
        document.add(
            ServiceDefinition(
                name=str(name),
                build_context=_read_build_context(service.get("build")),
                image=service.get("image"),
                env_file=_read_env_file(name, service.get("env_file")),
                ports=[_read_port(item) for item in service.get("ports") or []],
                environment=_read_environment(service.get("environment")),
                volumes=[_read_volume(item) for item in service.get("volumes") or []],
            )
        )
    return document.services()


def _read_build_context(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and value.get("context") is not None:
        return str(value["context"])
    return None


def _read_env_file(service_name: str, value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, list) and len(value) == 1:
        return str(value[0])
    if isinstance(value, list) and not value:
        return None
    raise ParseError(SOURCE, f"service '{service_name}': only one env_file is supported")


def _read_port(value: Any) -> str:
    if isinstance(value, dict):
        target = value.get("target")
        published = value.get("published")
        host_ip = value.get("host_ip")
        protocol = value.get("protocol")
        port = str(target) if published is None else f"{published}:{target}"
        if host_ip:
            port = f"{host_ip}:{port}"
        if protocol and protocol != "tcp":
            port = f"{port}/{protocol}"
        return port
    return str(value)


def _read_environment(value: Any) -> List[EnvVar]:
    if not value:
        return []
    if isinstance(value, dict):
        return [EnvVar(key=str(key), value=_scalar(item)) for key, item in value.items()]
    return [EnvVar.from_entry(str(item)) for item in value]


def _read_volume(value: Any) -> VolumeMount:
    if isinstance(value, dict):
        return VolumeMount(
            host_path=str(value.get("source") or ""),
            container_path=str(value.get("target") or ""),
        )
    return VolumeMount.from_entry(str(value))


def _scalar(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
