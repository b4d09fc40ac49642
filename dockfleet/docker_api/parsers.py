"""Разбор текстового вывода docker CLI в записи.

Все функции чистые. Пустой вывод даёт пустой список; битая строка
прерывает разбор с ParseError, частичный список не возвращается.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from docker.utils import parse_repository_tag

from dockfleet.docker_api.models import (
    IMAGE_IN_USE,
    IMAGE_UNUSED,
    ContainerRecord,
    ContainerState,
    ImageRecord,
)
from dockfleet.exceptions import ParseError, ValidationError

_CONTAINER_KEYS = ("ID", "Names", "Image")
_IMAGE_KEYS = ("ID", "Repository", "Tag")

# короче docker ps не сокращает идентификатор
SHORT_ID_LENGTH = 12
_HEX_DIGITS = frozenset("0123456789abcdef")


def _content_lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


# ------------------------------------------------------------ line-structured --
def parse_json_lines(output: str, *, source: str = "json") -> List[Dict[str, Any]]:
    """Каждая непустая строка должна быть JSON-объектом (формат '{{json .}}')."""

    entries: List[Dict[str, Any]] = []
    for line in _content_lines(output):
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ParseError(source, f"invalid JSON ({exc.msg})", line) from exc
        if not isinstance(parsed, dict):
            raise ParseError(source, "expected a JSON object per line", line)
        entries.append(parsed)
    return entries


def _require_keys(entry: Dict[str, Any], keys: Sequence[str], source: str) -> None:
    missing = [key for key in keys if key not in entry]
    if missing:
        raise ParseError(source, f"missing keys {missing}", json.dumps(entry))


def _split_list(value: Any, separator: str = ",") -> List[str]:
    if not value:
        return []
    return [item.strip() for item in str(value).split(separator) if item.strip()]


def parse_containers(output: str) -> List[ContainerRecord]:
    """docker ps -a --format '{{json .}}' -> ContainerRecord."""

    records = []
    for entry in parse_json_lines(output, source="docker ps"):
        _require_keys(entry, _CONTAINER_KEYS, "docker ps")
        status = str(entry.get("Status", ""))
        records.append(
            ContainerRecord(
                identifier=str(entry["ID"]),
                names=_split_list(entry["Names"]),
                image=str(entry["Image"]),
                state=ContainerState.from_docker(entry.get("State"), status),
                status=status,
                ports=_split_list(entry.get("Ports"), ", "),
                running_for=str(entry.get("RunningFor", "")),
                created_at=str(entry.get("CreatedAt", "")),
            )
        )
    return records


def parse_images(output: str) -> List[ImageRecord]:
    """docker images --format '{{json .}}' -> ImageRecord."""

    records = []
    for entry in parse_json_lines(output, source="docker images"):
        _require_keys(entry, _IMAGE_KEYS, "docker images")
        records.append(
            ImageRecord(
                identifier=str(entry["ID"]),
                repository=str(entry["Repository"]),
                tag=str(entry["Tag"]),
                size=str(entry.get("Size", "")),
                created=str(entry.get("CreatedSince", "")),
                created_at=str(entry.get("CreatedAt", "")),
            )
        )
    return records


# --------------------------------------------------------------------- tabular --
def parse_table(
    output: str,
    columns: Sequence[str],
    *,
    source: str = "table",
    skip_header: bool = False,
) -> List[Dict[str, str]]:
    """Делит строки по пробелам на позиционные колонки.

    Последняя колонка забирает остаток строки целиком.
    """

    lines = _content_lines(output)
    if skip_header and lines:
        lines = lines[1:]
    rows: List[Dict[str, str]] = []
    for line in lines:
        fields = line.split(None, len(columns) - 1)
        if len(fields) < len(columns):
            raise ParseError(source, f"expected {len(columns)} columns, got {len(fields)}", line)
        rows.append(dict(zip(columns, fields)))
    return rows


# ------------------------------------------------------------- cross-reference --
def _normalize_id(value: str) -> str:
    return value.split(":", 1)[1] if value.startswith("sha256:") else value


def _same_image_id(left: str, right: str) -> bool:
    left, right = _normalize_id(left), _normalize_id(right)
    shortest = min(len(left), len(right))
    return shortest >= 12 and left[:shortest] == right[:shortest]


def image_matches(image: ImageRecord, reference: str) -> bool:
    """Ссылка контейнера (repo[:tag] или id) указывает на этот образ."""

    if _same_image_id(image.identifier, reference):
        return True
    repository, tag = parse_repository_tag(reference)
    if repository != image.repository:
        return False
    if tag is None:
        tag = "latest"
    return tag == image.tag


def mark_image_usage(
    images: Iterable[ImageRecord], running: Iterable[ContainerRecord]
) -> List[ImageRecord]:
    """Помечает образы, которые использует хотя бы один запущенный контейнер."""

    containers = list(running)
    marked: List[ImageRecord] = []
    for image in images:
        owner = next((item for item in containers if image_matches(image, item.image)), None)
        if owner is None:
            marked.append(dataclasses.replace(image, status=IMAGE_UNUSED))
            continue
        marked.append(
            dataclasses.replace(
                image,
                status=IMAGE_IN_USE,
                container_id=owner.identifier,
                container_name=owner.name,
            )
        )
    return marked


def find_container(records: Iterable[ContainerRecord], reference: str) -> Optional[ContainerRecord]:
    """Ищет контейнер по имени, затем по идентификатору.

    Префикс идентификатора принимается только шестнадцатеричный и не короче
    SHORT_ID_LENGTH символов; префикс, подходящий к нескольким контейнерам,
    даёт ValidationError.
    """

    candidates = list(records)
    for record in candidates:
        if reference in record.names:
            return record
    for record in candidates:
        if record.identifier == reference:
            return record
    if len(reference) < SHORT_ID_LENGTH or not set(reference) <= _HEX_DIGITS:
        return None
    matches = [
        record
        for record in candidates
        if record.identifier.startswith(reference)
        or (len(record.identifier) >= SHORT_ID_LENGTH and reference.startswith(record.identifier))
    ]
    if len(matches) > 1:
        raise ValidationError(
            "container", reference, f"id prefix matches {len(matches)} containers"
        )
    return matches[0] if matches else None


def find_image(records: Iterable[ImageRecord], reference: str) -> Optional[ImageRecord]:
    for record in records:
        if reference in (record.repository, record.reference) or image_matches(record, reference):
            return record
    return None
