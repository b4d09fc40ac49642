"""Разбор вывода free, top и df в снимок ресурсов хоста."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from dockfleet.exceptions import ParseError
from dockfleet.utils.helpers import strip_size_unit

_CPU_USER = re.compile(r"(\d+(?:[.,]\d+)?)\s*us")

Reading = Tuple[float, float]


@dataclass(slots=True)
class ResourceSnapshot:
    """Параллельные списки, выровненные по позиции: ram (MB), cpu (%), disk (GB)."""

    categories: List[str] = field(default_factory=list)
    used: List[float] = field(default_factory=list)
    available: List[float] = field(default_factory=list)
    units: List[str] = field(default_factory=list)

    def add(self, category: str, reading: Reading, unit: str) -> None:
        used, available = reading
        self.categories.append(category)
        self.used.append(used)
        self.available.append(available)
        self.units.append(unit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": list(self.categories),
            "used": list(self.used),
            "available": list(self.available),
            "units": list(self.units),
        }


def _find_row(output: str, predicate, source: str) -> List[str]:
    for line in output.splitlines():
        fields = line.split()
        if fields and predicate(fields):
            return fields
    raise ParseError(source, "expected row is missing")


def parse_memory(output: str) -> Reading:
    """free -m: строка 'Mem:', used = поле 2, available = поле 3."""

    fields = _find_row(output, lambda row: row[0] == "Mem:", "free")
    if len(fields) < 4:
        raise ParseError("free", "Mem row is too short", " ".join(fields))
    try:
        return int(fields[2]), int(fields[3])
    except ValueError as exc:
        raise ParseError("free", "non-numeric memory value", " ".join(fields)) from exc


def parse_cpu(output: str) -> Reading:
    """top -bn1: доля пользовательского времени из строки Cpu(s)."""

    for line in output.splitlines():
        if "Cpu(s)" not in line:
            continue
        match = _CPU_USER.search(line)
        if match is None:
            raise ParseError("top", "no user CPU value", line.strip())
        used = float(match.group(1).replace(",", "."))
        return used, round(100 - used, 2)
    raise ParseError("top", "expected row is missing")


def parse_disk(output: str) -> Reading:
    """df -BG --total: строка total, used = поле 2, available = поле 3."""

    fields = _find_row(output, lambda row: row[0] == "total", "df")
    if len(fields) < 4:
        raise ParseError("df", "total row is too short", " ".join(fields))
    try:
        return strip_size_unit(fields[2]), strip_size_unit(fields[3])
    except ValueError as exc:
        raise ParseError("df", str(exc), " ".join(fields)) from exc
