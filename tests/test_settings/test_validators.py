"""Проверки валидаторов настроек и аргументов команд."""

from __future__ import annotations

import re

from dockfleet.settings.validators import (
    CompositeValidator,
    EnumValidator,
    NonEmptyValidator,
    RangeValidator,
    RegexValidator,
    TypeValidator,
)


def test_type_validator_success() -> None:
    assert TypeValidator(int).validate(5) == (True, "")


def test_type_validator_rejects_bool_for_numbers() -> None:
    is_valid, error = TypeValidator(int).validate(True)
    assert not is_valid
    assert "bool" in error
    assert TypeValidator(bool).validate(False) == (True, "")


def test_range_validator_bounds() -> None:
    validator = RangeValidator(10, 3600)
    assert validator.validate(300) == (True, "")
    is_valid, error = validator.validate(5)
    assert not is_valid
    assert "out of range" in error


def test_range_validator_rejects_non_numbers() -> None:
    is_valid, _ = RangeValidator(1, 10).validate("5")
    assert not is_valid


def test_enum_validator() -> None:
    validator = EnumValidator(["docker compose", "docker-compose"])
    assert validator.validate("docker-compose") == (True, "")
    is_valid, error = validator.validate("podman-compose")
    assert not is_valid
    assert "allowed values" in error


def test_regex_validator_requires_full_match() -> None:
    validator = RegexValidator(r"[a-z]+")
    assert validator.validate("abc") == (True, "")
    is_valid, error = validator.validate("abc; rm -rf /")
    assert not is_valid
    assert "does not match" in error


def test_regex_validator_failure_when_not_string() -> None:
    is_valid, error = RegexValidator(re.compile(r"\d+")).validate(123)
    assert not is_valid
    assert "string" in error


def test_non_empty_validator() -> None:
    assert NonEmptyValidator().validate("x") == (True, "")
    assert NonEmptyValidator().validate("   ")[0] is False
    assert NonEmptyValidator().validate(None)[0] is False


def test_composite_validator_stops_on_first_error() -> None:
    validator = CompositeValidator([NonEmptyValidator(), RegexValidator(r"[a-z]+")])
    is_valid, error = validator.validate("")
    assert not is_valid
    assert "empty" in error
    assert validator.validate("web") == (True, "")
