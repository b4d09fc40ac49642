"""Тесты моделей compose-сервисов."""

from __future__ import annotations

import pytest

from dockfleet.compose.models import ComposeDocument, EnvVar, ServiceDefinition, VolumeMount
from dockfleet.exceptions import ValidationError


def test_entries_split_once() -> None:
    assert EnvVar.from_entry("A=b=c") == EnvVar("A", "b=c")
    assert EnvVar.from_entry("HOST_ONLY") == EnvVar("HOST_ONLY", None)
    assert VolumeMount.from_entry("/a:/b:ro") == VolumeMount("/a", "/b:ro")
    assert VolumeMount.from_entry("/anon").to_entry() == "/anon"


def test_from_dict_accepts_api_payload() -> None:
    service = ServiceDefinition.from_dict(
        {
            "serviceName": "web",
            "buildContext": ".",
            "ports": "8080:80",
            "environment": [{"variable": "A", "value": "1"}, {"variable": "", "value": "x"}],
            "volumes": [{"hostPath": "./d", "containerPath": "/d"}, {"hostPath": "./e"}],
        }
    )
    assert service.name == "web"
    assert service.ports == ["8080:80"]
    assert service.environment == [EnvVar("A", "1")]
    assert service.volumes == [VolumeMount("./d", "/d")]
    assert service.to_dict()["serviceName"] == "web"


def test_from_dict_requires_name() -> None:
    with pytest.raises(ValidationError):
        ServiceDefinition.from_dict({"image": "nginx"})


def test_document_keeps_order_and_unique_names() -> None:
    document = ComposeDocument([ServiceDefinition("b"), ServiceDefinition("a")])
    assert [service.name for service in document] == ["b", "a"]
    assert "a" in document
    with pytest.raises(ValidationError):
        document.add(ServiceDefinition("a"))


def test_synthesized_image_uses_lowercase_base() -> None:
    assert ServiceDefinition(name="web").resolved_image("MyRepo") == "myrepo-web:latest"
    assert ServiceDefinition(name="web", image="MyOrg/app:1").resolved_image("x") == "MyOrg/app:1"
