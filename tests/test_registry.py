"""Tests for the target registry."""

import json

import pytest

from port_monitor.monitor.registry import (
    DEFAULT_BRANDS,
    Role,
    TargetRegistry,
    load_registry,
)


def test_registry_order_is_brand_then_role(registry):
    ids = [endpoint.id for endpoint in registry]

    assert ids == [
        ("Bareeze", Role.PRIMARY),
        ("Bareeze", Role.SECONDARY),
        ("Rangja", Role.PRIMARY),
        ("Rangja", Role.SECONDARY),
    ]


def test_empty_ip_marks_role_unconfigured(registry):
    endpoint = registry.get(("Rangja", Role.SECONDARY))

    assert endpoint.host is None
    assert endpoint.configured is False
    assert registry.get(("Rangja", Role.PRIMARY)).configured is True


def test_brand_lookup(registry):
    brand = registry.get_brand("Bareeze")

    assert brand.host == "barz.example.com"
    assert brand.port == 20000
    assert registry.get_brand("Missing") is None
    assert registry.brand_names == ["Bareeze", "Rangja"]


def test_role_labels():
    assert Role.PRIMARY.label == "Brain Net IP"
    assert Role.SECONDARY.label == "Live IP"


@pytest.mark.parametrize("port", [0, 65536, "20000"])
def test_invalid_port_rejected(port):
    with pytest.raises(ValueError):
        TargetRegistry({"X": {"host": "x", "port": port, "primary_ip": "1.2.3.4"}})


def test_endpoints_are_immutable(registry):
    endpoint = registry.get(("Bareeze", Role.PRIMARY))

    with pytest.raises(Exception):
        endpoint.host = "other"


def test_load_registry_defaults_to_builtin_roster():
    registry = load_registry()

    assert len(registry) == 2 * len(DEFAULT_BRANDS)
    assert all(endpoint.port == 20000 for endpoint in registry)


def test_load_registry_from_file(tmp_path, sample_brands):
    path = tmp_path / "targets.json"
    path.write_text(json.dumps(sample_brands), encoding="utf-8")

    registry = load_registry(path)

    assert registry.brand_names == ["Bareeze", "Rangja"]
    assert len(registry.endpoints_for("Rangja")) == 2


def test_load_registry_rejects_non_object(tmp_path):
    path = tmp_path / "targets.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError):
        load_registry(path)
