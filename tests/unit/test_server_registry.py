"""Unit tests for the server registry."""

import pytest

from arkwatch.monitor.models import ServerConfig
from arkwatch.monitor.registry import ServerRegistry


def test_from_config_preserves_order():
    registry = ServerRegistry.from_config([
        {"name": "Ragnarok", "host": "192.0.2.2", "port": 27016},
        {"name": "The Island", "host": " 192.0.2.1 ", "port": 27015},
    ])

    assert registry.names() == ["Ragnarok", "The Island"]
    assert list(registry)[1] == ServerConfig("The Island", "192.0.2.1", 27015)
    assert "Ragnarok" in registry
    assert "Valguero" not in registry
    assert len(registry) == 2


def test_address():
    assert ServerConfig("A", "example.org", 27015).address == ("example.org", 27015)


def test_entries_are_immutable():
    server = ServerConfig("A", "h", 1)
    with pytest.raises(AttributeError):
        server.port = 2  # type: ignore[misc]


@pytest.mark.parametrize(
    "raw,message",
    [
        ("not-a-list", "must be a list"),
        (["x"], "must be a table"),
        ([{"name": "A", "host": "h"}], "missing required keys: port"),
        ([{"name": "", "host": "h", "port": 1}], "name must be a non-empty string"),
        ([{"name": "A", "host": 5, "port": 1}], "host must be a non-empty string"),
        ([{"name": "A", "host": "h", "port": 0}], "port must be an integer"),
        ([{"name": "A", "host": "h", "port": "27015"}], "port must be an integer"),
        ([{"name": "A", "host": "h", "port": True}], "port must be an integer"),
    ],
)
def test_malformed_entries_rejected(raw, message):
    with pytest.raises(ValueError, match=message):
        ServerRegistry.from_config(raw)


def test_duplicate_names_rejected():
    with pytest.raises(ValueError, match="Duplicate server names: A"):
        ServerRegistry([ServerConfig("A", "h1", 1), ServerConfig("A", "h2", 2)])


def test_empty_registry():
    registry = ServerRegistry.from_config([])
    assert len(registry) == 0
    assert registry.names() == []
