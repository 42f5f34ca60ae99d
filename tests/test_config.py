import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from dialogbridge.bridge import create_bridge
from dialogbridge.config import BridgeConfig, load_config, save_config
from dialogbridge.config.loader import camel_to_snake, convert_keys, snake_to_camel
from dialogbridge.transport import ImmediateRequestHandler, QueuedRequestHandler, SideBand


def test_defaults():
    config = BridgeConfig()
    assert config.namespace == "Bridge"
    assert config.transport == "immediate"
    assert config.codec == "json"
    assert config.acknowledge_inbound is False
    assert config.handler_name_range == 10000
    assert config.logging.level == "INFO"


def test_load_config_reads_camel_case(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"transport": "queued", "acknowledgeInbound": True, "handlerNameRange": 50, "logging": {"level": "debug"}}),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.transport == "queued"
    assert config.acknowledge_inbound is True
    assert config.handler_name_range == 50
    assert config.logging.level == "DEBUG"


def test_load_config_missing_file_gives_defaults(tmp_path: Path):
    assert load_config(tmp_path / "absent.json") == BridgeConfig()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", json.dumps({"transport": "carrier-pigeon"})])
def test_load_config_invalid_content_names_the_path(tmp_path: Path, content: str):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError) as info:
        load_config(path)
    assert str(path) in str(info.value)


def test_save_config_round_trips(tmp_path: Path):
    path = save_config(BridgeConfig(codec="fallback", namespace="Dlg"), tmp_path / "nested" / "config.json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["ensureAscii"] is False
    assert load_config(path).namespace == "Dlg"
    assert load_config(path).codec == "fallback"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DIALOGBRIDGE_TRANSPORT", "queued")
    monkeypatch.setenv("DIALOGBRIDGE_LOGGING__LEVEL", "warning")
    config = BridgeConfig()
    assert config.transport == "queued"
    assert config.logging.level == "WARNING"


@pytest.mark.parametrize("field,value", [("namespace", "has space"), ("namespace", ""), ("handler_name_range", 0), ("codec", "xml")])
def test_invalid_values_are_refused(field, value):
    with pytest.raises(ValidationError):
        BridgeConfig(**{field: value})


def test_key_conversion():
    assert camel_to_snake("handlerNameAttempts") == "handler_name_attempts"
    assert snake_to_camel("ensure_ascii") == "ensureAscii"
    assert convert_keys({"logging": {"logFile": 1}}) == {"logging": {"log_file": 1}}


def test_create_bridge_from_config():
    bridge = create_bridge(BridgeConfig(namespace="Dlg", acknowledge_inbound=True), deliver=lambda _t: None)
    assert isinstance(bridge.request_handler, ImmediateRequestHandler)
    assert bridge.names.puts == "Dlg.puts"
    assert bridge.acknowledge_inbound is True

    band = SideBand()
    queued = create_bridge(BridgeConfig(transport="queued", codec="fallback"), side_band=band, trigger=lambda: None)
    assert isinstance(queued.request_handler, QueuedRequestHandler)
    assert queued.request_handler.codec.name == "fallback"


def test_create_bridge_requires_primitives():
    with pytest.raises(ValueError):
        create_bridge(BridgeConfig())
    with pytest.raises(ValueError):
        create_bridge(BridgeConfig(transport="queued"), side_band=SideBand())
