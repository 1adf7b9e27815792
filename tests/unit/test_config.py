"""Tests for configuration models and layered loading."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from rtcsignal.config.loader import DEFAULT_CONFIG, config_layers, load_config
from rtcsignal.config.schema import Config, CorsConfig, ServerConfig
from rtcsignal.core.constants import DEFAULT_PREFIX
from rtcsignal.core.errors import ConfigError
from rtcsignal.core.utils import deep_merge


def _write(path: Path, data: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config directory at a temp dir."""
    global_dir = tmp_path / "home" / ".rtcsignal"
    monkeypatch.setattr("rtcsignal.config.loader.get_rtcsignal_dir", lambda: global_dir)
    return global_dir


class TestConfigSchema:
    """Tests for the pydantic config models."""

    def test_defaults(self) -> None:
        config = Config()

        assert config.prefix == DEFAULT_PREFIX == "/.wrtc/v2"
        assert config.cors.origin == "*"
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 9208
        assert config.ice_servers == []

    @pytest.mark.parametrize("prefix", ["wrtc", "/wrtc/", "/wrtc?x=1", "/wrtc#a"])
    def test_invalid_prefix(self, prefix: str) -> None:
        with pytest.raises(ValidationError):
            Config(prefix=prefix)

    @pytest.mark.parametrize("prefix", ["/", "/rtc", "/.wrtc/v3"])
    def test_valid_prefix(self, prefix: str) -> None:
        assert Config(prefix=prefix).prefix == prefix

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Config.model_validate({"prefx": "/rtc"})

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)

    def test_cors_origin_list(self) -> None:
        cors = CorsConfig(origin=["https://a.example"], max_age=60)
        assert cors.origin == ["https://a.example"]

    def test_negative_max_age(self) -> None:
        with pytest.raises(ValidationError):
            CorsConfig(max_age=-1)


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_dicts_merge(self) -> None:
        merged = deep_merge({"server": {"host": "a", "port": 1}}, {"server": {"port": 2}})
        assert merged == {"server": {"host": "a", "port": 2}}

    def test_lists_replaced(self) -> None:
        merged = deep_merge({"cors": {"origin": ["a", "b"]}}, {"cors": {"origin": []}})
        assert merged == {"cors": {"origin": []}}

    def test_inputs_not_modified(self) -> None:
        base = {"server": {"port": 1}}
        deep_merge(base, {"server": {"port": 2}})
        assert base == {"server": {"port": 1}}


class TestLoadConfig:
    """Tests for load_config."""

    def test_shipped_defaults_exist(self) -> None:
        assert DEFAULT_CONFIG.is_file()

    def test_defaults_without_any_file(self, home: Path, tmp_path: Path) -> None:
        config = load_config(cwd=tmp_path / "project")

        assert config.prefix == "/.wrtc/v2"
        assert config.server.port == 9208

    def test_global_then_local(self, home: Path, tmp_path: Path) -> None:
        _write(home / "config.json", {"prefix": "/rtc", "server": {"port": 9300, "host": "0.0.0.0"}})
        project = tmp_path / "project"
        _write(project / ".rtcsignal" / "config.json", {"server": {"port": 9400}})

        config = load_config(cwd=project)

        assert config.prefix == "/rtc"
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 9400

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "custom.json", {"cors": {"origin": "https://a.example"}})

        config = load_config(path)

        assert config.cors.origin == "https://a.example"

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_invalid_json(self, home: Path, tmp_path: Path) -> None:
        home.mkdir(parents=True)
        (home / "config.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(cwd=tmp_path)

    def test_non_object_json(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "list.json", [1, 2])

        with pytest.raises(ConfigError, match="Expected a JSON object"):
            load_config(path)

    def test_validation_failure_names_source(self, home: Path, tmp_path: Path) -> None:
        _write(home / "config.json", {"prefix": "no-slash"})

        with pytest.raises(ConfigError, match="validation failed") as exc_info:
            load_config(cwd=tmp_path)
        assert "config.json" in exc_info.value.message

    def test_empty_file_is_empty_layer(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == Config()


class TestConfigLayers:
    """Tests for config_layers."""

    def test_defaults_when_no_global(self, home: Path, tmp_path: Path) -> None:
        assert config_layers(tmp_path) == [DEFAULT_CONFIG]

    def test_global_and_local(self, home: Path, tmp_path: Path) -> None:
        global_file = _write(home / "config.json", {})
        local_file = _write(tmp_path / ".rtcsignal" / "config.json", {})

        assert config_layers(tmp_path) == [global_file, local_file]
