"""Tests for YAML descriptor loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from propstore.declarative import (
    descriptor_from_dict,
    load_descriptor,
    load_logging_config,
    load_yaml_file,
)
from propstore.descriptor import HotReloadMode, TimeUnit
from propstore.errors import DescriptorError
from propstore.load_type import LoadType


class TestLoadYamlFile:
    """Test reading descriptor files."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(DescriptorError, match="Invalid YAML"):
            load_yaml_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(DescriptorError, match="mapping"):
            load_yaml_file(path)


class TestDescriptorFromDict:
    """Test converting descriptor mappings."""

    def test_minimal(self) -> None:
        descriptor = descriptor_from_dict({"name": "myapp.Server"})
        assert descriptor.name == "myapp.Server"
        assert descriptor.sources == ()
        assert descriptor.load_type is LoadType.FIRST
        assert descriptor.hot_reload is None

    def test_full(self) -> None:
        descriptor = descriptor_from_dict(
            {
                "name": "myapp.Server",
                "sources": ["file:/etc/a.properties", "classpath:myapp/Server.properties"],
                "load_policy": "merge",
                "hot_reload": {"interval": 500, "unit": "ms", "mode": "async"},
                "defaults": {"port": 80, "unset": None},
            }
        )
        assert descriptor.sources == (
            "file:/etc/a.properties",
            "classpath:myapp/Server.properties",
        )
        assert descriptor.load_type is LoadType.MERGE
        assert descriptor.hot_reload is not None
        assert descriptor.hot_reload.unit is TimeUnit.MILLISECONDS
        assert descriptor.hot_reload.interval == pytest.approx(0.5)
        assert descriptor.hot_reload.mode is HotReloadMode.ASYNC
        assert dict(descriptor.defaults) == {"port": "80"}

    def test_single_source_string(self) -> None:
        descriptor = descriptor_from_dict({"name": "a.B", "sources": "file:/a"})
        assert descriptor.sources == ("file:/a",)

    def test_hot_reload_number(self) -> None:
        descriptor = descriptor_from_dict({"name": "a.B", "hot_reload": 3})
        assert descriptor.hot_reload is not None
        assert descriptor.hot_reload.interval == 3.0
        assert descriptor.hot_reload.enabled

    def test_hot_reload_disabled(self) -> None:
        descriptor = descriptor_from_dict(
            {"name": "a.B", "sources": ["file:/a"], "hot_reload": {"enabled": False}}
        )
        assert not descriptor.hot_reload_active

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"name": ""},
            {"name": "a.B", "sources": [1, 2]},
            {"name": "a.B", "defaults": ["x"]},
            {"name": "a.B", "load_policy": "random"},
            {"name": "a.B", "hot_reload": "often"},
            {"name": "a.B", "hot_reload": {"interval": "soon"}},
            {"name": "a.B", "hot_reload": {"mode": "eventually"}},
            {"name": "a.B", "hot_reload": {"unit": "fortnights"}},
            {"name": "a.B", "hot_reload": {"interval": -1}},
        ],
    )
    def test_invalid(self, data: dict) -> None:
        with pytest.raises(DescriptorError):
            descriptor_from_dict(data)

    def test_unknown_keys_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="propstore"):
            descriptor_from_dict({"name": "a.B", "colour": "blue"})
        assert "colour" in caplog.text


class TestLoggingSection:
    def test_absent(self) -> None:
        config = load_logging_config({"name": "a.B"})
        assert config.level is None
        assert config.file is None

    def test_present(self) -> None:
        config = load_logging_config({"logging": {"level": "DEBUG", "file": "/tmp/p.log"}})
        assert config.level == "DEBUG"
        assert config.file == "/tmp/p.log"

    def test_invalid(self) -> None:
        with pytest.raises(DescriptorError):
            load_logging_config({"logging": "loud"})


class TestLoadDescriptor:
    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text(
            "name: myapp.Server\n"
            "sources:\n"
            "  - file:/etc/myapp/server.properties\n"
            "hot_reload:\n"
            "  interval: 2\n"
            "  unit: seconds\n"
        )
        descriptor = load_descriptor(path)
        assert descriptor.name == "myapp.Server"
        assert descriptor.hot_reload_active
        assert descriptor.hot_reload is not None
        assert descriptor.hot_reload.interval == 2.0
