"""Tests for config type descriptors."""

from __future__ import annotations

import pytest

from propstore.descriptor import ConfigTypeDescriptor, HotReload, TimeUnit
from propstore.errors import DescriptorError
from propstore.load_type import LoadType


class ServerConfig:
    pass


class TestTimeUnit:
    @pytest.mark.parametrize(
        ("unit", "value", "seconds"),
        [
            (TimeUnit.MILLISECONDS, 500, 0.5),
            (TimeUnit.SECONDS, 3, 3.0),
            (TimeUnit.MINUTES, 2, 120.0),
            (TimeUnit.HOURS, 1, 3600.0),
        ],
    )
    def test_to_seconds(self, unit: TimeUnit, value: float, seconds: float) -> None:
        assert unit.to_seconds(value) == pytest.approx(seconds)

    @pytest.mark.parametrize(
        ("text", "unit"),
        [
            ("ms", TimeUnit.MILLISECONDS),
            ("SECONDS", TimeUnit.SECONDS),
            (" min ", TimeUnit.MINUTES),
            ("days", TimeUnit.DAYS),
        ],
    )
    def test_parse(self, text: str, unit: TimeUnit) -> None:
        assert TimeUnit.parse(text) is unit

    def test_parse_unknown(self) -> None:
        with pytest.raises(DescriptorError):
            TimeUnit.parse("fortnights")


class TestHotReload:
    def test_defaults(self) -> None:
        hot_reload = HotReload()
        assert hot_reload.enabled
        assert hot_reload.interval == 5.0

    def test_negative_interval(self) -> None:
        with pytest.raises(DescriptorError):
            HotReload(-1)


class TestConfigTypeDescriptor:
    """Test descriptor construction and derived values."""

    def test_default_source(self) -> None:
        descriptor = ConfigTypeDescriptor(name="com.example.Server")
        assert descriptor.default_source == "classpath:com/example/Server.properties"

    def test_for_type(self) -> None:
        descriptor = ConfigTypeDescriptor.for_type(ServerConfig, sources=["file:/tmp/a"])
        assert descriptor.name == f"{__name__}.ServerConfig"
        assert descriptor.sources == ("file:/tmp/a",)
        assert descriptor.load_type is LoadType.FIRST

    def test_empty_name(self) -> None:
        with pytest.raises(DescriptorError):
            ConfigTypeDescriptor(name="")

    def test_defaults_frozen_and_stringified(self) -> None:
        source = {"port": 80}
        descriptor = ConfigTypeDescriptor(name="a.B", defaults=source)
        source["port"] = 81
        assert descriptor.defaults == {"port": "80"}
        with pytest.raises(TypeError):
            descriptor.defaults["port"] = "1"  # type: ignore[index]

    @pytest.mark.parametrize(
        ("sources", "hot_reload", "active"),
        [
            (("file:/a",), HotReload(1), True),
            (("file:/a",), HotReload(1, enabled=False), False),
            (("file:/a",), None, False),
            ((), HotReload(1), False),
        ],
    )
    def test_hot_reload_active(
        self, sources: tuple[str, ...], hot_reload: HotReload | None, active: bool
    ) -> None:
        descriptor = ConfigTypeDescriptor(name="a.B", sources=sources, hot_reload=hot_reload)
        assert descriptor.hot_reload_active is active
