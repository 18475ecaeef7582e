"""Tests for the volatile cache driver."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conveyor.cache import DRIVER_REGISTRY, VolatileDriver, create_driver
from conveyor.errors import ConfigError


def test_put_then_get(tmp_path: Path) -> None:
    driver = VolatileDriver(tmp_path)

    async def _scenario() -> bytes | None:
        await driver.put("coverage/report.json", '{"lines": 90}')
        return await driver.get("coverage/report.json")

    assert asyncio.run(_scenario()) == b'{"lines": 90}'
    assert driver.name == "volatile"


def test_get_missing_key_returns_none(tmp_path: Path) -> None:
    assert asyncio.run(VolatileDriver(tmp_path).get("absent")) is None


def test_keys_cannot_escape_storage(tmp_path: Path) -> None:
    driver = VolatileDriver(tmp_path / "cache")

    with pytest.raises(ValueError):
        asyncio.run(driver.put("../outside", b"data"))


def test_driver_registry_lists_volatile() -> None:
    assert DRIVER_REGISTRY["volatile"] is VolatileDriver


def test_create_driver_by_name(tmp_path: Path) -> None:
    driver = create_driver("Volatile", base_dir=tmp_path)

    assert isinstance(driver, VolatileDriver)
    assert driver.base_dir == tmp_path


def test_create_driver_rejects_unknown_options() -> None:
    with pytest.raises(ConfigError, match="Invalid options"):
        create_driver("volatile", bucket="coverage")
