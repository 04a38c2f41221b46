from __future__ import annotations

from datetime import timedelta
from zoneinfo import ZoneInfo

import pytest

from meter_sync.application.dtos.options_dto import ApsystemsCredentialsDTO
from meter_sync.application.use_cases.meter_sync_use_case import MeterSyncUseCase
from meter_sync.main.config import AppSettings, SyncSettings
from meter_sync.main.container import (
    configure_apsystems,
    get_container,
    init_container,
)


def test_init_and_get_container() -> None:
    container = init_container(AppSettings(sync=SyncSettings(timezone="UTC")))

    assert get_container() is container
    use_case = container.meter_sync_use_case()
    assert isinstance(use_case, MeterSyncUseCase)
    assert use_case.timezone == ZoneInfo("UTC")
    assert use_case.sync_min_age == timedelta(hours=48)
    assert set(use_case.providers) == {"linky", "apsystems"}
    assert use_case.statistics_store is container.home_assistant_client()
    assert use_case.price_feed is use_case.statistics_store


def test_configure_apsystems_recreates_gateway() -> None:
    container = init_container(AppSettings())
    assert container.apsystems_gateway().app_id is None

    configure_apsystems(
        container, ApsystemsCredentialsDTO(app_id="app", app_secret="secret")
    )

    gateway = container.apsystems_gateway()
    assert gateway.app_id == "app"
    assert gateway.app_secret == "secret"
    assert container.meter_sync_use_case().providers["apsystems"] is gateway


def test_configure_apsystems_without_credentials() -> None:
    container = init_container(AppSettings())
    gateway = container.apsystems_gateway()

    configure_apsystems(container, None)

    assert container.apsystems_gateway() is gateway


def test_get_container_without_init_raises(monkeypatch) -> None:
    monkeypatch.setattr("meter_sync.main.container._app_container", None)
    with pytest.raises(RuntimeError):
        get_container()
