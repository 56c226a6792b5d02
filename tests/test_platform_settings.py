from decimal import Decimal

import pytest

from application.services.platform_settings_service import PlatformSettingsService
from domain.common.exceptions import DomainValidationException
from domain.platform_setting.entity import COMMISSION_PERCENTAGE, CURRENCY, MINIMUM_WITHDRAWAL
from infrastructure.cache import InMemoryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class BrokenCache:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ttl=None):
        raise ConnectionError("redis down")

    async def delete(self, key):
        raise ConnectionError("redis down")

    async def clear(self):
        raise ConnectionError("redis down")


@pytest.mark.asyncio
async def test_reads_are_cached_until_ttl_expires(seeder, uow_factory):
    clock = FakeClock()
    service = PlatformSettingsService(uow_factory, InMemoryCache(clock=clock), ttl_seconds=60)

    assert await service.get_commission_rate() == Decimal("50")

    # direct write bypasses cache invalidation
    await seeder.setting(COMMISSION_PERCENTAGE, "30")
    clock.now += 59
    assert await service.get_commission_rate() == Decimal("50")

    clock.now += 2
    assert await service.get_commission_rate() == Decimal("30")


@pytest.mark.asyncio
async def test_set_setting_invalidates_cache_and_audits(seeder, settings_service, uow_factory):
    assert await settings_service.get_minimum_withdrawal() == Decimal("300")

    saved = await settings_service.set_setting(MINIMUM_WITHDRAWAL, " 500 ", updated_by=None)

    assert saved.value == "500"
    assert await settings_service.get_minimum_withdrawal() == Decimal("500")
    async with uow_factory(readonly=True) as uow:
        entries = await uow.audit_log_repository.list_for_entity("platform_setting", MINIMUM_WITHDRAWAL)
    assert entries[-1].changes == {"old": "300", "new": "500"}


@pytest.mark.asyncio
async def test_missing_keys_fall_back_to_defaults(uow_factory, settings_cache):
    service = PlatformSettingsService(uow_factory, settings_cache, ttl_seconds=60)

    assert await service.get_commission_rate() == Decimal("50")
    assert await service.get_minimum_withdrawal() == Decimal("300")
    assert await service.get_currency() == "INR"
    assert len(settings_cache) == 0


@pytest.mark.asyncio
async def test_non_numeric_value_falls_back_to_default(seeder, settings_service):
    await seeder.setting(COMMISSION_PERCENTAGE, "fifty")
    assert await settings_service.get_commission_rate() == Decimal("50")


@pytest.mark.asyncio
@pytest.mark.parametrize("key,value", [
    (COMMISSION_PERCENTAGE, "120"),
    (COMMISSION_PERCENTAGE, "-1"),
    (MINIMUM_WITHDRAWAL, "abc"),
])
async def test_invalid_values_are_rejected(seeder, settings_service, key, value):
    with pytest.raises(DomainValidationException):
        await settings_service.set_setting(key, value, updated_by=None)


@pytest.mark.asyncio
async def test_cache_outage_reads_through_to_database(seeder, uow_factory):
    service = PlatformSettingsService(uow_factory, BrokenCache(), ttl_seconds=60)

    assert await service.get_currency() == "INR"
    saved = await service.set_setting(CURRENCY, "USD", updated_by=None)
    assert saved.value == "USD"
    assert await service.get_currency() == "USD"


@pytest.mark.asyncio
async def test_get_all_lists_every_setting(seeder, settings_service):
    assert await settings_service.get_all() == {
        COMMISSION_PERCENTAGE: "50",
        CURRENCY: "INR",
        MINIMUM_WITHDRAWAL: "300",
    }


@pytest.mark.asyncio
async def test_clear_cache_forces_reload(seeder, settings_service, settings_cache):
    assert await settings_service.get_commission_rate() == Decimal("50")
    await seeder.setting(COMMISSION_PERCENTAGE, "25")
    assert await settings_service.get_commission_rate() == Decimal("50")

    await settings_service.clear_cache()

    assert len(settings_cache) == 0
    assert await settings_service.get_commission_rate() == Decimal("25")
