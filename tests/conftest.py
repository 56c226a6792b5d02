"""Pytest bootstrap configuration.

Point settings at an in-memory SQLite database before any application module
is imported, then provide a fresh schema, unit-of-work factory and seed
helpers per test.
"""
import os

os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("NOTIFICATIONS__BACKEND", "log")
os.environ.setdefault("RAZORPAY__WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("RAZORPAY__KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY__KEY_SECRET", "test-key-secret")

import functools
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from application.dto import OrderCreateDTO
from application.services.order_service import OrderService
from application.services.platform_settings_service import PlatformSettingsService
from application.services.wallet_service import WalletService
from domain.platform_setting.entity import COMMISSION_PERCENTAGE, CURRENCY, MINIMUM_WITHDRAWAL, PlatformSetting
from domain.project.entity import Project, ProjectStatus
from domain.user.entity import PayoutDetails, User, UserRole
from infrastructure.cache import InMemoryCache
from infrastructure.models import Base
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


WEBHOOK_SECRET = os.environ["RAZORPAY__WEBHOOK_SECRET"]


class RecordingNotifier:
    """Collects notifications; optionally fails every call."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, int, dict]] = []

    async def notify(self, event, recipient_id, data):
        if self.fail:
            raise RuntimeError("mail transport unavailable")
        self.sent.append((event, recipient_id, dict(data)))

    def events(self) -> list[str]:
        return [event for event, _, _ in self.sent]


class LedgerSeeder:
    """Inserts users, projects and platform settings through the repositories."""

    def __init__(self, uow_factory) -> None:
        self._uow_factory = uow_factory
        self._counter = 0

    async def user(
        self,
        role: UserRole = UserRole.BUYER,
        *,
        email: Optional[str] = None,
        payout: Optional[PayoutDetails] = None,
    ) -> User:
        self._counter += 1
        email = email or f"{role.value.lower()}{self._counter}@example.com"
        async with self._uow_factory() as uow:
            return await uow.user_repository.create(User(
                id=None,
                email=email,
                name=f"{role.value.title()} {self._counter}",
                role=role,
                payout=payout or PayoutDetails(),
            ))

    async def seller(self, *, complete_payout: bool = True) -> User:
        payout = PayoutDetails(
            bank_name="State Bank",
            account_number="001122334455",
            ifsc_code="SBIN0000001",
            account_holder_name="Asha Rao",
        ) if complete_payout else PayoutDetails(bank_name="State Bank")
        return await self.user(UserRole.SELLER, payout=payout)

    async def project(
        self,
        seller_id: int,
        price: str = "10000.00",
        status: ProjectStatus = ProjectStatus.APPROVED,
    ) -> Project:
        async with self._uow_factory() as uow:
            return await uow.project_repository.create(Project(
                id=None,
                seller_id=seller_id,
                title="Smart attendance system",
                price=Decimal(price),
                status=status,
            ))

    async def setting(self, key: str, value: str) -> None:
        async with self._uow_factory() as uow:
            await uow.platform_setting_repository.upsert(PlatformSetting(key=key, value=value))

    async def defaults(self) -> None:
        await self.setting(COMMISSION_PERCENTAGE, "50")
        await self.setting(MINIMUM_WITHDRAWAL, "300")
        await self.setting(CURRENCY, "INR")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def uow_factory(session_factory):
    return functools.partial(SQLAlchemyUnitOfWork, session_factory=session_factory)


@pytest_asyncio.fixture
async def seeder(uow_factory):
    seeder = LedgerSeeder(uow_factory)
    await seeder.defaults()
    return seeder


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def settings_cache():
    return InMemoryCache(default_ttl=60)


@pytest.fixture
def settings_service(uow_factory, settings_cache):
    return PlatformSettingsService(uow_factory, settings_cache, ttl_seconds=60)


@pytest.fixture
def order_service(uow_factory, settings_service, notifier):
    return OrderService(uow_factory, settings_service, notifier)


@pytest.fixture
def wallet_service(uow_factory, settings_service, notifier):
    return WalletService(uow_factory, settings_service, notifier)


@pytest.fixture
def make_sale(seeder, order_service):
    """Creates and confirms one order; returns the confirmed order DTO."""

    async def _make_sale(seller: User, buyer: User, price: str = "10000.00", payment_id: str = "pay_1"):
        project = await seeder.project(seller.id, price=price)
        order = await order_service.create_order(buyer.id, OrderCreateDTO(project_id=project.id))
        confirmation = await order_service.confirm_payment(order.id, payment_id)
        return confirmation.order

    return _make_sale
