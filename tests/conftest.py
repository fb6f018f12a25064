"""Pytest fixtures for benefits engine tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from benefits_engine.api.app import create_app
from benefits_engine.api.dependencies import get_session_factory
from benefits_engine.config import Settings, get_settings
from benefits_engine.database import create_session_factory, create_tables, get_engine
from benefits_engine.models import BankReconciliation, Invoice, QuickBooksSyncLog
from benefits_engine.services.month_end import MonthEndValidator

# Fixed "now" for validation runs; February 2024 is the month under test.
TEST_NOW = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
TEST_YEAR = 2024
TEST_MONTH = 2


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the developer's environment."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="DEBUG",
        default_safety_cap_percent=Decimal("50"),
        ss_rate=Decimal("0.062"),
        medicare_rate=Decimal("0.0145"),
        qb_sync_max_age_hours=24,
        large_transaction_cents=1_000_000,
        check_timeout_seconds=5.0,
    )


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent check sessions get their own connections."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'benefits_test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def validator(session_factory, settings) -> MonthEndValidator:
    return MonthEndValidator(session_factory, settings=settings, clock=lambda: TEST_NOW)


async def seed_closeable_month(
    session: AsyncSession,
    year: int = TEST_YEAR,
    month: int = TEST_MONTH,
    now: datetime = TEST_NOW,
) -> None:
    """Reconcile the bank and record a recent QuickBooks sync."""
    session.add_all(
        [
            BankReconciliation(
                year=year,
                month=month,
                bank_account_name="Operating",
                beginning_book_balance=Decimal("1000.00"),
                ending_book_balance=Decimal("2500.50"),
                ending_bank_balance=Decimal("2500.50"),
                reconciled=True,
            ),
            QuickBooksSyncLog(
                sync_type="bidirectional",
                status="success",
                records_synced=12,
                synced_at=now - timedelta(hours=2),
            ),
        ]
    )
    await session.commit()


def make_invoice(
    invoice_date: date,
    total_cents: int = 10_000,
    invoice_number: str | None = None,
    sent: bool = True,
    **kwargs,
) -> Invoice:
    """Invoice with sensible defaults; ``sent`` sets ``emailed_at``."""
    return Invoice(
        company_id=kwargs.pop("company_id", uuid4()),
        invoice_number=invoice_number,
        invoice_date=invoice_date,
        due_date=kwargs.pop("due_date", invoice_date + timedelta(days=30)),
        total_cents=total_cents,
        emailed_at=TEST_NOW if sent else None,
        **kwargs,
    )


@pytest.fixture
async def closeable_month(session: AsyncSession) -> None:
    await seed_closeable_month(session)


@pytest.fixture
async def client(session_factory, settings) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database wired in."""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
