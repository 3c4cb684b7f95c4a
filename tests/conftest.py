"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PARTNER_A_ID", "partner_a")
os.environ.setdefault("PARTNER_B_ID", "partner_b")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from revshare.core.database import Base
from revshare.core.dependencies import get_db
from revshare.main import app
from revshare.models import FinancialRecord
from revshare.models.financial_record import ApprovalStatus, RecordKind, SourceType
from revshare.schemas.actor import Actor, AdminLevel

PARTNER_A = "partner_a"
PARTNER_B = "partner_b"


@pytest.fixture
def engine():
    """In-memory SQLite shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def other_db(engine):
    """A second session on the same database, standing in for a concurrent request."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    """TestClient whose requests use the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    previous_feed = app.state.transaction_feed
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.transaction_feed = previous_feed


@pytest.fixture
def super_admin():
    return Actor(actor_id="owner-1", admin_level=AdminLevel.super)


@pytest.fixture
def finance_admin():
    return Actor(actor_id="finance-1", admin_level=AdminLevel.financial)


@pytest.fixture
def outsider():
    return Actor(actor_id="member-1", admin_level=AdminLevel.none)


@pytest.fixture
def partner_a():
    return Actor(actor_id=PARTNER_A, admin_level=AdminLevel.none)


@pytest.fixture
def partner_b():
    return Actor(actor_id=PARTNER_B, admin_level=AdminLevel.none)


@pytest.fixture
def add_record(db):
    """Factory for ledger rows, committed immediately."""
    def _add(
        kind=RecordKind.expense,
        amount="0.00",
        occurred_on=date(2025, 6, 15),
        fee="0.00",
        contractor_id=None,
        approval_status=ApprovalStatus.approved,
        external_ref=None,
        category=None,
    ):
        amount = Decimal(amount)
        fee = Decimal(fee)
        record = FinancialRecord(
            kind=kind,
            amount=amount,
            fee_amount=fee,
            net_amount=amount - fee,
            occurred_on=occurred_on,
            category=category or kind.value,
            contractor_id=contractor_id,
            approval_status=approval_status,
            source_type=SourceType.processor if kind == RecordKind.revenue else SourceType.manual,
            external_ref=external_ref,
        )
        db.add(record)
        db.commit()
        return record

    return _add


@pytest.fixture
def example_ledger(add_record):
    """June 2025: revenue 10,000 with 300 fees, 1,000 company and 500 contractor expenses."""
    add_record(RecordKind.revenue, "6000.00", fee="180.00", external_ref="pi_1")
    add_record(RecordKind.revenue, "4000.00", fee="120.00", external_ref="pi_2", occurred_on=date(2025, 6, 30))
    add_record(RecordKind.expense, "1000.00", occurred_on=date(2025, 6, 1))
    add_record(RecordKind.expense, "500.00", contractor_id="contractor-x")


def headers(actor: Actor) -> dict:
    return {"X-Actor-Id": actor.actor_id, "X-Admin-Level": actor.admin_level.value}
