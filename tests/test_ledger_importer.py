"""Ledger importer tests."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from revshare.common.exceptions import AuthorizationError, UpstreamError, ValidationError
from revshare.core.config import settings
from revshare.models.financial_record import (
    ApprovalStatus,
    FinancialRecord,
    RecordKind,
    SourceType,
)
from revshare.models.settlement import FinancialAccessLog
from revshare.services.ledger_importer import LedgerImporter, local_settlement_date
from revshare.services.period_aggregator import aggregate_period
from revshare.services.transaction_feed import StaticTransactionFeed, TransactionFeed

JUNE_START = date(2025, 6, 1)
JUNE_END = date(2025, 6, 30)


def charge(ref, amount="60.00", fee="2.04", settled_at="2025-06-15T10:00:00+00:00", description="Lesson"):
    return {
        "external_ref": ref,
        "amount": amount,
        "fee": fee,
        "settled_at": settled_at,
        "description": description,
    }


class BrokenFeed(TransactionFeed):
    name = "broken"

    def fetch(self, start, end):
        raise ConnectionError("connection reset")


def test_import_creates_approved_revenue(db, finance_admin):
    result = LedgerImporter(db).import_transactions(finance_admin, [charge("ch_1")])

    assert result.imported == 1
    assert result.skipped == 0
    assert result.errors == []

    record = db.query(FinancialRecord).one()
    assert record.kind == RecordKind.revenue
    assert record.approval_status == ApprovalStatus.approved
    assert record.source_type == SourceType.processor
    assert record.external_ref == "ch_1"
    assert record.amount == Decimal("60.00")
    assert record.fee_amount == Decimal("2.04")
    assert record.net_amount == Decimal("57.96")
    assert record.occurred_on == date(2025, 6, 15)
    assert record.created_by == finance_admin.actor_id


def test_import_is_idempotent(db, finance_admin):
    importer = LedgerImporter(db)

    first = importer.import_transactions(finance_admin, [charge("ch_1"), charge("ch_2")])
    second = importer.import_transactions(finance_admin, [charge("ch_1")])

    assert (first.imported, first.skipped) == (2, 0)
    assert (second.imported, second.skipped) == (0, 1)
    assert db.query(FinancialRecord).filter(FinancialRecord.external_ref == "ch_1").count() == 1
    assert aggregate_period(db, 2025, 6).total_revenue == Decimal("120.00")


def test_duplicate_within_one_batch(db, finance_admin):
    result = LedgerImporter(db).import_transactions(finance_admin, [charge("ch_1"), charge("ch_1")])

    assert (result.imported, result.skipped) == (1, 1)


def test_malformed_items_do_not_abort_batch(db, finance_admin):
    batch = [
        charge("ch_ok"),
        {"external_ref": "ch_no_amount", "settled_at": "2025-06-15T10:00:00+00:00"},
        charge("ch_fee", amount="10.00", fee="12.00"),
        charge("ch_neg", amount="-5.00"),
    ]

    result = LedgerImporter(db).import_transactions(finance_admin, batch)

    assert result.imported == 1
    assert [e.external_ref for e in result.errors] == ["ch_no_amount", "ch_fee", "ch_neg"]
    assert "amount" in result.errors[0].error
    # Error text never echoes amounts
    assert all("12.00" not in e.error and "-5.00" not in e.error for e in result.errors)
    assert db.query(FinancialRecord).count() == 1


def test_import_requires_financial_level(db, outsider):
    with pytest.raises(AuthorizationError):
        LedgerImporter(db).import_transactions(outsider, [charge("ch_1")])
    assert db.query(FinancialRecord).count() == 0


def test_import_writes_access_log(db, finance_admin):
    LedgerImporter(db).import_transactions(finance_admin, [charge("ch_1"), {"external_ref": "bad"}])

    log = db.query(FinancialAccessLog).one()
    assert log.action == "import"
    assert log.actor_id == finance_admin.actor_id
    assert log.details == {"imported": 1, "skipped": 0, "error_count": 1}


def test_settlement_date_uses_configured_timezone(monkeypatch):
    monkeypatch.setattr(settings, "SETTLEMENT_TIMEZONE", "Asia/Tokyo")

    assert local_settlement_date(datetime.fromisoformat("2025-06-30T20:00:00+00:00")) == date(2025, 7, 1)
    assert local_settlement_date(datetime(2025, 6, 30, 20, 0)) == date(2025, 6, 30)


def test_imported_charge_lands_in_local_month(db, finance_admin, monkeypatch):
    monkeypatch.setattr(settings, "SETTLEMENT_TIMEZONE", "America/Los_Angeles")

    LedgerImporter(db).import_transactions(
        finance_admin, [charge("ch_late", settled_at="2025-07-01T03:00:00+00:00")]
    )

    assert aggregate_period(db, 2025, 6).total_revenue == Decimal("60.00")
    assert aggregate_period(db, 2025, 7).total_revenue == Decimal("0.00")


def test_import_from_feed(db, finance_admin):
    feed = StaticTransactionFeed([charge("ch_1"), charge("ch_2", amount="40.00", fee="1.46")])

    result = LedgerImporter(db).import_from_feed(finance_admin, feed, JUNE_START, JUNE_END)

    assert result.imported == 2
    totals = aggregate_period(db, 2025, 6)
    assert totals.total_revenue == Decimal("100.00")
    assert totals.total_fees == Decimal("3.50")


def test_preview_writes_nothing(db, finance_admin):
    feed = StaticTransactionFeed(
        [charge(f"ch_{i}", amount="10.00", fee="0.50") for i in range(12)] + [{"external_ref": "bad"}]
    )

    preview = LedgerImporter(db).preview_from_feed(finance_admin, feed, JUNE_START, JUNE_END)

    assert preview.preview is True
    assert preview.total_count == 12
    assert preview.total_amount == Decimal("120.00")
    assert preview.total_fees == Decimal("6.00")
    assert len(preview.transactions) == 10
    assert db.query(FinancialRecord).count() == 0
    assert db.query(FinancialAccessLog).count() == 0


def test_unavailable_feed_raises_upstream_error(db, finance_admin):
    feed = StaticTransactionFeed([charge("ch_1")], available=False)

    with pytest.raises(UpstreamError):
        LedgerImporter(db).import_from_feed(finance_admin, feed, JUNE_START, JUNE_END)
    assert db.query(FinancialRecord).count() == 0


def test_network_failure_becomes_upstream_error(db, finance_admin):
    with pytest.raises(UpstreamError) as exc:
        LedgerImporter(db).import_from_feed(finance_admin, BrokenFeed(), JUNE_START, JUNE_END)
    assert exc.value.details["feed"] == "broken"


def test_feed_range_is_validated_first(db, finance_admin):
    feed = StaticTransactionFeed([charge("ch_1")], available=False)

    with pytest.raises(ValidationError):
        LedgerImporter(db).import_from_feed(finance_admin, feed, JUNE_END, JUNE_START)


def test_concurrent_import_counts_as_skipped(db, other_db, finance_admin, monkeypatch):
    """The existence check misses a row another batch commits just after it."""
    def imported_elsewhere(importer, external_ref):
        other_db.add(FinancialRecord(
            kind=RecordKind.revenue,
            amount=Decimal("60.00"),
            fee_amount=Decimal("2.04"),
            net_amount=Decimal("57.96"),
            occurred_on=date(2025, 6, 15),
            category="revenue",
            approval_status=ApprovalStatus.approved,
            source_type=SourceType.processor,
            external_ref=external_ref,
        ))
        other_db.commit()
        return False

    monkeypatch.setattr(LedgerImporter, "_exists", imported_elsewhere)

    result = LedgerImporter(db).import_transactions(finance_admin, [charge("ch_1")])

    assert (result.imported, result.skipped, result.errors) == (0, 1, [])
    assert db.query(FinancialRecord).filter(FinancialRecord.external_ref == "ch_1").count() == 1


def test_lookup_failure_is_isolated_to_its_item(db, finance_admin, monkeypatch):
    real_exists = LedgerImporter._exists

    def flaky_exists(importer, external_ref):
        if external_ref == "ch_bad":
            raise OperationalError("SELECT financial_records.id", {}, Exception("database is locked"))
        return real_exists(importer, external_ref)

    monkeypatch.setattr(LedgerImporter, "_exists", flaky_exists)

    result = LedgerImporter(db).import_transactions(
        finance_admin, [charge("ch_1"), charge("ch_bad"), charge("ch_2")]
    )

    assert result.imported == 2
    assert [(e.external_ref, e.error) for e in result.errors] == [("ch_bad", "Failed to save transaction")]
    assert db.query(FinancialRecord).count() == 2
