"""Settlement lifecycle tests."""

from datetime import date
from decimal import Decimal

import pytest

from revshare.common.exceptions import AuthorizationError, ConflictError, PreconditionError
from revshare.models.adjustment import AdjustmentType, DecisionAction
from revshare.models.financial_record import RecordKind
from revshare.models.settlement import FinancialAccessLog, MonthlySettlement, SettlementStatus
from revshare.services.adjustment_service import decide_adjustment, propose_adjustment
from revshare.services import settlement_service
from revshare.services.settlement_service import (
    finalize_settlement,
    get_allocation_view,
    list_settlements,
    mark_settlement_paid,
)
from tests.conftest import PARTNER_A, PARTNER_B


def test_draft_view_recomputes_without_writing(db, example_ledger, finance_admin, add_record):
    view = get_allocation_view(db, finance_admin, 2025, 6)

    assert view.status == SettlementStatus.draft
    assert view.can_finalize is True
    assert view.can_mark_paid is False
    assert view.allocation.net_profit == Decimal("8200.00")
    assert db.query(MonthlySettlement).count() == 0

    add_record(RecordKind.revenue, "1000.00", external_ref="pi_late")
    view = get_allocation_view(db, finance_admin, 2025, 6)
    assert view.allocation.total_revenue == Decimal("11000.00")


def test_view_requires_financial_level(db, outsider):
    with pytest.raises(AuthorizationError):
        get_allocation_view(db, outsider, 2025, 6)


def test_pending_adjustment_blocks_finalize(db, example_ledger, super_admin, finance_admin):
    adjustment = propose_adjustment(
        db, super_admin, 2025, 6, AdjustmentType.admin_proposal, PARTNER_B, Decimal("20.00"), "Leave"
    )

    view = get_allocation_view(db, finance_admin, 2025, 6)
    assert view.pending_adjustments == 1
    assert view.can_finalize is False

    with pytest.raises(PreconditionError) as exc:
        finalize_settlement(db, super_admin, 2025, 6)
    assert exc.value.details["pending_count"] == 1
    assert db.query(MonthlySettlement).count() == 0

    decide_adjustment(db, super_admin, adjustment.id, DecisionAction.approve)
    settlement = finalize_settlement(db, super_admin, 2025, 6)

    assert settlement.status == SettlementStatus.finalized
    assert settlement.finalized_by == super_admin.actor_id
    assert settlement.finalized_at is not None
    assert settlement.partner_a_share == Decimal("2460.00")
    assert settlement.partner_b_percent == Decimal("20.00")
    assert settlement.partner_b_share == Decimal("1640.00")
    assert settlement.company_residual == Decimal("4100.00")


def test_finalize_requires_super(db, finance_admin):
    with pytest.raises(AuthorizationError):
        finalize_settlement(db, finance_admin, 2025, 6)


def test_finalize_twice_conflicts(db, super_admin):
    finalize_settlement(db, super_admin, 2025, 6)

    with pytest.raises(ConflictError) as exc:
        finalize_settlement(db, super_admin, 2025, 6)
    assert exc.value.details["current_status"] == "finalized"
    assert db.query(MonthlySettlement).count() == 1


def test_finalized_snapshot_ignores_later_ledger_changes(db, example_ledger, super_admin, finance_admin, add_record):
    finalize_settlement(db, super_admin, 2025, 6)

    add_record(RecordKind.revenue, "5000.00", external_ref="pi_after")
    add_record(RecordKind.expense, "300.00", occurred_on=date(2025, 6, 20))

    view = get_allocation_view(db, finance_admin, 2025, 6)

    assert view.status == SettlementStatus.finalized
    assert view.can_finalize is False
    assert view.can_mark_paid is True
    assert view.allocation.total_revenue == Decimal("10000.00")
    assert view.allocation.company_expenses == Decimal("1000.00")
    assert view.allocation.contractor_expenses == Decimal("500.00")
    assert view.allocation.net_profit == Decimal("8200.00")
    assert [p.share for p in view.allocation.partners] == [Decimal("2460.00"), Decimal("2460.00")]


def test_mark_paid_flow(db, example_ledger, super_admin, finance_admin):
    finalize_settlement(db, super_admin, 2025, 6)

    settlement = mark_settlement_paid(db, super_admin, 2025, 6)

    assert settlement.status == SettlementStatus.paid
    assert settlement.paid_by == super_admin.actor_id
    assert settlement.paid_at is not None
    assert settlement.profit == Decimal("8200.00")

    view = get_allocation_view(db, finance_admin, 2025, 6)
    assert view.status == SettlementStatus.paid
    assert view.can_mark_paid is False


def test_mark_paid_requires_finalized(db, super_admin):
    with pytest.raises(PreconditionError) as exc:
        mark_settlement_paid(db, super_admin, 2025, 6)
    assert exc.value.details["current_status"] == "draft"
    assert exc.value.details["required_status"] == "finalized"


def test_no_backward_transitions(db, super_admin):
    finalize_settlement(db, super_admin, 2025, 6)
    mark_settlement_paid(db, super_admin, 2025, 6)

    with pytest.raises(PreconditionError):
        mark_settlement_paid(db, super_admin, 2025, 6)
    with pytest.raises(ConflictError):
        finalize_settlement(db, super_admin, 2025, 6)


def test_transitions_are_access_logged(db, super_admin):
    finalize_settlement(db, super_admin, 2025, 6)
    mark_settlement_paid(db, super_admin, 2025, 6)

    actions = [log.action for log in db.query(FinancialAccessLog).order_by(FinancialAccessLog.id)]
    assert actions == ["finalize", "mark_paid"]


def test_list_settlements_newest_first(db, super_admin, finance_admin, outsider):
    for month in (4, 5, 6):
        finalize_settlement(db, super_admin, 2025, month)
    finalize_settlement(db, super_admin, 2024, 12)

    rows, total = list_settlements(db, finance_admin, limit=2)

    assert total == 4
    assert [(r.year, r.month) for r in rows] == [(2025, 6), (2025, 5)]
    assert rows[0].partner_a_id == PARTNER_A

    with pytest.raises(AuthorizationError):
        list_settlements(db, outsider)


def test_concurrent_finalize_conflicts(db, other_db, example_ledger, super_admin, monkeypatch):
    """Both requests see a draft; the one that inserts second loses."""
    def finalized_elsewhere(session, year, month):
        other_db.add(MonthlySettlement(
            year=year,
            month=month,
            total_revenue=Decimal("0.00"),
            total_fees=Decimal("0.00"),
            company_expenses=Decimal("0.00"),
            contractor_expenses=Decimal("0.00"),
            total_expenses=Decimal("0.00"),
            profit=Decimal("0.00"),
            partner_a_id=PARTNER_A,
            partner_a_percent=Decimal("30.00"),
            partner_a_share=Decimal("0.00"),
            partner_b_id=PARTNER_B,
            partner_b_percent=Decimal("30.00"),
            partner_b_share=Decimal("0.00"),
            company_residual=Decimal("0.00"),
            status=SettlementStatus.finalized,
            finalized_by="owner-2",
        ))
        other_db.commit()
        return 0

    monkeypatch.setattr(settlement_service, "count_pending", finalized_elsewhere)

    with pytest.raises(ConflictError):
        finalize_settlement(db, super_admin, 2025, 6)

    rows = db.query(MonthlySettlement).all()
    assert [r.finalized_by for r in rows] == ["owner-2"]
    assert db.query(FinancialAccessLog).count() == 0
