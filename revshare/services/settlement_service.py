"""
Monthly settlement lifecycle: draft -> finalized -> paid.

Drafts are never stored; reading a draft period recomputes it. Finalize
inserts the frozen row (unique per year/month), mark-paid only stamps it.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from revshare.common.exceptions import ConflictError, PreconditionError
from revshare.logger_config import logger
from revshare.models.settlement import FinancialAccessLog, MonthlySettlement, SettlementStatus
from revshare.schemas.actor import Actor, AdminLevel
from revshare.schemas.allocation import AllocationView
from revshare.services.access import require_level
from revshare.services.adjustment_service import count_pending
from revshare.services.allocation_service import allocation_from_settlement, calculate_allocation
from revshare.utils.period import validate_period


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _period(year: int, month: int) -> dict:
    return {"year": year, "month": month}


# ==================== QUERY OPERATIONS ====================

def get_settlement(db: Session, year: int, month: int) -> Optional[MonthlySettlement]:
    """Stored settlement for the period, or None while it is still a draft."""
    validate_period(year, month)
    return (
        db.query(MonthlySettlement)
        .filter(MonthlySettlement.year == year, MonthlySettlement.month == month)
        .first()
    )


def get_allocation_view(db: Session, actor: Actor, year: int, month: int) -> AllocationView:
    """
    The period's allocation as callers see it. Draft periods are recomputed
    from the ledger without side effects; finalized and paid periods return
    the frozen snapshot.
    """
    require_level(actor, AdminLevel.financial, "get_allocation")

    settlement = get_settlement(db, year, month)
    pending = count_pending(db, year, month)

    if settlement is None:
        allocation = calculate_allocation(db, year, month)
        status = SettlementStatus.draft
    else:
        allocation = allocation_from_settlement(db, settlement)
        status = settlement.status

    return AllocationView(
        allocation=allocation,
        status=status,
        pending_adjustments=pending,
        can_finalize=status == SettlementStatus.draft and pending == 0,
        can_mark_paid=status == SettlementStatus.finalized,
    )


def list_settlements(
    db: Session,
    actor: Actor,
    skip: int = 0,
    limit: int = 12,
) -> Tuple[List[MonthlySettlement], int]:
    """Stored settlements, newest period first."""
    require_level(actor, AdminLevel.financial, "list_settlements")

    query = db.query(MonthlySettlement)
    total = query.count()
    rows = (
        query.order_by(MonthlySettlement.year.desc(), MonthlySettlement.month.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return rows, total


# ==================== TRANSITIONS ====================

def finalize_settlement(db: Session, actor: Actor, year: int, month: int) -> MonthlySettlement:
    """
    draft -> finalized. Fails with PreconditionError while pending adjustments
    exist for the period, and with ConflictError if the period is already
    finalized or paid (including a concurrent finalize that won the insert).
    """
    require_level(actor, AdminLevel.super, "finalize_settlement")
    period = _period(year, month)

    existing = get_settlement(db, year, month)
    if existing is not None:
        raise ConflictError(
            "Settlement is already finalized",
            {**period, "current_status": existing.status.value, "required_status": SettlementStatus.draft.value},
        )

    pending = count_pending(db, year, month)
    if pending > 0:
        logger.warning(f"Finalize {year}-{month:02d} blocked by {pending} pending adjustment(s)")
        raise PreconditionError(
            f"{pending} pending adjustment(s) must be decided before finalizing",
            {**period, "pending_count": pending},
        )

    allocation = calculate_allocation(db, year, month)
    partner_a, partner_b = allocation.partners

    settlement = MonthlySettlement(
        year=year,
        month=month,
        total_revenue=allocation.total_revenue,
        total_fees=allocation.total_fees,
        company_expenses=allocation.company_expenses,
        contractor_expenses=allocation.contractor_expenses,
        total_expenses=allocation.total_expenses,
        profit=allocation.net_profit,
        partner_a_id=partner_a.partner_id,
        partner_a_percent=partner_a.percent,
        partner_a_share=partner_a.share,
        partner_a_reimbursement=partner_a.expense_reimbursement,
        partner_b_id=partner_b.partner_id,
        partner_b_percent=partner_b.percent,
        partner_b_share=partner_b.share,
        partner_b_reimbursement=partner_b.expense_reimbursement,
        company_residual=allocation.company_residual,
        status=SettlementStatus.finalized,
        finalized_by=actor.actor_id,
        finalized_at=_now(),
    )
    db.add(settlement)
    db.add(FinancialAccessLog(
        actor_id=actor.actor_id,
        action="finalize",
        entity_type="settlement",
        details={**period, "has_adjustments": allocation.has_adjustments},
    ))

    try:
        db.commit()
        db.refresh(settlement)
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent finalize lost for {year}-{month:02d}")
        raise ConflictError(
            "Settlement was finalized concurrently",
            {**period, "required_status": SettlementStatus.draft.value},
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error finalizing settlement {year}-{month:02d}")
        raise

    logger.info(f"Settlement {year}-{month:02d} finalized by {actor.actor_id}")
    return settlement


def mark_settlement_paid(db: Session, actor: Actor, year: int, month: int) -> MonthlySettlement:
    """finalized -> paid. Monetary fields are left untouched."""
    require_level(actor, AdminLevel.super, "mark_settlement_paid")
    period = _period(year, month)

    settlement = get_settlement(db, year, month)
    current = settlement.status if settlement is not None else SettlementStatus.draft
    if current != SettlementStatus.finalized:
        raise PreconditionError(
            "Only a finalized settlement can be marked as paid",
            {**period, "current_status": current.value, "required_status": SettlementStatus.finalized.value},
        )

    try:
        updated = (
            db.query(MonthlySettlement)
            .filter(
                MonthlySettlement.id == settlement.id,
                MonthlySettlement.status == SettlementStatus.finalized,
            )
            .update(
                {
                    MonthlySettlement.status: SettlementStatus.paid,
                    MonthlySettlement.paid_at: _now(),
                    MonthlySettlement.paid_by: actor.actor_id,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            db.rollback()
            raise ConflictError(
                "Settlement was marked as paid concurrently",
                {**period, "required_status": SettlementStatus.finalized.value},
            )
        db.add(FinancialAccessLog(
            actor_id=actor.actor_id,
            action="mark_paid",
            entity_type="settlement",
            details=period,
        ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error marking settlement {year}-{month:02d} as paid")
        raise

    db.refresh(settlement)
    logger.info(f"Settlement {year}-{month:02d} marked as paid by {actor.actor_id}")
    return settlement
