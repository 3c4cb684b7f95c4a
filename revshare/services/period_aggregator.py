"""
Period aggregator: revenue, fee and expense totals for a settlement month or
an ad-hoc date range, read straight from the ledger on every call.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from revshare.logger_config import logger
from revshare.models.financial_record import ApprovalStatus, FinancialRecord, RecordKind
from revshare.schemas.financial_record import PeriodTotals
from revshare.utils.period import ZERO, month_bounds, ratio_percent, to_money, validate_date_range


def _approved_in_range(db: Session, kind: RecordKind, start: date, end: date):
    return db.query(FinancialRecord).filter(
        FinancialRecord.kind == kind,
        FinancialRecord.approval_status == ApprovalStatus.approved,
        FinancialRecord.occurred_on >= start,
        FinancialRecord.occurred_on <= end,
    )


def _totals_between(db: Session, start: date, end: date) -> PeriodTotals:
    revenue_row = _approved_in_range(db, RecordKind.revenue, start, end).with_entities(
        func.coalesce(func.sum(FinancialRecord.amount), 0),
        func.coalesce(func.sum(FinancialRecord.fee_amount), 0),
        func.count(FinancialRecord.id),
    ).first()

    expense_row = _approved_in_range(db, RecordKind.expense, start, end).with_entities(
        func.coalesce(func.sum(case(
            (FinancialRecord.contractor_id.is_(None), FinancialRecord.amount), else_=0
        )), 0),
        func.coalesce(func.sum(case(
            (FinancialRecord.contractor_id.isnot(None), FinancialRecord.amount), else_=0
        )), 0),
    ).first()

    total_revenue = to_money(revenue_row[0]) if revenue_row else to_money(ZERO)
    total_fees = to_money(revenue_row[1]) if revenue_row else to_money(ZERO)
    count = int(revenue_row[2]) if revenue_row else 0
    company_expenses = to_money(expense_row[0]) if expense_row else to_money(ZERO)
    contractor_expenses = to_money(expense_row[1]) if expense_row else to_money(ZERO)

    average = to_money(total_revenue / count) if count else to_money(ZERO)

    return PeriodTotals(
        start_date=start,
        end_date=end,
        total_revenue=total_revenue,
        total_fees=total_fees,
        net_revenue=total_revenue - total_fees,
        fee_percentage=ratio_percent(total_fees, total_revenue),
        company_expenses=company_expenses,
        contractor_expenses=contractor_expenses,
        total_expenses=company_expenses + contractor_expenses,
        transaction_count=count,
        average_transaction_amount=average,
    )


def aggregate_period(db: Session, year: int, month: int) -> PeriodTotals:
    """Totals for the calendar month, first and last day inclusive."""
    start, end = month_bounds(year, month)
    logger.debug(f"Aggregating ledger for {year}-{month:02d} ({start} .. {end})")
    return _totals_between(db, start, end)


def aggregate_range(db: Session, start: date, end: date) -> PeriodTotals:
    """Ad-hoc totals over an inclusive date range. The range is validated before querying."""
    validate_date_range(start, end)
    logger.debug(f"Aggregating ledger for range {start} .. {end}")
    return _totals_between(db, start, end)


def contractor_expenses_for(db: Session, contractor_id: str, year: int, month: int) -> Decimal:
    """Approved expenses a contractor paid out of pocket during the month."""
    start, end = month_bounds(year, month)
    total = _approved_in_range(db, RecordKind.expense, start, end).filter(
        FinancialRecord.contractor_id == contractor_id
    ).with_entities(func.coalesce(func.sum(FinancialRecord.amount), 0)).scalar()
    return to_money(total)
