"""
Allocation calculator.

compute_allocation is pure: same totals, percents and reimbursements give the
same Allocation. calculate_allocation loads those inputs for a period.
"""

from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from revshare.core.config import settings
from revshare.logger_config import logger
from revshare.models.adjustment import RevenueShareAdjustment
from revshare.models.settlement import MonthlySettlement
from revshare.schemas.allocation import Allocation, PartnerAllocation
from revshare.schemas.financial_record import PeriodTotals
from revshare.services.adjustment_service import resolve_partner_percents
from revshare.services.period_aggregator import aggregate_period, contractor_expenses_for
from revshare.utils.period import ZERO, percent_of, ratio_percent, to_money, to_percent


def compute_allocation(
    year: int,
    month: int,
    totals: PeriodTotals,
    percents: Dict[str, Tuple[Decimal, Optional[RevenueShareAdjustment]]],
    reimbursements: Optional[Dict[str, Decimal]] = None,
) -> Allocation:
    reimbursements = reimbursements or {}

    gross_profit = totals.total_revenue - totals.total_fees
    total_expenses = totals.company_expenses + totals.contractor_expenses
    net_profit = to_money(gross_profit - total_expenses)

    partners = []
    for partner_id in settings.partner_ids:
        percent, adjustment = percents[partner_id]
        # Loss months produce negative shares; nothing is clamped
        share = percent_of(net_profit, percent)
        reimbursement = to_money(reimbursements.get(partner_id, ZERO))
        partners.append(PartnerAllocation(
            partner_id=partner_id,
            basis_percent=to_percent(settings.BASIS_PERCENT),
            percent=to_percent(percent),
            share=share,
            expense_reimbursement=reimbursement,
            total_payment=share + reimbursement,
            adjustment_id=adjustment.id if adjustment is not None else None,
            adjustment_reason=adjustment.reason if adjustment is not None else None,
        ))

    company_residual = net_profit - sum((p.share for p in partners), ZERO)

    return Allocation(
        year=year,
        month=month,
        total_revenue=totals.total_revenue,
        total_fees=totals.total_fees,
        gross_profit=to_money(gross_profit),
        company_expenses=totals.company_expenses,
        contractor_expenses=totals.contractor_expenses,
        total_expenses=to_money(total_expenses),
        net_profit=net_profit,
        profit_margin=ratio_percent(net_profit, totals.total_revenue),
        partners=partners,
        company_residual=to_money(company_residual),
        has_adjustments=any(p.adjustment_id is not None for p in partners),
    )


def calculate_allocation(db: Session, year: int, month: int) -> Allocation:
    """Live allocation for the period from the current ledger and approved adjustments."""
    totals = aggregate_period(db, year, month)
    percents = resolve_partner_percents(db, year, month)
    reimbursements = {
        partner_id: contractor_expenses_for(db, partner_id, year, month)
        for partner_id in settings.partner_ids
    }
    allocation = compute_allocation(year, month, totals, percents, reimbursements)

    logger.info(
        f"Allocation for {year}-{month:02d} computed: "
        + ", ".join(f"{p.partner_id}={p.percent}%" for p in allocation.partners)
    )
    return allocation


def allocation_from_settlement(db: Session, settlement: MonthlySettlement) -> Allocation:
    """Allocation of a finalized period, read back from its frozen row."""
    year, month = settlement.year, settlement.month
    # Approved adjustments are terminal and none can be added once finalized
    percents = resolve_partner_percents(db, year, month)

    frozen = (
        (settlement.partner_a_id, settlement.partner_a_percent,
         settlement.partner_a_share, settlement.partner_a_reimbursement),
        (settlement.partner_b_id, settlement.partner_b_percent,
         settlement.partner_b_share, settlement.partner_b_reimbursement),
    )
    partners = []
    for partner_id, percent, share, reimbursement in frozen:
        _, adjustment = percents.get(partner_id, (None, None))
        share = to_money(share)
        reimbursement = to_money(reimbursement)
        partners.append(PartnerAllocation(
            partner_id=partner_id,
            basis_percent=to_percent(settings.BASIS_PERCENT),
            percent=to_percent(percent),
            share=share,
            expense_reimbursement=reimbursement,
            total_payment=share + reimbursement,
            adjustment_id=adjustment.id if adjustment is not None else None,
            adjustment_reason=adjustment.reason if adjustment is not None else None,
        ))

    total_revenue = to_money(settlement.total_revenue)
    total_fees = to_money(settlement.total_fees)
    net_profit = to_money(settlement.profit)
    return Allocation(
        year=year,
        month=month,
        total_revenue=total_revenue,
        total_fees=total_fees,
        gross_profit=total_revenue - total_fees,
        company_expenses=to_money(settlement.company_expenses),
        contractor_expenses=to_money(settlement.contractor_expenses),
        total_expenses=to_money(settlement.total_expenses),
        net_profit=net_profit,
        profit_margin=ratio_percent(net_profit, total_revenue),
        partners=partners,
        company_residual=to_money(settlement.company_residual),
        has_adjustments=any(p.adjustment_id is not None for p in partners),
    )
