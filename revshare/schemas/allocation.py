from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional

from revshare.models.settlement import SettlementStatus


class PartnerAllocation(BaseModel):
    partner_id: str
    basis_percent: Decimal
    percent: Decimal
    share: Decimal
    expense_reimbursement: Decimal
    total_payment: Decimal
    adjustment_id: Optional[str] = None
    adjustment_reason: Optional[str] = None


class Allocation(BaseModel):
    year: int
    month: int

    total_revenue: Decimal
    total_fees: Decimal
    gross_profit: Decimal
    company_expenses: Decimal
    contractor_expenses: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal

    partners: List[PartnerAllocation]
    company_residual: Decimal
    has_adjustments: bool


class AllocationView(BaseModel):
    """Allocation as shown to callers: live while draft, frozen once finalized."""
    allocation: Allocation
    status: SettlementStatus
    pending_adjustments: int
    can_finalize: bool
    can_mark_paid: bool
