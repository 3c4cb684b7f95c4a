from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from revshare.models.settlement import SettlementStatus


class SettlementPeriod(BaseModel):
    year: int = Field(..., ge=2000, le=9999)
    month: int = Field(..., ge=1, le=12)


class SettlementResponse(BaseModel):
    id: str
    year: int
    month: int
    total_revenue: Decimal
    total_fees: Decimal
    company_expenses: Decimal
    contractor_expenses: Decimal
    total_expenses: Decimal
    profit: Decimal
    partner_a_id: str
    partner_a_percent: Decimal
    partner_a_share: Decimal
    partner_a_reimbursement: Decimal
    partner_b_id: str
    partner_b_percent: Decimal
    partner_b_share: Decimal
    partner_b_reimbursement: Decimal
    company_residual: Decimal
    status: SettlementStatus
    finalized_by: Optional[str] = None
    finalized_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SettlementActionResponse(BaseModel):
    success: bool
    message: str
    settlement: SettlementResponse


class SettlementListResponse(BaseModel):
    settlements: List[SettlementResponse]
    total_count: int
    has_more: bool
