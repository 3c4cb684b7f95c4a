from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from revshare.models.adjustment import AdjustmentStatus, AdjustmentType, DecisionAction


class AdjustmentCreate(BaseModel):
    year: int = Field(..., ge=2000, le=9999)
    month: int = Field(..., ge=1, le=12)
    adjustment_type: AdjustmentType
    target_partner_id: str = Field(..., min_length=1, max_length=64)
    proposed_percent: Decimal = Field(..., max_digits=5, decimal_places=2)
    reason: str = Field("", max_length=2000)


class AdjustmentDecision(BaseModel):
    action: DecisionAction
    comments: Optional[str] = Field(None, max_length=2000)


class AdjustmentResponse(BaseModel):
    id: str
    year: int
    month: int
    adjustment_type: AdjustmentType
    target_partner_id: str
    original_percent: Decimal
    proposed_percent: Decimal
    reason: str
    proposed_by: str
    approved_by: Optional[str] = None
    status: AdjustmentStatus
    comments: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdjustmentListResponse(BaseModel):
    adjustments: List[AdjustmentResponse]
    total_count: int
    has_more: bool
