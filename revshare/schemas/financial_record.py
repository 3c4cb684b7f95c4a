from decimal import Decimal
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import date, datetime

# Alias to avoid field name 'date' shadowing type 'date' in annotations (Pydantic v2)
DateType = date


class ExternalTransaction(BaseModel):
    """One settled charge as reported by the payment processor."""
    external_ref: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    fee: Decimal = Field(Decimal("0.00"), ge=0, max_digits=15, decimal_places=2)
    settled_at: datetime
    description: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def fee_not_above_amount(self):
        if self.fee > self.amount:
            raise ValueError("fee must not exceed amount")
        return self


class ImportRequest(BaseModel):
    start_date: DateType
    end_date: DateType
    preview: bool = False


class ImportItemError(BaseModel):
    external_ref: Optional[str] = None
    error: str


class ImportResult(BaseModel):
    imported: int = 0
    skipped: int = 0
    errors: List[ImportItemError] = []


class PeriodTotals(BaseModel):
    """Aggregated ledger totals for a period or an ad-hoc date range."""
    start_date: DateType
    end_date: DateType
    total_revenue: Decimal
    total_fees: Decimal
    net_revenue: Decimal
    fee_percentage: Decimal
    company_expenses: Decimal
    contractor_expenses: Decimal
    total_expenses: Decimal
    transaction_count: int
    average_transaction_amount: Decimal


class ImportPreviewResponse(BaseModel):
    preview: bool = True
    total_count: int
    total_amount: Decimal
    total_fees: Decimal
    transactions: List[ExternalTransaction]


class ImportResponse(BaseModel):
    success: bool
    message: str
    result: ImportResult
