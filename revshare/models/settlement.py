import enum
from sqlalchemy import Column, DateTime, Enum, Integer, JSON, Numeric, String, UniqueConstraint
from sqlalchemy.sql import func
from revshare.core.database import Base
from revshare.models.financial_record import generate_custom_id


class SettlementStatus(str, enum.Enum):
    draft = "draft"
    finalized = "finalized"
    paid = "paid"


class MonthlySettlement(Base):
    """Frozen monthly snapshot. Only written at finalize time; drafts are computed on read."""
    __tablename__ = "monthly_settlements"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("STL"))
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)

    total_revenue = Column(Numeric(15, 2), nullable=False)
    total_fees = Column(Numeric(15, 2), nullable=False)
    company_expenses = Column(Numeric(15, 2), nullable=False)
    contractor_expenses = Column(Numeric(15, 2), nullable=False)
    total_expenses = Column(Numeric(15, 2), nullable=False)
    profit = Column(Numeric(15, 2), nullable=False)

    partner_a_id = Column(String(64), nullable=False)
    partner_a_percent = Column(Numeric(5, 2), nullable=False)
    partner_a_share = Column(Numeric(15, 2), nullable=False)
    partner_a_reimbursement = Column(Numeric(15, 2), nullable=False, default=0)
    partner_b_id = Column(String(64), nullable=False)
    partner_b_percent = Column(Numeric(5, 2), nullable=False)
    partner_b_share = Column(Numeric(15, 2), nullable=False)
    partner_b_reimbursement = Column(Numeric(15, 2), nullable=False, default=0)
    company_residual = Column(Numeric(15, 2), nullable=False)

    status = Column(Enum(SettlementStatus), nullable=False, default=SettlementStatus.finalized)
    finalized_by = Column(String(64), nullable=True)
    finalized_at = Column(DateTime(timezone=True), nullable=True)
    paid_by = Column(String(64), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_monthly_settlements_period"),
    )

    def __repr__(self):
        return f"<MonthlySettlement(period={self.year}-{self.month:02d}, status='{self.status.value}')>"


class FinancialAccessLog(Base):
    """Audit trail of ledger imports and settlement transitions."""
    __tablename__ = "financial_access_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(String(64), nullable=False)
    action = Column(String(30), nullable=False)       # import / finalize / mark_paid
    entity_type = Column(String(30), nullable=False)  # processor_revenue / settlement
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
