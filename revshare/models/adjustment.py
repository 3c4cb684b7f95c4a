import enum
from sqlalchemy import Column, DateTime, Enum, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func
from revshare.core.database import Base
from revshare.models.financial_record import generate_custom_id


class AdjustmentType(str, enum.Enum):
    self_reduction = "self_reduction"
    admin_proposal = "admin_proposal"
    peer_proposal = "peer_proposal"


class AdjustmentStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class DecisionAction(str, enum.Enum):
    approve = "approve"
    reject = "reject"


def pending_slot_key(target_partner_id: str, year: int, month: int) -> str:
    return f"{target_partner_id}:{year:04d}-{month:02d}"


class RevenueShareAdjustment(Base):
    """A request to change one partner's share percent for one period."""
    __tablename__ = "revenue_share_adjustments"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("ADJ"))
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)

    adjustment_type = Column(Enum(AdjustmentType), nullable=False)
    target_partner_id = Column(String(64), nullable=False)
    original_percent = Column(Numeric(5, 2), nullable=False)
    proposed_percent = Column(Numeric(5, 2), nullable=False)
    reason = Column(Text, nullable=False, default="")

    proposed_by = Column(String(64), nullable=False)
    approved_by = Column(String(64), nullable=True)
    status = Column(Enum(AdjustmentStatus), nullable=False, default=AdjustmentStatus.pending)
    comments = Column(Text, nullable=True)

    # Set only while pending; the unique constraint allows one pending row per (partner, period)
    pending_slot = Column(String(100), unique=True, nullable=True)

    decided_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_revenue_share_adjustments_period", "year", "month", "status"),
    )

    def __repr__(self):
        return (
            f"<RevenueShareAdjustment(id='{self.id}', target='{self.target_partner_id}', "
            f"period={self.year}-{self.month:02d}, status='{self.status.value}')>"
        )
