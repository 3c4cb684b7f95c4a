import enum
import secrets
import string
from sqlalchemy import Column, Date, DateTime, Enum, Index, Numeric, String, Text
from sqlalchemy.sql import func
from revshare.core.database import Base


def generate_custom_id(prefix: str, length: int = 10) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase + string.digits)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


class RecordKind(str, enum.Enum):
    revenue = "revenue"
    expense = "expense"


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class SourceType(str, enum.Enum):
    processor = "processor"
    manual = "manual"


class FinancialRecord(Base):
    """One ledger entry. Revenue rows come from the processor feed, expenses from manual entry."""
    __tablename__ = "financial_records"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("FIN"))
    kind = Column(Enum(RecordKind), nullable=False)

    amount = Column(Numeric(15, 2), nullable=False)
    fee_amount = Column(Numeric(15, 2), nullable=False, default=0)
    net_amount = Column(Numeric(15, 2), nullable=False, default=0)

    # Processor's local settlement date, not the row creation time
    occurred_on = Column(Date, nullable=False)
    category = Column(String(50), nullable=False)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)

    # Present => contractor expense, absent => company expense
    contractor_id = Column(String(64), nullable=True)

    approval_status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.pending)
    source_type = Column(Enum(SourceType), nullable=False, default=SourceType.manual)
    external_ref = Column(String(100), unique=True, nullable=True)

    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_financial_records_kind_occurred_on", "kind", "occurred_on"),
    )

    def __repr__(self):
        return f"<FinancialRecord(id='{self.id}', kind='{self.kind.value}', occurred_on={self.occurred_on})>"
