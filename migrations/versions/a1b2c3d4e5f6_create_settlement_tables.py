"""create ledger, adjustment and settlement tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "financial_records",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("kind", sa.Enum("revenue", "expense", name="recordkind"), nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("fee_amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("net_amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("occurred_on", sa.Date(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("contractor_id", sa.String(length=64), nullable=True),
        sa.Column(
            "approval_status",
            sa.Enum("pending", "approved", "rejected", name="approvalstatus"),
            nullable=False,
        ),
        sa.Column("source_type", sa.Enum("processor", "manual", name="sourcetype"), nullable=False),
        sa.Column("external_ref", sa.String(length=100), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_ref"),
    )
    op.create_index(
        "ix_financial_records_kind_occurred_on", "financial_records", ["kind", "occurred_on"]
    )

    op.create_table(
        "revenue_share_adjustments",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column(
            "adjustment_type",
            sa.Enum("self_reduction", "admin_proposal", "peer_proposal", name="adjustmenttype"),
            nullable=False,
        ),
        sa.Column("target_partner_id", sa.String(length=64), nullable=False),
        sa.Column("original_percent", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("proposed_percent", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("proposed_by", sa.String(length=64), nullable=False),
        sa.Column("approved_by", sa.String(length=64), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="adjustmentstatus"),
            nullable=False,
        ),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("pending_slot", sa.String(length=100), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pending_slot"),
    )
    op.create_index(
        "ix_revenue_share_adjustments_period",
        "revenue_share_adjustments",
        ["year", "month", "status"],
    )

    op.create_table(
        "monthly_settlements",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("total_revenue", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("total_fees", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("company_expenses", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("contractor_expenses", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("total_expenses", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("profit", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("partner_a_id", sa.String(length=64), nullable=False),
        sa.Column("partner_a_percent", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("partner_a_share", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("partner_a_reimbursement", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("partner_b_id", sa.String(length=64), nullable=False),
        sa.Column("partner_b_percent", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("partner_b_share", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("partner_b_reimbursement", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("company_residual", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("draft", "finalized", "paid", name="settlementstatus"),
            nullable=False,
        ),
        sa.Column("finalized_by", sa.String(length=64), nullable=True),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_by", sa.String(length=64), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("year", "month", name="uq_monthly_settlements_period"),
    )

    op.create_table(
        "financial_access_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=30), nullable=False),
        sa.Column("entity_type", sa.String(length=30), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("financial_access_logs")
    op.drop_table("monthly_settlements")
    op.drop_index("ix_revenue_share_adjustments_period", table_name="revenue_share_adjustments")
    op.drop_table("revenue_share_adjustments")
    op.drop_index("ix_financial_records_kind_occurred_on", table_name="financial_records")
    op.drop_table("financial_records")
    for enum_name in (
        "settlementstatus",
        "adjustmentstatus",
        "adjustmenttype",
        "sourcetype",
        "approvalstatus",
        "recordkind",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
