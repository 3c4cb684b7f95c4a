"""
Revenue share adjustment workflow.

pending -> approved | rejected, both terminal. Self-reductions are created
already approved. At most one pending adjustment may exist per
(target partner, year, month); the unique ``pending_slot`` column enforces it
against concurrent proposals.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from revshare.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from revshare.core.config import settings
from revshare.logger_config import logger
from revshare.models.adjustment import (
    AdjustmentStatus,
    AdjustmentType,
    DecisionAction,
    RevenueShareAdjustment,
    pending_slot_key,
)
from revshare.models.settlement import MonthlySettlement
from revshare.schemas.actor import Actor, AdminLevel
from revshare.services.access import require_level
from revshare.utils.period import ZERO, to_percent, validate_period


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_target(target_partner_id: str) -> None:
    if target_partner_id not in settings.partner_ids:
        raise ValidationError(
            "target_partner_id is not a profit-sharing partner",
            {"target_partner_id": target_partner_id},
        )


def _validate_percent(proposed_percent: Decimal) -> Decimal:
    # Bounds apply to the value as given; 30.004 must not round into range
    raw = proposed_percent if isinstance(proposed_percent, Decimal) else Decimal(str(proposed_percent))
    if raw < ZERO or raw > settings.MAX_SHARE_PERCENT:
        raise ValidationError(
            f"proposed_percent must be between 0 and {settings.MAX_SHARE_PERCENT}",
            {"proposed_percent": str(raw)},
        )
    return to_percent(raw)


def _other_partner(partner_id: str) -> str:
    a, b = settings.partner_ids
    return b if partner_id == a else a


# ==================== QUERY OPERATIONS ====================

def get_adjustment_by_id(db: Session, adjustment_id: str) -> Optional[RevenueShareAdjustment]:
    return db.query(RevenueShareAdjustment).filter(RevenueShareAdjustment.id == adjustment_id).first()


def get_adjustment(db: Session, adjustment_id: str) -> RevenueShareAdjustment:
    adjustment = get_adjustment_by_id(db, adjustment_id)
    if adjustment is None:
        raise NotFoundError("RevenueShareAdjustment", adjustment_id)
    return adjustment


def get_pending_adjustment(
    db: Session, target_partner_id: str, year: int, month: int
) -> Optional[RevenueShareAdjustment]:
    return (
        db.query(RevenueShareAdjustment)
        .filter(
            RevenueShareAdjustment.target_partner_id == target_partner_id,
            RevenueShareAdjustment.year == year,
            RevenueShareAdjustment.month == month,
            RevenueShareAdjustment.status == AdjustmentStatus.pending,
        )
        .first()
    )


def count_pending(db: Session, year: int, month: int) -> int:
    return (
        db.query(RevenueShareAdjustment)
        .filter(
            RevenueShareAdjustment.year == year,
            RevenueShareAdjustment.month == month,
            RevenueShareAdjustment.status == AdjustmentStatus.pending,
        )
        .count()
    )


def resolve_partner_percents(
    db: Session, year: int, month: int
) -> Dict[str, Tuple[Decimal, Optional[RevenueShareAdjustment]]]:
    """
    Effective percent per partner for the period: the latest approved
    adjustment, else the basis percent. Recomputed on every call.
    """
    approved = (
        db.query(RevenueShareAdjustment)
        .filter(
            RevenueShareAdjustment.year == year,
            RevenueShareAdjustment.month == month,
            RevenueShareAdjustment.status == AdjustmentStatus.approved,
        )
        .order_by(
            RevenueShareAdjustment.decided_at.desc(),
            RevenueShareAdjustment.created_at.desc(),
            RevenueShareAdjustment.id.desc(),
        )
        .all()
    )

    resolved: Dict[str, Tuple[Decimal, Optional[RevenueShareAdjustment]]] = {}
    for partner_id in settings.partner_ids:
        latest = next((adj for adj in approved if adj.target_partner_id == partner_id), None)
        if latest is not None:
            resolved[partner_id] = (to_percent(latest.proposed_percent), latest)
        else:
            resolved[partner_id] = (to_percent(settings.BASIS_PERCENT), None)
    return resolved


def list_adjustments(
    db: Session,
    actor: Actor,
    year: Optional[int] = None,
    month: Optional[int] = None,
    status: Optional[AdjustmentStatus] = None,
    target_partner_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[List[RevenueShareAdjustment], int]:
    """List adjustments, newest first, with optional filters."""
    require_level(actor, AdminLevel.financial, "list_adjustments")

    query = db.query(RevenueShareAdjustment)
    if year is not None:
        query = query.filter(RevenueShareAdjustment.year == year)
    if month is not None:
        query = query.filter(RevenueShareAdjustment.month == month)
    if status is not None:
        query = query.filter(RevenueShareAdjustment.status == status)
    if target_partner_id:
        query = query.filter(RevenueShareAdjustment.target_partner_id == target_partner_id)

    total = query.count()
    rows = (
        query.order_by(RevenueShareAdjustment.created_at.desc(), RevenueShareAdjustment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return rows, total


# ==================== WORKFLOW OPERATIONS ====================

def _authorize_proposal(actor: Actor, adjustment_type: AdjustmentType, target_partner_id: str) -> None:
    if adjustment_type == AdjustmentType.self_reduction:
        if actor.actor_id != target_partner_id:
            raise AuthorizationError(
                "Only the target partner may submit a self reduction",
                {"target_partner_id": target_partner_id, "actor_id": actor.actor_id},
            )
    elif adjustment_type == AdjustmentType.admin_proposal:
        require_level(actor, AdminLevel.super, "admin_proposal")
    elif adjustment_type == AdjustmentType.peer_proposal:
        if actor.actor_id != _other_partner(target_partner_id):
            raise AuthorizationError(
                "Peer proposals must come from the other partner",
                {"target_partner_id": target_partner_id, "actor_id": actor.actor_id},
            )


def propose_adjustment(
    db: Session,
    actor: Actor,
    year: int,
    month: int,
    adjustment_type: AdjustmentType,
    target_partner_id: str,
    proposed_percent: Decimal,
    reason: str = "",
) -> RevenueShareAdjustment:
    """
    Propose a new share percent for one partner and period.
    Self reductions are approved immediately with approved_by = proposer;
    admin and peer proposals are created pending.
    """
    validate_period(year, month)
    _validate_target(target_partner_id)
    percent = _validate_percent(proposed_percent)
    _authorize_proposal(actor, adjustment_type, target_partner_id)

    period = {"year": year, "month": month, "target_partner_id": target_partner_id}

    settlement = (
        db.query(MonthlySettlement)
        .filter(MonthlySettlement.year == year, MonthlySettlement.month == month)
        .first()
    )
    if settlement is not None:
        raise PreconditionError(
            "Settlement for this period is already closed",
            {**period, "current_status": settlement.status.value, "required_status": "draft"},
        )

    existing = get_pending_adjustment(db, target_partner_id, year, month)
    if existing is not None:
        raise ConflictError(
            "A pending adjustment already exists for this partner and period",
            {**period, "adjustment_id": existing.id},
        )

    is_self_reduction = adjustment_type == AdjustmentType.self_reduction
    if is_self_reduction:
        current_percent, _ = resolve_partner_percents(db, year, month)[target_partner_id]
        if percent > current_percent:
            raise ValidationError(
                "A self reduction cannot raise the share percent",
                {**period, "current_percent": str(current_percent), "proposed_percent": str(percent)},
            )

    adjustment = RevenueShareAdjustment(
        year=year,
        month=month,
        adjustment_type=adjustment_type,
        target_partner_id=target_partner_id,
        original_percent=to_percent(settings.BASIS_PERCENT),
        proposed_percent=percent,
        reason=reason or "",
        proposed_by=actor.actor_id,
    )
    if is_self_reduction:
        adjustment.status = AdjustmentStatus.approved
        adjustment.approved_by = actor.actor_id
        adjustment.decided_at = _now()
        adjustment.pending_slot = None
    else:
        adjustment.status = AdjustmentStatus.pending
        adjustment.pending_slot = pending_slot_key(target_partner_id, year, month)

    db.add(adjustment)
    try:
        db.commit()
        db.refresh(adjustment)
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent pending adjustment for {target_partner_id} {year}-{month:02d}")
        raise ConflictError(
            "A pending adjustment already exists for this partner and period", period
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating revenue share adjustment")
        raise

    logger.info(
        f"Adjustment {adjustment.id} ({adjustment_type.value}) for {target_partner_id} "
        f"{year}-{month:02d} created as {adjustment.status.value} by {actor.actor_id}"
    )
    return adjustment


def decide_adjustment(
    db: Session,
    actor: Actor,
    adjustment_id: str,
    action: DecisionAction,
    comments: Optional[str] = None,
) -> RevenueShareAdjustment:
    """
    Approve or reject a pending adjustment. approved_by records the decider
    either way. Deciding a non-pending adjustment is a ConflictError.
    """
    require_level(actor, AdminLevel.super, "decide_adjustment")

    adjustment = get_adjustment(db, adjustment_id)
    if adjustment.status != AdjustmentStatus.pending:
        raise ConflictError(
            "Adjustment has already been decided",
            {
                "adjustment_id": adjustment_id,
                "current_status": adjustment.status.value,
                "required_status": AdjustmentStatus.pending.value,
            },
        )

    new_status = AdjustmentStatus.approved if action == DecisionAction.approve else AdjustmentStatus.rejected

    # Re-check pending inside the writing statement so two deciders cannot both win
    try:
        updated = (
            db.query(RevenueShareAdjustment)
            .filter(
                RevenueShareAdjustment.id == adjustment_id,
                RevenueShareAdjustment.status == AdjustmentStatus.pending,
            )
            .update(
                {
                    RevenueShareAdjustment.status: new_status,
                    RevenueShareAdjustment.approved_by: actor.actor_id,
                    RevenueShareAdjustment.decided_at: _now(),
                    RevenueShareAdjustment.comments: comments,
                    RevenueShareAdjustment.pending_slot: None,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            db.rollback()
            raise ConflictError(
                "Adjustment was decided concurrently",
                {"adjustment_id": adjustment_id, "required_status": AdjustmentStatus.pending.value},
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error deciding adjustment {adjustment_id}")
        raise

    db.refresh(adjustment)
    logger.info(f"Adjustment {adjustment_id} {new_status.value} by {actor.actor_id}")
    return adjustment
