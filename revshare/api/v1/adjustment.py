from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from revshare.common.exceptions import SettlementError
from revshare.core.dependencies import get_db, get_current_actor
from revshare.models.adjustment import AdjustmentStatus
from revshare.schemas.actor import Actor
from revshare.schemas.adjustment import (
    AdjustmentCreate,
    AdjustmentDecision,
    AdjustmentListResponse,
    AdjustmentResponse,
)
from revshare.services.adjustment_service import (
    decide_adjustment,
    list_adjustments,
    propose_adjustment,
)
from revshare.logger_config import logger

router = APIRouter()


@router.post("", response_model=AdjustmentResponse, status_code=status.HTTP_201_CREATED)
def create_adjustment(
    data: AdjustmentCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Propose a share change. Self reductions are approved on creation."""
    try:
        adjustment = propose_adjustment(
            db,
            actor,
            year=data.year,
            month=data.month,
            adjustment_type=data.adjustment_type,
            target_partner_id=data.target_partner_id,
            proposed_percent=data.proposed_percent,
            reason=data.reason,
        )
        return AdjustmentResponse.model_validate(adjustment)
    except SettlementError:
        raise
    except Exception:
        logger.exception("Error creating adjustment")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create adjustment",
        )


@router.put("/{adjustment_id}/decision", response_model=AdjustmentResponse)
def decide(
    adjustment_id: str,
    data: AdjustmentDecision,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending adjustment (super admin only)."""
    try:
        adjustment = decide_adjustment(db, actor, adjustment_id, data.action, data.comments)
        return AdjustmentResponse.model_validate(adjustment)
    except SettlementError:
        raise
    except Exception:
        logger.exception(f"Error deciding adjustment {adjustment_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to decide adjustment",
        )


@router.get("", response_model=AdjustmentListResponse)
def get_list_adjustments(
    year: Optional[int] = Query(None, ge=2000, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    status_filter: Optional[AdjustmentStatus] = Query(None, alias="status"),
    target_partner_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    try:
        rows, total = list_adjustments(
            db,
            actor,
            year=year,
            month=month,
            status=status_filter,
            target_partner_id=target_partner_id,
            skip=skip,
            limit=limit,
        )
        return AdjustmentListResponse(
            adjustments=[AdjustmentResponse.model_validate(r) for r in rows],
            total_count=total,
            has_more=skip + limit < total,
        )
    except SettlementError:
        raise
    except Exception:
        logger.exception("Error fetching adjustments")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch adjustments",
        )
