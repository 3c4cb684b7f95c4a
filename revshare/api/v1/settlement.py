from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from revshare.common.exceptions import SettlementError
from revshare.core.dependencies import get_db, get_current_actor
from revshare.schemas.actor import Actor
from revshare.schemas.allocation import AllocationView
from revshare.schemas.settlement import (
    SettlementActionResponse,
    SettlementListResponse,
    SettlementPeriod,
    SettlementResponse,
)
from revshare.services.settlement_service import (
    finalize_settlement,
    get_allocation_view,
    list_settlements,
    mark_settlement_paid,
)
from revshare.logger_config import logger

router = APIRouter()


@router.get("/allocation", response_model=AllocationView)
def get_allocation(
    year: int = Query(..., ge=2000, le=9999),
    month: int = Query(..., ge=1, le=12),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Profit allocation for the month: recomputed while draft, frozen once finalized."""
    try:
        return get_allocation_view(db, actor, year, month)
    except SettlementError:
        raise
    except Exception:
        logger.exception(f"Error fetching allocation for {year}-{month:02d}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch allocation",
        )


@router.post("/finalize", response_model=SettlementActionResponse)
def finalize(
    data: SettlementPeriod,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Freeze the month's allocation (super admin only)."""
    try:
        settlement = finalize_settlement(db, actor, data.year, data.month)
        return SettlementActionResponse(
            success=True,
            message=f"Settlement for {data.year}-{data.month:02d} finalized",
            settlement=SettlementResponse.model_validate(settlement),
        )
    except SettlementError:
        raise
    except Exception:
        logger.exception(f"Error finalizing settlement {data.year}-{data.month:02d}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to finalize settlement",
        )


@router.post("/mark-paid", response_model=SettlementActionResponse)
def mark_paid(
    data: SettlementPeriod,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Record that a finalized settlement has been paid out (super admin only)."""
    try:
        settlement = mark_settlement_paid(db, actor, data.year, data.month)
        return SettlementActionResponse(
            success=True,
            message=f"Settlement for {data.year}-{data.month:02d} marked as paid",
            settlement=SettlementResponse.model_validate(settlement),
        )
    except SettlementError:
        raise
    except Exception:
        logger.exception(f"Error marking settlement {data.year}-{data.month:02d} as paid")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark settlement as paid",
        )


@router.get("", response_model=SettlementListResponse)
def get_list_settlements(
    skip: int = Query(0, ge=0),
    limit: int = Query(12, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    try:
        rows, total = list_settlements(db, actor, skip=skip, limit=limit)
        return SettlementListResponse(
            settlements=[SettlementResponse.model_validate(r) for r in rows],
            total_count=total,
            has_more=skip + limit < total,
        )
    except SettlementError:
        raise
    except Exception:
        logger.exception("Error fetching settlements")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch settlements",
        )
