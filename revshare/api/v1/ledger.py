from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Union

from revshare.common.exceptions import SettlementError
from revshare.core.dependencies import get_db, get_current_actor, get_transaction_feed
from revshare.schemas.actor import Actor, AdminLevel
from revshare.schemas.financial_record import (
    ImportPreviewResponse,
    ImportRequest,
    ImportResponse,
    PeriodTotals,
)
from revshare.services.access import require_level
from revshare.services.ledger_importer import LedgerImporter
from revshare.services.period_aggregator import aggregate_range
from revshare.services.transaction_feed import TransactionFeed
from revshare.logger_config import logger

router = APIRouter()


@router.post("/import", response_model=Union[ImportResponse, ImportPreviewResponse])
def import_transactions(
    data: ImportRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    feed: TransactionFeed = Depends(get_transaction_feed),
):
    """Pull settled processor transactions for the range into the ledger, or preview them."""
    try:
        importer = LedgerImporter(db)
        if data.preview:
            return importer.preview_from_feed(actor, feed, data.start_date, data.end_date)

        result = importer.import_from_feed(actor, feed, data.start_date, data.end_date)
        return ImportResponse(
            success=True,
            message=f"Imported {result.imported}, skipped {result.skipped}, failed {len(result.errors)}",
            result=result,
        )
    except SettlementError:
        raise
    except Exception:
        logger.exception("Error importing processor transactions")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import transactions",
        )


@router.get("/summary", response_model=PeriodTotals)
def get_ledger_summary(
    start_date: date = Query(...),
    end_date: date = Query(...),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Revenue, fee and expense totals for an ad-hoc date range."""
    try:
        require_level(actor, AdminLevel.financial, "ledger_summary")
        return aggregate_range(db, start_date, end_date)
    except SettlementError:
        raise
    except Exception:
        logger.exception("Error fetching ledger summary")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch ledger summary",
        )
