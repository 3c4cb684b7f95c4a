"""
Ledger importer: turns settled processor transactions into approved revenue
records, exactly once per external_ref. Items are processed and committed one
by one; a bad item is reported and the batch carries on.
"""

from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Union
from zoneinfo import ZoneInfo

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from revshare.common.exceptions import UpstreamError
from revshare.core.config import settings
from revshare.logger_config import logger
from revshare.models.financial_record import (
    ApprovalStatus,
    FinancialRecord,
    RecordKind,
    SourceType,
)
from revshare.models.settlement import FinancialAccessLog
from revshare.schemas.actor import Actor, AdminLevel
from revshare.schemas.financial_record import (
    ExternalTransaction,
    ImportItemError,
    ImportPreviewResponse,
    ImportResult,
)
from revshare.services.access import require_level
from revshare.services.transaction_feed import TransactionFeed
from revshare.utils.period import ZERO, to_money, validate_date_range

PREVIEW_LIMIT = 10
REVENUE_CATEGORY = "revenue"

RawTransaction = Union[ExternalTransaction, Mapping[str, Any]]


def local_settlement_date(settled_at: datetime) -> date:
    """Settlement date in the processor's local timezone. Naive values are taken as local already."""
    if settled_at.tzinfo is None:
        return settled_at.date()
    return settled_at.astimezone(ZoneInfo(settings.SETTLEMENT_TIMEZONE)).date()


def _raw_ref(raw: RawTransaction) -> str | None:
    if isinstance(raw, ExternalTransaction):
        return raw.external_ref
    if isinstance(raw, Mapping):
        ref = raw.get("external_ref")
        return str(ref) if ref is not None else None
    return None


def _parse(raw: RawTransaction) -> ExternalTransaction:
    if isinstance(raw, ExternalTransaction):
        return raw
    try:
        return ExternalTransaction.model_validate(raw)
    except SchemaValidationError as e:
        # Field names only; input values may carry amounts
        fields = sorted({".".join(str(p) for p in err["loc"]) or "transaction" for err in e.errors()})
        raise UpstreamError(
            f"Malformed transaction from processor: {', '.join(fields)}",
            {"external_ref": _raw_ref(raw), "fields": fields},
        ) from e


class LedgerImporter:
    """
    Imports processor transactions into the financial record ledger.
    """
    def __init__(self, db: Session):
        self.db = db

    def _exists(self, external_ref: str) -> bool:
        return (
            self.db.query(FinancialRecord.id)
            .filter(FinancialRecord.external_ref == external_ref)
            .first()
            is not None
        )

    def _build_record(self, tx: ExternalTransaction, actor: Actor) -> FinancialRecord:
        return FinancialRecord(
            kind=RecordKind.revenue,
            amount=tx.amount,
            fee_amount=tx.fee,
            net_amount=tx.amount - tx.fee,
            occurred_on=local_settlement_date(tx.settled_at),
            category=REVENUE_CATEGORY,
            title=tx.description or "Processor payment",
            description=tx.description,
            # Processor-settled money needs no manual approval
            approval_status=ApprovalStatus.approved,
            source_type=SourceType.processor,
            external_ref=tx.external_ref,
            created_by=actor.actor_id,
        )

    # ================= IMPORT ===================

    def import_transactions(self, actor: Actor, transactions: Iterable[RawTransaction]) -> ImportResult:
        require_level(actor, AdminLevel.financial, "import_transactions")

        result = ImportResult()
        for raw in transactions:
            try:
                tx = _parse(raw)
            except UpstreamError as e:
                logger.warning(f"Skipping malformed transaction {e.details.get('external_ref')}: {e.message}")
                result.errors.append(ImportItemError(external_ref=_raw_ref(raw), error=e.message))
                continue

            try:
                if self._exists(tx.external_ref):
                    result.skipped += 1
                    logger.debug(f"Transaction {tx.external_ref} already imported, skipping")
                    continue

                self.db.add(self._build_record(tx, actor))
                self.db.commit()
                result.imported += 1
                logger.debug(f"Transaction {tx.external_ref} imported")
            except IntegrityError:
                # Another batch imported the same external_ref first
                self.db.rollback()
                result.skipped += 1
                logger.info(f"Transaction {tx.external_ref} imported concurrently, skipping")
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception(f"Error saving transaction {tx.external_ref}")
                result.errors.append(ImportItemError(
                    external_ref=tx.external_ref,
                    error="Failed to save transaction",
                ))

        self.db.add(FinancialAccessLog(
            actor_id=actor.actor_id,
            action="import",
            entity_type="processor_revenue",
            details={
                "imported": result.imported,
                "skipped": result.skipped,
                "error_count": len(result.errors),
            },
        ))
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error writing import access log")
            raise

        logger.info(
            f"Import by {actor.actor_id} finished: imported={result.imported}, "
            f"skipped={result.skipped}, errors={len(result.errors)}"
        )
        return result

    def fetch_from_feed(self, feed: TransactionFeed, start: date, end: date) -> List[Mapping[str, Any]]:
        validate_date_range(start, end)
        logger.info(f"Fetching {feed.name} transactions for {start} .. {end}")
        try:
            return feed.fetch(start, end)
        except UpstreamError:
            logger.error(f"Feed {feed.name} failed for {start} .. {end}")
            raise
        except (OSError, ValueError) as e:
            logger.exception(f"Feed {feed.name} failed for {start} .. {end}")
            raise UpstreamError(
                "Payment processor feed is unreachable",
                {"feed": feed.name, "start_date": start.isoformat(), "end_date": end.isoformat()},
            ) from e

    def import_from_feed(
        self,
        actor: Actor,
        feed: TransactionFeed,
        start: date,
        end: date,
    ) -> ImportResult:
        require_level(actor, AdminLevel.financial, "import_transactions")
        raw = self.fetch_from_feed(feed, start, end)
        return self.import_transactions(actor, raw)

    def preview_from_feed(
        self,
        actor: Actor,
        feed: TransactionFeed,
        start: date,
        end: date,
    ) -> ImportPreviewResponse:
        """Fetch and summarise without writing to the ledger."""
        require_level(actor, AdminLevel.financial, "preview_import")
        raw = self.fetch_from_feed(feed, start, end)

        valid: List[ExternalTransaction] = []
        for item in raw:
            try:
                valid.append(_parse(item))
            except UpstreamError as e:
                logger.warning(f"Preview ignoring malformed transaction: {e.message}")

        total_amount = sum((tx.amount for tx in valid), ZERO)
        total_fees = sum((tx.fee for tx in valid), ZERO)
        logger.info(f"Preview of {len(valid)} transaction(s) for {start} .. {end}")
        return ImportPreviewResponse(
            total_count=len(valid),
            total_amount=to_money(total_amount),
            total_fees=to_money(total_fees),
            transactions=valid[:PREVIEW_LIMIT],
        )
