from revshare.core.config import settings
from revshare.core.database import Base, SessionLocal, engine
from revshare.models import FinancialAccessLog, FinancialRecord, MonthlySettlement, RevenueShareAdjustment
from revshare.models.adjustment import AdjustmentType
from revshare.models.financial_record import ApprovalStatus, RecordKind, SourceType
from revshare.schemas.actor import Actor, AdminLevel
from revshare.services.adjustment_service import propose_adjustment
from revshare.services.ledger_importer import LedgerImporter
from revshare.services.transaction_feed import StaticTransactionFeed

from faker import Faker
from datetime import date, datetime, timezone
from decimal import Decimal
import calendar
import random
import sys

fake = Faker()

SEED_ACTOR = Actor(actor_id="seed-admin", admin_level=AdminLevel.super)
FEE_RATE = Decimal("0.036")


def fake_charge(year: int, month: int) -> dict:
    day = random.randint(1, calendar.monthrange(year, month)[1])
    amount = Decimal(random.choice([500, 980, 1200, 4800, 9800, 12000])).quantize(Decimal("0.01"))
    return {
        "external_ref": f"pi_{fake.unique.hexify('^' * 24)}",
        "amount": amount,
        "fee": (amount * FEE_RATE).quantize(Decimal("0.01")),
        "settled_at": datetime(year, month, day, random.randint(0, 23), random.randint(0, 59), tzinfo=timezone.utc),
        "description": random.choice(["Personal plan (monthly)", "Personal plan (yearly)", "Business plan"]),
    }


def fake_expense(year: int, month: int, contractor_id=None) -> FinancialRecord:
    day = random.randint(1, calendar.monthrange(year, month)[1])
    amount = Decimal(random.randint(500, 50000)).quantize(Decimal("0.01"))
    return FinancialRecord(
        kind=RecordKind.expense,
        amount=amount,
        fee_amount=Decimal("0.00"),
        net_amount=amount,
        occurred_on=date(year, month, day),
        category=random.choice(["hosting", "advertising", "software", "travel"]),
        title=fake.bs().capitalize(),
        contractor_id=contractor_id,
        approval_status=random.choice([ApprovalStatus.approved] * 4 + [ApprovalStatus.pending]),
        source_type=SourceType.manual,
        created_by=SEED_ACTOR.actor_id,
    )


if __name__ == "__main__":
    today = date.today()
    year = int(sys.argv[1]) if len(sys.argv) > 1 else today.year
    month = int(sys.argv[2]) if len(sys.argv) > 2 else today.month

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        print("🔄 Clearing existing data...")
        db.query(FinancialAccessLog).delete()
        db.query(MonthlySettlement).delete()
        db.query(RevenueShareAdjustment).delete()
        db.query(FinancialRecord).delete()
        db.commit()
        print("✅ Data cleared.")

        print(f"🔄 Importing processor charges for {year}-{month:02d}...")
        charges = [fake_charge(year, month) for _ in range(random.randint(30, 40))]
        feed = StaticTransactionFeed(charges)
        result = LedgerImporter(db).import_transactions(SEED_ACTOR, feed.fetch(date(year, month, 1), today))
        print(f"✅ Imported {result.imported} charges ({result.skipped} skipped)")

        print("🔄 Creating company and contractor expenses...")
        expenses = [fake_expense(year, month) for _ in range(random.randint(5, 10))]
        for partner_id in settings.partner_ids:
            expenses += [fake_expense(year, month, partner_id) for _ in range(random.randint(1, 3))]
        db.add_all(expenses)
        db.commit()
        print(f"✅ Seeded {len(expenses)} expenses")

        partner_b = settings.PARTNER_B_ID
        propose_adjustment(
            db,
            Actor(actor_id=partner_b, admin_level=AdminLevel.none),
            year=year,
            month=month,
            adjustment_type=AdjustmentType.self_reduction,
            target_partner_id=partner_b,
            proposed_percent=Decimal("20.00"),
            reason="Reduced hours this month",
        )
        print(f"✅ Self reduction to 20% recorded for {partner_b}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error during seeding: {e}")
        raise
    finally:
        db.close()
