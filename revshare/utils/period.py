"""
Period and money helpers shared by the aggregator, calculator and importer.
All rounding is Decimal ROUND_HALF_UP to the configured currency minor unit.
"""

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Tuple

from revshare.common.exceptions import ValidationError
from revshare.core.config import settings

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT_UNIT = Decimal("0.01")


def validate_period(year: int, month: int) -> None:
    if not isinstance(year, int) or not 2000 <= year <= 9999:
        raise ValidationError("Invalid settlement year", {"year": year, "month": month})
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError("Invalid settlement month", {"year": year, "month": month})


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of the month, both inclusive."""
    validate_period(year, month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def validate_date_range(start: date, end: date, max_days: Optional[int] = None) -> None:
    """Reject start >= end and spans longer than MAX_REPORT_SPAN_DAYS before any query runs."""
    max_days = settings.MAX_REPORT_SPAN_DAYS if max_days is None else max_days
    if start >= end:
        raise ValidationError(
            "start_date must be before end_date",
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
    # Both ends count: June 1 .. June 30 is 30 days
    span = (end - start).days + 1
    if span > max_days:
        raise ValidationError(
            f"Date range must not exceed {max_days} days",
            {"start_date": start.isoformat(), "end_date": end.isoformat(), "span_days": span},
        )


def to_money(value: Any) -> Decimal:
    """Normalise a DB aggregate or input value to the currency minor unit."""
    if value is None:
        return ZERO.quantize(settings.CURRENCY_MINOR_UNIT)
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(settings.CURRENCY_MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_percent(value: Any) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(PERCENT_UNIT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return to_money(amount * percent / HUNDRED)


def ratio_percent(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is not positive."""
    if whole <= ZERO:
        return to_percent(ZERO)
    return to_percent(part * HUNDRED / whole)
