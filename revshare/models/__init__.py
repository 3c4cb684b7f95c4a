# revshare/models/__init__.py
from .financial_record import FinancialRecord
from .adjustment import RevenueShareAdjustment
from .settlement import MonthlySettlement, FinancialAccessLog
