"""
Payment processor feed boundary. A feed returns raw settled charges for a
date range as mappings with external_ref, amount, fee, settled_at and
description keys; the importer validates each one.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Iterable, List, Mapping

from revshare.common.exceptions import UpstreamError


class TransactionFeed(ABC):
    """Read-only source of settled processor transactions."""

    name = "processor"

    @abstractmethod
    def fetch(self, start: date, end: date) -> List[Mapping[str, Any]]:
        """Return raw transactions settled between start and end, inclusive.

        Raises UpstreamError when the processor cannot be reached.
        """


class StaticTransactionFeed(TransactionFeed):
    """Replays a fixed batch, e.g. a back-office export or a test fixture."""

    name = "static"

    def __init__(self, transactions: Iterable[Mapping[str, Any]], available: bool = True):
        self._transactions = list(transactions)
        self._available = available

    def fetch(self, start: date, end: date) -> List[Mapping[str, Any]]:
        if not self._available:
            raise UpstreamError(
                "Payment processor feed is unavailable",
                {"feed": self.name, "start_date": start.isoformat(), "end_date": end.isoformat()},
            )
        return list(self._transactions)
