"""
Fetch results for aggregation passes
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional

from ledgerdesk.utils.currency import parse_amount


@dataclass
class FetchResult:
    """
    Outcome of one scoped fetch: the rows on success, the error on failure.

    Reductions over a failed result are zero, which is how an aggregation
    pass degrades when part of its data could not be loaded.
    """
    rows: List[Any] = field(default_factory=list)
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, rows):
        return cls(rows=list(rows or []))

    @classmethod
    def failed(cls, error):
        return cls(rows=[], error=error)

    @property
    def succeeded(self):
        return self.error is None

    def value_or(self, default):
        return self.rows if self.succeeded else default

    def total(self, attr):
        """Sum of one numeric column; 0 if the fetch failed"""
        if not self.succeeded:
            return Decimal('0')
        return sum((parse_amount(_get(row, attr)) for row in self.rows), Decimal('0'))

    def count(self, predicate=None):
        """Number of rows (optionally matching predicate); 0 if the fetch failed"""
        if not self.succeeded:
            return 0
        if predicate is None:
            return len(self.rows)
        return sum(1 for row in self.rows if predicate(row))


def _get(row, attr):
    if isinstance(row, dict):
        return row.get(attr)
    return getattr(row, attr, None)
