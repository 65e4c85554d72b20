from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from librarian.exceptions import ValidationError
from librarian.models.borrow_record import BorrowRecord
from librarian.models.fine_strategy import ZERO
from librarian.models.material import MaterialType
from librarian.models.user import User
from librarian.utils.dates import require_date


class FineReportService:
    """
    Monetary statistics over a fixed snapshot of borrow records.
    All sums are Decimal; a user without fines totals exactly Decimal(0).
    """

    def __init__(self, records: Iterable[BorrowRecord]):
        if records is None:
            raise ValidationError("Error: borrow records are required")
        self._records: tuple[BorrowRecord, ...] = tuple(records)

    @property
    def records(self) -> tuple[BorrowRecord, ...]:
        return self._records

    def _records_for(self, user: User):
        if user is None:
            raise ValidationError("Error: user is required")
        return [r for r in self._records if r.user == user]

    def total_fine_for_user(self, user: User, as_of: date) -> Decimal:
        records = self._records_for(user)
        as_of = require_date(as_of, "reference date")
        return sum((r.get_fine(as_of) for r in records), ZERO)

    def fines_by_material_type(self, user: User, as_of: date) -> dict[MaterialType, Decimal]:
        """
        The user's fines split by material type. Only types the user has
        actually borrowed appear; absent types are not zero-filled.
        """
        records = self._records_for(user)
        as_of = require_date(as_of, "reference date")
        out: dict[MaterialType, Decimal] = {}
        for r in records:
            mtype = r.item.material_type
            out[mtype] = out.get(mtype, ZERO) + r.get_fine(as_of)
        return out

    def total_fines_for_all_users(self, as_of: date) -> dict[User, Decimal]:
        """Total fine per user; every user owning a record appears, zero included."""
        as_of = require_date(as_of, "reference date")
        totals: dict[User, Decimal] = defaultdict(lambda: ZERO)
        for r in self._records:
            totals[r.user] += r.get_fine(as_of)
        return dict(totals)
