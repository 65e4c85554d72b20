from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Iterable

from librarian.exceptions import ValidationError
from librarian.models.borrow_record import BorrowRecord
from librarian.models.user import User
from librarian.utils.constants import UNKNOWN_ITEM_LABEL
from librarian.utils.dates import require_date


def _item_label(record) -> str:
    if getattr(record, "item", None) is None:
        return UNKNOWN_ITEM_LABEL
    return record.item_label


class ActivityReportService:
    """
    Usage statistics over a fixed snapshot of borrow records.

    The records are copied once when the service is built; later changes to
    the caller's list are not seen. Build a new service to report on new data.
    """

    def __init__(self, records: Iterable[BorrowRecord]):
        if records is None:
            raise ValidationError("Error: borrow records are required")
        self._records: tuple[BorrowRecord, ...] = tuple(records)

    @property
    def records(self) -> tuple[BorrowRecord, ...]:
        return self._records

    def top_borrowers(self) -> dict[User, int]:
        """Number of loans per user. Unordered; callers sort if they need a ranking."""
        return dict(Counter(r.user for r in self._records))

    def most_borrowed_items(self) -> dict[str, int]:
        """Number of loans per item label (`title (TYPE)`)."""
        return dict(Counter(_item_label(r) for r in self._records))

    def overdue_items_for_user(self, user: User, as_of: date) -> list[BorrowRecord]:
        """The user's records that are overdue on `as_of`, in snapshot order."""
        if user is None:
            raise ValidationError("Error: user is required")
        as_of = require_date(as_of, "reference date")
        return [r for r in self._records if r.user == user and r.is_overdue(as_of)]
