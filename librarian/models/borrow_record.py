from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from ..exceptions import ValidationError
from ..utils.constants import UNKNOWN_ITEM_LABEL
from ..utils.dates import require_date
from .fine_strategy import FineStrategy, strategy_for
from .item import LibraryItem
from .user import User


@dataclass(frozen=True, eq=False)
class BorrowRecord:
    """
    One loan event: who borrowed what, under which fine policy, and when.

    The record is immutable. Due date, overdue status and fine are derived
    on every call from the stored fields and the caller's reference date, so
    the same record can be evaluated "as of" any day. A record built from a
    closed loan carries its `returned_date`; the fine stops growing on that
    day and the record is no longer overdue from then on.
    """
    user: User
    item: LibraryItem
    strategy: FineStrategy
    borrow_date: date
    returned_date: Optional[date] = None

    def __post_init__(self):
        for name in ("user", "item", "strategy", "borrow_date"):
            if getattr(self, name) is None:
                raise ValidationError(f"Error: borrow record {name} is required")
        object.__setattr__(self, "borrow_date", require_date(self.borrow_date, "borrow date"))
        if self.returned_date is not None:
            returned = require_date(self.returned_date, "return date")
            if returned < self.borrow_date:
                raise ValidationError("Error: return date cannot be before the borrow date")
            object.__setattr__(self, "returned_date", returned)

    @classmethod
    def for_item(cls, user: User, item: LibraryItem, borrow_date: date,
                 returned_date: Optional[date] = None) -> "BorrowRecord":
        """Create a record whose fine policy is chosen from the item's material type."""
        if item is None:
            raise ValidationError("Error: borrow record item is required")
        return cls(user, item, strategy_for(item.material_type), borrow_date, returned_date)

    @property
    def due_date(self) -> date:
        return self.borrow_date + timedelta(days=self.strategy.borrow_period_days)

    @property
    def item_label(self) -> str:
        """Grouping label `title (TYPE)`; copies of the same title and type share it."""
        title = getattr(self.item, "title", None)
        if not title:
            return UNKNOWN_ITEM_LABEL
        return f"{title} ({self.item.material_type})"

    def is_returned(self, as_of: Optional[date]) -> bool:
        as_of = require_date(as_of, "reference date")
        return self.returned_date is not None and self.returned_date <= as_of

    def is_overdue(self, as_of: Optional[date]) -> bool:
        """True when `as_of` is strictly after the due date and the item is still out."""
        as_of = require_date(as_of, "reference date")
        return not self.is_returned(as_of) and as_of > self.due_date

    def overdue_days(self, as_of: Optional[date]) -> int:
        """Days late as of `as_of`, counted no further than the return date."""
        as_of = require_date(as_of, "reference date")
        if self.returned_date is not None:
            as_of = min(as_of, self.returned_date)
        return max(0, (as_of - self.due_date).days)

    def get_fine(self, as_of: Optional[date]) -> Decimal:
        return self.strategy.calculate_fine(self.overdue_days(as_of))

    def __str__(self) -> str:
        return (f'{self.user.username} borrowed "{self.item.title}" on {self.borrow_date} '
                f"(due: {self.due_date})")
