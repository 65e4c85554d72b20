"""Shared service helpers and dict -> model mappers."""

from decimal import Decimal
from typing import Optional

from librarian.models.borrow_record import BorrowRecord
from librarian.models.item import LibraryItem
from librarian.models.store import Store
from librarian.models.user import User
from librarian.utils.dates import as_date


def _store() -> Store:
    """Get the application store (tests monkeypatch this)."""
    return Store.instance()


# -------- dict -> rich model mappers --------
def user_from_dict(d: Optional[dict]) -> Optional[User]:
    """Map a stored user dict to a User."""
    if not d:
        return None
    return User(
        user_id=d.get("user_id") or d.get("id"),
        username=d.get("username") or "",
        email=d.get("email") or "",
        role=(d.get("role") or "member").lower(),
        fine_balance=Decimal(str(d.get("fine_balance") or 0)),
    )


def item_from_dict(d: Optional[dict]) -> Optional[LibraryItem]:
    """Map a stored item dict to a LibraryItem; unknown material types raise ConfigurationError."""
    if not d:
        return None
    return LibraryItem(
        item_id=d.get("item_id") or d.get("id"),
        title=d.get("title") or "",
        material_type=d.get("material_type"),
        author=d.get("author") or "",
        available=bool(d.get("available", True)),
    )


def record_from_dict(loan: dict, users: dict, items: dict) -> BorrowRecord:
    """
    Build a BorrowRecord from a stored loan, resolving its user and item
    through the given ID -> dict maps. The fine policy comes from the
    item's material type.

    Loans keep the user ID and the material type they were made under, so a
    loan whose user or item has since been removed from the catalogue still
    maps to a record: an untitled item (reported as "Unknown item") and a
    user named after its ID.
    """
    user = user_from_dict(users.get(loan.get("user_id")))
    if user is None:
        user = User(user_id=loan.get("user_id"), username=str(loan.get("user_id")))
    item = item_from_dict(items.get(loan.get("item_id")))
    if item is None:
        item = LibraryItem(item_id=loan.get("item_id"), title="",
                           material_type=loan.get("material_type"))
    returned = loan.get("returned_date")
    return BorrowRecord.for_item(user, item, as_date(loan.get("borrow_date")),
                                 as_date(returned) if returned else None)
