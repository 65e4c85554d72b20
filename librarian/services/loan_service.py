"""Borrow and return operations over the store, plus the loan history as BorrowRecords."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from librarian.exceptions import LoanError, NotFoundError, ValidationError
from librarian.models.borrow_record import BorrowRecord
from librarian.services.common import _store, item_from_dict, record_from_dict, user_from_dict
from librarian.utils.constants import LoanStatus
from librarian.utils.dates import fmt_date, require_date, today

logger = logging.getLogger(__name__)


class LoanService:
    """
    Borrow, return, fine settlement and loan-history queries.

    Loans are stored as dicts (user_id, item_id, material_type, borrow_date,
    due_date, returned_date, fine_charged). A BorrowRecord is built from each
    loan when reports need one. Every read-check-write sequence runs under the
    store lock so two requests cannot lend the same copy.
    """

    @staticmethod
    def _resolve(store, user_id: str, item_id: str):
        user = user_from_dict(store.users.get(user_id))
        if user is None:
            raise NotFoundError(f"Error: user with ID '{user_id}' not found")
        item = item_from_dict(store.items.get(item_id))
        if item is None:
            raise NotFoundError(f"Error: item with ID '{item_id}' not found")
        return user, item

    @staticmethod
    def records(store=None) -> list[BorrowRecord]:
        """Every stored loan as a BorrowRecord (insertion order); returned loans carry their return date."""
        st = store or _store()
        return [record_from_dict(loan, st.users, st.items) for loan in st.loans.values()]

    @staticmethod
    def borrow(user_id: str, item_id: str, on: Optional[date] = None, store=None) -> Optional[str]:
        """
        Lend an item to a user and return the new loan ID.

        Rejected while the user has unpaid fines, or still holds an unreturned
        loan that is overdue on the borrow date. When the item is out, the user
        joins its waitlist instead and None is returned.
        """
        st = store or _store()
        on = require_date(on, "borrow date") if on is not None else today()

        with st.lock:
            user, item = LoanService._resolve(st, user_id, item_id)

            if user.has_outstanding_fine():
                raise LoanError(f"Error: cannot borrow with unpaid fines of {user.fine_balance}")

            for loan in st.loans.values():
                if loan.get("user_id") != user.user_id or loan.get("returned_date"):
                    continue
                if loan.get("item_id") == item.item_id:
                    raise LoanError(f'Error: "{item.title}" is already on loan to this user')
                if record_from_dict(loan, st.users, st.items).is_overdue(on):
                    raise LoanError("Error: cannot borrow while overdue items are outstanding")

            if not item.available:
                if st.add_waitlist_entry({"item_id": item.item_id, "user_id": user.user_id,
                                          "since": fmt_date(on)}):
                    logger.info('%s joined the waitlist for "%s"', user.username, item.title)
                return None

            record = BorrowRecord.for_item(user, item, on)
            lid = st.create_loan({
                "user_id": user.user_id,
                "item_id": item.item_id,
                "material_type": str(item.material_type),
                "borrow_date": fmt_date(on),
                "due_date": fmt_date(record.due_date),
                "returned_date": None,
            })
            st.update_item(item.item_id, available=False)

        logger.info('Loan %s: %s borrowed "%s" (due %s)', lid, user.username, item.title, record.due_date)
        return lid

    @staticmethod
    def return_item(loan_id: str, on: Optional[date] = None, store=None) -> dict:
        """
        Close a loan, charge its fine to the borrower's balance and make the
        item available again. Everyone waiting for the item is notified and
        the waitlist is cleared. Returns the updated loan.
        """
        st = store or _store()
        on = require_date(on, "return date") if on is not None else today()

        with st.lock:
            loan = st.loans.get(loan_id)
            if not loan:
                raise NotFoundError(f"Error: loan with ID '{loan_id}' not found")
            if loan.get("returned_date"):
                raise LoanError("Error: loan already returned")

            record = record_from_dict(dict(loan, returned_date=fmt_date(on)), st.users, st.items)
            fine = record.get_fine(on)
            st.update_loan(loan_id, {"returned_date": fmt_date(on), "fine_charged": str(fine)})

            user = st.users.get(loan.get("user_id"))
            if user is not None and fine > 0:
                balance = Decimal(str(user.get("fine_balance") or 0)) + fine
                st.update_user(user["user_id"], fine_balance=str(balance))

            st.update_item(loan.get("item_id"), available=True)
            waiting = st.pop_waitlist(loan.get("item_id"))

        logger.info("Loan %s returned on %s (fine %s)", loan_id, fmt_date(on), fine)
        for entry in waiting:
            LoanService.notify_available(entry, record.item, store=st)
        return st.loans[loan_id]

    @staticmethod
    def notify_available(entry: dict, item, store=None) -> None:
        """Tell a waiting user their item is back. Logged only; no mail is sent."""
        st = store or _store()
        user = st.users.get(entry.get("user_id")) or {}
        logger.info('Notify %s: "%s" is available (waiting since %s)',
                    user.get("username") or entry.get("user_id"), item.title, entry.get("since"))

    @staticmethod
    def waitlist_for_item(item_id: str, store=None) -> list[dict]:
        """Users waiting for the item, oldest request first."""
        st = store or _store()
        if item_id not in st.items:
            raise NotFoundError(f"Error: item with ID '{item_id}' not found")
        return [dict(w) for w in st.waitlist if w.get("item_id") == item_id]

    @staticmethod
    def pay_fine(user_id: str, amount, store=None) -> Decimal:
        """Settle part or all of a user's fine balance; returns the new balance."""
        st = store or _store()
        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Error: invalid payment amount '{amount}'")
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("Error: payment amount must be positive")

        with st.lock:
            user = user_from_dict(st.users.get(user_id))
            if user is None:
                raise NotFoundError(f"Error: user with ID '{user_id}' not found")
            if amount > user.fine_balance:
                raise ValidationError(
                    f"Error: payment {amount} exceeds outstanding balance {user.fine_balance}")
            balance = user.fine_balance - amount
            st.update_user(user_id, fine_balance=str(balance))

        logger.info("%s paid %s in fines (balance %s)", user.username, amount, balance)
        return balance

    @staticmethod
    def loans_for_user(user_id: str, as_of: Optional[date] = None, store=None) -> list[dict]:
        """The user's loans with due date, status and fine as of `as_of`, newest first."""
        st = store or _store()
        if user_id not in st.users:
            raise NotFoundError(f"Error: user with ID '{user_id}' not found")
        as_of = require_date(as_of, "reference date") if as_of is not None else today()

        out = []
        for loan in st.loans.values():
            if loan.get("user_id") != user_id:
                continue
            record = record_from_dict(loan, st.users, st.items)
            if loan.get("returned_date"):
                status = LoanStatus.RETURNED
            elif record.is_overdue(as_of):
                status = LoanStatus.OVERDUE
            else:
                status = LoanStatus.BORROWED
            out.append({
                "loan_id": loan.get("loan_id"),
                "item_id": loan.get("item_id"),
                "item": record.item_label,
                "borrow_date": fmt_date(record.borrow_date),
                "due_date": fmt_date(record.due_date),
                "returned_date": loan.get("returned_date"),
                "status": status,
                "fine": str(record.get_fine(as_of)),
            })
        out.sort(key=lambda x: x.get("borrow_date") or "", reverse=True)
        return out
