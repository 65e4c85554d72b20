"""
Borrow/return lifecycle over the store and conversion of loans into BorrowRecords.
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import TODAY
from librarian.exceptions import LoanError, NotFoundError, ValidationError
from librarian.models.material import MaterialType
from librarian.services.fine_report_service import FineReportService
from librarian.services.loan_service import LoanService


def seed(store):
    uid = store.create_user("alice", "alice@example.com")
    book = store.create_item({"title": "Dune", "material_type": "BOOK"})
    cd = store.create_item({"title": "Blue", "material_type": "cd"})
    return uid, book, cd


def test_borrow_creates_loan_and_marks_item_out(store):
    uid, book, _ = seed(store)
    lid = LoanService.borrow(uid, book, on=TODAY)

    loan = store.loans[lid]
    assert loan["borrow_date"] == "2025-06-01"
    assert loan["due_date"] == "2025-06-29"
    assert loan["material_type"] == "BOOK"
    assert loan["returned_date"] is None
    assert store.items[book]["available"] is False


def test_borrow_persists_to_disk(store):
    from librarian.models.store import Store

    uid, book, _ = seed(store)
    lid = LoanService.borrow(uid, book, on=TODAY)
    reloaded = Store(store.path)
    assert lid in reloaded.loans


def test_unavailable_item_puts_borrower_on_waitlist(store):
    uid, book, _ = seed(store)
    other = store.create_user("bob")
    LoanService.borrow(uid, book, on=TODAY)

    assert LoanService.borrow(other, book, on=TODAY) is None
    assert LoanService.borrow(other, book, on=TODAY + timedelta(days=1)) is None  # no duplicate
    assert LoanService.waitlist_for_item(book) == [
        {"item_id": book, "user_id": other, "since": "2025-06-01"}
    ]
    assert len(store.loans) == 1


def test_holder_cannot_borrow_same_item_again(store):
    uid, book, _ = seed(store)
    LoanService.borrow(uid, book, on=TODAY)
    with pytest.raises(LoanError):
        LoanService.borrow(uid, book, on=TODAY)
    assert store.waitlist == []


def test_return_notifies_and_clears_waitlist(store, caplog):
    uid, book, _ = seed(store)
    other = store.create_user("bob")
    lid = LoanService.borrow(uid, book, on=TODAY)
    LoanService.borrow(other, book, on=TODAY)

    with caplog.at_level("INFO", logger="librarian.services.loan_service"):
        LoanService.return_item(lid, on=TODAY + timedelta(days=2))

    assert LoanService.waitlist_for_item(book) == []
    assert any("Notify bob" in m for m in caplog.messages)
    assert LoanService.borrow(other, book, on=TODAY + timedelta(days=2))


def test_waitlist_survives_reload(store):
    from librarian.models.store import Store

    uid, book, _ = seed(store)
    other = store.create_user("bob")
    LoanService.borrow(uid, book, on=TODAY)
    LoanService.borrow(other, book, on=TODAY)
    assert Store(store.path).waitlist == [{"item_id": book, "user_id": other, "since": "2025-06-01"}]


def test_cannot_borrow_while_holding_overdue_loan(store):
    uid, book, cd = seed(store)
    LoanService.borrow(uid, cd, on=TODAY - timedelta(days=8))
    with pytest.raises(LoanError) as exc:
        LoanService.borrow(uid, book, on=TODAY)
    assert "overdue" in str(exc.value).lower()


def test_return_charges_fine_and_unpaid_fine_blocks_borrowing(store):
    uid, book, cd = seed(store)
    lid = LoanService.borrow(uid, cd, on=TODAY - timedelta(days=8))
    loan = LoanService.return_item(lid, on=TODAY)

    assert loan["fine_charged"] == "20"
    assert store.users[uid]["fine_balance"] == "20"
    with pytest.raises(LoanError) as exc:
        LoanService.borrow(uid, book, on=TODAY)
    assert "unpaid fines" in str(exc.value)

    assert LoanService.pay_fine(uid, "20") == Decimal("0")
    assert LoanService.borrow(uid, book, on=TODAY)


def test_on_time_return_charges_nothing(store):
    uid, book, _ = seed(store)
    lid = LoanService.borrow(uid, book, on=TODAY)
    loan = LoanService.return_item(lid, on=TODAY + timedelta(days=28))
    assert loan["fine_charged"] == "0"
    assert store.users[uid]["fine_balance"] == "0"


def test_fines_accumulate_and_can_be_paid_in_part(store):
    uid, book, cd = seed(store)
    first = LoanService.borrow(uid, cd, on=TODAY - timedelta(days=20))
    second = LoanService.borrow(uid, book, on=TODAY - timedelta(days=20))
    LoanService.return_item(first, on=TODAY - timedelta(days=10))   # 3 days late
    LoanService.return_item(second, on=TODAY + timedelta(days=10))  # 2 days late
    assert store.users[uid]["fine_balance"] == "80"

    assert LoanService.pay_fine(uid, 30) == Decimal("50")
    assert LoanService.pay_fine(uid, "50") == Decimal("0")


@pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN", "21"])
def test_pay_fine_rejects_bad_amounts(store, amount):
    uid, _, cd = seed(store)
    lid = LoanService.borrow(uid, cd, on=TODAY - timedelta(days=8))
    LoanService.return_item(lid, on=TODAY)
    with pytest.raises(ValidationError):
        LoanService.pay_fine(uid, amount)
    assert store.users[uid]["fine_balance"] == "20"


def test_pay_fine_unknown_user(store):
    with pytest.raises(NotFoundError):
        LoanService.pay_fine("nope", "5")


def test_unknown_user_or_item(store):
    uid, book, _ = seed(store)
    with pytest.raises(NotFoundError):
        LoanService.borrow("nope", book, on=TODAY)
    with pytest.raises(NotFoundError):
        LoanService.borrow(uid, "nope", on=TODAY)


def test_return_frees_item_and_rejects_second_return(store):
    uid, book, _ = seed(store)
    lid = LoanService.borrow(uid, book, on=TODAY)

    loan = LoanService.return_item(lid, on=TODAY + timedelta(days=3))
    assert loan["returned_date"] == "2025-06-04"
    assert store.items[book]["available"] is True

    with pytest.raises(LoanError):
        LoanService.return_item(lid)
    with pytest.raises(NotFoundError):
        LoanService.return_item("missing")


def test_malformed_borrow_date(store):
    uid, book, _ = seed(store)
    with pytest.raises(ValidationError):
        LoanService.borrow(uid, book, on="yesterday")


def test_records_keep_history_after_return(store):
    uid, book, cd = seed(store)
    lid = LoanService.borrow(uid, book, on=TODAY - timedelta(days=40))
    LoanService.return_item(lid, on=TODAY)
    LoanService.pay_fine(uid, "120")
    LoanService.borrow(uid, cd, on=TODAY)

    records = LoanService.records()
    assert [r.item_label for r in records] == ["Dune (BOOK)", "Blue (CD)"]
    assert FineReportService(records).total_fine_for_user(records[0].user, TODAY) == Decimal("120")
    # the fine stopped growing on the return date
    later = TODAY + timedelta(days=30)
    assert FineReportService(records).total_fine_for_user(records[0].user, later) == Decimal("120")


def test_loan_returned_before_due_date_has_no_fine_later(store):
    uid, _, cd = seed(store)
    lid = LoanService.borrow(uid, cd, on=TODAY - timedelta(days=41))
    LoanService.return_item(lid, on=TODAY - timedelta(days=40))

    (record,) = LoanService.records()
    assert record.returned_date == TODAY - timedelta(days=40)
    assert not record.is_overdue(TODAY)
    assert FineReportService([record]).total_fine_for_user(record.user, TODAY) == Decimal("0")


def test_records_survive_removed_catalogue_entries(store):
    uid, _, cd = seed(store)
    LoanService.borrow(uid, cd, on=TODAY - timedelta(days=10))
    del store.items[cd]
    del store.users[uid]

    (record,) = LoanService.records()
    assert record.item_label == "Unknown item"
    assert record.item.material_type is MaterialType.CD
    assert record.user.user_id == uid
    assert record.get_fine(TODAY) == Decimal("60")


def test_loans_for_user_reports_status_and_fine(store):
    uid, book, cd = seed(store)
    old = LoanService.borrow(uid, cd, on=TODAY - timedelta(days=41))
    LoanService.return_item(old, on=TODAY - timedelta(days=40))
    LoanService.borrow(uid, book, on=TODAY - timedelta(days=40))

    loans = LoanService.loans_for_user(uid, TODAY)
    assert [l["status"] for l in loans] == ["overdue", "returned"]
    assert loans[0]["fine"] == "120"
    assert loans[0]["due_date"] == "2025-05-20"
    assert loans[1]["returned_date"] == "2025-04-22"
    assert loans[1]["fine"] == "0"

    with pytest.raises(NotFoundError):
        LoanService.loans_for_user("nope", TODAY)
