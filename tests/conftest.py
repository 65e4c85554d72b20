import sys, pathlib
from datetime import date

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest

from librarian import create_app
from librarian.models.borrow_record import BorrowRecord
from librarian.models.item import LibraryItem
from librarian.models.material import MaterialType
from librarian.models.store import Store
from librarian.models.user import User

TODAY = date(2025, 6, 1)


@pytest.fixture(autouse=True)
def store(monkeypatch, tmp_path):
    """
    Provide a clean store backed by a temp file and install it as the
    application-wide instance, so services and controllers all see the
    SAME object.
    """
    monkeypatch.setenv("LIBRARIAN_ENV", "test")
    st = Store(tmp_path / "data.pkl")
    monkeypatch.setattr(Store, "_inst", st)
    yield st


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "REPORTS_DIR": str(tmp_path / "reports"),
        "LIBRARY_TIMEZONE": "UTC",
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


# -------- model builders --------
def make_user(uid="u1", username=None):
    return User(user_id=uid, username=username or uid)


def make_item(title="Dune", mtype=MaterialType.BOOK, iid=None):
    return LibraryItem(item_id=iid or f"{title}-{mtype}", title=title, material_type=mtype)


def make_record(user, item, borrow_date):
    return BorrowRecord.for_item(user, item, borrow_date)
