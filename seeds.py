from datetime import timedelta

from librarian import create_app
from librarian.models.store import Store
from librarian.services.loan_service import LoanService
from librarian.utils.dates import today


def ensure_user(store: Store, username: str, email: str, role: str = "member"):
    """
    Ensure a user with `username` exists in the store.
    - If exists: update email and role (idempotent).
    - If not:   create a new user.
    """
    u = store.find_user(username)
    if u:
        u["email"] = email
        u["role"] = role
        return u["user_id"]
    return store.create_user(username, email, role)


def main():
    app = create_app()
    with app.app_context():
        store = Store.instance()

        # ---- Demo members ----
        alice = ensure_user(store, "alice", "alice@example.com")
        bob = ensure_user(store, "bob", "bob@example.com")
        ensure_user(store, "librarian", "desk@example.com", role="librarian")

        # ---- Demo catalogue and loans (create only if none exist) ----
        if not store.items:
            dune = store.create_item({"title": "Dune", "author": "Frank Herbert", "material_type": "BOOK"})
            kind_of_blue = store.create_item({"title": "Kind of Blue", "author": "Miles Davis",
                                              "material_type": "CD"})
            nature = store.create_item({"title": "Nature Vol. 612", "material_type": "JOURNAL"})

            d = today(app.config["LIBRARY_TIMEZONE"])
            LoanService.borrow(alice, kind_of_blue, on=d - timedelta(days=41), store=store)
            LoanService.borrow(alice, dune, on=d - timedelta(days=40), store=store)
            LoanService.borrow(bob, nature, on=d - timedelta(days=10), store=store)

        store.save()

        print("✅ Seed complete.")
        print("💡 Try: GET /reports/fines  or  GET /reports/fines.csv")


if __name__ == "__main__":
    main()
