import atexit
import logging
import os
import pickle
import threading
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

# ---- Paths ----
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_PATH = BASE_DIR / "data.pkl"


class Store:
    """
    Load-all / save-all persistence for users, catalogue items and loans.
    Records are plain dicts keyed by their ID; services map them into model
    objects (see services.common).
    """
    _inst = None
    _inst_lock = threading.Lock()
    _atexit_registered = False

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = str(path or DEFAULT_DATA_PATH)
        self.users: dict[str, dict] = {}
        self.items: dict[str, dict] = {}
        self.loans: dict[str, dict] = {}
        self.waitlist: list[dict] = []
        self._rw = threading.RLock()

        logger.info("[Store] Using file: %s", self.path)
        self._load()

        # Automatically save on exit (skipped in test environments)
        if not Store._atexit_registered and os.getenv("LIBRARIAN_ENV") != "test":
            atexit.register(self.save)
            Store._atexit_registered = True

    # ---------- Singleton ----------
    @classmethod
    def instance(cls, path: str | os.PathLike | None = None):
        """Return the application-wide Store, creating it on first use."""
        with cls._inst_lock:
            if cls._inst is None:
                cls._inst = Store(path or os.getenv("LIBRARIAN_DATA_PATH") or DEFAULT_DATA_PATH)
        return cls._inst

    # ---------- Persistence ----------
    def _load(self):
        """Load data from the pickle file, or start empty if unavailable or invalid."""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "rb") as f:
                data = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError) as e:
            logger.warning("[Store] Load failed (%s); starting empty.", e)
            return

        if isinstance(data, dict):
            self.users = data.get("users", {}) or {}
            self.items = data.get("items", {}) or {}
            self.loans = data.get("loans", {}) or {}
            self.waitlist = data.get("waitlist", []) or []
            logger.info("[Store] Loaded: users=%d, items=%d, loans=%d, waitlist=%d",
                        len(self.users), len(self.items), len(self.loans), len(self.waitlist))
        else:
            # Incompatible data format: back up the old file and start empty
            bak = self.path + ".bak"
            try:
                os.replace(self.path, bak)
                logger.warning("[Store] Incompatible store (%s); backed up to %s. Starting empty.",
                               type(data).__name__, bak)
            except OSError as e:
                logger.error("[Store] Backup failed: %s", e)

    def _dump(self):
        """Write the in-memory data to the pickle file safely (atomic replace)."""
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        payload = {
            "users": self.users,
            "items": self.items,
            "loans": self.loans,
            "waitlist": self.waitlist,
        }
        with open(tmp, "wb") as f:
            pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    @property
    def lock(self):
        """Re-entrant lock; hold it to make a read-check-write sequence atomic."""
        return self._rw

    def save(self):
        """Thread-safe save method."""
        with self._rw:
            logger.debug("[Store] Saving to %s ...", self.path)
            self._dump()

    def clear(self):
        with self._rw:
            self.users.clear()
            self.items.clear()
            self.loans.clear()
            self.waitlist.clear()

    # ---------- Users ----------
    def find_user(self, username: str) -> dict | None:
        """Find a user by username."""
        for u in self.users.values():
            if u["username"] == username:
                return u
        return None

    def create_user(self, username: str, email: str = "", role: str = "member") -> str:
        """Create a new user and return its ID."""
        with self._rw:
            if self.find_user(username):
                raise ValueError("Username already exists")
            uid = str(uuid.uuid4())
            self.users[uid] = {
                "user_id": uid,
                "username": username,
                "email": email,
                "role": role,
                "fine_balance": "0",
            }
            self._dump()
            return uid

    def update_user(self, user_id: str, **updates) -> bool:
        """Update user attributes; return True if the user exists."""
        with self._rw:
            if user_id not in self.users:
                return False
            self.users[user_id].update(updates)
            self._dump()
            return True

    # ---------- Items ----------
    def create_item(self, data: dict) -> str:
        """Create a new catalogue item and return its ID."""
        with self._rw:
            iid = str(uuid.uuid4())
            self.items[iid] = {
                "item_id": iid,
                "title": data.get("title", ""),
                "author": data.get("author", ""),
                "material_type": str(data.get("material_type", "BOOK")).upper(),
                "available": bool(data.get("available", True)),
            }
            self._dump()
            return iid

    def update_item(self, item_id: str, **updates) -> bool:
        """Update item attributes; return True if the item exists."""
        with self._rw:
            if item_id not in self.items:
                return False
            self.items[item_id].update(updates)
            self._dump()
            return True

    # ---------- Loans ----------
    def create_loan(self, loan: dict) -> str:
        """Create a new loan record."""
        with self._rw:
            lid = str(uuid.uuid4())
            loan = dict(loan)
            loan["loan_id"] = lid
            self.loans[lid] = loan
            self._dump()
            return lid

    def update_loan(self, lid: str, updates: dict) -> bool:
        """Update an existing loan by ID."""
        with self._rw:
            if lid in self.loans:
                self.loans[lid].update(updates)
                self._dump()
                return True
            return False

    # ---------- Waitlist ----------
    def add_waitlist_entry(self, entry: dict) -> bool:
        """Queue a user for an item; False if that user is already waiting for it."""
        with self._rw:
            for w in self.waitlist:
                if w["item_id"] == entry["item_id"] and w["user_id"] == entry["user_id"]:
                    return False
            self.waitlist.append(dict(entry))
            self._dump()
            return True

    def pop_waitlist(self, item_id: str) -> list[dict]:
        """Remove and return every entry waiting for the item, oldest first."""
        with self._rw:
            waiting = [w for w in self.waitlist if w["item_id"] == item_id]
            if waiting:
                self.waitlist = [w for w in self.waitlist if w["item_id"] != item_id]
                self._dump()
            return waiting
