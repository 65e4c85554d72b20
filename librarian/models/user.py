from dataclasses import dataclass
from decimal import Decimal


@dataclass(eq=False)
class User:
    """
    Library member. The Store keeps raw dicts; reports work on these objects.
    Two User objects are the same user when their IDs match, so they can be
    used as dictionary keys when grouping loans.
    """
    user_id: str
    username: str
    email: str = ""
    role: str = "member"  # "member" | "librarian"
    fine_balance: Decimal = Decimal(0)  # fines charged on return, not yet paid

    def __eq__(self, other):
        if not isinstance(other, User):
            return NotImplemented
        return self.user_id == other.user_id

    def __hash__(self):
        return hash(self.user_id)

    def __str__(self) -> str:
        return self.username

    def has_outstanding_fine(self) -> bool:
        return self.fine_balance > 0
