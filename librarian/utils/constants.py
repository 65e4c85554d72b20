# librarian/utils/constants.py

"""
Global constants for dates, loan statuses and report layout.
These constants are imported by both models and services.
"""

# Date format (used for borrow/return dates and report file names)
DATE_FMT = "%Y-%m-%d"


class LoanStatus:
    BORROWED = "borrowed"
    OVERDUE = "overdue"
    RETURNED = "returned"


# --- Reports ---
FINES_REPORT_HEADER = "User,Total Fines,Book,CD,Journal"
FINES_REPORT_PREFIX = "fines_"
UNKNOWN_ITEM_LABEL = "Unknown item"
