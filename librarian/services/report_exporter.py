from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional

from librarian.exceptions import ReportExportError, ValidationError
from librarian.models.fine_strategy import ZERO
from librarian.models.material import MaterialType
from librarian.services.fine_report_service import FineReportService
from librarian.utils.constants import FINES_REPORT_HEADER, FINES_REPORT_PREFIX
from librarian.utils.dates import fmt_date, require_date
from librarian.utils.files import LocalFileStorage

logger = logging.getLogger(__name__)

DEFAULT_REPORTS_DIR = Path("library_data") / "reports"

# Column order after "User,Total Fines"
REPORT_COLUMNS = (MaterialType.BOOK, MaterialType.CD, MaterialType.JOURNAL)


class ReportExporter:
    """
    Renders the fine report as CSV text and writes it to disk.

    `storage` is any object with `create_directory_if_missing(path)` and
    `write_text(path, content)`; the local filesystem is used by default.
    """

    def __init__(
            self,
            fine_report_service: FineReportService,
            storage=None,
            reports_dir: Optional[str | os.PathLike] = None,
    ):
        if fine_report_service is None:
            raise ValidationError("Error: fine report service is required")
        self.fine_report_service = fine_report_service
        self.storage = storage or LocalFileStorage()
        self.reports_dir = Path(reports_dir) if reports_dir else DEFAULT_REPORTS_DIR

    def generate_fines_report(self, as_of: date) -> str:
        """
        One header line, then per user: name, total, Book, CD, Journal.
        Types the user never borrowed are rendered as 0.
        """
        as_of = require_date(as_of, "report date")
        lines = [FINES_REPORT_HEADER]
        totals = self.fine_report_service.total_fines_for_all_users(as_of)
        for user, total in totals.items():
            by_type = self.fine_report_service.fines_by_material_type(user, as_of)
            row = [user.username, str(total)]
            row.extend(str(by_type.get(mtype, ZERO)) for mtype in REPORT_COLUMNS)
            lines.append(",".join(row))
        return "\n".join(lines) + "\n"

    def report_path(self, as_of: date) -> Path:
        """Target file for a report date: <reports_dir>/fines_<YYYY-MM-DD>.csv."""
        as_of = require_date(as_of, "report date")
        return self.reports_dir / f"{FINES_REPORT_PREFIX}{fmt_date(as_of)}.csv"

    def export_fines_report_to_csv(self, as_of: date) -> Path:
        """Write the report for `as_of`, replacing any earlier file for that date."""
        as_of = require_date(as_of, "report date")
        target = self.report_path(as_of)
        report = self.generate_fines_report(as_of)

        try:
            self.storage.create_directory_if_missing(self.reports_dir)
        except OSError as e:
            raise ReportExportError(self.reports_dir, "Error: failed to create reports directory") from e

        try:
            self.storage.write_text(target, report)
        except OSError as e:
            raise ReportExportError(target, "Error: failed to write report") from e

        logger.info("Fines report for %s written to %s", fmt_date(as_of), target)
        return target
