from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable

from librarian.exceptions import ValidationError
from librarian.models.borrow_record import BorrowRecord
from librarian.services.activity_report_service import ActivityReportService
from librarian.services.fine_report_service import FineReportService
from librarian.services.report_exporter import ReportExporter


class ReportManager:
    """One entry point for the fine, activity and export reports over the same records."""

    def __init__(self, records: Iterable[BorrowRecord], storage=None, reports_dir=None):
        if records is None:
            raise ValidationError("Error: borrow records are required")
        records = tuple(records)
        self.fines = FineReportService(records)
        self.activity = ActivityReportService(records)
        self.exporter = ReportExporter(self.fines, storage=storage, reports_dir=reports_dir)

    def export_fines_csv(self, as_of: date) -> Path:
        return self.exporter.export_fines_report_to_csv(as_of)
