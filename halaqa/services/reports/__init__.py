"""
Report services - monthly circle reports and CSV export.
"""

from halaqa.services.reports.report_service import ReportService, export_to_csv

__all__ = ["ReportService", "export_to_csv"]
