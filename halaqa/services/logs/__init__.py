"""
Log services - progress logs, review and statistics.
"""

from halaqa.services.logs.log_service import LogService
from halaqa.services.logs.log_stats import compute_student_stats

__all__ = ["LogService", "compute_student_stats"]
