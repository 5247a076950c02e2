"""
Progress statistics over approved logs.

Pure functions: callers fetch the logs and pass ``today`` explicitly so the
results are deterministic.
"""

from datetime import date, timedelta
from typing import Iterable, List, Dict, Any

# Indexed Sunday-first, matching the weekly calendar used by circles
ARABIC_DAY_NAMES = {
    0: "الأحد",
    1: "الإثنين",
    2: "الثلاثاء",
    3: "الأربعاء",
    4: "الخميس",
    5: "الجمعة",
    6: "السبت",
}


def arabic_day_name(day: date) -> str:
    # date.weekday() is Monday=0
    return ARABIC_DAY_NAMES[(day.weekday() + 1) % 7]


def last_n_days(today: date, n: int) -> List[date]:
    """The ``n`` days ending with ``today``, oldest first."""
    return [today - timedelta(days=offset) for offset in range(n - 1, -1, -1)]


def log_pages(log: Dict[str, Any]) -> float:
    return (log.get("amount") or {}).get("pages") or 0


def compute_student_stats(logs: Iterable[Dict[str, Any]], today: date) -> Dict[str, Any]:
    """
    Aggregate a student's approved logs.

    Args:
        logs: Log documents (any status; only approved ones count)
        today: Reference day

    Returns:
        dict with totalPagesThisMonth, totalPagesThisWeek (since Monday),
        memorizationPages, revisionPages, weeklyData, typeBreakdown,
        weeklyChartData (last 7 days, Arabic day names) and
        monthlyChartData (last 30 days)
    """
    start_of_month = today.replace(day=1).isoformat()
    start_of_week = (today - timedelta(days=today.weekday())).isoformat()

    last_7 = [d.isoformat() for d in last_n_days(today, 7)]
    last_30 = last_n_days(today, 30)

    daily = {d: 0 for d in last_7}
    memorized_by_day = {d.isoformat(): 0 for d in last_30}
    revised_by_day = {d.isoformat(): 0 for d in last_30}

    month_pages = 0
    week_pages = 0
    memorization_pages = 0
    revision_pages = 0

    for log in logs:
        if log.get("status") != "approved":
            continue

        pages = log_pages(log)
        log_date = log.get("date", "")
        is_memorization = log.get("type") == "memorization"

        # ISO date strings compare chronologically
        if log_date >= start_of_month:
            month_pages += pages
        if log_date >= start_of_week:
            week_pages += pages

        if is_memorization:
            memorization_pages += pages
        else:
            revision_pages += pages

        if log_date in daily:
            daily[log_date] += pages

        if log_date in memorized_by_day:
            if is_memorization:
                memorized_by_day[log_date] += pages
            else:
                revised_by_day[log_date] += pages

    weekly_chart = [
        {
            "day": arabic_day_name(date.fromisoformat(d)),
            "date": d,
            "memorized": memorized_by_day.get(d, 0),
            "revised": revised_by_day.get(d, 0),
        }
        for d in last_7
    ]

    monthly_chart = [
        {
            "day": d.day,
            "date": d.isoformat(),
            "memorized": memorized_by_day[d.isoformat()],
            "revised": revised_by_day[d.isoformat()],
        }
        for d in last_30
    ]

    return {
        "totalPagesThisMonth": month_pages,
        "totalPagesThisWeek": week_pages,
        "memorizationPages": memorization_pages,
        "revisionPages": revision_pages,
        "weeklyData": [{"date": d, "pages": daily[d]} for d in last_7],
        "typeBreakdown": {"memorization": memorization_pages, "revision": revision_pages},
        "weeklyChartData": weekly_chart,
        "monthlyChartData": monthly_chart,
    }
