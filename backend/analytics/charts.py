from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from models.stats import ActivityRecord
from .dates import DateLike, parse_date, format_date
from .engine import aggregate_day_totals

DELETED_SUBJECT = "(Deleted)"
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def daily_minutes(records: Iterable[ActivityRecord], dates: Sequence[DateLike]) -> List[dict]:
    """每天的学习分钟数，没有记录的日期补 0"""
    totals = aggregate_day_totals(records)
    result = []
    for value in dates:
        day = parse_date(value)
        result.append({
            "date": format_date(day),
            "day": WEEKDAY_NAMES[day.weekday()],
            "minutes": totals.get(day, 0),
        })
    return result


def weekly_buckets(records: Iterable[ActivityRecord], today: DateLike, weeks: int = 4) -> List[dict]:
    """以 today 结尾的最近 weeks 个 7 天窗口，旧的在前"""
    today = parse_date(today)
    totals = aggregate_day_totals(records)

    buckets = []
    for week in range(weeks - 1, -1, -1):
        end = today - timedelta(days=week * 7)
        start = end - timedelta(days=6)
        minutes = sum(m for day, m in totals.items() if start <= day <= end)
        buckets.append({
            "week": f"Week {weeks - week}",
            "start_date": format_date(start),
            "end_date": format_date(end),
            "minutes": minutes,
        })
    return buckets


def subject_totals(
    records: Iterable[ActivityRecord],
    subject_names: Iterable[str],
    on: Optional[DateLike] = None,
    include_empty: bool = False,
) -> Dict[str, int]:
    """按科目汇总分钟数，已删除科目的记录合并到 "(Deleted)" """
    names = list(subject_names)
    known = set(names)
    day = parse_date(on) if on is not None else None

    totals: Dict[str, int] = {name: 0 for name in names} if include_empty else {}
    for record in records:
        if day is not None and parse_date(record.date) != day:
            continue
        key = record.subject if record.subject in known else DELETED_SUBJECT
        totals[key] = totals.get(key, 0) + record.duration_minutes
    return totals


def subject_breakdown(
    records: Iterable[ActivityRecord],
    subject_names: Iterable[str],
    limit: int = 5,
) -> List[dict]:
    totals = subject_totals(records, subject_names)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "minutes": minutes} for name, minutes in ranked[:limit]]
