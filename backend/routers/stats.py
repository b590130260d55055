from datetime import date, timedelta
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query
from pymongo.database import Database

from analytics import (
    compute_stats, compute_completion_series, completion_totals,
    parse_date, format_date, trailing_dates, week_dates, month_dates, month_offset, week_offset,
    daily_minutes, weekly_buckets, subject_totals, subject_breakdown,
    round_half_up,
)
from database import get_db, SESSIONS, SUBJECTS, TASKS, TASK_COMPLETIONS, HABITS, HABIT_COMPLETIONS
from models import ActivityRecord, TaskRecord, CompletionMark, StatsResult, TaskStats, HabitStats
from routers.auth import get_user_id, find_user
from routers.common import check_date

router = APIRouter(tags=["统计"])


class ChartRange(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    heatmap = "heatmap"


class CompletionRange(str, Enum):
    weekly = "weekly"
    monthly = "monthly"


def resolve_today(today: Optional[str]) -> str:
    """客户端传入的本地日期优先，否则使用服务器本地日期"""
    if today:
        return check_date(today)
    return format_date(date.today())


def session_records(db: Database, user_id: str) -> List[ActivityRecord]:
    return [
        ActivityRecord(date=s["date"], duration_minutes=s["minutes"], subject=s.get("subject"))
        for s in db[SESSIONS].find({"user_id": user_id})
    ]


def subject_names(db: Database, user_id: str) -> List[str]:
    return [s["name"] for s in db[SUBJECTS].find({"user_id": user_id}).sort("created_at", 1)]


def created_date(doc: dict) -> str:
    """创建日期；旧数据没有 created_date 时取 created_at 的日期部分"""
    if doc.get("created_date"):
        return doc["created_date"]
    return format_date(doc["created_at"])


def navigation_limits(db: Database, user_id: str, today: str) -> dict:
    """可向前翻到的最早偏移量，不早于账号创建日期"""
    user = find_user(db, user_id)
    created = user.get("created_at")
    if not created:
        return {"min_month_offset": -12, "min_week_offset": -12}
    return {
        "min_month_offset": min(0, month_offset(created, today)),
        "min_week_offset": min(0, week_offset(created, today)),
    }


@router.get("/sessions/stats", response_model=StatsResult)
async def get_session_stats(
    authorization: str = Header(...),
    today: Optional[str] = Query(default=None, description="客户端本地日期 YYYY-MM-DD"),
    db: Database = Depends(get_db)
):
    """学习总时长、最佳日与连续天数"""
    user_id = get_user_id(authorization)
    return compute_stats(session_records(db, user_id), resolve_today(today))


@router.get("/sessions/chart")
async def get_session_chart(
    authorization: str = Header(...),
    range: ChartRange = Query(default=ChartRange.weekly),
    offset: int = Query(default=0, le=0, description="weekly 为周偏移量，heatmap 为月偏移量；0表示当前"),
    today: Optional[str] = Query(default=None),
    db: Database = Depends(get_db)
):
    """柱状图与热力图数据"""
    user_id = get_user_id(authorization)
    today = resolve_today(today)
    records = session_records(db, user_id)

    if range == ChartRange.daily:
        totals = subject_totals(records, subject_names(db, user_id), on=today, include_empty=True)
        data = [{"name": name, "minutes": minutes} for name, minutes in totals.items()]
    elif range == ChartRange.weekly:
        end = parse_date(today) + timedelta(weeks=offset)
        data = daily_minutes(records, trailing_dates(end, 7))
    elif range == ChartRange.heatmap:
        data = daily_minutes(records, month_dates(today, offset))
    else:
        data = weekly_buckets(records, today)

    return {"range": range.value, "data": data, "limits": navigation_limits(db, user_id, today)}


@router.get("/sessions/breakdown")
async def get_subject_breakdown(
    authorization: str = Header(...),
    limit: int = Query(default=5, ge=1, le=20),
    db: Database = Depends(get_db)
):
    """科目分布（前 limit 名）"""
    user_id = get_user_id(authorization)
    records = session_records(db, user_id)
    return {"subjects": subject_breakdown(records, subject_names(db, user_id), limit)}


@router.get("/tasks/stats", response_model=TaskStats)
async def get_task_stats(
    authorization: str = Header(...),
    range: CompletionRange = Query(default=CompletionRange.weekly),
    offset: int = Query(default=0, le=0),
    today: Optional[str] = Query(default=None),
    db: Database = Depends(get_db)
):
    """任务完成率（周/月）"""
    user_id = get_user_id(authorization)
    today = resolve_today(today)

    if range == CompletionRange.weekly:
        dates = week_dates(today, offset)
    else:
        dates = month_dates(today, offset)
    start_date, end_date = format_date(dates[0]), format_date(dates[-1])

    tasks = [
        TaskRecord(id=str(t["_id"]), created_date=created_date(t))
        for t in db[TASKS].find({"user_id": user_id})
    ]
    completions = [
        CompletionMark(task_id=c["task_id"], date=c["date"], completed=c.get("completed", False))
        for c in db[TASK_COMPLETIONS].find({
            "user_id": user_id,
            "date": {"$gte": start_date, "$lte": end_date}
        })
    ]

    return TaskStats(
        range=range.value,
        dates=[format_date(d) for d in dates],
        series=compute_completion_series(tasks, completions, dates),
        totals=completion_totals(tasks, completions, dates),
    )


@router.get("/habits/stats")
async def get_habit_stats(
    authorization: str = Header(...),
    today: Optional[str] = Query(default=None),
    db: Database = Depends(get_db)
):
    """每个习惯的完成天数、目标进度和连续天数"""
    user_id = get_user_id(authorization)
    today = resolve_today(today)

    completed_days = {}
    for c in db[HABIT_COMPLETIONS].find({"user_id": user_id, "completed": True}):
        completed_days.setdefault(c["habit_id"], []).append(c["date"])

    habits = []
    for habit in db[HABITS].find({"user_id": user_id}).sort("created_at", -1):
        habit_id = str(habit["_id"])
        days = completed_days.get(habit_id, [])
        # 每个完成日按 1 分钟计入，复用连续天数计算
        stats = compute_stats([ActivityRecord(date=d, duration_minutes=1) for d in days], today)
        goal = habit.get("goal") or 1
        habits.append(HabitStats(
            habit_id=habit_id,
            name=habit["name"],
            goal=goal,
            completed_days=stats.total_minutes,
            goal_percentage=min(100, round_half_up(100 * stats.total_minutes / goal)),
            current_streak=stats.current_streak,
            highest_streak=stats.highest_streak,
        ))

    return {"habits": habits}
