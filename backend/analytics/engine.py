"""连续天数与完成率统计

所有函数都是纯函数：不读时钟、不访问数据库、不修改输入。
"today" 由调用方显式传入，日期只按日历日比较。
"""
import math
from datetime import date
from typing import Dict, Iterable, List, Sequence

from models.stats import (
    ActivityRecord, TaskRecord, CompletionMark,
    StatsResult, CompletionSeries, CompletionTotals,
)
from .dates import DateLike, parse_date, format_date, day_gap
from .errors import NegativeDuration


def round_half_up(value: float) -> int:
    """与前端 Math.round 一致的四舍五入（Python 的 round 是银行家舍入）"""
    return int(math.floor(value + 0.5))


def aggregate_day_totals(records: Iterable[ActivityRecord]) -> Dict[date, int]:
    """按日期汇总分钟数，负时长直接拒绝"""
    totals: Dict[date, int] = {}
    for record in records:
        if record.duration_minutes < 0:
            raise NegativeDuration(record.date, record.duration_minutes)
        day = parse_date(record.date)
        totals[day] = totals.get(day, 0) + record.duration_minutes
    return totals


def _highest_streak(days: Sequence[date]) -> int:
    highest = 0
    run = 0
    previous = None
    for day in days:
        if previous is not None and day_gap(previous, day) == 1:
            run += 1
        else:
            run = 1
        highest = max(highest, run)
        previous = day
    return highest


def _current_streak(days: Sequence[date], today: date) -> int:
    if not days:
        return 0

    last = days[-1]
    # 最后一次记录必须是今天或昨天，否则连续已中断
    if day_gap(last, today) not in (0, 1):
        return 0

    streak = 1
    for index in range(len(days) - 1, 0, -1):
        if day_gap(days[index - 1], days[index]) != 1:
            break
        streak += 1
    return streak


def compute_stats(records: Iterable[ActivityRecord], today: DateLike) -> StatsResult:
    """计算总时长、最佳日、当前连续天数和历史最长连续天数"""
    today = parse_date(today)
    totals = aggregate_day_totals(records)
    days = sorted(totals)

    best_date = ""
    best_minutes = 0
    best_found = False
    # 升序扫描，并列时保留最早的日期
    for day in days:
        if not best_found or totals[day] > best_minutes:
            best_date = format_date(day)
            best_minutes = totals[day]
            best_found = True

    return StatsResult(
        total_minutes=sum(totals.values()),
        best_date=best_date,
        best_date_minutes=best_minutes,
        current_streak=_current_streak(days, today),
        highest_streak=_highest_streak(days),
    )


def _completed_pairs(completions: Iterable[CompletionMark]) -> set:
    return {
        (mark.task_id, parse_date(mark.date))
        for mark in completions
        if mark.completed
    }


def _eligible_tasks(tasks: Sequence[TaskRecord], day: date) -> List[str]:
    return [task.id for task in tasks if parse_date(task.created_date) <= day]


def compute_completion_series(
    tasks: Iterable[TaskRecord],
    completions: Iterable[CompletionMark],
    dates: Iterable[DateLike],
) -> CompletionSeries:
    """逐日计算任务完成百分比

    任务只从创建当天起计入分母；当天没有任何已创建任务时记为 0%。
    汇总值是逐日百分比的算术平均，分母为 0 的日子也按 0 参与平均。
    """
    tasks = list(tasks)
    done = _completed_pairs(completions)
    days = [parse_date(value) for value in dates]

    percentages = []
    per_date = {}
    for day in days:
        eligible = _eligible_tasks(tasks, day)
        if eligible:
            completed = sum(1 for task_id in eligible if (task_id, day) in done)
            percentage = round_half_up(100 * completed / len(eligible))
        else:
            percentage = 0
        percentages.append(percentage)
        per_date[format_date(day)] = percentage

    aggregate = round_half_up(sum(percentages) / len(percentages)) if percentages else 0
    return CompletionSeries(per_date_percentage=per_date, aggregate_percentage=aggregate)


def completion_totals(
    tasks: Iterable[TaskRecord],
    completions: Iterable[CompletionMark],
    dates: Iterable[DateLike],
) -> CompletionTotals:
    """合计完成数与应完成数（不做逐日平均）"""
    tasks = list(tasks)
    done = _completed_pairs(completions)

    completed = 0
    possible = 0
    for value in dates:
        day = parse_date(value)
        eligible = _eligible_tasks(tasks, day)
        possible += len(eligible)
        completed += sum(1 for task_id in eligible if (task_id, day) in done)

    return CompletionTotals(completed=completed, possible=possible, remaining=possible - completed)
