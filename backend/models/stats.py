from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class ActivityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str  # YYYY-MM-DD
    duration_minutes: int
    subject: Optional[str] = None


class TaskRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_date: str  # YYYY-MM-DD，从这一天起计入分母


class CompletionMark(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str
    date: str  # YYYY-MM-DD
    completed: bool = True


class StatsResult(BaseModel):
    total_minutes: int = 0
    best_date: str = ""
    best_date_minutes: int = 0
    current_streak: int = 0  # 当前连续天数
    highest_streak: int = 0  # 历史最长连续天数


class CompletionSeries(BaseModel):
    per_date_percentage: Dict[str, int] = Field(default_factory=dict)
    aggregate_percentage: int = 0  # 每日百分比的算术平均


class CompletionTotals(BaseModel):
    completed: int = 0
    possible: int = 0
    remaining: int = 0


class TaskStats(BaseModel):
    range: str
    dates: List[str]
    series: CompletionSeries
    totals: CompletionTotals


class HabitStats(BaseModel):
    habit_id: str
    name: str
    goal: int
    completed_days: int
    goal_percentage: int
    current_streak: int
    highest_streak: int
