from pydantic import BaseModel, Field
from typing import Optional

from config import DEFAULT_HABIT_GOAL
from .fields import Name, Text


class TaskCreate(BaseModel):
    name: Name
    created_date: Optional[str] = Field(default=None, description="客户端本地日期 YYYY-MM-DD")


class TaskUpdate(BaseModel):
    name: Optional[Name] = None


class TaskCompletionToggle(BaseModel):
    task_id: str
    date: str  # YYYY-MM-DD


class HabitCreate(BaseModel):
    name: Name
    emoji: Optional[Text] = None
    goal: int = Field(default=DEFAULT_HABIT_GOAL, gt=0, description="目标天数")


class HabitUpdate(BaseModel):
    name: Optional[Name] = None
    emoji: Optional[Text] = None
    goal: Optional[int] = Field(default=None, gt=0)


class HabitCompletionToggle(BaseModel):
    habit_id: str
    date: str  # YYYY-MM-DD
