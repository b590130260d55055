# Models package
from .user import RegisterRequest, LoginRequest, UserUpdateRequest, UserOut, AuthResponse
from .session import SessionCreate, SessionUpdate
from .subject import SubjectCreate, SubjectUpdate
from .task import (
    TaskCreate, TaskUpdate, TaskCompletionToggle,
    HabitCreate, HabitUpdate, HabitCompletionToggle,
)
from .stats import (
    ActivityRecord, TaskRecord, CompletionMark, StatsResult,
    CompletionSeries, CompletionTotals, TaskStats, HabitStats,
)
