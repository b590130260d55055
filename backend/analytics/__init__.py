# Statistics engine
from .errors import StatsError, InvalidDateFormat, NegativeDuration
from .dates import (
    parse_date, format_date, trailing_dates, week_dates, month_dates, month_offset, week_offset,
)
from .engine import compute_stats, compute_completion_series, completion_totals, round_half_up
from .charts import daily_minutes, weekly_buckets, subject_totals, subject_breakdown
