import calendar
import re
from datetime import date, datetime, timedelta
from typing import List, Union

from .errors import InvalidDateFormat

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[str, date]


def parse_date(value: DateLike) -> date:
    """解析日历日期，只接受 YYYY-MM-DD 字符串或 date 对象"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise InvalidDateFormat(value)
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateFormat(value) from e


def format_date(value: DateLike) -> str:
    return parse_date(value).strftime(DATE_FORMAT)


def day_gap(earlier: date, later: date) -> int:
    return later.toordinal() - earlier.toordinal()


def trailing_dates(end: DateLike, days: int) -> List[date]:
    """以 end 结尾的连续 days 天（升序）"""
    end = parse_date(end)
    return [end - timedelta(days=i) for i in range(days - 1, -1, -1)]


def week_dates(today: DateLike, offset: int = 0) -> List[date]:
    """today 所在周（周日到周六），offset 为周偏移量"""
    anchor = parse_date(today) + timedelta(weeks=offset)
    # weekday(): 周一为0，周日为6
    sunday = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
    return [sunday + timedelta(days=i) for i in range(7)]


def month_dates(today: DateLike, offset: int = 0) -> List[date]:
    """today 所在月份偏移 offset 个月后的整月日期"""
    today = parse_date(today)
    month_index = today.month - 1 + offset
    year = today.year + month_index // 12
    month = month_index % 12 + 1
    _, days_in_month = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, days_in_month + 1)]


def month_offset(earlier: DateLike, later: DateLike) -> int:
    """earlier 相对 later 的月份偏移（earlier 更早时为负数）"""
    earlier, later = parse_date(earlier), parse_date(later)
    return (earlier.year - later.year) * 12 + (earlier.month - later.month)


def week_offset(earlier: DateLike, later: DateLike) -> int:
    """earlier 相对 later 的整周偏移，向下取整"""
    return day_gap(parse_date(later), parse_date(earlier)) // 7
