class StatsError(ValueError):
    """统计计算的输入错误"""


class InvalidDateFormat(StatsError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"无效的日期格式: {value!r}，应为 YYYY-MM-DD")


class NegativeDuration(StatsError):
    def __init__(self, date, minutes):
        self.date = date
        self.minutes = minutes
        super().__init__(f"{date} 的时长不能为负数: {minutes}")
