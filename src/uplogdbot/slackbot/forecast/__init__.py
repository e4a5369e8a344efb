"""샌디에이고 예보 브리핑 패키지

날씨/파도/조석/일출일몰 정보를 병렬로 수집해 하나의 슬랙 메시지로 게시합니다.
"""

from uplogdbot.slackbot.forecast.collector import Forecast, ForecastPart, collect_forecast
from uplogdbot.slackbot.forecast.scheduler import (
    DailyForecastScheduler,
    OneTimeSchedule,
    parse_one_time_schedule,
    schedule_one_time_forecast,
)

__all__ = [
    "Forecast",
    "ForecastPart",
    "collect_forecast",
    "DailyForecastScheduler",
    "OneTimeSchedule",
    "parse_one_time_schedule",
    "schedule_one_time_forecast",
]
