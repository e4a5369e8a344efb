"""예보 수집

네 가지 조회를 동시에 실행하고, 일부가 실패해도 나머지 결과로 메시지를 만들 수 있도록
각각을 ForecastPart로 정규화합니다.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import aiohttp

from uplogdbot.slackbot.config import Config, ForecastConfig
from uplogdbot.slackbot.forecast.fetchers import (
    fetch_sun_times,
    fetch_todays_tides,
    fetch_waves,
    fetch_weather,
)

logger = logging.getLogger(__name__)


@dataclass
class ForecastPart:
    """조회 하나의 결과"""
    success: bool
    data: Any = None
    error: Optional[str] = None
    status: Optional[int] = None


@dataclass
class Forecast:
    wave: ForecastPart = field(default_factory=lambda: ForecastPart(success=False))
    weather: ForecastPart = field(default_factory=lambda: ForecastPart(success=False))
    tides: ForecastPart = field(default_factory=lambda: ForecastPart(success=False))
    sun: ForecastPart = field(default_factory=lambda: ForecastPart(success=False))


def to_part(outcome: Any) -> ForecastPart:
    """gather 결과(값 또는 예외)를 ForecastPart로 변환"""
    if isinstance(outcome, aiohttp.ClientResponseError):
        return ForecastPart(
            success=False, error=outcome.message or str(outcome), status=outcome.status
        )
    if isinstance(outcome, BaseException):
        return ForecastPart(success=False, error=str(outcome) or type(outcome).__name__)
    return ForecastPart(success=True, data=outcome, status=200)


async def collect_forecast(
    settings: Optional[ForecastConfig] = None,
    now: Optional[datetime] = None,
) -> Forecast:
    """날씨/파도/조석/일출일몰을 병렬 조회

    어떤 조회가 실패해도 예외를 던지지 않습니다. 실패한 항목은 success=False로 채우고
    항목별로 에러 로그를 남깁니다.
    """
    settings = settings or Config.forecast

    async with aiohttp.ClientSession() as session:
        outcomes = await asyncio.gather(
            fetch_waves(session, settings),
            fetch_weather(session, settings),
            fetch_todays_tides(session, settings, now),
            fetch_sun_times(session, settings, now),
            return_exceptions=True,
        )

    wave, weather, tides, sun = (to_part(outcome) for outcome in outcomes)
    forecast = Forecast(wave=wave, weather=weather, tides=tides, sun=sun)

    for name in ("wave", "weather", "tides", "sun"):
        part = getattr(forecast, name)
        if not part.success:
            logger.error(f"예보 {name} 조회 실패: {part.error} (status={part.status})")

    return forecast
