"""예보 데이터 조회

각 조회 함수는 공유 aiohttp 세션을 받아 파싱된 데이터를 반환하고,
실패하면 예외를 그대로 전파합니다. 실패 집계는 collector에서 합니다.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from uplogdbot.slackbot.config import ForecastConfig
from uplogdbot.slackbot.presentation.timefmt import get_zone

logger = logging.getLogger(__name__)

WEATHER_TIMEOUT = 20
WAVE_TIMEOUT = 20
SUN_TIMEOUT = 15

WEATHER_HEADERS = {
    "User-Agent": "uplogd-bot/1.0 (sdforecast command)",
    "Accept": "application/ld+json",
}

# NDBC 결측값 표기
_MISSING_VALUES = {"", "MM", "9999"}


class ForecastFetchError(Exception):
    """예보 API가 예상과 다른 응답을 반환함"""


# === 파도 (NDBC 부이 텍스트) ===

@dataclass
class WaveField:
    """부이 관측 행의 한 칸"""
    name: str
    unit: Optional[str]
    raw: Optional[str]
    value: Any


@dataclass
class WaveReading:
    """가장 최근 관측 행"""
    raw: str
    fields: list[WaveField] = field(default_factory=list)
    timestamp: Optional[str] = None

    def get(self, name: str) -> Optional[WaveField]:
        return next((f for f in self.fields if f.name == name), None)


@dataclass
class WaveData:
    headers: list[str]
    units: list[str]
    latest: WaveReading


def normalize_wave_value(raw: Optional[str]) -> Any:
    """결측값은 None, 숫자는 int/float, 나머지는 문자열"""
    if raw is None:
        return None
    trimmed = str(raw).strip()
    if trimmed in _MISSING_VALUES:
        return None
    try:
        return int(trimmed)
    except ValueError:
        pass
    try:
        return float(trimmed)
    except ValueError:
        return trimmed


def _tokenize(line: str) -> list[str]:
    return re.sub(r"^#+\s*", "", line).split()


def _resolve_wave_timestamp(fields: list[WaveField]) -> Optional[str]:
    def value_of(*names):
        return next((f.value for f in fields if f.name in names), None)

    parts = [
        value_of("YYYY", "YY", "yr"),
        value_of("MM", "mo"),
        value_of("DD", "dy"),
        value_of("hh", "hr"),
        value_of("mm", "mn"),
    ]
    if any(not isinstance(part, (int, float)) for part in parts):
        return None

    year, month, day, hour, minute = (int(part) for part in parts)
    if year < 100:
        year += 2000
    try:
        stamp = datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    except ValueError:
        return None
    return stamp.isoformat().replace("+00:00", "Z")


def parse_wave_data(raw_text: Any) -> Optional[WaveData]:
    """NDBC realtime2 텍스트에서 헤더/단위/최신 관측 행을 추출

    첫 번째 '#' 줄이 헤더, 그 다음 '#' 줄이 단위, 첫 데이터 줄이 최신 관측입니다.
    형식이 맞지 않으면 None.
    """
    if not isinstance(raw_text, str):
        return None

    lines = [line.strip() for line in raw_text.splitlines() if line.strip()]
    if len(lines) < 3:
        return None

    comment_lines = [line for line in lines if line.startswith("#")]
    data_line = next((line for line in lines if not line.startswith("#")), None)
    if len(comment_lines) < 2 or data_line is None:
        return None

    headers = _tokenize(comment_lines[0])
    units = _tokenize(comment_lines[1])
    values = _tokenize(data_line)

    fields = [
        WaveField(
            name=name,
            unit=units[i] if i < len(units) else None,
            raw=values[i] if i < len(values) else None,
            value=normalize_wave_value(values[i] if i < len(values) else None),
        )
        for i, name in enumerate(headers)
    ]

    return WaveData(
        headers=headers,
        units=units,
        latest=WaveReading(raw=data_line, fields=fields, timestamp=_resolve_wave_timestamp(fields)),
    )


async def fetch_waves(session: aiohttp.ClientSession, settings: ForecastConfig) -> Optional[WaveData]:
    """부이 파도 관측 조회 (파싱 실패 시 None)"""
    timeout = aiohttp.ClientTimeout(total=WAVE_TIMEOUT)
    async with session.get(settings.wave_url, timeout=timeout) as response:
        response.raise_for_status()
        text = await response.text()
    return parse_wave_data(text)


# === 날씨 (NWS) ===

async def fetch_weather(session: aiohttp.ClientSession, settings: ForecastConfig) -> Any:
    """NWS 그리드 예보 조회 (원본 JSON 반환)"""
    timeout = aiohttp.ClientTimeout(total=WEATHER_TIMEOUT)
    async with session.get(settings.weather_url, timeout=timeout, headers=WEATHER_HEADERS) as response:
        response.raise_for_status()
        return await response.json(content_type=None)


# === 조석 (NOAA CO-OPS) ===

@dataclass
class TidePrediction:
    """만조/간조 예측 한 건"""
    time: str
    height_ft: Optional[float]
    type: str
    raw: dict = field(default_factory=dict, repr=False)


def local_date(tz_name: str, now: Optional[datetime] = None) -> datetime:
    """tz_name 시간대 기준 현재 시각"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(get_zone(tz_name))


def _parse_height(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_tide_predictions(data: Any) -> list[TidePrediction]:
    if not isinstance(data, dict) or not isinstance(data.get("predictions"), list):
        raise ForecastFetchError("Unexpected response format from NOAA tides API")

    return [
        TidePrediction(
            time=prediction.get("t", ""),
            height_ft=_parse_height(prediction.get("v")),
            type="High" if prediction.get("type") == "H" else "Low",
            raw=prediction,
        )
        for prediction in data["predictions"]
        if isinstance(prediction, dict)
    ]


async def fetch_todays_tides(
    session: aiohttp.ClientSession,
    settings: ForecastConfig,
    now: Optional[datetime] = None,
) -> list[TidePrediction]:
    """오늘(태평양 시간 기준) 만조/간조 예측 조회"""
    today = local_date("America/Los_Angeles", now).strftime("%Y%m%d")
    params = {
        "product": "predictions",
        "application": "uplogd-bot",
        "begin_date": today,
        "end_date": today,
        "datum": settings.tide_datum,
        "station": settings.tide_station,
        "time_zone": settings.tide_time_zone,
        "units": settings.tide_units,
        "interval": settings.tide_interval,
        "format": "json",
    }
    async with session.get(settings.tide_endpoint, params=params) as response:
        response.raise_for_status()
        data = await response.json(content_type=None)
    return parse_tide_predictions(data)


# === 일출/일몰 (sunrise-sunset.org) ===

@dataclass
class SunTimes:
    date: str
    lat: str
    lng: str
    timezone: str
    sunrise_local: Optional[str] = None
    sunset_local: Optional[str] = None
    solar_noon_local: Optional[str] = None
    day_length_seconds: Optional[int] = None


def to_local_clock(value: Optional[str], tz_name: str) -> Optional[str]:
    """ISO 시각을 'YYYY-MM-DD HH:MM' (tz_name 기준)으로 변환"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(get_zone(tz_name)).strftime("%Y-%m-%d %H:%M")


def parse_sun_times(data: Any, *, date: str, settings: ForecastConfig) -> SunTimes:
    status = data.get("status") if isinstance(data, dict) else None
    results = data.get("results") if isinstance(data, dict) else None
    if status != "OK" or not isinstance(results, dict):
        raise ForecastFetchError(f"Sunrise-sunset API error: {status or 'unknown'}")

    tz_name = settings.sun_timezone
    return SunTimes(
        date=date,
        lat=settings.sun_lat,
        lng=settings.sun_lng,
        timezone=tz_name,
        sunrise_local=to_local_clock(results.get("sunrise"), tz_name),
        sunset_local=to_local_clock(results.get("sunset"), tz_name),
        solar_noon_local=to_local_clock(results.get("solar_noon"), tz_name),
        day_length_seconds=results.get("day_length"),
    )


async def fetch_sun_times(
    session: aiohttp.ClientSession,
    settings: ForecastConfig,
    now: Optional[datetime] = None,
) -> SunTimes:
    """오늘 일출/일몰 시각 조회"""
    date = local_date("America/Los_Angeles", now).strftime("%Y-%m-%d")
    params = {
        "lat": settings.sun_lat,
        "lng": settings.sun_lng,
        "date": date,
        "formatted": 0,
    }
    timeout = aiohttp.ClientTimeout(total=SUN_TIMEOUT)
    async with session.get(settings.sun_endpoint, params=params, timeout=timeout) as response:
        response.raise_for_status()
        data = await response.json(content_type=None)
    return parse_sun_times(data, date=date, settings=settings)
