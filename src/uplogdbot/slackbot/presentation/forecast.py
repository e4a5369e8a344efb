"""예보 브리핑 메시지 렌더링

수집된 Forecast를 슬랙 메시지로 변환합니다. 실패한 항목은 N/A 등으로 표시하고
메시지 자체는 항상 만들어집니다.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

from uplogdbot.slackbot.config import Config
from uplogdbot.slackbot.forecast.collector import Forecast, ForecastPart
from uplogdbot.slackbot.forecast.fetchers import WaveData
from uplogdbot.slackbot.presentation.message import RenderedMessage
from uplogdbot.slackbot.presentation.timefmt import get_zone

MPH_TO_KTS = 0.868976
METERS_TO_FEET = 3.28084

# 만조/간조 각각 최대 표시 개수
MAX_TIDES_PER_KIND = 4

DIRECTION_ARROWS = {
    "N": "⬆️",
    "NE": "↗️",
    "E": "➡️",
    "SE": "↘️",
    "S": "⬇️",
    "SW": "↙️",
    "W": "⬅️",
    "NW": "↖️",
}
CARDINALS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]

WEATHER_UNAVAILABLE = "Weather unavailable."


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_number(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def direction_arrow(direction: Optional[str]) -> str:
    return DIRECTION_ARROWS.get((direction or "").upper(), "")


def degrees_to_cardinal(degrees: Any) -> Optional[str]:
    if not isinstance(degrees, (int, float)) or isinstance(degrees, bool):
        return None
    return CARDINALS[_round_half_up(degrees / 45) % 8]


def wind_speed_kts(speed: Optional[str]) -> Optional[str]:
    """'10 to 15 mph' → '9 - 13 kts'"""
    if not speed:
        return None
    numbers = [float(n) for n in re.findall(r"\d+(?:\.\d+)?", str(speed))]
    if not numbers:
        return None
    kts = [_round_half_up(n * MPH_TO_KTS) for n in numbers]
    if len(kts) == 1:
        return f"{kts[0]} kts"
    return f"{kts[0]} - {kts[1]} kts"


def format_clock(value: Optional[str]) -> str:
    """'YYYY-MM-DD HH:MM' (이미 현지 시각) → 'h:MM AM'"""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(value.replace(" ", "T"))
    except ValueError:
        return value
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{parsed.hour % 12 or 12}:{parsed.minute:02d} {suffix}"


def format_date_label(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> str:
    now = now or datetime.now(timezone.utc)
    local = now.astimezone(get_zone(tz_name or Config.forecast.timezone))
    return local.strftime("%b %d, %Y")


# === 날씨 ===

def _periods(weather: ForecastPart) -> list:
    data = weather.data if weather.success else None
    if not isinstance(data, dict):
        return []
    periods = (data.get("properties") or {}).get("periods") or data.get("periods") or []
    return periods if isinstance(periods, list) else []


def build_weather_summary(weather: ForecastPart) -> str:
    """오늘 예보 문장 (풍속은 노트로 변환)"""
    periods = _periods(weather)
    if not periods:
        return WEATHER_UNAVAILABLE
    today = periods[0]

    speed = today.get("windSpeed")
    kts = wind_speed_kts(speed)
    wind_dir = today.get("windDirection") or ""
    arrow = direction_arrow(wind_dir)
    summary = today.get("detailedForecast") or today.get("shortForecast") or WEATHER_UNAVAILABLE

    if kts and speed:
        replaced = re.sub(r"mph\b", "kts", summary.replace(speed, kts, 1), flags=re.IGNORECASE)
        if replaced != summary:
            return replaced

    appendix = " ".join(part for part in (kts, wind_dir, arrow) if part)
    if appendix:
        return f"{summary} ({appendix})"
    return summary


def _temperature(period: Optional[dict]) -> str:
    if not period or period.get("temperature") is None:
        return "N/A"
    return f"{period['temperature']}° {period.get('temperatureUnit') or 'F'}"


def build_temps_field(weather: ForecastPart) -> str:
    periods = _periods(weather)
    high = _temperature(periods[0] if periods else None)
    low = _temperature(periods[1] if len(periods) > 1 else None)
    return f"🌡 *Temps:*\n{high} High\n{low} Low"


def build_wind_field(weather: ForecastPart) -> str:
    periods = _periods(weather)
    if not periods:
        return "💨 *Winds:*\nN/A"
    today = periods[0]
    wind_dir = today.get("windDirection") or ""
    parts = [wind_speed_kts(today.get("windSpeed")) or "N/A", wind_dir, direction_arrow(wind_dir)]
    return "💨 *Winds:*\n" + " ".join(part for part in parts if part)


# === 파도 ===

def _field_value(data: WaveData, name: str) -> Any:
    field = data.latest.get(name)
    return field.value if field else None


def format_waves(wave: ForecastPart) -> dict:
    data = wave.data if wave.success else None
    if not isinstance(data, WaveData):
        return {"height": "N/A", "period": "N/A", "direction": "N/A"}

    height_value = _field_value(data, "WVHT")
    period_value = _field_value(data, "DPD")
    dir_value = _field_value(data, "MWD")

    height = (
        f"{height_value * METERS_TO_FEET:.1f} ft"
        if isinstance(height_value, (int, float)) else "N/A"
    )
    period = f"{_format_number(period_value)} sec" if period_value is not None else "N/A"

    degrees = f"{_format_number(dir_value)}°" if dir_value is not None else "N/A"
    cardinal = degrees_to_cardinal(dir_value)
    direction = " ".join(part for part in (degrees, cardinal, direction_arrow(cardinal)) if part)

    return {"height": height, "period": period, "direction": direction}


# === 일광 / 조석 ===

def format_daylight(sun: ForecastPart) -> str:
    if not sun.success or sun.data is None:
        return "Rises @ N/A\nSets @ N/A"
    return (
        f"Rises @ {format_clock(sun.data.sunrise_local)}\n"
        f"Sets @ {format_clock(sun.data.sunset_local)}"
    )


def _tide_kind(value: Optional[str]) -> Optional[str]:
    upper = (value or "").upper()
    if upper in ("H", "HIGH"):
        return "H"
    if upper in ("L", "LOW"):
        return "L"
    return None


def _tide_entry(prediction) -> str:
    height = f"{prediction.height_ft:.3f} ft" if prediction.height_ft is not None else "N/A"
    return f"{format_clock(prediction.time)} @ {height}"


def format_tides(tides: ForecastPart) -> dict:
    if not tides.success or not isinstance(tides.data, list):
        return {"high": "No tide data.", "low": "No tide data."}

    def lines(kind: str) -> str:
        entries = [p for p in tides.data if _tide_kind(p.type) == kind][:MAX_TIDES_PER_KIND]
        return " \n".join(_tide_entry(p) for p in entries) if entries else "None"

    return {"high": lines("H"), "low": lines("L")}


# === 메시지 ===

def build_forecast_message(forecast: Forecast, now: Optional[datetime] = None) -> RenderedMessage:
    """샌디에이고 예보 메시지"""
    waves = format_waves(forecast.wave)
    tides = format_tides(forecast.tides)

    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"San Diego, CA || {format_date_label(now)}",
                "emoji": True,
            },
        },
        {
            "type": "rich_text",
            "elements": [{
                "type": "rich_text_section",
                "elements": [{"type": "text", "text": build_weather_summary(forecast.weather)}],
            }],
        },
        {"type": "divider"},
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": build_temps_field(forecast.weather)},
                {"type": "mrkdwn", "text": build_wind_field(forecast.weather)},
            ],
        },
        {
            "type": "section",
            "fields": [
                {
                    "type": "mrkdwn",
                    "text": (
                        f"🌊 *Waves:*\nHeight: {waves['height']}\n"
                        f"Period: {waves['period']}\nDirection: {waves['direction']}"
                    ),
                },
                {"type": "mrkdwn", "text": f"☀️ *Daylight:*\n{format_daylight(forecast.sun)}"},
            ],
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": "🏝️ *Tides:*"},
                {"type": "mrkdwn", "text": " "},
                {"type": "mrkdwn", "text": f"*High:*\n{tides['high']}"},
                {"type": "mrkdwn", "text": f"*Low:*\n{tides['low']}"},
            ],
        },
    ]
    return RenderedMessage(text="San Diego forecast", blocks=blocks)
