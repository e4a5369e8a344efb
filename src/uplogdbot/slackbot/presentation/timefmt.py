"""메시지용 시각 포맷"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UNKNOWN_TIME = "Unknown time"


def get_zone(name: str) -> timezone | ZoneInfo:
    """시간대 이름을 tzinfo로 변환 (알 수 없으면 UTC)"""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO 8601 문자열 파싱 (tz 정보가 없으면 UTC로 간주)"""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_preview_timestamp(value: Optional[str], tz_name: str = "America/Los_Angeles") -> str:
    """'MM-DD-YYYY hh:mm AM' 형식으로 변환

    값이 없거나 파싱할 수 없으면 "Unknown time". 현재 시각으로 대체하지 않으므로
    같은 입력은 항상 같은 출력이 됩니다.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return UNKNOWN_TIME
    return parsed.astimezone(get_zone(tz_name)).strftime("%m-%d-%Y %I:%M %p")
