"""설정 관리

카테고리별로 구분된 설정을 관리합니다.
- 경로 설정: get_*() 메서드 (cwd 기준 계산 필요)
- 그 외 설정: @dataclass 하위 그룹 (모듈 로드 시 평가)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """설정 오류 예외

    필수 환경변수 누락 등 설정 관련 오류 시 발생합니다.
    """

    def __init__(self, missing_vars: List[str]):
        self.missing_vars = missing_vars
        message = f"필수 환경변수가 설정되지 않았습니다: {', '.join(missing_vars)}"
        super().__init__(message)


def _get_path(env_var: str, default_subdir: str) -> str:
    """환경변수가 없으면 현재 경로 하위 폴더 반환"""
    env_value = os.getenv(env_var)
    if env_value:
        return env_value
    return str(Path.cwd() / default_subdir)


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """문자열을 bool로 변환"""
    if value is None:
        return default
    return value.lower() == "true"


def _parse_float(value: str | None, default: float) -> float:
    """문자열을 float로 변환 (실패 시 기본값)"""
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(
    value: str | None, default: int, minimum: int | None = None, maximum: int | None = None
) -> int:
    """문자열을 int로 변환 (실패하거나 범위를 벗어나면 기본값)"""
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if (minimum is not None and parsed < minimum) or (maximum is not None and parsed > maximum):
        return default
    return parsed


def _env(name: str, default: str = "") -> str:
    """공백을 제거한 환경변수 값 (비어 있으면 기본값)"""
    return (os.getenv(name) or "").strip() or default


@dataclass
class SlackConfig:
    """Slack 연결 설정"""

    signing_secret: str | None = os.getenv("SLACK_SIGNING_SECRET")
    bot_token: str | None = os.getenv("SLACK_BOT_TOKEN")
    app_token: str | None = os.getenv("SLACK_APP_TOKEN")
    shortcut_callback_id: str = os.getenv("SHORTCUT_CALLBACK_ID", "manage_uplogd")
    garage_shortcut_callback_id: str = os.getenv(
        "GARAGE_SHORTCUT_CALLBACK_ID", "garage_mode"
    )


@dataclass
class UplogdConfig:
    """uplogd 원격 제어 설정"""

    endpoint: str | None = os.getenv("API_ENDPOINT")
    auth_token: str = os.getenv("API_AUTH_TOKEN", "")
    garage_mode_endpoint: str = os.getenv(
        "GARAGE_MODE_ENDPOINT", "http://localhost:8010"
    )
    # 타깃별 요청 타임아웃 (초)
    request_timeout: float = _parse_float(os.getenv("UPLOGD_REQUEST_TIMEOUT"), 60.0)
    dm_recipient: str = os.getenv("UPLOGD_DM_RECIPIENT", "")
    updates_channel: str = os.getenv("UPLOGD_UPDATES_CHANNEL", "")


@dataclass
class InventoryConfig:
    """자산 인벤토리 조회 설정"""

    endpoint: str = os.getenv("ASSETS_ENDPOINT", "")
    auth_token: str = os.getenv("ASSETS_AUTH_TOKEN", "")
    prefixes: list[str] = field(
        default_factory=lambda: [
            p.strip().lower()
            for p in os.getenv("ASSET_PREFIXES", "sg,by,cr").split(",")
            if p.strip()
        ]
    )


@dataclass
class ForecastConfig:
    """샌디에이고 예보 브리핑 설정"""

    command: str = os.getenv("SD_FORECAST_COMMAND", "/sdforecast")
    channel: str = os.getenv("SD_FORECAST_CHANNEL", "")
    post_hour: int = _parse_int(os.getenv("SD_FORECAST_HOUR"), 8, minimum=0, maximum=23)
    timezone: str = _env("SD_FORECAST_TIMEZONE", "America/Los_Angeles")
    weather_url: str = _env(
        "SD_WEATHER_URL", "https://api.weather.gov/gridpoints/SGX/54,13/forecast"
    )
    wave_url: str = _env(
        "SD_WAVE_URL", "https://www.ndbc.noaa.gov/data/realtime2/46232.txt"
    )
    tide_endpoint: str = _env(
        "SD_TIDE_ENDPOINT", "https://api.tidesandcurrents.noaa.gov/api/prod/datagetter"
    )
    tide_station: str = _env("SD_TIDE_STATION", "9410170")
    tide_datum: str = _env("SD_TIDE_DATUM", "MLLW")
    tide_time_zone: str = _env("SD_TIDE_TIME_ZONE", "lst_ldt")
    tide_units: str = _env("SD_TIDE_UNITS", "english")
    tide_interval: str = _env("SD_TIDE_INTERVAL", "hilo")
    sun_endpoint: str = _env("SD_SUN_ENDPOINT", "https://api.sunrise-sunset.org/json")
    sun_timezone: str = _env("SD_SUN_TIMEZONE", "America/Los_Angeles")
    sun_lat: str = _env("SD_SUN_LAT", "32.7157")
    sun_lng: str = _env("SD_SUN_LNG", "-117.1611")


@dataclass
class DisplayConfig:
    """메시지 표시 설정"""

    timezone: str = _env("DISPLAY_TIMEZONE", "America/Los_Angeles")
    primary_machine_label: str = os.getenv("PRIMARY_MACHINE_LABEL", "imx8")
    secondary_machine_label: str = os.getenv("SECONDARY_MACHINE_LABEL", "crystal")


class Config:
    """애플리케이션 설정

    설정 접근 방식:
    - 경로 관련: get_*() 메서드 (런타임에 cwd 기준 계산)
    - 그 외: 하위 설정 그룹 (모듈 로드 시 평가)
    """

    debug: bool = _parse_bool(os.getenv("DEBUG"), False)

    slack = SlackConfig()
    uplogd = UplogdConfig()
    inventory = InventoryConfig()
    forecast = ForecastConfig()
    display = DisplayConfig()

    # ========================================
    # 경로 설정 (런타임에 cwd 기준 계산)
    # ========================================
    @staticmethod
    def get_log_path() -> str:
        """로그 경로"""
        return _get_path("LOG_PATH", "logs")

    # ========================================
    # 검증
    # ========================================
    @classmethod
    def validate(cls) -> None:
        """필수 환경변수 검증

        필수 환경변수가 누락된 경우 ConfigurationError를 발생시킵니다.

        Raises:
            ConfigurationError: 필수 환경변수 누락 시
        """
        missing = []
        if not cls.slack.signing_secret:
            missing.append("SLACK_SIGNING_SECRET")
        if not cls.slack.bot_token:
            missing.append("SLACK_BOT_TOKEN")
        if not cls.slack.app_token:
            missing.append("SLACK_APP_TOKEN")
        if not cls.uplogd.endpoint:
            missing.append("API_ENDPOINT")

        if missing:
            raise ConfigurationError(missing)
