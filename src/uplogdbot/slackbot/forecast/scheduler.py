"""예보 게시 스케줄러

- DailyForecastScheduler: 평일 지정 시각(기본 08:00)에 예보 채널로 게시
- schedule_one_time_forecast: /sdforecast schedule ... 으로 요청된 1회성 게시
"""

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from uplogdbot.slackbot.presentation.timefmt import get_zone

logger = logging.getLogger(__name__)

# 타이머가 예약 시각보다 조금 일찍 깨어나도 같은 날 다시 게시하지 않도록
# 게시 직후 다음 실행은 이 시간(초) 이후의 예약 시각으로 잡음
RESCHEDULE_MARGIN_SECONDS = 60

# 예보 메시지를 만들어 채널에 게시하는 함수 (client, channel) -> None
PostForecast = Callable[[object, str], None]

_IN_PATTERN = re.compile(r"^in\s+(\d+)\s*(m|min|mins|minutes)?$", re.IGNORECASE)
_AT_PATTERN = re.compile(r"^(?:at\s*)?(\d{1,2}):(\d{2})$", re.IGNORECASE)


@dataclass
class OneTimeSchedule:
    delay_seconds: float
    label: str


def seconds_until(hour: int, minute: int = 0, now: Optional[datetime] = None) -> float:
    """다음 hour:minute 까지 남은 초 (이미 지났으면 다음 날)"""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


def parse_one_time_schedule(text: Optional[str], now: Optional[datetime] = None) -> Optional[OneTimeSchedule]:
    """1회성 예약 명령 해석

    지원 형식 (앞의 'schedule' 키워드는 생략 가능):
        schedule in 15m / in 15 minutes
        schedule at 7:30 / 7:30

    Returns:
        해석할 수 없거나 값이 범위를 벗어나면 None
    """
    if not text:
        return None

    remainder = re.sub(r"^schedule\s*", "", text.strip(), flags=re.IGNORECASE).strip()
    if not remainder:
        return None

    match = _IN_PATTERN.match(remainder)
    if match:
        minutes = int(match.group(1))
        if minutes > 0:
            return OneTimeSchedule(delay_seconds=minutes * 60, label=f"in {minutes}m")

    match = _AT_PATTERN.match(remainder)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if 0 <= hour <= 23 and 0 <= minute <= 59:
            return OneTimeSchedule(
                delay_seconds=seconds_until(hour, minute, now),
                label=f"at {hour}:{minute:02d} (local)",
            )

    return None


def schedule_one_time_forecast(
    *,
    post_forecast: PostForecast,
    client,
    channel: str,
    delay_seconds: float,
) -> threading.Timer:
    """delay_seconds 후 한 번 예보를 게시 (실패는 로그만)"""

    def _fire():
        try:
            post_forecast(client, channel)
            logger.info(f"1회성 예보 게시 완료: channel={channel}")
        except Exception as e:
            logger.error(f"1회성 예보 게시 실패: {e}")

    timer = threading.Timer(delay_seconds, _fire)
    timer.daemon = True
    timer.start()
    logger.info(f"1회성 예보 예약: channel={channel}, {delay_seconds:.0f}초 후")
    return timer


class DailyForecastScheduler:
    """평일 아침 예보 게시 스케줄러

    threading.Timer로 다음 게시 시각까지 대기합니다. 게시 성공/실패와 무관하게
    항상 다음 실행을 예약하며, 주말에는 게시하지 않고 건너뜁니다.
    """

    def __init__(
        self,
        *,
        client,
        channel: str,
        post_forecast: PostForecast,
        hour: int = 8,
        timezone: str = "America/Los_Angeles",
        clock: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.channel = channel
        self.post_forecast = post_forecast
        self.hour = hour
        self.timezone = timezone
        self._clock = clock or (lambda: datetime.now(get_zone(self.timezone)))

        self._timer: threading.Timer | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """스케줄러를 시작합니다."""
        if self._running:
            return
        if not self.channel:
            logger.info("SD_FORECAST_CHANNEL이 설정되지 않아 예보 스케줄을 건너뜁니다")
            return
        self._running = True
        self._schedule_next()
        logger.info(f"예보 스케줄러 시작: 평일 {self.hour:02d}:00 ({self.timezone})")

    def stop(self) -> None:
        """스케줄러를 중지합니다."""
        self._running = False
        if self._timer:
            self._timer.cancel()
            self._timer = None
        logger.info("예보 스케줄러 중지")

    def next_delay(self, margin: float = 0) -> float:
        """다음 예약 시각까지 남은 초 (현재 + margin 이후의 첫 예약 시각 기준)"""
        return seconds_until(self.hour, 0, self._clock() + timedelta(seconds=margin)) + margin

    def _schedule_next(self, margin: float = 0) -> None:
        """다음 실행을 예약합니다."""
        if not self._running:
            return
        self._timer = threading.Timer(self.next_delay(margin), self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        try:
            if self._clock().weekday() < 5:
                self.post_forecast(self.client, self.channel)
                logger.info(f"예약 예보 게시 완료: channel={self.channel}")
            else:
                logger.info("주말이라 예약 예보를 건너뜁니다")
        except Exception as e:
            logger.error(f"예약 예보 게시 실패: {e}")
        finally:
            self._schedule_next(RESCHEDULE_MARGIN_SECONDS)
