"""예보 스케줄러 테스트"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from uplogdbot.slackbot.forecast.scheduler import (
    DailyForecastScheduler,
    parse_one_time_schedule,
    schedule_one_time_forecast,
    seconds_until,
)

MODULE = "uplogdbot.slackbot.forecast.scheduler"

# 2024-05-01은 수요일
WEDNESDAY_7AM = datetime(2024, 5, 1, 7, 0)
SATURDAY_8AM = datetime(2024, 5, 4, 8, 0)


class TestSecondsUntil:
    def test_later_today(self):
        assert seconds_until(8, 0, WEDNESDAY_7AM) == 3600

    def test_already_passed_rolls_to_tomorrow(self):
        assert seconds_until(6, 30, WEDNESDAY_7AM) == 23.5 * 3600

    def test_exact_time_rolls_to_tomorrow(self):
        assert seconds_until(7, 0, WEDNESDAY_7AM) == 24 * 3600


class TestParseOneTimeSchedule:
    def test_in_minutes(self):
        for text in ("schedule in 15m", "in 15", "schedule in 15 minutes", "SCHEDULE IN 15 MINS"):
            schedule = parse_one_time_schedule(text, WEDNESDAY_7AM)
            assert schedule.delay_seconds == 900, text
            assert schedule.label == "in 15m"

    def test_at_time(self):
        schedule = parse_one_time_schedule("schedule at 7:30", WEDNESDAY_7AM)
        assert schedule.delay_seconds == 1800
        assert schedule.label == "at 7:30 (local)"

    def test_at_without_keyword(self):
        schedule = parse_one_time_schedule("schedule 13:05", WEDNESDAY_7AM)
        assert schedule.label == "at 13:05 (local)"

    def test_rejects(self):
        for text in ("", None, "schedule", "schedule in 0m", "schedule at 24:00",
                     "schedule at 7:60", "tomorrow", "schedule in 5 hours"):
            assert parse_one_time_schedule(text, WEDNESDAY_7AM) is None, text


class TestScheduleOneTimeForecast:
    def test_fires_once_and_logs_failures(self):
        post = MagicMock(side_effect=Exception("not_in_channel"))
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            schedule_one_time_forecast(post_forecast=post, client="client", channel="C1", delay_seconds=60)

        delay, callback = timer_cls.call_args.args
        assert delay == 60
        timer_cls.return_value.start.assert_called_once()

        callback()  # 예외가 전파되지 않아야 함
        post.assert_called_once_with("client", "C1")


class TestDailyForecastScheduler:
    def _scheduler(self, now, post=None, channel="C-FORECAST"):
        return DailyForecastScheduler(
            client="client",
            channel=channel,
            post_forecast=post or MagicMock(),
            hour=8,
            clock=lambda: now,
        )

    def test_start_schedules_next_8am(self):
        scheduler = self._scheduler(WEDNESDAY_7AM)
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            scheduler.start()

        assert timer_cls.call_args.args[0] == 3600
        assert scheduler.is_running
        scheduler.stop()
        timer_cls.return_value.cancel.assert_called_once()

    def test_start_without_channel(self):
        scheduler = self._scheduler(WEDNESDAY_7AM, channel="")
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            scheduler.start()

        timer_cls.assert_not_called()
        assert not scheduler.is_running

    def test_weekday_tick_posts(self):
        post = MagicMock()
        scheduler = self._scheduler(datetime(2024, 5, 1, 8, 0), post)
        with patch(f"{MODULE}.threading.Timer"):
            scheduler.start()
            scheduler._tick()

        post.assert_called_once_with("client", "C-FORECAST")

    def test_weekend_tick_skips(self):
        post = MagicMock()
        scheduler = self._scheduler(SATURDAY_8AM, post)
        with patch(f"{MODULE}.threading.Timer"):
            scheduler.start()
            scheduler._tick()

        post.assert_not_called()

    def test_failure_still_schedules_next(self):
        post = MagicMock(side_effect=Exception("boom"))
        scheduler = self._scheduler(datetime(2024, 5, 1, 8, 0), post)
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            scheduler.start()
            scheduler._tick()

        assert timer_cls.call_count == 2

    def test_early_wakeup_does_not_post_twice(self):
        """타이머가 08:00 직전에 깨어나도 다음 실행은 다음 날 08:00"""
        post = MagicMock()
        scheduler = self._scheduler(datetime(2024, 5, 1, 7, 59, 59, 995000), post)
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            scheduler.start()
            scheduler._tick()

        post.assert_called_once()
        next_delay = timer_cls.call_args_list[1].args[0]
        assert next_delay == pytest.approx(24 * 3600 + 0.005)

    def test_reschedule_after_on_time_tick(self):
        scheduler = self._scheduler(datetime(2024, 5, 1, 8, 0, 1))
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            scheduler.start()
            scheduler._tick()

        assert timer_cls.call_args_list[1].args[0] == 24 * 3600 - 1

    def test_stopped_scheduler_does_not_reschedule(self):
        scheduler = self._scheduler(datetime(2024, 5, 1, 8, 0))
        with patch(f"{MODULE}.threading.Timer") as timer_cls:
            scheduler.start()
            scheduler.stop()
            scheduler._tick()

        assert timer_cls.call_count == 1
