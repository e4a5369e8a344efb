"""/sdforecast 명령어 테스트"""

from datetime import datetime
from unittest.mock import MagicMock, patch

from uplogdbot.slackbot.handlers.commands import FORECAST_UNAVAILABLE_TEXT, handle_forecast_command
from uplogdbot.slackbot.presentation.message import RenderedMessage

NOW = datetime(2024, 5, 1, 7, 0)
MODULE = "uplogdbot.slackbot.handlers.commands"


def _run(text, channel_id="C1", build_forecast=None):
    respond = MagicMock()
    post_forecast = MagicMock()
    build_forecast = build_forecast or MagicMock(
        return_value=RenderedMessage(text="San Diego forecast", blocks=[{"type": "divider"}])
    )
    handle_forecast_command(
        body={"text": text, "channel_id": channel_id},
        client="client",
        respond=respond,
        build_forecast=build_forecast,
        post_forecast=post_forecast,
        now=NOW,
    )
    return respond, build_forecast, post_forecast


class TestForecastCommand:
    def test_immediate_forecast_in_channel(self):
        respond, build_forecast, _ = _run("")

        build_forecast.assert_called_once()
        respond.assert_called_once_with(
            response_type="in_channel",
            text="San Diego forecast",
            blocks=[{"type": "divider"}],
        )

    def test_schedule_in_minutes(self):
        with patch(f"{MODULE}.schedule_one_time_forecast") as schedule:
            respond, build_forecast, post_forecast = _run("schedule in 15m")

        schedule.assert_called_once_with(
            post_forecast=post_forecast, client="client", channel="C1", delay_seconds=900
        )
        build_forecast.assert_not_called()
        respond.assert_called_once_with(
            response_type="ephemeral", text="Scheduled forecast in 15m for <#C1>."
        )

    def test_schedule_at_time(self):
        with patch(f"{MODULE}.schedule_one_time_forecast") as schedule:
            respond, _, _ = _run("schedule at 7:30")

        assert schedule.call_args.kwargs["delay_seconds"] == 1800
        assert respond.call_args.kwargs["text"] == "Scheduled forecast at 7:30 (local) for <#C1>."

    def test_schedule_without_channel_posts_now(self):
        """채널 정보가 없으면 예약하지 않고 즉시 응답"""
        with patch(f"{MODULE}.schedule_one_time_forecast") as schedule:
            respond, build_forecast, _ = _run("schedule in 5m", channel_id=None)

        schedule.assert_not_called()
        build_forecast.assert_called_once()
        assert respond.call_args.kwargs["response_type"] == "in_channel"

    def test_failure_replies_ephemeral(self):
        respond, _, _ = _run("", build_forecast=MagicMock(side_effect=RuntimeError("boom")))

        respond.assert_called_once_with(response_type="ephemeral", text=FORECAST_UNAVAILABLE_TEXT)
