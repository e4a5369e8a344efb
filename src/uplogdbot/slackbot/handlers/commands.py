"""슬래시 명령어 핸들러 (/sdforecast)"""

import logging
from datetime import datetime

from uplogdbot.slackbot.config import Config
from uplogdbot.slackbot.forecast.scheduler import (
    parse_one_time_schedule,
    schedule_one_time_forecast,
)
from uplogdbot.slackbot.presentation.timefmt import get_zone

logger = logging.getLogger(__name__)

FORECAST_UNAVAILABLE_TEXT = "Unable to fetch San Diego forecast right now. Try again in a moment."


def handle_forecast_command(*, body: dict, client, respond, build_forecast, post_forecast, now=None) -> None:
    """예보 요청 처리

    'schedule in 15m' / 'schedule at 7:30' 이면 호출한 채널에 1회성 게시를 예약하고,
    그 외에는 즉시 예보를 응답합니다.
    """
    text = (body.get("text") or "").strip()
    channel_id = body.get("channel_id")

    try:
        now = now or datetime.now(get_zone(Config.forecast.timezone))
        schedule = parse_one_time_schedule(text, now)

        if schedule and channel_id:
            schedule_one_time_forecast(
                post_forecast=post_forecast,
                client=client,
                channel=channel_id,
                delay_seconds=schedule.delay_seconds,
            )
            respond(
                response_type="ephemeral",
                text=f"Scheduled forecast {schedule.label} for <#{channel_id}>.",
            )
            return

        message = build_forecast()
        respond(response_type="in_channel", **message.as_kwargs())
    except Exception as e:
        logger.error(f"/sdforecast 처리 실패: {e}")
        try:
            respond(response_type="ephemeral", text=FORECAST_UNAVAILABLE_TEXT)
        except Exception as respond_error:
            logger.error(f"/sdforecast 오류 응답 실패: {respond_error}")


def register_command_handlers(app, dependencies: dict):
    """슬래시 명령어 핸들러 등록

    Args:
        app: Slack Bolt App 인스턴스
        dependencies: 의존성 딕셔너리
    """
    build_forecast = dependencies["build_forecast"]
    post_forecast = dependencies["post_forecast"]

    @app.command(Config.forecast.command)
    def handle_forecast(ack, body, client, respond):
        ack()
        handle_forecast_command(
            body=body,
            client=client,
            respond=respond,
            build_forecast=build_forecast,
            post_forecast=post_forecast,
        )
