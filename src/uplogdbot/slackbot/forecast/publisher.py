"""예보 메시지 생성/게시 (동기 핸들러·타이머 스레드용)"""

import logging

from uplogdbot.slackbot.forecast.collector import collect_forecast
from uplogdbot.slackbot.presentation.forecast import build_forecast_message
from uplogdbot.slackbot.presentation.message import RenderedMessage
from uplogdbot.utils.async_bridge import run_in_new_loop

logger = logging.getLogger(__name__)


def build_forecast() -> RenderedMessage:
    """예보를 수집해 메시지로 렌더링"""
    return build_forecast_message(run_in_new_loop(collect_forecast()))


def post_forecast(client, channel: str) -> None:
    """예보를 채널에 게시 (실패 시 예외 전파, 호출자가 로그)"""
    message = build_forecast()
    client.chat_postMessage(channel=channel, **message.as_kwargs())
