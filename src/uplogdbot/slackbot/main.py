"""uplogd 슬랙 봇 메인

앱 초기화와 진입점만 담당합니다.
"""

import signal
import sys

from slack_bolt import App

from uplogdbot.slackbot.config import Config, ConfigurationError
from uplogdbot.slackbot.forecast.publisher import build_forecast, post_forecast
from uplogdbot.slackbot.forecast.scheduler import DailyForecastScheduler
from uplogdbot.slackbot.handlers import register_all_handlers
from uplogdbot.slackbot.interaction.flows import (
    FlowSettings,
    GarageModeFlow,
    StatusCheckFlow,
    SubmissionFlow,
)
from uplogdbot.slackbot.lifecycle import BotLifecycle
from uplogdbot.slackbot.logging_config import setup_logging
from uplogdbot.slackbot.remote.client import GarageModeClient, UplogdClient
from uplogdbot.slackbot.remote.inventory import fetch_assets


def load_assets():
    """설정된 인벤토리에서 자산 목록을 조회하는 코루틴"""
    return fetch_assets(
        Config.inventory.endpoint,
        Config.inventory.auth_token,
        Config.inventory.prefixes,
    )


def uplogd_client() -> UplogdClient:
    # aiohttp 세션이 루프에 묶이므로 호출(루프)마다 새로 생성
    return UplogdClient(base_url=Config.uplogd.endpoint, token=Config.uplogd.auth_token)


def garage_mode_client() -> GarageModeClient:
    return GarageModeClient(
        base_url=Config.uplogd.garage_mode_endpoint, token=Config.uplogd.auth_token
    )


def build_app() -> App:
    """Bolt 앱 생성"""
    return App(token=Config.slack.bot_token, signing_secret=Config.slack.signing_secret)


def build_dependencies() -> dict:
    """핸들러 의존성 딕셔너리 빌드"""
    settings = FlowSettings(
        dm_recipient=Config.uplogd.dm_recipient,
        updates_channel=Config.uplogd.updates_channel,
        request_timeout=Config.uplogd.request_timeout,
    )
    return {
        "load_assets": load_assets,
        "submission_flow": SubmissionFlow(
            load_assets=load_assets, client_factory=uplogd_client, settings=settings
        ),
        "garage_mode_flow": GarageModeFlow(
            client_factory=garage_mode_client, settings=settings
        ),
        "status_check_flow": StatusCheckFlow(
            uplogd_client_factory=uplogd_client,
            garage_client_factory=garage_mode_client,
            settings=settings,
        ),
        "build_forecast": build_forecast,
        "post_forecast": post_forecast,
    }


def main():
    """봇 메인 진입점"""
    try:
        Config.validate()
    except ConfigurationError as e:
        print(f"설정 오류: {e}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging()
    logger.info("uplogd 봇을 시작합니다...")
    logger.info(f"LOG_PATH: {Config.get_log_path()}")
    logger.info(f"API_ENDPOINT: {Config.uplogd.endpoint}")
    logger.info(f"DEBUG: {Config.debug}")

    app = build_app()
    register_all_handlers(app, build_dependencies())

    scheduler = DailyForecastScheduler(
        client=app.client,
        channel=Config.forecast.channel,
        post_forecast=post_forecast,
        hour=Config.forecast.post_hour,
        timezone=Config.forecast.timezone,
    )
    lifecycle = BotLifecycle(app, Config.slack.app_token, scheduler)

    def _signal_handler(signum, frame):
        """시그널 수신 시 graceful shutdown 수행"""
        logger.info(f"시그널 수신: {signal.Signals(signum).name}")
        lifecycle.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, _signal_handler)
    # Windows에서는 SIGTERM이 제한적
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _signal_handler)

    lifecycle.start()


if __name__ == "__main__":
    main()
