"""Slack 이벤트 핸들러 패키지"""

from uplogdbot.slackbot.handlers.actions import register_action_handlers
from uplogdbot.slackbot.handlers.commands import register_command_handlers
from uplogdbot.slackbot.handlers.modals import register_modal_handlers


def register_all_handlers(app, dependencies: dict):
    """모든 핸들러를 앱에 등록

    Args:
        app: Slack Bolt App 인스턴스
        dependencies: 핸들러에 필요한 의존성
            - load_assets: callable (인벤토리 조회 코루틴 반환)
            - submission_flow: SubmissionFlow
            - garage_mode_flow: GarageModeFlow
            - status_check_flow: StatusCheckFlow
            - build_forecast: callable (예보 메시지 반환)
            - post_forecast: callable (client, channel)
    """
    register_modal_handlers(app, dependencies)
    register_action_handlers(app, dependencies)
    register_command_handlers(app, dependencies)


__all__ = [
    "register_all_handlers",
    "register_modal_handlers",
    "register_action_handlers",
    "register_command_handlers",
]
