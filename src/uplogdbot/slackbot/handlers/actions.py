"""상태 확인 버튼 액션 핸들러"""

import logging

from uplogdbot.slackbot.presentation.message import STATUS_CHECK_ACTION_ID

logger = logging.getLogger(__name__)


def register_action_handlers(app, dependencies: dict):
    """버튼 액션 핸들러 등록

    Args:
        app: Slack Bolt App 인스턴스
        dependencies: 의존성 딕셔너리
    """
    status_check_flow = dependencies["status_check_flow"]

    @app.action(STATUS_CHECK_ACTION_ID)
    def handle_status_check(ack, body, client, respond):
        """상태 확인 버튼 클릭"""
        ack()
        try:
            status_check_flow.run(client, body, respond)
        except Exception:
            logger.exception("상태 확인 처리 중 오류")
