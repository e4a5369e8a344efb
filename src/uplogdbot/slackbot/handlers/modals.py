"""모달 열기/다시 그리기/제출 핸들러

- 글로벌 숏컷: uplogd 관리 모달, garage mode 모달 열기
- 자산 선택 변경: 선택한 자산에 맞춰 머신 선택지를 다시 그림
- 모달 제출: 제출 흐름 실행
"""

import logging

from uplogdbot.slackbot.config import Config
from uplogdbot.slackbot.presentation.modal import (
    ACTION_IDS,
    GARAGE_MODE_MODAL_CALLBACK_ID,
    MODAL_CALLBACK_ID,
    NO_ASSET_VALUE,
    build_error_modal,
    build_garage_mode_modal,
    build_submission_modal,
)
from uplogdbot.utils.async_bridge import run_in_new_loop

logger = logging.getLogger(__name__)


def load_assets_safely(load_assets, run=run_in_new_loop) -> list:
    """인벤토리 조회 (예외는 로그 후 빈 목록)"""
    try:
        return run(load_assets())
    except Exception as e:
        logger.error(f"자산 목록 조회 실패: {e}")
        return []


def open_modal(client, body: dict, build_view, load_assets, title: str, run=run_in_new_loop) -> None:
    """숏컷 트리거로 모달 열기 (구성 실패 시 오류 모달)"""
    trigger_id = body.get("trigger_id")
    user_id = (body.get("user") or {}).get("id")

    try:
        view = build_view(user_id, load_assets_safely(load_assets, run))
    except Exception as e:
        logger.exception(f"모달 구성 실패: {e}")
        view = build_error_modal("Unable to load the form right now. Try again in a moment.", title)

    try:
        client.views_open(trigger_id=trigger_id, view=view)
    except Exception as e:
        logger.error(f"모달 열기 실패: {e}")


def register_modal_handlers(app, dependencies: dict):
    """모달 관련 핸들러 등록

    Args:
        app: Slack Bolt App 인스턴스
        dependencies: 의존성 딕셔너리
    """
    load_assets = dependencies["load_assets"]
    submission_flow = dependencies["submission_flow"]
    garage_mode_flow = dependencies["garage_mode_flow"]
    run = dependencies.get("run", run_in_new_loop)

    @app.shortcut(Config.slack.shortcut_callback_id)
    def handle_uplogd_shortcut(ack, body, client):
        """uplogd 관리 모달 열기"""
        ack()
        open_modal(client, body, build_submission_modal, load_assets, "Manage Uplogd", run)

    @app.shortcut(Config.slack.garage_shortcut_callback_id)
    def handle_garage_mode_shortcut(ack, body, client):
        """garage mode 모달 열기"""
        ack()
        open_modal(client, body, build_garage_mode_modal, load_assets, "Garage Mode", run)

    @app.action(ACTION_IDS["asset"])
    def handle_asset_select(ack, body, client):
        """자산 선택 변경 시 모달 다시 그리기"""
        ack()

        view = body.get("view") or {}
        action = (body.get("actions") or [{}])[0]
        selected_id = (action.get("selected_option") or {}).get("value")
        if not selected_id or selected_id == NO_ASSET_VALUE or not view.get("id"):
            return

        builder = (
            build_garage_mode_modal
            if view.get("callback_id") == GARAGE_MODE_MODAL_CALLBACK_ID
            else build_submission_modal
        )
        user_id = (body.get("user") or {}).get("id")
        new_view = builder(
            user_id, load_assets_safely(load_assets, run), selected_id, view.get("state")
        )

        try:
            client.views_update(view_id=view["id"], hash=view.get("hash"), view=new_view)
        except Exception as e:
            logger.error(f"모달 갱신 실패: {e}")

    @app.view(MODAL_CALLBACK_ID)
    def handle_submission(ack, body, client, view):
        """uplogd 모달 제출"""
        ack()
        try:
            submission_flow.run(client, view, body.get("user"), body.get("team"))
        except Exception:
            logger.exception("uplogd 제출 처리 중 오류")

    @app.view(GARAGE_MODE_MODAL_CALLBACK_ID)
    def handle_garage_mode_submission(ack, body, client, view):
        """garage mode 모달 제출"""
        ack()
        try:
            garage_mode_flow.run(client, view, body.get("user"), body.get("team"))
        except Exception:
            logger.exception("garage mode 제출 처리 중 오류")
