"""제출/상태 확인 흐름

모달 제출과 상태 확인 버튼 클릭을 처리하는 오케스트레이션입니다.
슬랙 메시지 전송 실패는 로그만 남기고, 원격 실행 결과는 타깃별로 메시지에 표시합니다.

흐름 (제출):
    폼 해석 → 인벤토리로 자산 능력 보강 → 타깃 해석 → 대기 DM/채널 요약 게시
    → 병렬 실행 → 최종 메시지로 갱신

흐름 (상태 확인):
    버튼 페이로드 디코딩 → 조회 중 표시 → 병렬 상태 조회 → 최종 메시지로 갱신
    (ephemeral 모드면 클릭한 사용자에게 상태만 별도 전송)
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from uplogdbot.slackbot.interaction.codec import decode_context
from uplogdbot.slackbot.interaction.context import (
    Asset,
    BaseAsset,
    InteractionContext,
    Machine,
    MachineTarget,
    Requester,
    ResponseMode,
    TargetResult,
    StatusResult,
    create_submission_context,
    pending_results,
    status_targets,
    utc_now_iso,
)
from uplogdbot.slackbot.interaction.fanout import (
    DEFAULT_TIMEOUT,
    execute_action,
    refresh_statuses,
)
from uplogdbot.slackbot.interaction.targets import resolve_machine_targets
from uplogdbot.slackbot.presentation.message import (
    GARAGE_MODE_STATUS_KIND,
    RenderedMessage,
    render,
    render_status_only,
)
from uplogdbot.slackbot.presentation.modal import (
    SelectedAsset,
    extract_garage_mode_values,
    extract_submission_values,
    parse_private_metadata,
)
from uplogdbot.slackbot.remote.inventory import find_asset
from uplogdbot.utils.async_bridge import run_in_new_loop

logger = logging.getLogger(__name__)

UPLOGD_SERVICE_LABEL = "uplogd"
GARAGE_MODE_SERVICE_LABEL = "garage mode"
GARAGE_MODE_MACHINE_LABEL = "garage"
GARAGE_MODE_STATUS_OPERATION = "status"

# 원격 클라이언트 팩토리: async context manager로 사용할 수 있는 클라이언트를 반환
ClientFactory = Callable[[], Any]
AssetLoader = Callable[[], Awaitable[list[Asset]]]


@dataclass
class FlowSettings:
    """흐름 공통 설정"""
    dm_recipient: str = ""
    updates_channel: str = ""
    request_timeout: float = DEFAULT_TIMEOUT


@dataclass
class PostedMessage:
    """게시된 메시지 좌표"""
    channel: str
    ts: Optional[str]


def _response_value(response: Any, key: str) -> Any:
    if response is None:
        return None
    try:
        return response.get(key)
    except AttributeError:
        return None


def post_message(client, channel: str, message: RenderedMessage, description: str) -> Optional[PostedMessage]:
    """메시지 게시 (실패 시 로그만 남기고 None)"""
    try:
        response = client.chat_postMessage(channel=channel, **message.as_kwargs())
    except Exception as e:
        logger.error(f"{description} 전송 실패: {e}")
        return None
    return PostedMessage(
        channel=_response_value(response, "channel") or channel,
        ts=_response_value(response, "ts"),
    )


def update_message(client, posted: PostedMessage, message: RenderedMessage, description: str) -> bool:
    """메시지 갱신 (실패 시 로그만 남김)"""
    try:
        client.chat_update(channel=posted.channel, ts=posted.ts, **message.as_kwargs())
        return True
    except Exception as e:
        logger.error(f"{description} 갱신 실패: {e}")
        return False


class _ActionFlow:
    """모달 제출 → 병렬 실행 → 메시지 갱신의 공통 뼈대"""

    service_label = UPLOGD_SERVICE_LABEL

    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        settings: FlowSettings,
        run: Callable = run_in_new_loop,
    ):
        self._client_factory = client_factory
        self._settings = settings
        self._run = run

    # --- 하위 클래스 구현 ---

    def _prepare(self, view: dict) -> Optional[tuple[SelectedAsset, Optional[str], list[MachineTarget], Optional[Asset]]]:
        raise NotImplementedError

    async def _execute(
        self, targets: list[MachineTarget], operation: Optional[str], payload_base: dict
    ) -> tuple[list[TargetResult], list[StatusResult]]:
        raise NotImplementedError

    def _context_extras(self) -> dict:
        return {"service_label": self.service_label}

    # --- 공통 흐름 ---

    def run(self, client, view: dict, user: Optional[dict], team: Optional[dict] = None) -> Optional[InteractionContext]:
        """모달 제출 처리

        Returns:
            최종 컨텍스트. 자산 미선택 등으로 흐름을 포기하면 None.
        """
        prepared = self._prepare(view)
        if prepared is None:
            return None
        selected, operation, targets, asset = prepared

        if not targets:
            logger.warning(f"해석된 타깃이 없어 요청을 보내지 않습니다: asset={selected.id}")
            return None

        requested_by = Requester.from_slack_user(user)
        submitted_at = utc_now_iso()
        base = {
            "base_asset": BaseAsset(id=selected.id, label=selected.label),
            "operation": operation,
            "submitted_at": submitted_at,
            "requested_by": requested_by,
            **self._context_extras(),
        }
        pending = pending_results(targets, f"Waiting for {self.service_label}…")

        dm_channel = self._settings.dm_recipient or requested_by.id
        dm_message = None
        if dm_channel:
            pending_context = create_submission_context(
                **base, results=pending, pending_request=True, response_mode=ResponseMode.UPDATE,
            )
            dm_message = post_message(client, dm_channel, render(pending_context), "대기 DM")
        else:
            logger.warning("사용자 ID가 없어 제출 요약 DM을 보낼 수 없습니다")

        channel_message = None
        if self._settings.updates_channel:
            channel_context = create_submission_context(
                **base, results=pending, pending_request=True, response_mode=ResponseMode.EPHEMERAL,
            )
            channel_message = post_message(
                client, self._settings.updates_channel, render(channel_context), "채널 요약"
            )

        payload_base = {
            "asset": _asset_payload(selected, asset),
            "operation": operation,
            "submittedBy": requested_by.id,
            "teamId": (team or {}).get("id"),
            "viewId": view.get("id"),
            "privateMetadata": parse_private_metadata(view.get("private_metadata")) or None,
            "submittedAt": submitted_at,
        }
        results, statuses = self._run(self._execute(targets, operation, payload_base))

        final_context = create_submission_context(
            **base, results=results, statuses=statuses, response_mode=ResponseMode.UPDATE,
        )

        if channel_message and channel_message.ts:
            update_message(
                client,
                channel_message,
                render(final_context.with_changes(response_mode=ResponseMode.EPHEMERAL)),
                "채널 요약",
            )

        if not dm_channel:
            return final_context

        final_message = render(final_context)
        if dm_message and dm_message.ts:
            update_message(client, dm_message, final_message, "제출 결과 DM")
        else:
            post_message(client, dm_channel, final_message, "제출 결과 DM")

        return final_context


def _asset_payload(selected: SelectedAsset, asset: Optional[Asset]) -> dict:
    payload = {"id": selected.id, "label": selected.label}
    if asset is not None:
        payload.update({
            "primary": asset.primary_capable,
            "secondary": asset.secondary_capable,
            "lastAuto": asset.last_auto,
        })
    return payload


class SubmissionFlow(_ActionFlow):
    """uplogd start/stop/restart 제출 흐름"""

    service_label = UPLOGD_SERVICE_LABEL

    def __init__(self, *, load_assets: AssetLoader, **kwargs):
        super().__init__(**kwargs)
        self._load_assets = load_assets

    def _enrich(self, selected: SelectedAsset) -> Asset:
        """인벤토리를 다시 조회해 자산 능력 정보를 보강 (실패 시 능력 없음)"""
        try:
            assets = self._run(self._load_assets())
        except Exception as e:
            logger.error(f"제출 중 자산 재조회 실패: {e}")
            assets = []

        match = find_asset(assets, selected.id)
        if match is None:
            return Asset(id=selected.id, label=selected.label)
        return match

    def _prepare(self, view: dict):
        values = extract_submission_values(view.get("state"))
        if values.asset is None:
            logger.warning("자산이 선택되지 않아 요청을 보내지 않습니다")
            return None

        asset = self._enrich(values.asset)
        targets = resolve_machine_targets(
            asset, values.primary_requested, values.secondary_requested
        )
        return values.asset, values.operation, targets, asset

    async def _execute(self, targets, operation, payload_base):
        requested_machines = {target.machine for target in targets}

        def build_payload(target: MachineTarget) -> dict:
            return {
                **payload_base,
                "asset": {**payload_base["asset"], "id": target.asset_id},
                "machine": target.machine.value,
                "targets": {
                    "primary": Machine.PRIMARY in requested_machines,
                    "secondary": Machine.SECONDARY in requested_machines,
                },
            }

        async with self._client_factory() as remote:
            results = await execute_action(
                targets,
                operation,
                remote.perform_action,
                build_payload,
                timeout=self._settings.request_timeout,
            )
        return results, []


class GarageModeFlow(_ActionFlow):
    """garage mode enter/exit/status 제출 흐름"""

    service_label = GARAGE_MODE_SERVICE_LABEL

    def _context_extras(self) -> dict:
        return {
            "service_label": self.service_label,
            "status_kind": GARAGE_MODE_STATUS_KIND,
            "machine_label": GARAGE_MODE_MACHINE_LABEL,
        }

    def _prepare(self, view: dict):
        values = extract_garage_mode_values(view.get("state"))
        if values.asset is None:
            logger.warning("자산이 선택되지 않아 garage mode 요청을 보내지 않습니다")
            return None

        targets = [MachineTarget(asset_id=values.asset.id, machine=Machine.NONE)]
        return values.asset, values.operation, targets, None

    async def _execute(self, targets, operation, payload_base):
        async with self._client_factory() as remote:
            if operation == GARAGE_MODE_STATUS_OPERATION:
                statuses = await refresh_statuses(
                    targets, remote.fetch_status, timeout=self._settings.request_timeout
                )
                return [], statuses

            results = await execute_action(
                targets,
                operation,
                remote.perform_action,
                lambda target: {"action": operation, "pause_netmand": True},
                timeout=self._settings.request_timeout,
            )
        return results, []


def _message_coordinates(body: dict) -> tuple[Optional[str], Optional[str]]:
    """클릭된 메시지의 (채널, ts)"""
    container = body.get("container") or {}
    channel = (
        container.get("channel_id")
        or (body.get("channel") or {}).get("id")
        or (body.get("message") or {}).get("channel")
        or (body.get("user") or {}).get("id")
    )
    ts = (body.get("message") or {}).get("ts") or container.get("message_ts")
    return channel, ts


class StatusCheckFlow:
    """상태 확인 버튼 처리

    버튼 페이로드만으로 흐름을 재개합니다. 서버 측에는 어떤 상태도 저장하지 않습니다.
    """

    def __init__(
        self,
        *,
        uplogd_client_factory: ClientFactory,
        garage_client_factory: ClientFactory,
        settings: FlowSettings,
        run: Callable = run_in_new_loop,
    ):
        self._uplogd_client_factory = uplogd_client_factory
        self._garage_client_factory = garage_client_factory
        self._settings = settings
        self._run = run

    def _client_factory_for(self, context: InteractionContext) -> ClientFactory:
        if context.status_kind == GARAGE_MODE_STATUS_KIND:
            return self._garage_client_factory
        return self._uplogd_client_factory

    async def _refresh(self, context: InteractionContext, targets: list[MachineTarget]) -> list[StatusResult]:
        async with self._client_factory_for(context)() as remote:
            return await refresh_statuses(
                targets, remote.fetch_status, timeout=self._settings.request_timeout
            )

    def run(self, client, body: dict, respond: Optional[Callable] = None) -> Optional[InteractionContext]:
        """상태 확인 버튼 클릭 처리

        Returns:
            최종 컨텍스트. 페이로드 오류나 타깃 없음 등으로 포기하면 None.
        """
        action = (body.get("actions") or [{}])[0]
        value = action.get("value")
        if not value:
            logger.warning("상태 확인 버튼에 페이로드가 없습니다")
            return None

        context = decode_context(value)
        if context is None:
            return None

        if context.pending_status_check:
            logger.info("이전 상태 확인이 진행 중이라 요청을 무시합니다")
            return None

        targets = status_targets(context)
        if not targets:
            logger.warning("상태 확인 요청에 타깃이 없습니다")
            return None

        channel, ts = _message_coordinates(body)
        user_id = (body.get("user") or {}).get("id")
        if not channel or not ts:
            logger.warning("채널 또는 ts가 없어 상태 메시지를 갱신할 수 없습니다")
            return None
        if context.response_mode == ResponseMode.EPHEMERAL and not user_id:
            logger.warning("사용자 ID가 없어 상태를 개별 전송할 수 없습니다")
            return None

        posted = PostedMessage(channel=channel, ts=ts)
        progress = context.with_changes(pending_status_check=True)
        update_message(client, posted, render(progress), "상태 확인 진행 표시")

        try:
            statuses = self._run(self._refresh(context, targets))
        except Exception:
            logger.exception("상태 확인 중 예기치 않은 오류")
            update_message(client, posted, render(context), "상태 확인 진행 표시 복원")
            return None

        final_context = context.with_changes(statuses=statuses, pending_status_check=False)
        update_message(client, posted, render(final_context), "상태 확인 결과")

        if context.response_mode == ResponseMode.EPHEMERAL:
            self._send_private_status(client, channel, user_id, final_context, respond)

        return final_context

    def _send_private_status(
        self, client, channel: str, user_id: str, context: InteractionContext, respond
    ) -> None:
        """클릭한 사용자에게만 상태 전송 (respond 실패 시 chat_postEphemeral)"""
        message = render_status_only(context)

        if callable(respond):
            try:
                respond(response_type="ephemeral", replace_original=False, **message.as_kwargs())
                return
            except Exception as e:
                logger.error(f"respond로 상태 전송 실패: {e}")

        try:
            client.chat_postEphemeral(channel=channel, user=user_id, **message.as_kwargs())
        except Exception as e:
            logger.error(f"ephemeral 상태 전송 실패: {e}")
