"""제출/상태 메시지 렌더링

InteractionContext를 슬랙 메시지(text + Block Kit blocks)로 변환하는 순수 함수 모음입니다.
I/O를 하지 않고 입력을 변경하지 않으며, 같은 컨텍스트는 항상 같은 결과를 냅니다.

- update 모드: DM에 표시하는 전체 내역 (타깃별 결과 + 상태 확인 버튼 + 최근 상태)
- ephemeral 모드: 공유 채널에 올리는 한 줄 요약 (상태는 클릭한 사용자에게만 전송)
"""

from dataclasses import dataclass, field
from typing import Optional

from uplogdbot.slackbot.config import Config
from uplogdbot.slackbot.interaction.codec import encode_context
from uplogdbot.slackbot.interaction.context import (
    InteractionContext,
    Machine,
    ResponseMode,
    StatusResult,
    TargetResult,
)
from uplogdbot.slackbot.presentation.timefmt import format_preview_timestamp

STATUS_CHECK_ACTION_ID = "status_check_button"
STATUS_ACTIONS_BLOCK_ID = "uplogd_status_actions"

GARAGE_MODE_STATUS_KIND = "garage_mode"

STATUS_CHECK_LABEL = "Check status"
STATUS_CHECKING_LABEL = ":hourglass_flowing_sand: Checking status…"

# section block 하나에 넣을 수 있는 최대 필드 수
_MAX_SECTION_FIELDS = 10


@dataclass
class RenderedMessage:
    """렌더링 결과 (chat_postMessage/chat_update 인자로 그대로 사용)"""

    text: str
    blocks: list[dict] = field(default_factory=list)

    def as_kwargs(self) -> dict:
        return {"text": self.text, "blocks": self.blocks}


# === 라벨 ===

def format_operation(operation: Optional[str]) -> str:
    """작업 이름 표시용 (첫 글자 대문자)"""
    if not operation:
        return "Action"
    normalized = str(operation).strip().lower()
    return normalized[:1].upper() + normalized[1:]


def operation_keyword(operation: Optional[str]) -> str:
    if not operation:
        return "action"
    return str(operation).strip().lower()


def machine_display_label(machine: Machine, context: InteractionContext) -> str:
    """머신 표시 이름 (machine=none이면 컨텍스트의 machine_label 또는 "auto")"""
    if machine == Machine.PRIMARY:
        return Config.display.primary_machine_label
    if machine == Machine.SECONDARY:
        return Config.display.secondary_machine_label
    return context.machine_label or "auto"


def outcome_label(success: Optional[bool]) -> str:
    if success is None:
        return "in progress"
    return "succeeded" if success else "failed"


def asset_display_label(context: InteractionContext) -> str:
    label = context.base_asset.label or context.base_asset.id or "Unknown asset"
    return str(label).upper()


def requester_mention(context: InteractionContext) -> str:
    requester = context.requested_by
    if requester.id:
        return f"<@{requester.id}>"
    return requester.real_name or requester.username or "Someone"


def _timestamp(value: Optional[str]) -> str:
    return format_preview_timestamp(value, Config.display.timezone)


def _service(context: InteractionContext) -> str:
    return context.service_label or "uplogd"


# === 블록 헬퍼 ===

def _mrkdwn_section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _field_sections(fields: list[dict]) -> list[dict]:
    """필드를 section 제한(10개)에 맞춰 나눔"""
    return [
        {"type": "section", "fields": fields[i:i + _MAX_SECTION_FIELDS]}
        for i in range(0, len(fields), _MAX_SECTION_FIELDS)
    ]


def _result_field(result: TargetResult, context: InteractionContext) -> dict:
    label = machine_display_label(result.machine, context)
    line = f"{operation_keyword(context.operation)} {_service(context)} {outcome_label(result.success)}"
    return {"type": "mrkdwn", "text": f"*{label}*\n{line}"}


def _status_fields(status: StatusResult, context: InteractionContext) -> list[dict]:
    """상태 항목 하나를 필드로 변환 (다중 장치 상태면 장치별 필드)"""
    if context.status_kind == GARAGE_MODE_STATUS_KIND and status.devices:
        fields = []
        for device in status.devices:
            text = f"*{device.device}*\n{device.state}"
            if device.notes:
                text += f"\n_{device.notes}_"
            fields.append({"type": "mrkdwn", "text": text})
        return fields

    label = machine_display_label(status.machine, context)
    summary = status.response_summary or outcome_label(status.success)
    return [{"type": "mrkdwn", "text": f"*{label}*\n{summary}"}]


def build_status_check_button(context: InteractionContext) -> dict:
    """상태 확인 버튼 actions 블록

    버튼 라벨은 context.pending_status_check로 정해지고, value에는 같은 컨텍스트를
    그대로 인코딩하므로 페이로드의 pending_status_check는 항상 버튼 상태와 같습니다.
    조회 중 버튼을 다시 눌러도 같은 컨텍스트가 전달됩니다.
    """
    checking = context.pending_status_check
    button = {
        "type": "button",
        "action_id": STATUS_CHECK_ACTION_ID,
        "text": {
            "type": "plain_text",
            "text": STATUS_CHECKING_LABEL if checking else STATUS_CHECK_LABEL,
            "emoji": True,
        },
        "value": encode_context(context),
    }
    if not checking:
        button["style"] = "primary"
    return {
        "type": "actions",
        "block_id": STATUS_ACTIONS_BLOCK_ID,
        "elements": [button],
    }


def build_status_blocks(context: InteractionContext) -> list[dict]:
    """최근 상태 섹션 (조회 중이면 빈 리스트)"""
    if context.pending_status_check:
        return []

    fields = []
    for status in context.statuses:
        fields.extend(_status_fields(status, context))

    if not fields:
        return [_mrkdwn_section("*Last status check:* _No status checks yet._")]

    checked_at = _timestamp(context.last_checked_at)
    return [
        _mrkdwn_section(f"*Last status check | {checked_at}:*"),
        *_field_sections(fields),
    ]


# === 메시지 ===

def render_submission_message(context: InteractionContext) -> RenderedMessage:
    """update 모드 전체 메시지"""
    action_label = format_operation(context.operation)
    asset_label = asset_display_label(context)
    submitted_at = _timestamp(context.submitted_at)
    summary = f"{action_label} request sent to {asset_label} at {submitted_at}"

    request_line = f"*{action_label}* request sent to *{asset_label}* at {submitted_at}"
    if context.requested_by.id:
        request_line += f" by {requester_mention(context)}"

    blocks = [
        {"type": "header", "text": {"type": "plain_text", "text": asset_label}},
        _mrkdwn_section(request_line),
        {"type": "divider"},
    ]

    if context.pending_request:
        blocks.append(_mrkdwn_section(
            f":hourglass_flowing_sand: Waiting for {_service(context)} to confirm the request…"
        ))
        return RenderedMessage(text=summary, blocks=blocks)

    result_fields = [_result_field(result, context) for result in context.results]
    if result_fields:
        blocks.extend(_field_sections(result_fields))
        blocks.append({"type": "divider"})
    elif not context.statuses:
        blocks.append(_mrkdwn_section("_No requests were sent._"))
        blocks.append({"type": "divider"})

    blocks.append(build_status_check_button(context))
    blocks.extend(build_status_blocks(context))

    return RenderedMessage(text=summary, blocks=blocks)


def channel_summary_line(context: InteractionContext) -> str:
    """ephemeral 모드 한 줄 요약 (summary_line이 있으면 그대로 사용)"""
    if context.summary_line:
        return context.summary_line

    line = (
        f"{requester_mention(context)} requested *{operation_keyword(context.operation)}* "
        f"{_service(context)} on *{asset_display_label(context)}*"
    )
    if context.pending_request:
        return f"{line} · waiting for confirmation"

    outcomes = [
        f"{machine_display_label(result.machine, context)} {outcome_label(result.success)}"
        for result in context.results
    ]
    if outcomes:
        line += " · " + " · ".join(outcomes)
    return line


def render_channel_summary(context: InteractionContext) -> RenderedMessage:
    """ephemeral 모드 공유 채널용 요약 메시지"""
    line = channel_summary_line(context)
    blocks = [_mrkdwn_section(line)]
    if not context.pending_request:
        blocks.append(build_status_check_button(context))
    return RenderedMessage(text=line, blocks=blocks)


def render_status_only(context: InteractionContext) -> RenderedMessage:
    """클릭한 사용자에게만 보내는 상태 메시지"""
    asset_label = asset_display_label(context)
    checked_at = _timestamp(context.last_checked_at)
    blocks = [_mrkdwn_section(f"*{asset_label}* {_service(context)} status")]
    blocks.extend(build_status_blocks(context))
    return RenderedMessage(
        text=f"{asset_label} {_service(context)} status as of {checked_at}",
        blocks=blocks,
    )


def render(context: InteractionContext) -> RenderedMessage:
    """response_mode에 맞는 메시지 렌더링"""
    if context.response_mode == ResponseMode.EPHEMERAL:
        return render_channel_summary(context)
    return render_submission_message(context)
