"""uplogd / garage mode 모달 Block Kit 빌더

모달 제출 시의 폼 상태(view.state) 해석도 이 모듈에서 담당합니다.
"""

import json
from dataclasses import dataclass
from typing import Optional

from uplogdbot.slackbot.config import Config
from uplogdbot.slackbot.interaction.availability import (
    MachineAvailability,
    resolve_machine_availability,
)
from uplogdbot.slackbot.interaction.context import Asset, Machine
from uplogdbot.slackbot.remote.inventory import find_asset

MODAL_CALLBACK_ID = "uplogd-modal"
GARAGE_MODE_MODAL_CALLBACK_ID = "garage-mode-modal"

BLOCK_IDS = {
    "asset": "asset_block",
    "machines": "machines_block",
    "operation": "operation_block",
}

ACTION_IDS = {
    "asset": "asset_select",
    "machines": "machines_checkbox",
    "operation": "operation_radio",
}

NO_ASSET_VALUE = "__no_asset__"

# static_select 옵션 value 최대 길이
_MAX_OPTION_VALUE_LENGTH = 75

UPLOGD_OPERATIONS = [("Start", "start"), ("Stop", "stop"), ("Restart", "restart")]
GARAGE_MODE_OPERATIONS = [
    ("Enter Garage Mode", "enter"),
    ("Exit Garage Mode", "exit"),
    ("Status Check", "status"),
]


@dataclass
class SelectedAsset:
    """폼에서 선택된 자산 (인벤토리 능력 정보 없음)"""
    id: str
    label: str


@dataclass
class SubmissionValues:
    """uplogd 모달 제출 값"""
    asset: Optional[SelectedAsset]
    operation: Optional[str]
    primary_requested: bool = False
    secondary_requested: bool = False


@dataclass
class GarageModeValues:
    """garage mode 모달 제출 값"""
    asset: Optional[SelectedAsset]
    operation: Optional[str]


def _plain(text: str, emoji: bool = False) -> dict:
    element = {"type": "plain_text", "text": text}
    if emoji:
        element["emoji"] = True
    return element


def _option(text: str, value: str) -> dict:
    return {"text": _plain(text, emoji=True), "value": value}


def build_error_modal(message: str, title: str = "Manage Uplogd") -> dict:
    """오류 안내 모달"""
    return {
        "type": "modal",
        "title": _plain(title),
        "close": _plain("Close"),
        "blocks": [
            {"type": "section", "text": {"type": "mrkdwn", "text": f":warning: {message}"}},
        ],
    }


def build_asset_options(assets: list[Asset]) -> list[dict]:
    """자산 선택 옵션 (자산이 없으면 안내 옵션 하나)"""
    options = []
    for asset in assets or []:
        if not asset.id:
            continue
        value = asset.id[:_MAX_OPTION_VALUE_LENGTH]
        options.append(_option(value, value))

    if not options:
        options.append(_option("No assets available", NO_ASSET_VALUE))
    return options


def _asset_block(assets: list[Asset], selected: Optional[Asset]) -> dict:
    unavailable = not assets
    element = {
        "type": "static_select",
        "action_id": ACTION_IDS["asset"],
        "placeholder": _plain("No assets available" if unavailable else "Select an asset"),
        "options": build_asset_options(assets),
    }
    if selected:
        value = selected.id[:_MAX_OPTION_VALUE_LENGTH]
        element["initial_option"] = _option(value, value)

    return {
        "type": "input",
        "block_id": BLOCK_IDS["asset"],
        "optional": unavailable,
        "dispatch_action": True,
        "label": _plain("Asset"),
        "element": element,
    }


def build_machine_blocks(availability: MachineAvailability) -> list[dict]:
    """머신 체크박스 블록 (선택 가능한 머신이 없으면 안내 문구)"""
    blocks: list[dict] = [{"type": "divider"}]

    if availability.selectable:
        element = {
            "type": "checkboxes",
            "action_id": ACTION_IDS["machines"],
            "options": [
                _option(option.label, option.machine.value) for option in availability.options
            ],
        }
        if availability.initial:
            element["initial_options"] = [
                _option(option.label, option.machine.value) for option in availability.initial
            ]
        blocks.append({
            "type": "input",
            "block_id": BLOCK_IDS["machines"],
            "optional": False,
            "label": _plain("Which Machine?"),
            "element": element,
        })
    else:
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*Which Machine?*\n_Not available for this asset._"},
        })

    if availability.note:
        blocks.append({
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": availability.note}],
        })

    blocks.append({"type": "divider"})
    return blocks


def _operation_block(
    label: str, operations: list[tuple[str, str]], selected: Optional[dict]
) -> dict:
    element = {
        "type": "radio_buttons",
        "action_id": ACTION_IDS["operation"],
        "options": [_option(text, value) for text, value in operations],
    }
    if selected:
        element["initial_option"] = _option(selected["label"], selected["value"])
    return {
        "type": "input",
        "block_id": BLOCK_IDS["operation"],
        "label": _plain(label),
        "element": element,
    }


# === 폼 상태 해석 ===

def _state_values(view_state: Optional[dict]) -> dict:
    return (view_state or {}).get("values") or {}


def get_selected_operation(view_state: Optional[dict]) -> Optional[dict]:
    """선택된 작업 {"label", "value"} (없으면 None)"""
    selected = (
        _state_values(view_state)
        .get(BLOCK_IDS["operation"], {})
        .get(ACTION_IDS["operation"], {})
        .get("selected_option")
    )
    if not selected:
        return None
    return {
        "label": (selected.get("text") or {}).get("text") or selected.get("value"),
        "value": selected.get("value"),
    }


def get_selected_machine_values(view_state: Optional[dict]) -> list[str]:
    options = (
        _state_values(view_state)
        .get(BLOCK_IDS["machines"], {})
        .get(ACTION_IDS["machines"], {})
        .get("selected_options")
    ) or []
    return [option.get("value") for option in options if option.get("value")]


def get_selected_asset(view_state: Optional[dict]) -> Optional[SelectedAsset]:
    selected = (
        _state_values(view_state)
        .get(BLOCK_IDS["asset"], {})
        .get(ACTION_IDS["asset"], {})
        .get("selected_option")
    )
    value = (selected or {}).get("value")
    if not value or value == NO_ASSET_VALUE:
        return None
    label = ((selected or {}).get("text") or {}).get("text") or value
    return SelectedAsset(id=value, label=label)


def extract_submission_values(view_state: Optional[dict]) -> SubmissionValues:
    """uplogd 모달 제출 값 해석"""
    machines = set(get_selected_machine_values(view_state))
    operation = get_selected_operation(view_state)
    return SubmissionValues(
        asset=get_selected_asset(view_state),
        operation=operation["value"] if operation else None,
        primary_requested=Machine.PRIMARY.value in machines,
        secondary_requested=Machine.SECONDARY.value in machines,
    )


def extract_garage_mode_values(view_state: Optional[dict]) -> GarageModeValues:
    """garage mode 모달 제출 값 해석"""
    operation = get_selected_operation(view_state)
    return GarageModeValues(
        asset=get_selected_asset(view_state),
        operation=operation["value"] if operation else None,
    )


def parse_private_metadata(raw: Optional[str]) -> dict:
    """모달 private_metadata 파싱 (실패 시 빈 dict)"""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


# === 모달 ===

def _resolve_selected(assets: list[Asset], selected_asset_id: Optional[str]) -> Optional[Asset]:
    if selected_asset_id:
        return find_asset(assets, selected_asset_id)
    return assets[0] if assets else None


def _modal_shell(callback_id: str, title: str, user_id: Optional[str], selected: Optional[Asset]) -> dict:
    return {
        "type": "modal",
        "callback_id": callback_id,
        "title": _plain(title),
        "submit": _plain("Submit"),
        "close": _plain("Cancel"),
        "private_metadata": json.dumps({
            "openedBy": user_id,
            "selectedAssetId": selected.id if selected else None,
        }),
    }


def build_submission_modal(
    user_id: Optional[str],
    assets: list[Asset],
    selected_asset_id: Optional[str] = None,
    view_state: Optional[dict] = None,
) -> dict:
    """uplogd 관리 모달

    Args:
        user_id: 모달을 연 사용자
        assets: 인벤토리 자산 목록
        selected_asset_id: 선택된 자산 ID (없으면 첫 번째 자산)
        view_state: 다시 그릴 때의 기존 폼 상태 (머신/작업 선택 유지용)
    """
    selected = _resolve_selected(assets, selected_asset_id)
    availability = resolve_machine_availability(
        selected,
        get_selected_machine_values(view_state),
        primary_label=Config.display.primary_machine_label,
        secondary_label=Config.display.secondary_machine_label,
    )

    view = _modal_shell(MODAL_CALLBACK_ID, "Manage Uplogd", user_id, selected)
    view["blocks"] = [
        _asset_block(assets, selected),
        *build_machine_blocks(availability),
        _operation_block(
            "What would you like to do?", UPLOGD_OPERATIONS, get_selected_operation(view_state)
        ),
    ]
    return view


def build_garage_mode_modal(
    user_id: Optional[str],
    assets: list[Asset],
    selected_asset_id: Optional[str] = None,
    view_state: Optional[dict] = None,
) -> dict:
    """garage mode 모달"""
    selected = _resolve_selected(assets, selected_asset_id)

    view = _modal_shell(GARAGE_MODE_MODAL_CALLBACK_ID, "Garage Mode", user_id, selected)
    view["blocks"] = [
        _asset_block(assets, selected),
        _operation_block(
            "Garage Mode Action", GARAGE_MODE_OPERATIONS, get_selected_operation(view_state)
        ),
    ]
    return view
