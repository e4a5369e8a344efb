"""InteractionContext 인코딩/디코딩

버튼 value에 실을 수 있도록 컨텍스트를 정제된 구조로 투영한 뒤 compact JSON으로
직렬화합니다. 원본 aggregate를 그대로 직렬화하지 않습니다.

- 인코딩은 예외를 던지지 않으며, 실패 시 "{}"로 대체합니다.
- 디코딩 실패는 "이전 컨텍스트 없음"(None)으로 취급합니다.
- 슬랙 버튼 value 제한(2000자)을 넘으면 요약 문구부터 단계적으로 줄입니다.
"""

import json
import logging
from typing import Any, Optional

from uplogdbot.slackbot.interaction.context import (
    BaseAsset,
    InteractionContext,
    Machine,
    Requester,
    ResponseMode,
    StatusResult,
    TargetResult,
)

logger = logging.getLogger(__name__)

MAX_ENCODED_LENGTH = 2000
EMPTY_ENCODING = "{}"

# 크기 초과 시 요약 문구를 줄일 길이
_SHORT_SUMMARY_LENGTH = 60


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _bool_or_none(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _machine_value(value: Any) -> str:
    return Machine.parse(value).value


def _get(source: Any, name: str, default: Any = None) -> Any:
    """dict/객체 양쪽에서 필드를 꺼냄 (형식이 틀리면 기본값)"""
    if isinstance(source, dict):
        return source.get(name, default)
    return getattr(source, name, default)


def _project_result(item: Any) -> dict:
    return {
        "asset_id": _str_or_none(_get(item, "asset_id")),
        "machine": _machine_value(_get(item, "machine")),
        "success": _bool_or_none(_get(item, "success")),
        "status_code": _int_or_none(_get(item, "status_code")),
        "response_summary": _str_or_none(_get(item, "response_summary")),
    }


def _project_status(item: Any) -> dict:
    projected = _project_result(item)
    projected["checked_at"] = _str_or_none(_get(item, "checked_at"))
    return projected


def _project_list(items: Any, projector) -> list[dict]:
    if not isinstance(items, (list, tuple)):
        return []
    return [projector(item) for item in items if item is not None]


def sanitize_context(context: Any) -> dict:
    """재개에 필요한 필드만 남긴 정제 사본 생성

    누락되었거나 형식이 맞지 않는 필드는 None/False/빈 리스트로 채웁니다.
    """
    base_asset = _get(context, "base_asset")
    requested_by = _get(context, "requested_by")
    response_mode = _get(context, "response_mode")

    return {
        "base_asset": {
            "id": _str_or_none(_get(base_asset, "id")),
            "label": _str_or_none(_get(base_asset, "label")),
        },
        "operation": _str_or_none(_get(context, "operation")),
        "submitted_at": _str_or_none(_get(context, "submitted_at")),
        "results": _project_list(_get(context, "results"), _project_result),
        "statuses": _project_list(_get(context, "statuses"), _project_status),
        "pending_status_check": _get(context, "pending_status_check") is True,
        "pending_request": _get(context, "pending_request") is True,
        "service_label": _str_or_none(_get(context, "service_label")),
        "status_kind": _str_or_none(_get(context, "status_kind")),
        "machine_label": _str_or_none(_get(context, "machine_label")),
        "requested_by": {
            "id": _str_or_none(_get(requested_by, "id")),
            "username": _str_or_none(_get(requested_by, "username")),
            "real_name": _str_or_none(_get(requested_by, "real_name")),
        },
        "response_mode": (
            ResponseMode.EPHEMERAL.value
            if response_mode in (ResponseMode.EPHEMERAL, ResponseMode.EPHEMERAL.value)
            else ResponseMode.UPDATE.value
        ),
    }


def _dumps(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _shrink_summaries(entries: list[dict], length: Optional[int]) -> None:
    for entry in entries:
        summary = entry.get("response_summary")
        if summary is None:
            continue
        if length is None:
            entry["response_summary"] = None
        elif len(summary) > length:
            entry["response_summary"] = summary[: length - 3] + "..."


def _fit_to_limit(payload: dict, limit: int) -> Optional[str]:
    """크기 제한에 맞을 때까지 단계적으로 줄인 인코딩 (불가능하면 None)"""
    encoded = _dumps(payload)
    if len(encoded) <= limit:
        return encoded

    steps = (
        lambda p: _shrink_summaries(p["statuses"], _SHORT_SUMMARY_LENGTH),
        lambda p: _shrink_summaries(p["results"], _SHORT_SUMMARY_LENGTH),
        lambda p: _shrink_summaries(p["statuses"], None),
        lambda p: p.update(statuses=[]),
        lambda p: _shrink_summaries(p["results"], None),
    )
    for step in steps:
        step(payload)
        encoded = _dumps(payload)
        if len(encoded) <= limit:
            logger.debug(f"버튼 페이로드 축소: {len(encoded)}자")
            return encoded

    return None


def encode_context(context: Any, max_length: int = MAX_ENCODED_LENGTH) -> str:
    """컨텍스트를 버튼 value용 문자열로 인코딩

    Returns:
        compact JSON 문자열. 직렬화에 실패하거나 제한 안에 들어가지 않으면 "{}".
    """
    try:
        encoded = _fit_to_limit(sanitize_context(context), max_length)
    except (TypeError, ValueError) as e:
        logger.error(f"컨텍스트 인코딩 실패: {e}")
        return EMPTY_ENCODING

    if encoded is None:
        logger.warning(f"컨텍스트가 {max_length}자 제한을 넘어 빈 페이로드로 대체합니다")
        return EMPTY_ENCODING
    return encoded


def _result_from_dict(item: dict) -> TargetResult:
    return TargetResult(
        asset_id=_str_or_none(item.get("asset_id")),
        machine=Machine.parse(item.get("machine")),
        success=_bool_or_none(item.get("success")),
        status_code=_int_or_none(item.get("status_code")),
        response_summary=_str_or_none(item.get("response_summary")),
    )


def _status_from_dict(item: dict) -> StatusResult:
    return StatusResult(
        asset_id=_str_or_none(item.get("asset_id")),
        machine=Machine.parse(item.get("machine")),
        success=_bool_or_none(item.get("success")),
        status_code=_int_or_none(item.get("status_code")),
        response_summary=_str_or_none(item.get("response_summary")),
        checked_at=_str_or_none(item.get("checked_at")),
    )


def _dict_or_empty(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def context_from_dict(data: dict) -> InteractionContext:
    """정제된 dict 구조를 InteractionContext로 복원"""
    base_asset = _dict_or_empty(data.get("base_asset"))
    requested_by = _dict_or_empty(data.get("requested_by"))
    results = data.get("results") if isinstance(data.get("results"), list) else []
    statuses = data.get("statuses") if isinstance(data.get("statuses"), list) else []

    return InteractionContext(
        base_asset=BaseAsset(
            id=_str_or_none(base_asset.get("id")),
            label=_str_or_none(base_asset.get("label")),
        ),
        operation=_str_or_none(data.get("operation")),
        submitted_at=_str_or_none(data.get("submitted_at")),
        results=[_result_from_dict(item) for item in results if isinstance(item, dict)],
        statuses=[_status_from_dict(item) for item in statuses if isinstance(item, dict)],
        pending_request=data.get("pending_request") is True,
        pending_status_check=data.get("pending_status_check") is True,
        response_mode=(
            ResponseMode.EPHEMERAL
            if data.get("response_mode") == ResponseMode.EPHEMERAL.value
            else ResponseMode.UPDATE
        ),
        requested_by=Requester(
            id=_str_or_none(requested_by.get("id")),
            username=_str_or_none(requested_by.get("username")),
            real_name=_str_or_none(requested_by.get("real_name")),
        ),
        service_label=_str_or_none(data.get("service_label")),
        status_kind=_str_or_none(data.get("status_kind")),
        machine_label=_str_or_none(data.get("machine_label")),
    )


def decode_context(value: Optional[str]) -> Optional[InteractionContext]:
    """버튼 value를 InteractionContext로 디코딩

    Returns:
        복원된 컨텍스트. 비어 있거나 JSON 객체가 아니면 None.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        data = json.loads(value)
    except (TypeError, ValueError, RecursionError) as e:
        logger.error(f"버튼 페이로드 파싱 실패: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"버튼 페이로드가 객체가 아닙니다: {type(data).__name__}")
        return None

    return context_from_dict(data)
