"""응답 본문 요약

원격 응답을 슬랙 필드에 넣을 수 있는 200자 이하 문자열로 줄입니다.
"""

import json
from typing import Any, Optional

MAX_SUMMARY_LENGTH = 200

# 객체 응답에서 대표 문구로 쓸 필드 (앞에서부터 우선)
_PRIMARY_FIELDS = ("message", "status", "detail", "description")


def truncate(text: str, limit: int = MAX_SUMMARY_LENGTH) -> str:
    """limit을 넘으면 말줄임표를 붙여 자름"""
    if len(text) > limit:
        return f"{text[: limit - 3]}..."
    return text


def summarize_response_data(data: Any) -> Optional[str]:
    """응답 본문을 사람이 읽을 수 있는 요약으로 변환

    Args:
        data: 응답 본문 (문자열, dict, list, 숫자 등)

    Returns:
        200자 이하 요약. 본문이 없으면 None.
    """
    if data is None:
        return None

    if isinstance(data, str):
        return truncate(data)

    if isinstance(data, dict):
        for name in _PRIMARY_FIELDS:
            primary = data.get(name)
            if primary and isinstance(primary, str):
                return truncate(primary)

    if isinstance(data, (dict, list)):
        try:
            serialized = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            return "[object]"
        return truncate(serialized)

    return truncate(str(data))
