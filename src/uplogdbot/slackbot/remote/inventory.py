"""자산 인벤토리 조회

인벤토리 API 응답 형태가 제공자마다 달라, 배열 필드명과 이름 필드명을
명시적인 우선순위 목록으로 해석합니다.
조회 실패는 빈 목록 + 경고 로그로 처리하며 상호작용을 막지 않습니다.
"""

import asyncio
import logging
import re
from typing import Any, Optional, Sequence

import aiohttp

from uplogdbot.slackbot.interaction.context import Asset

logger = logging.getLogger(__name__)

INVENTORY_TIMEOUT = 20

# 응답 객체에서 자산 배열로 인정하는 필드 (앞에서부터 우선)
ASSET_LIST_FIELDS = ("assets", "items", "results", "data", "records")

# 자산 레코드에서 이름으로 인정하는 필드 (앞에서부터 우선)
ASSET_NAME_FIELDS = ("asset", "name", "title", "label", "display_name", "slug")


def extract_asset_list(data: Any) -> list:
    """응답 본문에서 자산 배열 추출 (없으면 빈 리스트)"""
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return []
    for name in ASSET_LIST_FIELDS:
        value = data.get(name)
        if isinstance(value, list):
            return value
    return []


def to_asset(item: Any) -> Optional[Asset]:
    """자산 레코드(문자열 또는 객체)를 Asset으로 변환"""
    if isinstance(item, str):
        name = item.strip()
        return Asset(id=name, label=name, raw=item) if name else None

    if not isinstance(item, dict):
        return None

    name = next(
        (item[field] for field in ASSET_NAME_FIELDS if isinstance(item.get(field), str) and item[field]),
        None,
    )
    if not name:
        return None

    return Asset(
        id=name,
        label=name,
        primary_capable=bool(item.get("primary")),
        secondary_capable=bool(item.get("secondary")),
        last_auto=item.get("last_auto_plt_time") or item.get("lastAuto"),
        raw=item,
    )


def _natural_key(name: str) -> list:
    return [
        int(part) if part.isdigit() else part
        for part in re.split(r"(\d+)", name.lower())
    ]


def filter_assets(items: list, prefixes: Sequence[str]) -> list[Asset]:
    """접두사로 필터링하고 자연 정렬한 자산 목록"""
    mapped = [asset for asset in (to_asset(item) for item in items) if asset]
    filtered = [
        asset for asset in mapped
        if not prefixes or asset.id.lower().startswith(tuple(prefixes))
    ]
    logger.debug(
        f"자산 접두사 필터링 ({', '.join(prefixes)}): {len(filtered)} / {len(mapped)}"
    )
    return sorted(filtered, key=lambda asset: _natural_key(asset.id))


async def fetch_assets(
    endpoint: str,
    token: str = "",
    prefixes: Sequence[str] = ("sg", "by", "cr"),
) -> list[Asset]:
    """인벤토리에서 자산 목록 조회

    Returns:
        필터링/정렬된 자산 목록. 엔드포인트 미설정이나 조회 실패 시 빈 리스트.
    """
    if not endpoint:
        logger.warning("ASSETS_ENDPOINT가 설정되지 않아 빈 자산 목록을 표시합니다")
        return []

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    timeout = aiohttp.ClientTimeout(total=INVENTORY_TIMEOUT)

    try:
        async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
            async with session.get(endpoint) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.warning(f"자산 목록 조회 실패: {e}")
        return []

    items = extract_asset_list(data)
    logger.debug(f"자산 원본 {len(items)}개 조회")
    return filter_assets(items, prefixes)


def find_asset(assets: list[Asset], asset_id: Optional[str]) -> Optional[Asset]:
    """ID로 자산 검색"""
    if not asset_id:
        return None
    return next((asset for asset in assets if asset.id == asset_id), None)
