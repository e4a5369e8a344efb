"""작업 대상 타깃 해석

선택된 자산과 머신 체크박스 값으로부터 실제 요청을 보낼 (자산 ID, 머신) 목록을 만듭니다.
"""

from typing import Optional

from uplogdbot.slackbot.interaction.context import Asset, Machine, MachineTarget

SECONDARY_SUFFIX = "-secondary"


def base_asset_id(asset_id: Optional[str]) -> str:
    """보조 머신 접미사를 제거한 기본 자산 ID"""
    value = (asset_id or "").strip()
    if value.endswith(SECONDARY_SUFFIX):
        return value[: -len(SECONDARY_SUFFIX)]
    return value


def secondary_asset_id(asset_id: str) -> str:
    """보조 머신 주소 (<baseId>-secondary)"""
    return f"{base_asset_id(asset_id)}{SECONDARY_SUFFIX}"


def resolve_machine_targets(
    asset: Optional[Asset],
    primary_requested: bool,
    secondary_requested: bool,
) -> list[MachineTarget]:
    """요청된 머신 플래그를 자산 능력과 교차하여 타깃 목록 생성

    어떤 플래그로도 타깃이 만들어지지 않으면 기본 자산 ID로 machine=none 타깃
    하나를 만듭니다. 제출된 폼은 항상 최소 한 번의 요청으로 이어집니다.

    Args:
        asset: 선택된 자산 (None이면 빈 목록)
        primary_requested: primary 체크 여부
        secondary_requested: secondary 체크 여부

    Returns:
        해석 순서(primary → secondary → none)를 유지한 타깃 목록
    """
    if asset is None:
        return []

    base_id = base_asset_id(asset.id)
    targets = []

    if primary_requested and asset.primary_capable:
        targets.append(MachineTarget(asset_id=base_id, machine=Machine.PRIMARY))

    if secondary_requested and asset.secondary_capable and base_id:
        targets.append(
            MachineTarget(asset_id=secondary_asset_id(base_id), machine=Machine.SECONDARY)
        )

    if not targets:
        targets.append(MachineTarget(asset_id=base_id, machine=Machine.NONE))

    return [target for target in targets if target.asset_id]
