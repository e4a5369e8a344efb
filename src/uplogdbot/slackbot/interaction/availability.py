"""폼 머신 선택 가능 여부 계산

자산 선택이 바뀔 때마다 모달을 다시 그리며, 이전 선택 중 새 자산에서도
유효한 것만 유지합니다.

상태:
    NO_ASSET        자산 미선택
    ASSET_SELECTED  자산 선택됨 (capability_count = 0, 1, 2)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from uplogdbot.slackbot.interaction.context import Asset, Machine


class FormState(str, Enum):
    NO_ASSET = "no_asset"
    ASSET_SELECTED = "asset_selected"


@dataclass(frozen=True)
class MachineOption:
    """체크박스 옵션 하나"""

    machine: Machine
    label: str


@dataclass
class MachineAvailability:
    """머신 체크박스 렌더링에 필요한 계산 결과"""

    state: FormState
    options: list[MachineOption] = field(default_factory=list)
    initial: list[MachineOption] = field(default_factory=list)
    note: Optional[str] = None

    @property
    def capability_count(self) -> int:
        return len(self.options)

    @property
    def selectable(self) -> bool:
        return bool(self.options)


def _unavailable_note(
    primary: bool, secondary: bool, primary_label: str, secondary_label: str
) -> Optional[str]:
    if not primary and not secondary:
        return f"{secondary_label} / {primary_label} not available for this asset."
    if not primary:
        return f"{primary_label} not available for this asset."
    if not secondary:
        return f"{secondary_label} not available for this asset."
    return None


def resolve_machine_availability(
    asset: Optional[Asset],
    previous_selection: Iterable[str] = (),
    *,
    primary_label: str = "imx8",
    secondary_label: str = "crystal",
) -> MachineAvailability:
    """자산 능력과 이전 선택으로 선택 가능한 머신과 초기 선택을 계산

    Args:
        asset: 현재 선택된 자산 (None이면 NO_ASSET 상태)
        previous_selection: 다시 열린 폼에서 이미 선택돼 있던 머신 값
        primary_label: primary 머신 표시 이름
        secondary_label: secondary 머신 표시 이름

    Returns:
        MachineAvailability. 이전 선택이 하나도 유효하지 않으면 가능한 옵션 전체가
        초기 선택이 됩니다.
    """
    if asset is None:
        return MachineAvailability(state=FormState.NO_ASSET)

    options = []
    if asset.primary_capable:
        options.append(MachineOption(Machine.PRIMARY, primary_label))
    if asset.secondary_capable:
        options.append(MachineOption(Machine.SECONDARY, secondary_label))

    previous = {Machine.parse(value) for value in previous_selection}
    kept = [option for option in options if option.machine in previous]

    return MachineAvailability(
        state=FormState.ASSET_SELECTED,
        options=options,
        initial=kept or list(options),
        note=_unavailable_note(
            asset.primary_capable, asset.secondary_capable, primary_label, secondary_label
        ),
    )
