"""상호작용 컨텍스트 타입 정의

봇 프로세스는 세션 저장소를 두지 않습니다. 한 번의 사용자 흐름(제출, 상태 확인)이
어디까지 진행되었는지를 InteractionContext 하나로 표현하고, 렌더링된 메시지의
버튼에 정제된 사본을 실어 다음 클릭에서 이어갑니다.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Machine(str, Enum):
    """작업 대상 머신 종류"""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "Machine":
        """문자열/None을 Machine으로 변환 (알 수 없는 값은 NONE)"""
        if isinstance(value, Machine):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


class ResponseMode(str, Enum):
    """응답 방식

    UPDATE: 원래 메시지를 전체 내역으로 갱신 (DM)
    EPHEMERAL: 공유 채널용 한 줄 요약 + 상태는 클릭한 사용자에게만
    """

    UPDATE = "update"
    EPHEMERAL = "ephemeral"


@dataclass(frozen=True)
class Asset:
    """인벤토리에서 조회한 자산

    raw는 제공자 원본 레코드로, 버튼 페이로드에는 절대 포함하지 않습니다.
    """

    id: str
    label: str
    primary_capable: bool = False
    secondary_capable: bool = False
    last_auto: Optional[str] = None
    raw: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class MachineTarget:
    """단일 작업/상태 조회가 향하는 (자산 ID, 머신) 쌍"""

    asset_id: str
    machine: Machine = Machine.NONE


@dataclass
class TargetResult:
    """타깃 하나의 실행 결과

    success=None은 "시도했지만 결과 미확정(진행 중)"을 의미합니다.
    """

    asset_id: str
    machine: Machine = Machine.NONE
    success: Optional[bool] = None
    status_code: Optional[int] = None
    response_summary: Optional[str] = None
    error: Optional[str] = None

    @property
    def target(self) -> MachineTarget:
        return MachineTarget(asset_id=self.asset_id, machine=self.machine)


@dataclass
class DeviceState:
    """다중 장치 상태 표의 한 행"""

    device: str
    state: str
    notes: str = ""


@dataclass
class StatusResult(TargetResult):
    """상태 조회 결과 (조회 시각, 장치별 상태 포함)"""

    checked_at: Optional[str] = None
    devices: list[DeviceState] = field(default_factory=list)


@dataclass(frozen=True)
class BaseAsset:
    """컨텍스트에 기록되는 자산 식별 정보"""

    id: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class Requester:
    """요청한 슬랙 사용자"""

    id: Optional[str] = None
    username: Optional[str] = None
    real_name: Optional[str] = None

    @classmethod
    def from_slack_user(cls, user: Optional[dict]) -> "Requester":
        user = user or {}
        return cls(
            id=user.get("id"),
            username=user.get("username"),
            real_name=user.get("real_name") or user.get("name"),
        )


@dataclass
class InteractionContext:
    """한 번의 사용자 흐름 상태 (aggregate root)

    results/statuses는 타깃이 해석된 순서를 그대로 유지합니다.
    response_mode는 한 메시지 스레드 안에서 바뀌지 않습니다.
    """

    base_asset: BaseAsset = field(default_factory=BaseAsset)
    operation: Optional[str] = None
    submitted_at: Optional[str] = None
    results: list[TargetResult] = field(default_factory=list)
    statuses: list[StatusResult] = field(default_factory=list)
    pending_request: bool = False
    pending_status_check: bool = False
    response_mode: ResponseMode = ResponseMode.UPDATE
    requested_by: Requester = field(default_factory=Requester)
    service_label: Optional[str] = None
    status_kind: Optional[str] = None
    machine_label: Optional[str] = None
    summary_line: Optional[str] = None

    def with_changes(self, **changes) -> "InteractionContext":
        """필드를 바꾼 사본 반환 (원본은 변경하지 않음)"""
        return replace(self, **changes)

    @property
    def last_checked_at(self) -> Optional[str]:
        """가장 최근 상태 조회 시각 (모든 타깃이 같은 값을 공유)"""
        if not self.statuses:
            return None
        return self.statuses[0].checked_at


def utc_now_iso() -> str:
    """현재 시각 ISO 8601 문자열 (UTC)"""
    return datetime.now(timezone.utc).isoformat()


def pending_results(
    targets: list[MachineTarget], summary: str = "Waiting for uplogd…"
) -> list[TargetResult]:
    """아직 응답을 받지 못한 타깃 결과 목록 생성"""
    return [
        TargetResult(
            asset_id=target.asset_id,
            machine=target.machine,
            success=None,
            response_summary=summary,
        )
        for target in targets
    ]


def create_submission_context(
    *,
    base_asset: BaseAsset,
    operation: Optional[str],
    submitted_at: Optional[str] = None,
    results: Optional[list[TargetResult]] = None,
    statuses: Optional[list[StatusResult]] = None,
    pending_request: bool = False,
    response_mode: ResponseMode = ResponseMode.UPDATE,
    requested_by: Optional[Requester] = None,
    service_label: Optional[str] = "uplogd",
    status_kind: Optional[str] = None,
    machine_label: Optional[str] = None,
) -> InteractionContext:
    """제출 정보로부터 InteractionContext 생성

    자산 라벨이 없으면 ID를, 둘 다 없으면 "Unknown"을 라벨로 사용합니다.
    """
    label = base_asset.label or base_asset.id or "Unknown"
    return InteractionContext(
        base_asset=BaseAsset(id=base_asset.id, label=label),
        operation=operation,
        submitted_at=submitted_at or utc_now_iso(),
        results=list(results or []),
        statuses=list(statuses or []),
        pending_request=pending_request,
        pending_status_check=False,
        response_mode=response_mode,
        requested_by=requested_by or Requester(),
        service_label=service_label,
        status_kind=status_kind,
        machine_label=machine_label,
    )


def status_targets(context: InteractionContext) -> list[MachineTarget]:
    """상태 조회 대상 타깃 목록

    실행 결과(results)의 타깃을 우선 사용하고, 실행 없이 상태 조회만 한
    흐름(garage mode status)이면 기존 statuses의 타깃을 사용합니다.
    ID가 비어 있는 항목은 제외합니다.
    """
    source = context.results or context.statuses
    return [item.target for item in source if item.asset_id]
