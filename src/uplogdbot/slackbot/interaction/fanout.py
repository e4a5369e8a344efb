"""타깃 병렬 실행 (fan-out)

해석된 타깃마다 원격 호출을 하나씩 동시에 보내고, 모든 호출이 끝날 때까지 기다립니다.
일부 타깃이 실패해도 전체는 실패하지 않으며, 결과 목록은 완료 순서가 아니라
입력 타깃 순서를 따릅니다. 재시도는 하지 않습니다 (타깃당 정확히 한 번 시도).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import aiohttp

from uplogdbot.slackbot.interaction.context import (
    Machine,
    MachineTarget,
    StatusResult,
    TargetResult,
    utc_now_iso,
)
from uplogdbot.slackbot.remote.client import RemoteCallError, RemoteResponse
from uplogdbot.slackbot.remote.summary import summarize_response_data, truncate

logger = logging.getLogger(__name__)

# 타깃별 요청 타임아웃 (초)
DEFAULT_TIMEOUT = 60.0

PerformAction = Callable[[str, Machine, Optional[str], dict], Awaitable[RemoteResponse]]
FetchStatus = Callable[[str, Machine], Awaitable[RemoteResponse]]
PayloadBuilder = Callable[[MachineTarget], dict]
TargetCall = Callable[[MachineTarget], Awaitable[RemoteResponse]]


def describe_failure(error: BaseException, timeout: float) -> tuple[Optional[int], str]:
    """실패 원인을 (상태 코드, 요약) 으로 변환

    Returns:
        상태 코드는 응답이 있었던 경우에만 채워집니다.
    """
    if isinstance(error, asyncio.TimeoutError):
        return None, f"Request timed out after {timeout:g}s"

    if isinstance(error, RemoteCallError):
        summary = summarize_response_data(error.body) or str(error)
        return error.status_code, truncate(summary)

    if isinstance(error, aiohttp.ClientResponseError):
        return error.status, truncate(error.message or str(error))

    message = str(error) or type(error).__name__
    return None, truncate(message)


async def settle_all(
    targets: list[MachineTarget],
    call: TargetCall,
    timeout: float = DEFAULT_TIMEOUT,
) -> list:
    """모든 타깃 호출을 동시에 실행하고 각 결과(응답 또는 예외)를 입력 순서로 반환

    각 호출에는 독립적인 타임아웃이 적용됩니다. 한 호출의 실패나 지연은
    다른 호출에 영향을 주지 않습니다.
    """

    async def _call_one(target: MachineTarget) -> RemoteResponse:
        return await asyncio.wait_for(call(target), timeout=timeout)

    # gather는 완료 순서와 무관하게 입력 위치에 결과를 채움
    settled = await asyncio.gather(
        *(_call_one(target) for target in targets),
        return_exceptions=True,
    )
    return list(settled)


async def execute_action(
    targets: list[MachineTarget],
    operation: Optional[str],
    perform: PerformAction,
    build_payload: Optional[PayloadBuilder] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[TargetResult]:
    """타깃마다 작업을 한 번씩 병렬 실행

    Args:
        targets: 해석된 타깃 목록 (순서 유지)
        operation: 작업 이름 (start/stop/restart/enter/exit)
        perform: 원격 실행 함수 (asset_id, machine, operation, payload)
        build_payload: 타깃별 요청 본문 생성 함수
        timeout: 타깃별 타임아웃 (초)

    Returns:
        입력 순서와 같은 TargetResult 목록. 타깃이 없으면 호출 없이 빈 리스트.
    """
    if not targets:
        logger.warning(f"실행할 타깃이 없어 요청을 보내지 않습니다: operation={operation}")
        return []

    async def _call(target: MachineTarget) -> RemoteResponse:
        payload = build_payload(target) if build_payload else {}
        return await perform(target.asset_id, target.machine, operation, payload)

    outcomes = await settle_all(targets, _call, timeout)

    results = []
    for target, outcome in zip(targets, outcomes):
        if isinstance(outcome, BaseException):
            status_code, summary = describe_failure(outcome, timeout)
            logger.error(
                f"타깃 실행 실패: {target.asset_id} ({target.machine.value}) "
                f"operation={operation} - {summary}"
            )
            results.append(TargetResult(
                asset_id=target.asset_id,
                machine=target.machine,
                success=False,
                status_code=status_code,
                response_summary=summary,
                error=str(outcome) or type(outcome).__name__,
            ))
            continue

        results.append(TargetResult(
            asset_id=target.asset_id,
            machine=target.machine,
            success=True,
            status_code=outcome.status_code,
            response_summary=summarize_response_data(outcome.body),
        ))

    succeeded = sum(1 for result in results if result.success)
    logger.info(f"{operation} 요청 완료: 성공 {succeeded} / {len(results)}")
    return results


async def refresh_statuses(
    targets: list[MachineTarget],
    fetch: FetchStatus,
    timeout: float = DEFAULT_TIMEOUT,
    checked_at: Optional[str] = None,
) -> list[StatusResult]:
    """타깃마다 현재 상태를 병렬 조회

    실행 결과와 무관하게 몇 번이든 호출할 수 있습니다. 실패한 타깃도 실패 요약을
    담은 StatusResult로 채워 결과 길이는 항상 입력 타깃 수와 같습니다.
    모든 결과는 같은 checked_at 값을 공유합니다.
    """
    if not targets:
        logger.warning("상태를 조회할 타깃이 없습니다")
        return []

    checked_at = checked_at or utc_now_iso()

    async def _call(target: MachineTarget) -> RemoteResponse:
        return await fetch(target.asset_id, target.machine)

    outcomes = await settle_all(targets, _call, timeout)

    statuses = []
    for target, outcome in zip(targets, outcomes):
        if isinstance(outcome, BaseException):
            status_code, summary = describe_failure(outcome, timeout)
            logger.error(f"상태 조회 실패: {target.asset_id} ({target.machine.value}) - {summary}")
            statuses.append(StatusResult(
                asset_id=target.asset_id,
                machine=target.machine,
                success=False,
                status_code=status_code,
                response_summary=summary or "Unable to fetch latest status right now.",
                error=str(outcome) or type(outcome).__name__,
                checked_at=checked_at,
            ))
            continue

        statuses.append(StatusResult(
            asset_id=target.asset_id,
            machine=target.machine,
            success=True,
            status_code=outcome.status_code,
            response_summary=summarize_response_data(outcome.body),
            checked_at=checked_at,
            devices=list(outcome.devices),
        ))

    return statuses
