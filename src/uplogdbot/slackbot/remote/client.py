"""uplogd / garage mode HTTP 클라이언트

원격 에이전트에 대한 단일 요청만 담당합니다. 동시 실행, 타임아웃, 결과 집계는
interaction.fanout에서 처리합니다.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from uplogdbot.slackbot.interaction.context import DeviceState, Machine

logger = logging.getLogger(__name__)

# HTTP 연결 타임아웃 (초). 전체 요청 타임아웃은 fanout이 타깃별로 적용합니다.
HTTP_CONNECT_TIMEOUT = 10


# === 데이터 타입 ===

@dataclass
class RemoteResponse:
    """원격 호출 성공 응답"""
    status_code: int
    body: Any = None
    devices: list[DeviceState] = field(default_factory=list)


# === 예외 ===

class RemoteCallError(Exception):
    """원격 호출이 2xx가 아닌 응답을 반환함"""

    def __init__(self, status_code: Optional[int], body: Any = None, message: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"Request failed with status code {status_code}")


# === 유틸리티 ===

def sanitize_path_segment(segment: Any) -> str:
    """URL 경로 세그먼트 인코딩 (비어 있으면 "unknown")"""
    return quote(str(segment or "").strip(), safe="") or "unknown"


def parse_devices_from_stdout(stdout: Any) -> list[DeviceState]:
    """garage mode 상태 출력의 장치 표를 파싱

    "Device" 헤더 다음 줄부터 두 칸 이상 공백으로 구분된 행을 읽습니다.
    헤더 직후의 "====" 구분선은 건너뛰고, 이후 구분선을 만나면 종료합니다.
    """
    if not stdout or not isinstance(stdout, str):
        return []

    lines = stdout.splitlines()
    header_index = next(
        (i for i, line in enumerate(lines) if line.strip().lower().startswith("device")),
        None,
    )
    if header_index is None:
        return []

    i = header_index + 1
    while i < len(lines) and re.match(r"^=+", lines[i].strip()):
        i += 1

    devices = []
    for line in lines[i:]:
        line = line.strip()
        if not line:
            continue
        if re.match(r"^=+", line):
            break

        parts = [part for part in re.split(r"\s{2,}", line) if part]
        if len(parts) < 2:
            continue

        device, state, *notes = parts
        devices.append(DeviceState(device=device, state=state, notes=" ".join(notes)))

    return devices


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    """응답 본문을 JSON으로 시도하고 실패하면 텍스트로 반환"""
    text = await response.text()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


# === 클라이언트 ===

class _BaseClient:
    """Bearer 토큰 헤더와 세션 수명을 관리하는 공통 클라이언트"""

    def __init__(self, base_url: str, token: str = ""):
        self.base_url = (base_url or "").rstrip("/")
        self.token = token
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(connect=HTTP_CONNECT_TIMEOUT, total=None)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers=self._build_headers(),
            )
        return self._session

    def _build_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(self, method: str, url: str, **kwargs) -> RemoteResponse:
        session = await self._get_session()
        async with session.request(method, url, **kwargs) as response:
            body = await _read_body(response)
            if response.status >= 400:
                raise RemoteCallError(response.status, body)
            return RemoteResponse(status_code=response.status, body=body)


class UplogdClient(_BaseClient):
    """uplogd 에이전트 제어 클라이언트

    사용 예:
        async with UplogdClient(base_url=Config.uplogd.endpoint, token="xxx") as client:
            response = await client.perform_action("sg-101", Machine.PRIMARY, "start", {})
    """

    def action_url(self, asset_id: str, operation: Optional[str]) -> str:
        return (
            f"{self.base_url}/uplogd/{sanitize_path_segment(asset_id)}/"
            f"{sanitize_path_segment(operation or 'noop')}"
        )

    def status_url(self, asset_id: str) -> str:
        return f"{self.base_url}/uplogd/{sanitize_path_segment(asset_id)}/status"

    async def perform_action(
        self,
        asset_id: str,
        machine: Machine,
        operation: Optional[str],
        payload: dict,
    ) -> RemoteResponse:
        """start/stop/restart 요청"""
        params = {"machine": machine.value} if machine != Machine.NONE else None
        return await self._request(
            "POST", self.action_url(asset_id, operation), json=payload, params=params
        )

    async def fetch_status(self, asset_id: str, machine: Machine) -> RemoteResponse:
        """uplogd 현재 상태 조회"""
        return await self._request("GET", self.status_url(asset_id))


class GarageModeClient(_BaseClient):
    """garage mode 전환/상태 조회 클라이언트"""

    def action_url(self, asset_id: str) -> str:
        return f"{self.base_url}/garage_mode/{sanitize_path_segment(asset_id)}"

    def status_url(self, asset_id: str) -> str:
        return f"{self.action_url(asset_id)}/status"

    async def perform_action(
        self,
        asset_id: str,
        machine: Machine,
        operation: Optional[str],
        payload: dict,
    ) -> RemoteResponse:
        """enter/exit 요청"""
        return await self._request("POST", self.action_url(asset_id), json=payload)

    async def fetch_status(self, asset_id: str, machine: Machine) -> RemoteResponse:
        """garage mode 상태 조회 (stdout 장치 표 파싱 포함)"""
        response = await self._request("GET", self.status_url(asset_id))
        stdout = response.body.get("stdout") if isinstance(response.body, dict) else None
        response.devices = parse_devices_from_stdout(stdout)
        return response
