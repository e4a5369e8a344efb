"""UplogdClient / GarageModeClient 테스트

mock aiohttp 세션으로 요청 형태와 응답 처리를 검증합니다.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from uplogdbot.slackbot.interaction.context import DeviceState, Machine
from uplogdbot.slackbot.remote.client import (
    GarageModeClient,
    RemoteCallError,
    UplogdClient,
    parse_devices_from_stdout,
    sanitize_path_segment,
)


# === 헬퍼 ===

class MockAsyncContextManager:
    """aiohttp의 async with session.request() 패턴을 mock하기 위한 컨텍스트 매니저"""
    def __init__(self, response):
        self.response = response

    async def __aenter__(self):
        return self.response

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


def _response(status=200, body=None):
    response = MagicMock()
    response.status = status
    text = body if isinstance(body, str) else (json.dumps(body) if body is not None else "")
    response.text = AsyncMock(return_value=text)
    return response


def _attach_session(client, response):
    session = MagicMock()
    session.closed = False
    session.request.return_value = MockAsyncContextManager(response)
    session.close = AsyncMock()
    client._session = session
    return session


GARAGE_STDOUT = """\
Garage mode status for sg-101
Device          State      Notes
==============================================
lidar           paused     netmand paused
cam0            on
==============================================
done
"""


class TestHelpers:
    def test_sanitize_path_segment(self):
        assert sanitize_path_segment("sg 101/x") == "sg%20101%2Fx"
        assert sanitize_path_segment("") == "unknown"
        assert sanitize_path_segment(None) == "unknown"

    def test_parse_devices(self):
        assert parse_devices_from_stdout(GARAGE_STDOUT) == [
            DeviceState("lidar", "paused", "netmand paused"),
            DeviceState("cam0", "on", ""),
        ]

    def test_parse_devices_without_table(self):
        assert parse_devices_from_stdout("nothing here") == []
        assert parse_devices_from_stdout(None) == []


class TestUplogdClient:
    def test_headers(self):
        client = UplogdClient("http://api.test/", token="secret")
        assert client.base_url == "http://api.test"
        assert client._build_headers()["Authorization"] == "Bearer secret"
        assert "Authorization" not in UplogdClient("http://api.test")._build_headers()

    @pytest.mark.asyncio
    async def test_perform_action(self):
        client = UplogdClient("http://api.test")
        session = _attach_session(client, _response(202, {"message": "queued"}))

        response = await client.perform_action("sg-101", Machine.PRIMARY, "start", {"a": 1})

        assert response.status_code == 202
        assert response.body == {"message": "queued"}
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "http://api.test/uplogd/sg-101/start")
        assert session.request.call_args.kwargs["params"] == {"machine": "primary"}
        assert session.request.call_args.kwargs["json"] == {"a": 1}

    @pytest.mark.asyncio
    async def test_machine_none_sends_no_param(self):
        client = UplogdClient("http://api.test")
        session = _attach_session(client, _response(200, "ok"))

        await client.perform_action("sg-101", Machine.NONE, "stop", {})

        assert session.request.call_args.kwargs["params"] is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = UplogdClient("http://api.test")
        _attach_session(client, _response(500, {"detail": "agent offline"}))

        with pytest.raises(RemoteCallError) as exc_info:
            await client.perform_action("sg-101", Machine.PRIMARY, "start", {})

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == {"detail": "agent offline"}

    @pytest.mark.asyncio
    async def test_fetch_status(self):
        client = UplogdClient("http://api.test")
        session = _attach_session(client, _response(200, "running"))

        response = await client.fetch_status("sg-101-secondary", Machine.SECONDARY)

        assert response.body == "running"
        assert session.request.call_args.args == ("GET", "http://api.test/uplogd/sg-101-secondary/status")

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        client = UplogdClient("http://api.test")
        session = _attach_session(client, _response())

        async with client:
            pass

        session.close.assert_awaited_once()


class TestGarageModeClient:
    @pytest.mark.asyncio
    async def test_perform_action(self):
        client = GarageModeClient("http://garage.test")
        session = _attach_session(client, _response(200, {"status": "entered"}))

        await client.perform_action("sg-101", Machine.NONE, "enter", {"action": "enter", "pause_netmand": True})

        assert session.request.call_args.args == ("POST", "http://garage.test/garage_mode/sg-101")
        assert session.request.call_args.kwargs["json"] == {"action": "enter", "pause_netmand": True}

    @pytest.mark.asyncio
    async def test_fetch_status_parses_devices(self):
        client = GarageModeClient("http://garage.test")
        session = _attach_session(client, _response(200, {"stdout": GARAGE_STDOUT}))

        response = await client.fetch_status("sg-101", Machine.NONE)

        assert session.request.call_args.args == ("GET", "http://garage.test/garage_mode/sg-101/status")
        assert [d.device for d in response.devices] == ["lidar", "cam0"]

    @pytest.mark.asyncio
    async def test_fetch_status_text_body(self):
        client = GarageModeClient("http://garage.test")
        _attach_session(client, _response(200, "plain text"))

        response = await client.fetch_status("sg-101", Machine.NONE)
        assert response.devices == []
