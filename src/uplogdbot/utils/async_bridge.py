"""동기 핸들러에서 코루틴 실행

slack_bolt sync mode의 핸들러 스레드에는 이벤트 루프가 없으므로,
호출마다 새 루프를 만들어 코루틴을 끝까지 실행합니다.
aiohttp 세션은 루프에 묶이므로 코루틴 안에서 생성하고 닫아야 합니다.
"""

import asyncio
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def run_in_new_loop(coro: Coroutine[Any, Any, T]) -> T:
    """새 이벤트 루프에서 코루틴을 실행하고 결과를 반환

    코루틴 내부 예외는 호출자에게 그대로 전파됩니다.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            loop.close()
