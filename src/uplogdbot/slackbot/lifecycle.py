"""봇 수명 관리

Socket Mode 연결과 예보 스케줄러의 시작/종료를 한곳에서 관리합니다.
"""

import logging
import threading
from typing import Callable, Optional

from slack_bolt.adapter.socket_mode import SocketModeHandler

logger = logging.getLogger(__name__)


class BotLifecycle:
    """Socket Mode 핸들러와 스케줄러 수명 관리

    start()는 연결이 끊기거나 stop()이 호출될 때까지 블록합니다.
    stop()은 여러 번 호출해도 안전합니다.
    """

    def __init__(
        self,
        app,
        app_token: str,
        scheduler=None,
        handler_factory: Callable = SocketModeHandler,
    ):
        self.app = app
        self.app_token = app_token
        self.scheduler = scheduler
        self._handler_factory = handler_factory
        self._handler: Optional[SocketModeHandler] = None
        self._stopped = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def start(self) -> None:
        """스케줄러를 시작하고 Socket Mode로 연결"""
        if self.scheduler is not None:
            self.scheduler.start()

        self._handler = self._handler_factory(self.app, self.app_token)
        logger.info("Socket Mode 연결 시작")
        self._handler.start()

    def stop(self) -> None:
        """스케줄러와 Socket Mode 연결 종료"""
        with self._lock:
            if self._stopped.is_set():
                return
            self._stopped.set()

        if self.scheduler is not None:
            try:
                self.scheduler.stop()
            except Exception as e:
                logger.warning(f"스케줄러 종료 중 오류: {e}")

        if self._handler is not None:
            try:
                self._handler.close()
            except Exception as e:
                logger.warning(f"Socket Mode 종료 중 오류: {e}")

        logger.info("봇 종료 완료")
