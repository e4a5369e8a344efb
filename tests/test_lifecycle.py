"""BotLifecycle 테스트"""

from unittest.mock import MagicMock

from uplogdbot.slackbot.lifecycle import BotLifecycle


def _lifecycle(scheduler=None):
    handler = MagicMock()
    factory = MagicMock(return_value=handler)
    lifecycle = BotLifecycle("app", "xapp-test", scheduler=scheduler, handler_factory=factory)
    return lifecycle, factory, handler


class TestBotLifecycle:
    def test_start_starts_scheduler_then_handler(self):
        scheduler = MagicMock()
        lifecycle, factory, handler = _lifecycle(scheduler)

        lifecycle.start()

        scheduler.start.assert_called_once()
        factory.assert_called_once_with("app", "xapp-test")
        handler.start.assert_called_once()

    def test_stop_is_idempotent(self):
        """stop()을 여러 번 호출해도 한 번만 정리"""
        scheduler = MagicMock()
        lifecycle, _, handler = _lifecycle(scheduler)
        lifecycle.start()

        lifecycle.stop()
        lifecycle.stop()

        assert lifecycle.is_stopped
        scheduler.stop.assert_called_once()
        handler.close.assert_called_once()

    def test_stop_before_start(self):
        lifecycle, _, handler = _lifecycle()
        lifecycle.stop()

        assert lifecycle.is_stopped
        handler.close.assert_not_called()

    def test_stop_continues_after_scheduler_error(self):
        """스케줄러 종료 실패해도 연결은 닫음"""
        scheduler = MagicMock()
        scheduler.stop.side_effect = RuntimeError("stuck")
        lifecycle, _, handler = _lifecycle(scheduler)
        lifecycle.start()

        lifecycle.stop()

        handler.close.assert_called_once()
