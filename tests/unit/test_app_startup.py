"""アプリ起動・停止時のスケジューラ制御のテスト"""

import asyncio
from unittest.mock import AsyncMock, patch

from ewarrants.config import AppConfig
from ewarrants.entrypoints.api import app as app_module


def _run_startup(config):
    with patch.object(app_module, "get_config", return_value=config), patch.object(
        app_module, "DailyReminderScheduler"
    ) as mock_scheduler_cls:
        mock_scheduler_cls.return_value.stop = AsyncMock()

        async def _lifecycle():
            await app_module._on_startup()
            await app_module._on_shutdown()

        asyncio.run(_lifecycle())
    return mock_scheduler_cls


def test_scheduler_not_started_when_disabled():
    mock_scheduler_cls = _run_startup(AppConfig(project_id="p", reminder_scheduler_enabled=False))

    mock_scheduler_cls.assert_not_called()


def test_scheduler_started_and_stopped_when_enabled():
    config = AppConfig(project_id="p", reminder_scheduler_enabled=True)

    mock_scheduler_cls = _run_startup(config)

    kwargs = mock_scheduler_cls.call_args.kwargs
    assert kwargs["fire_at"] == config.reminder_time
    assert kwargs["tz"] == config.tz
    mock_scheduler_cls.return_value.start.assert_called_once()
    mock_scheduler_cls.return_value.stop.assert_awaited_once()
