"""Tests for the token reaper background service."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tokenkeeper.services.token_reaper import CLEANUP_INTERVAL_SECONDS, TokenReaperService


@pytest.fixture
def reaper(refresh_store, blacklist, active_tokens):
    return TokenReaperService(refresh_store, blacklist, active_tokens, interval_seconds=0.01)


class TestTokenReaperConfiguration:
    def test_default_interval_is_hourly(self, refresh_store, blacklist):
        service = TokenReaperService(refresh_store, blacklist)
        assert service.interval_seconds == CLEANUP_INTERVAL_SECONDS == 3600

    def test_active_index_sweep_is_optional(self, refresh_store, blacklist):
        service = TokenReaperService(refresh_store, blacklist)
        assert set(service._sweeps) == {"refresh_tokens", "blacklist"}


class TestTokenReaperLifecycle:
    @pytest.mark.asyncio
    async def test_start_sets_running_flag(self, reaper):
        with patch.object(reaper, "_cleanup_loop", new_callable=AsyncMock):
            await reaper.start()

        assert reaper.is_running is True
        await reaper.stop()
        assert reaper.is_running is False

    @pytest.mark.asyncio
    async def test_start_twice_logs_warning(self, reaper):
        with patch.object(reaper, "_cleanup_loop", new_callable=AsyncMock):
            await reaper.start()

            with patch("tokenkeeper.services.token_reaper.logger") as mock_logger:
                await reaper.start()
                mock_logger.warning.assert_called()

        await reaper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, reaper):
        await reaper.stop()
        assert reaper.is_running is False

    @pytest.mark.asyncio
    async def test_loop_sweeps_periodically(self, reaper, refresh_store, clock):
        refresh_store.issue("u1")
        clock.advance(days=8)

        await reaper.start()
        await asyncio.sleep(0.05)
        await reaper.stop()

        assert len(refresh_store) == 0


class TestTokenReaperCleanup:
    @pytest.mark.asyncio
    async def test_run_cleanup_now_reports_counts(
        self, reaper, refresh_store, blacklist, active_tokens, codec, clock
    ):
        refresh_store.issue("u1")
        token = codec.issue(subject="u1", email="a@x.com", username="a")
        blacklist.add(token, "u1", "logout")
        active_tokens.track("u1", token, codec.peek_expiry(token))
        clock.advance(days=8)

        removed = await reaper.run_cleanup_now()

        assert removed == {"refresh_tokens": 1, "blacklist": 1, "active_tokens": 1}

    @pytest.mark.asyncio
    async def test_second_run_removes_nothing(self, reaper, refresh_store, clock):
        refresh_store.issue("u1")
        clock.advance(days=8)

        await reaper.run_cleanup_now()
        removed = await reaper.run_cleanup_now()

        assert removed == {"refresh_tokens": 0, "blacklist": 0, "active_tokens": 0}

    @pytest.mark.asyncio
    async def test_failing_sweep_does_not_stop_the_others(self, refresh_store, clock):
        broken = MagicMock()
        broken.sweep_expired.side_effect = RuntimeError("boom")
        service = TokenReaperService(refresh_store, broken)
        refresh_store.issue("u1")
        clock.advance(days=8)

        with patch("tokenkeeper.services.token_reaper.logger") as mock_logger:
            removed = await service.run_cleanup_now()
            mock_logger.exception.assert_called_once()

        assert removed == {"refresh_tokens": 1}

    @pytest.mark.asyncio
    async def test_loop_survives_sweep_errors(self, refresh_store):
        broken = MagicMock()
        broken.sweep_expired.side_effect = RuntimeError("boom")
        service = TokenReaperService(refresh_store, broken, interval_seconds=0.01)

        await service.start()
        await asyncio.sleep(0.05)
        assert service._task is not None and not service._task.done()
        await service.stop()

        assert broken.sweep_expired.call_count >= 2
