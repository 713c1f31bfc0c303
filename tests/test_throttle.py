"""Test IRC flood control token bucket."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from discord_irc.adapters.throttle import TokenBucket


class TestTokenBucket:
    def test_use_token_until_empty(self):
        bucket = TokenBucket(limit=2, refill_rate=0.001)

        assert bucket.use_token()
        assert bucket.use_token()
        assert not bucket.use_token()

    def test_acquire_reports_wait(self):
        bucket = TokenBucket(limit=1, refill_rate=2.0)
        bucket.use_token()

        wait = bucket.acquire()

        assert 0 < wait <= 0.5

    def test_from_delay(self):
        bucket = TokenBucket.from_delay(500)
        bucket.use_token()

        assert 0 < bucket.acquire() <= 0.5
        assert not bucket.use_token()

    def test_refill_capped_at_limit(self):
        with patch("discord_irc.adapters.throttle.time.monotonic", side_effect=[0.0, 100.0, 100.0]):
            bucket = TokenBucket(limit=1, refill_rate=1.0)
            assert bucket.use_token()
            assert not bucket.use_token()

    @pytest.mark.asyncio
    async def test_wait_sleeps_when_empty(self):
        bucket = TokenBucket.from_delay(500)
        bucket.use_token()

        with patch("discord_irc.adapters.throttle.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with patch.object(bucket, "acquire", side_effect=[0.4, 0.0]):
                await bucket.wait()

        mock_sleep.assert_awaited_once_with(0.4)

    @pytest.mark.asyncio
    async def test_wait_no_sleep_when_available(self):
        bucket = TokenBucket.from_delay(500)

        with patch("discord_irc.adapters.throttle.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await bucket.wait()

        mock_sleep.assert_not_awaited()
