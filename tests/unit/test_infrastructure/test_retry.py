"""Tests for retry logic with exponential backoff."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sitescout.infrastructure.retry import backoff_delay, retryable_navigate, with_retry


class TestBackoffDelay:
    """Tests for backoff_delay."""

    def test_doubles_per_attempt(self):
        assert backoff_delay(1, 1.0) == 1.0
        assert backoff_delay(2, 1.0) == 2.0
        assert backoff_delay(3, 1.0) == 4.0

    def test_scales_with_base(self):
        assert backoff_delay(2, 0.5) == 1.0


class TestWithRetry:
    """Tests for with_retry."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """No sleep when the first attempt succeeds."""
        operation = AsyncMock(return_value="ok")

        with patch("sitescout.infrastructure.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await with_retry(operation)

        assert result == "ok"
        operation.assert_awaited_once()
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self):
        operation = AsyncMock(side_effect=[TimeoutError("slow"), "ok"])

        with patch("sitescout.infrastructure.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await with_retry(operation, max_retries=3, base_delay=1.0)

        assert result == "ok"
        assert operation.await_count == 2
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_exhausted_reraises_last_exception(self):
        """At most max_retries attempts; the last error surfaces unchanged."""
        last = ConnectionError("third")
        operation = AsyncMock(side_effect=[ConnectionError("first"), ConnectionError("second"), last])

        with patch("sitescout.infrastructure.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(ConnectionError) as exc_info:
                await with_retry(operation, max_retries=3, base_delay=1.0)

        assert exc_info.value is last
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_zero_retries_still_attempts_once(self):
        operation = AsyncMock(side_effect=ValueError("boom"))

        with pytest.raises(ValueError):
            await with_retry(operation, max_retries=0)

        operation.assert_awaited_once()


class TestRetryableNavigate:
    """Tests for retryable_navigate."""

    @pytest.mark.asyncio
    async def test_passes_navigation_options(self):
        response = MagicMock()
        page = MagicMock()
        page.goto = AsyncMock(return_value=response)

        result = await retryable_navigate(page, "https://example.com", timeout_ms=20000)

        assert result is response
        page.goto.assert_awaited_once_with(
            "https://example.com", wait_until="domcontentloaded", timeout=20000
        )

    @pytest.mark.asyncio
    async def test_navigation_retried(self):
        page = MagicMock()
        page.goto = AsyncMock(side_effect=Exception("net::ERR_CONNECTION_RESET"))

        with patch("sitescout.infrastructure.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(Exception, match="ERR_CONNECTION_RESET"):
                await retryable_navigate(page, "https://example.com", max_retries=3)

        assert page.goto.await_count == 3
