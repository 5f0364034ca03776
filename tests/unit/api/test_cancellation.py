"""
Unit tests for request-scoped cancellation.
"""
import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from message_mng.api.cancellation import cancel_on_disconnect
from message_mng.domain.exceptions import RequestCancelledException


def _request(disconnected: bool):
    request = MagicMock()
    request.method = "GET"
    request.url.path = "/api/message/device/dev-1"
    request.is_disconnected = AsyncMock(return_value=disconnected)
    return request


class TestCancelOnDisconnect:
    """Test cancellation of in-flight work."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def work():
            return 42

        result = await cancel_on_disconnect(_request(False), work(), poll_interval=0.01)

        assert result == 42

    @pytest.mark.asyncio
    async def test_propagates_work_exception(self):
        async def work():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await cancel_on_disconnect(_request(False), work(), poll_interval=0.01)

    @pytest.mark.asyncio
    async def test_cancels_work_when_client_disconnects(self):
        cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(RequestCancelledException):
            await cancel_on_disconnect(_request(True), work(), poll_interval=0.01)

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_keeps_waiting_while_connected(self):
        request = _request(False)

        async def work():
            await asyncio.sleep(0.05)
            return "done"

        result = await cancel_on_disconnect(request, work(), poll_interval=0.01)

        assert result == "done"
        assert request.is_disconnected.await_count >= 1

    @pytest.mark.asyncio
    async def test_work_finishes_unwinding_when_caller_is_cancelled(self):
        started = asyncio.Event()
        cleaned_up = asyncio.Event()

        async def work():
            started.set()
            try:
                await asyncio.sleep(10)
            finally:
                await asyncio.sleep(0)
                cleaned_up.set()

        caller = asyncio.ensure_future(
            cancel_on_disconnect(_request(False), work(), poll_interval=5)
        )
        await started.wait()
        caller.cancel()

        with pytest.raises(asyncio.CancelledError):
            await caller

        assert cleaned_up.is_set()
