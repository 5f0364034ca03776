"""
Unit tests for MessageService.

Tests authorization ordering and query construction.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from message_mng.application.queries import SortDirection
from message_mng.domain.entities.aggregation import AggregatedData
from message_mng.domain.entities.message import Message
from message_mng.domain.exceptions import (
    AuthorizationException,
    EntityNotFoundException,
    ValidationException,
)


@pytest.fixture
def sample_message():
    return Message(
        id="507f1f77bcf86cd799439011",
        topic="devices/dev-1/telemetry",
        client_id="dev-1",
        timestamp=datetime(2026, 1, 15, tzinfo=timezone.utc),
    )


class TestGrantEnforcement:
    """Access is checked before any store call."""

    @pytest.mark.asyncio
    async def test_empty_grant_is_forbidden(
        self, message_service, mock_project_client, mock_message_repository, sample_context
    ):
        mock_project_client.fetch_users = AsyncMock(return_value=[])

        with pytest.raises(AuthorizationException) as exc_info:
            await message_service.list_messages(sample_context, None, None, None, 0, 10)

        assert exc_info.value.message == "no devices are associated with this user"
        mock_message_repository.list.assert_not_called()

    @pytest.mark.asyncio
    async def test_device_outside_grant_is_forbidden(
        self, message_service, mock_message_repository, sample_context
    ):
        with pytest.raises(AuthorizationException):
            await message_service.list_messages_by_device(
                sample_context, "dev-9", None, None, None, 0, 10
            )

        mock_message_repository.list.assert_not_called()

    @pytest.mark.asyncio
    async def test_aggregations_outside_grant_are_forbidden(
        self, message_service, mock_aggregation_repository, sample_context
    ):
        with pytest.raises(AuthorizationException):
            await message_service.get_aggregations_by_device(sample_context, "dev-9")

        mock_aggregation_repository.find_by_client_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_client_lookup_outside_grant_is_forbidden(
        self, message_service, mock_message_repository, sample_context
    ):
        with pytest.raises(AuthorizationException):
            await message_service.find_messages_by_client_id(sample_context, "dev-9", 10)

        mock_message_repository.find_by_client_id.assert_not_called()


class TestGetMessage:
    """Test single message lookup."""

    @pytest.mark.asyncio
    async def test_returns_permitted_message(
        self, message_service, mock_message_repository, sample_context, sample_message
    ):
        mock_message_repository.find_by_id = AsyncMock(return_value=sample_message)

        result = await message_service.get_message(sample_context, sample_message.id)

        assert result is sample_message

    @pytest.mark.asyncio
    async def test_message_of_other_device_is_forbidden(
        self, message_service, mock_message_repository, sample_context, sample_message
    ):
        sample_message.client_id = "dev-9"
        mock_message_repository.find_by_id = AsyncMock(return_value=sample_message)

        with pytest.raises(AuthorizationException):
            await message_service.get_message(sample_context, sample_message.id)

    @pytest.mark.asyncio
    async def test_not_found_propagates(
        self, message_service, mock_message_repository, sample_context
    ):
        mock_message_repository.find_by_id = AsyncMock(
            side_effect=EntityNotFoundException("Message", "x", message="message not found")
        )

        with pytest.raises(EntityNotFoundException):
            await message_service.get_message(sample_context, "507f1f77bcf86cd799439011")


class TestListMessages:
    """Test list query construction."""

    @pytest.mark.asyncio
    async def test_restricted_to_grant(
        self, message_service, mock_message_repository, sample_context
    ):
        await message_service.list_messages(sample_context, {"status": "received"}, None, None, 0, 10)

        query = mock_message_repository.list.call_args.args[0]
        assert query.client_ids == ("dev-1", "dev-2")
        assert query.filters == {"status": "received"}
        assert query.sort_field == "timestamp"
        assert query.direction is SortDirection.DESCENDING

    @pytest.mark.asyncio
    async def test_device_listing_restricted_to_device(
        self, message_service, mock_message_repository, sample_context
    ):
        await message_service.list_messages_by_device(
            sample_context, "dev-2", None, "topic", "ASC", 5, 20
        )

        query = mock_message_repository.list.call_args.args[0]
        assert query.client_ids == ("dev-2",)
        assert query.sort_field == "topic"
        assert query.ascending
        assert (query.skip, query.limit) == (5, 20)

    @pytest.mark.asyncio
    async def test_lowercase_asc_sorts_descending(
        self, message_service, mock_message_repository, sample_context
    ):
        await message_service.list_messages(sample_context, None, "timestamp", "asc", 0, 10)

        query = mock_message_repository.list.call_args.args[0]
        assert query.direction is SortDirection.DESCENDING

    @pytest.mark.asyncio
    async def test_returns_page_and_total(
        self, message_service, mock_message_repository, sample_context, sample_message
    ):
        mock_message_repository.list = AsyncMock(return_value=([sample_message], 12))

        messages, total = await message_service.list_messages(
            sample_context, None, None, None, 0, 10
        )

        assert messages == [sample_message]
        assert total == 12


class TestConvenienceQueries:
    """Test topic and time range lookups."""

    @pytest.mark.asyncio
    async def test_topic_required(self, message_service, sample_context):
        with pytest.raises(ValidationException):
            await message_service.find_messages_by_topic(sample_context, "", 10)

    @pytest.mark.asyncio
    async def test_topic_restricted_to_grant(
        self, message_service, mock_message_repository, sample_context
    ):
        await message_service.find_messages_by_topic(sample_context, "a/b", 10)

        mock_message_repository.find_by_topic.assert_awaited_once_with(
            "a/b", 10, client_ids=frozenset({"dev-1", "dev-2"})
        )

    @pytest.mark.asyncio
    async def test_time_range_order(self, message_service, sample_context):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValidationException):
            await message_service.find_messages_by_time_range(
                sample_context, now, now - timedelta(hours=1), 10
            )


class TestAggregations:
    """Test aggregation nesting."""

    @pytest.mark.asyncio
    async def test_nested_by_channel_variable_period_timestamp(
        self, message_service, mock_aggregation_repository, sample_context
    ):
        ts = datetime(2026, 1, 15, 12, tzinfo=timezone.utc)
        buckets = [
            AggregatedData("dev-1", "ch1", "temp", "hour", ts, avg=20.0),
            AggregatedData("dev-1", "ch1", "temp", "hour", ts + timedelta(hours=1), avg=21.0),
            AggregatedData("dev-1", "ch2", "hum", "day", ts, avg=55.0),
        ]
        mock_aggregation_repository.find_by_client_id = AsyncMock(return_value=buckets)

        result = await message_service.get_aggregations_by_device(sample_context, "dev-1", period=None)

        assert result.client_id == "dev-1"
        assert set(result.aggregations) == {"ch1", "ch2"}
        hourly = result.aggregations["ch1"]["temp"]["hour"]
        assert list(hourly) == [ts.isoformat(), (ts + timedelta(hours=1)).isoformat()]
        assert result.aggregations["ch2"]["hum"]["day"][ts.isoformat()].avg == 55.0
        mock_aggregation_repository.find_by_client_id.assert_awaited_once_with("dev-1", period=None)
