"""
Unit tests for MongoMessageRepository.

Tests query translation and reads against an in-memory collection.
"""
import pytest
from datetime import datetime, timedelta, timezone

from bson import ObjectId

from message_mng.application.queries import ListQuery
from message_mng.domain.entities.message import MessageType
from message_mng.domain.exceptions import EntityNotFoundException, ValidationException
from message_mng.infrastructure.database.repositories import MongoMessageRepository
from message_mng.infrastructure.database.repositories.mongo_message_repository import (
    parse_object_id,
    translate_filter,
)
from tests.factories import MessageDocumentFactory


@pytest.fixture
def collection(mongo_database):
    return mongo_database["messages"]


@pytest.fixture
def repository(mongo_database):
    return MongoMessageRepository(mongo_database, "messages")


class TestTranslateFilter:
    """Test filter document construction."""

    def test_plain_fields_are_equality(self):
        query = ListQuery.build(filters={"topic": "a/b", "status": "received"})
        assert translate_filter(query) == {"topic": "a/b", "status": "received"}

    @pytest.mark.parametrize("key", ["_id", "id"])
    def test_identifier_keys_become_object_id(self, key):
        raw = "507f1f77bcf86cd799439011"
        query = ListQuery.build(filters={key: raw})
        assert translate_filter(query) == {"_id": ObjectId(raw)}

    def test_invalid_identifier_rejected(self):
        query = ListQuery.build(filters={"_id": "not-a-valid-id"})
        with pytest.raises(ValidationException) as exc_info:
            translate_filter(query)
        assert exc_info.value.message == "invalid ObjectID format in filter"

    def test_non_string_identifier_rejected(self):
        query = ListQuery.build(filters={"_id": 12})
        with pytest.raises(ValidationException):
            translate_filter(query)

    def test_client_restriction(self):
        query = ListQuery.build(client_ids=["dev-2", "dev-1", "dev-2"])
        assert translate_filter(query) == {"client_id": {"$in": ["dev-1", "dev-2"]}}


class TestParseObjectId:
    """Test identifier parsing."""

    def test_valid(self):
        assert parse_object_id("507f1f77bcf86cd799439011") == ObjectId("507f1f77bcf86cd799439011")

    @pytest.mark.parametrize("raw", ["not-a-valid-id", "", "507f1f77bcf86cd79943901z"])
    def test_invalid(self, raw):
        with pytest.raises(ValidationException):
            parse_object_id(raw)


class TestFindById:
    """Test single message lookup."""

    @pytest.mark.asyncio
    async def test_found(self, repository, collection):
        message_id = collection.insert(MessageDocumentFactory(topic="devices/dev-1/status"))

        message = await repository.find_by_id(message_id)

        assert message.id == message_id
        assert message.client_id == "dev-1"
        assert message.type == MessageType.STATUS

    @pytest.mark.asyncio
    async def test_not_found(self, repository):
        with pytest.raises(EntityNotFoundException):
            await repository.find_by_id(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_invalid_id_never_reaches_store(self, repository, collection):
        with pytest.raises(ValidationException):
            await repository.find_by_id("not-a-valid-id")
        assert collection.calls == []


class TestList:
    """Test filtered, sorted, paginated listing."""

    @pytest.mark.asyncio
    async def test_default_sort_is_newest_first(self, repository, collection):
        docs = MessageDocumentFactory.build_batch(3)
        for doc in docs:
            collection.insert(doc)

        messages, total = await repository.list(ListQuery.build())

        assert total == 3
        assert [m.timestamp for m in messages] == sorted(
            (d["timestamp"] for d in docs), reverse=True
        )

    @pytest.mark.asyncio
    async def test_ascending_sort(self, repository, collection):
        docs = MessageDocumentFactory.build_batch(3)
        for doc in docs:
            collection.insert(doc)

        messages, _ = await repository.list(ListQuery.build(sort_order="ASC"))

        assert [m.timestamp for m in messages] == sorted(d["timestamp"] for d in docs)

    @pytest.mark.asyncio
    async def test_skip_and_limit_with_total(self, repository, collection):
        for doc in MessageDocumentFactory.build_batch(12):
            collection.insert(doc)

        messages, total = await repository.list(ListQuery.build(skip=10, limit=10))

        assert total == 12
        assert len(messages) == 2

    @pytest.mark.asyncio
    async def test_client_restriction(self, repository, collection):
        collection.insert(MessageDocumentFactory(client_id="dev-1"))
        collection.insert(MessageDocumentFactory(client_id="dev-2"))
        collection.insert(MessageDocumentFactory(client_id="dev-3"))

        messages, total = await repository.list(ListQuery.build(client_ids=["dev-1", "dev-3"]))

        assert total == 2
        assert {m.client_id for m in messages} == {"dev-1", "dev-3"}

    @pytest.mark.asyncio
    async def test_identifier_filter(self, repository, collection):
        wanted = collection.insert(MessageDocumentFactory())
        collection.insert(MessageDocumentFactory())

        messages, total = await repository.list(ListQuery.build(filters={"id": wanted}))

        assert total == 1
        assert messages[0].id == wanted

    @pytest.mark.asyncio
    async def test_invalid_identifier_filter_never_reaches_store(self, repository, collection):
        with pytest.raises(ValidationException):
            await repository.list(ListQuery.build(filters={"_id": "not-a-valid-id"}))
        assert collection.calls == []


class TestConvenienceQueries:
    """Test topic, client and time range lookups."""

    @pytest.mark.asyncio
    async def test_find_by_topic_restricted(self, repository, collection):
        collection.insert(MessageDocumentFactory(client_id="dev-1", topic="shared/topic"))
        collection.insert(MessageDocumentFactory(client_id="dev-2", topic="shared/topic"))

        messages = await repository.find_by_topic("shared/topic", 10, client_ids=["dev-1"])

        assert [m.client_id for m in messages] == ["dev-1"]

    @pytest.mark.asyncio
    async def test_find_by_client_id_limit(self, repository, collection):
        for doc in MessageDocumentFactory.build_batch(5, client_id="dev-1"):
            collection.insert(doc)

        messages = await repository.find_by_client_id("dev-1", 3)

        assert len(messages) == 3
        assert messages[0].timestamp > messages[-1].timestamp

    @pytest.mark.asyncio
    async def test_find_by_time_range(self, repository, collection):
        start = datetime(2030, 1, 1, tzinfo=timezone.utc)
        for minutes in (0, 30, 90):
            collection.insert(MessageDocumentFactory(timestamp=start + timedelta(minutes=minutes)))

        messages = await repository.find_by_time_range(start, start + timedelta(hours=1), 10)

        assert [m.timestamp for m in messages] == [
            start + timedelta(minutes=30),
            start,
        ]
