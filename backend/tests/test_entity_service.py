"""
EntityHub Backend — Entity Service Unit Tests
===============================================

What:  Tests for the generic controller actions (preconditions, validation,
       actor stamping, not-found and store-failure mapping).
How:   Uses a mock DB session and a patched data-access facade (no real DB).

What we test:
    ✅ Missing / malformed ids rejected before any store call
    ✅ Schema violations raise ValidationError with the parameters prefix
    ✅ addedBy stamped on create, stripped on update; updatedBy stamped
    ✅ None / 0 from the facade raise NotFoundError
    ✅ Unexpected store failures wrapped in DatabaseError
    ✅ Request bodies never mutated
"""

import copy
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from entityhub.entities import TASK
from entityhub.exceptions import (
    BadRequestError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from entityhub.services.entity_service import (
    INVALID_ID_MESSAGE,
    MISSING_ID_MESSAGE,
    EntityService,
    strip_protected,
)
from entityhub.services.query import Condition, by_id, by_ids

RECORD_ID = "65a1b2c3d4e5f60718293a4c"
FACADE = "entityhub.services.entity_service.data_access"


class TestCreateActions:

    def setup_method(self):
        self.service = EntityService(TASK)

    @pytest.mark.asyncio
    async def test_add_stamps_creator(self, mock_db_session, sample_task, actor_id):
        body = {**sample_task, "addedBy": "someone-else"}
        before = copy.deepcopy(body)
        with patch(FACADE) as facade:
            facade.create = AsyncMock(return_value={"id": RECORD_ID})
            result = await self.service.add(mock_db_session, body, actor_id)

        assert result == {"id": RECORD_ID}
        document = facade.create.await_args.args[2]
        assert document["addedBy"] == actor_id
        assert document["title"] == sample_task["title"]
        assert body == before

    @pytest.mark.asyncio
    async def test_add_invalid_payload(self, mock_db_session, actor_id):
        with patch(FACADE) as facade:
            facade.create = AsyncMock()
            with pytest.raises(ValidationError) as exc_info:
                await self.service.add(mock_db_session, {"status": "done"}, actor_id)

        assert exc_info.value.message == 'Invalid values in parameters, "status" must be a number'
        facade.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bulk_insert_counts(self, mock_db_session, sample_task, actor_id):
        with patch(FACADE) as facade:
            facade.bulk_create = AsyncMock(return_value=2)
            result = await self.service.bulk_insert(
                mock_db_session, {"data": [sample_task, {"title": "b"}]}, actor_id
            )

        assert result == {"count": 2}
        documents = facade.bulk_create.await_args.args[2]
        assert all(doc["addedBy"] == actor_id for doc in documents)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, {}, {"data": []}, {"data": "x"}])
    async def test_bulk_insert_requires_data_array(self, mock_db_session, body):
        with pytest.raises(BadRequestError):
            await self.service.bulk_insert(mock_db_session, body, None)

    @pytest.mark.asyncio
    async def test_bulk_insert_reports_item_index(self, mock_db_session):
        body = {"data": [{"title": "ok"}, {"status": "bad"}]}
        with pytest.raises(ValidationError, match=r'\[1\] "status" must be a number'):
            await self.service.bulk_insert(mock_db_session, body, None)


class TestReadActions:

    def setup_method(self):
        self.service = EntityService(TASK)

    @pytest.mark.asyncio
    async def test_get_missing_id(self, mock_db_session):
        with pytest.raises(BadRequestError) as exc_info:
            await self.service.get(mock_db_session, None)
        assert exc_info.value.message == MISSING_ID_MESSAGE

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.find_one = AsyncMock()
            with pytest.raises(ValidationError) as exc_info:
                await self.service.get(mock_db_session, "xyz")

        assert exc_info.value.message == INVALID_ID_MESSAGE
        facade.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_not_found(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.find_one = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await self.service.get(mock_db_session, RECORD_ID)

        facade.find_one.assert_awaited_once_with(mock_db_session, TASK.model, by_id(RECORD_ID))

    @pytest.mark.asyncio
    async def test_find_all_count_only(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.count = AsyncMock(return_value=4)
            facade.paginate = AsyncMock()
            result = await self.service.find_all(
                mock_db_session, {"query": {"status": [1, 2]}, "isCountOnly": True}
            )

        assert result == {"totalRecords": 4}
        assert facade.count.await_args.args[2] == (Condition("status", "in", (1, 2)),)
        facade.paginate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_all_empty_page(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.paginate = AsyncMock(return_value={"data": [], "paginator": {}})
            with pytest.raises(NotFoundError):
                await self.service.find_all(mock_db_session, {})

    @pytest.mark.asyncio
    async def test_find_all_invalid_filter(self, mock_db_session):
        with pytest.raises(ValidationError, match="query.status"):
            await self.service.find_all(mock_db_session, {"query": {"status": "open"}})

    @pytest.mark.asyncio
    async def test_get_count_zero_is_success(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.count = AsyncMock(return_value=0)
            result = await self.service.get_count(mock_db_session, {"where": {"isDeleted": True}})
        assert result == {"count": 0}


class TestUpdateActions:

    def setup_method(self):
        self.service = EntityService(TASK)

    def test_strip_protected(self):
        payload = {"addedBy": "x", "_id": "y", "id": "z", "title": "t"}
        assert strip_protected(payload) == {"title": "t"}
        assert "addedBy" in payload

    @pytest.mark.asyncio
    async def test_update_strips_creator_and_stamps_updater(self, mock_db_session, actor_id):
        body = {"title": "new", "addedBy": "65a1b2c3d4e5f60718293aff", "id": RECORD_ID}
        before = copy.deepcopy(body)
        with patch(FACADE) as facade:
            facade.update_one = AsyncMock(return_value={"id": RECORD_ID, "title": "new"})
            result = await self.service.update(mock_db_session, RECORD_ID, body, actor_id)

        assert result["title"] == "new"
        facade.update_one.assert_awaited_once_with(
            mock_db_session, TASK.model, by_id(RECORD_ID), {"title": "new", "updatedBy": actor_id}
        )
        assert body == before

    @pytest.mark.asyncio
    async def test_update_not_found(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.update_one = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await self.service.update(mock_db_session, RECORD_ID, {"title": "x"}, None)

    @pytest.mark.asyncio
    async def test_partial_update_missing_id_returns_early(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.update_one = AsyncMock()
            with pytest.raises(BadRequestError, match="id is required"):
                await self.service.partial_update(mock_db_session, "", {"title": "x"}, None)
        facade.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_partial_update_validates(self, mock_db_session):
        with pytest.raises(ValidationError, match="isActive"):
            await self.service.partial_update(mock_db_session, RECORD_ID, {"isActive": 1}, None)

    @pytest.mark.asyncio
    async def test_bulk_update(self, mock_db_session, actor_id):
        body = {"filter": {"status": 0}, "data": {"status": 1, "addedBy": "x"}}
        with patch(FACADE) as facade:
            facade.update_many = AsyncMock(return_value=3)
            result = await self.service.bulk_update(mock_db_session, body, actor_id)

        assert result == {"count": 3}
        facade.update_many.assert_awaited_once_with(
            mock_db_session,
            TASK.model,
            (Condition("status", "eq", 0),),
            {"status": 1, "updatedBy": actor_id},
        )

    @pytest.mark.asyncio
    async def test_bulk_update_requires_data_object(self, mock_db_session):
        with pytest.raises(BadRequestError):
            await self.service.bulk_update(mock_db_session, {"filter": {}}, None)

    @pytest.mark.asyncio
    async def test_bulk_update_nothing_matched(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.update_many = AsyncMock(return_value=0)
            with pytest.raises(NotFoundError):
                await self.service.bulk_update(mock_db_session, {"data": {"status": 1}}, None)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw_filter, message",
        [
            ({"_id": "not-24-hex"}, '"filter._id" does not match any of the allowed types'),
            ({"id": "not-24-hex"}, '"filter.id" does not match any of the allowed types'),
            ({"status": "abc"}, '"filter.status" does not match any of the allowed types'),
            ({"attachments": ["a.png"]}, '"filter.attachments" only supports the $exists operator'),
            ("status=0", '"filter" must be of type object'),
        ],
    )
    async def test_bulk_update_rejects_malformed_filter(self, mock_db_session, raw_filter, message):
        body = {"filter": raw_filter, "data": {"status": 2}}
        with patch(FACADE) as facade:
            facade.update_many = AsyncMock(return_value=1)
            with pytest.raises(ValidationError) as exc_info:
                await self.service.bulk_update(mock_db_session, body, None)

        assert exc_info.value.message == message
        assert exc_info.value.field == "filter"
        facade.update_many.assert_not_awaited()


class TestDeleteActions:

    def setup_method(self):
        self.service = EntityService(TASK)

    @pytest.mark.asyncio
    async def test_soft_delete_sets_flag(self, mock_db_session, actor_id):
        with patch(FACADE) as facade:
            facade.update_one = AsyncMock(return_value={"id": RECORD_ID, "isDeleted": True})
            result = await self.service.soft_delete(mock_db_session, RECORD_ID, actor_id)

        assert result["isDeleted"] is True
        facade.update_one.assert_awaited_once_with(
            mock_db_session, TASK.model, by_id(RECORD_ID),
            {"isDeleted": True, "updatedBy": actor_id},
        )

    @pytest.mark.asyncio
    async def test_delete_returns_removed_record(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.delete_one = AsyncMock(return_value={"id": RECORD_ID})
            assert await self.service.delete(mock_db_session, RECORD_ID) == {"id": RECORD_ID}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, {}, {"ids": []}, {"ids": RECORD_ID}])
    async def test_delete_many_requires_ids(self, mock_db_session, body):
        with pytest.raises(BadRequestError):
            await self.service.delete_many(mock_db_session, body)

    @pytest.mark.asyncio
    async def test_delete_many_rejects_malformed_ids(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.delete_many(mock_db_session, {"ids": [RECORD_ID, "nope"]})
        assert exc_info.value.message == INVALID_ID_MESSAGE
        assert exc_info.value.context["invalid_ids"] == ["nope"]

    @pytest.mark.asyncio
    async def test_soft_delete_many(self, mock_db_session, actor_id):
        with patch(FACADE) as facade:
            facade.update_many = AsyncMock(return_value=1)
            result = await self.service.soft_delete_many(
                mock_db_session, {"ids": [RECORD_ID]}, actor_id
            )

        assert result == {"count": 1}
        facade.update_many.assert_awaited_once_with(
            mock_db_session, TASK.model, by_ids([RECORD_ID]),
            {"isDeleted": True, "updatedBy": actor_id},
        )

    @pytest.mark.asyncio
    async def test_delete_many_nothing_matched(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.delete_many = AsyncMock(return_value=0)
            with pytest.raises(NotFoundError):
                await self.service.delete_many(mock_db_session, {"ids": [RECORD_ID]})


class TestMalformedIdentifiers:
    """Every by-identifier action rejects a malformed id before touching the store."""

    ACTIONS = {
        "get": lambda service, db, record_id: service.get(db, record_id),
        "update": lambda service, db, record_id: service.update(db, record_id, {"title": "x"}, None),
        "partial_update": lambda service, db, record_id: service.partial_update(
            db, record_id, {"status": 1}, None
        ),
        "soft_delete": lambda service, db, record_id: service.soft_delete(db, record_id, None),
        "delete": lambda service, db, record_id: service.delete(db, record_id),
    }

    def setup_method(self):
        self.service = EntityService(TASK)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", sorted(ACTIONS))
    @pytest.mark.parametrize("record_id", ["not-24-hex", RECORD_ID[:-1], RECORD_ID + "0"])
    async def test_malformed_id_never_reaches_store(self, mock_db_session, action, record_id):
        with patch(FACADE) as facade:
            facade.find_one = AsyncMock()
            facade.update_one = AsyncMock()
            facade.delete_one = AsyncMock()
            with pytest.raises(ValidationError) as exc_info:
                await self.ACTIONS[action](self.service, mock_db_session, record_id)

        assert exc_info.value.message == INVALID_ID_MESSAGE
        facade.find_one.assert_not_awaited()
        facade.update_one.assert_not_awaited()
        facade.delete_one.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", sorted(ACTIONS))
    async def test_missing_id_is_a_bad_request(self, mock_db_session, action):
        with pytest.raises(BadRequestError) as exc_info:
            await self.ACTIONS[action](self.service, mock_db_session, None)
        assert exc_info.value.message == MISSING_ID_MESSAGE


class TestStoreFailures:

    def setup_method(self):
        self.service = EntityService(TASK)

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, mock_db_session):
        with patch(FACADE) as facade:
            facade.find_one = AsyncMock(side_effect=RuntimeError("connection reset"))
            with pytest.raises(DatabaseError) as exc_info:
                await self.service.get(mock_db_session, RECORD_ID)

        assert exc_info.value.message == "connection reset"
        assert exc_info.value.context["action"] == "get"

    @pytest.mark.asyncio
    async def test_driver_message_surfaced(self, mock_db_session):
        error = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with patch(FACADE) as facade:
            facade.count = AsyncMock(side_effect=error)
            with pytest.raises(DatabaseError, match="database is locked"):
                await self.service.get_count(mock_db_session, {})
