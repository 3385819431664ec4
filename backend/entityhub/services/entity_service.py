"""
EntityHub Backend — Entity Service (Generic Controller Logic)
===============================================================

What:  The twelve standard actions (add, bulkInsert, findAll, get, getCount,
       update, bulkUpdate, partialUpdate, softDelete, delete, deleteMany,
       softDeleteMany), written once and parameterized by an EntityDescriptor.
Why:   Controllers for different entities differ only by name, schema and
       table. One class replaces a copy of the same code per entity.
How:   Every action runs the same sequence:

    ┌──────────────┐   ┌────────────┐   ┌─────────────┐   ┌──────────────┐
    │ Precondition │──▶│  Schema    │──▶│ Stamp actor │──▶│ Data access  │
    │ (ids, arrays)│   │ validation │   │ (new dict)  │   │   facade     │
    └──────────────┘   └────────────┘   └─────────────┘   └──────────────┘
          │                  │                                    │
    BadRequestError    ValidationError             None / 0 → NotFoundError
                                                   failure  → DatabaseError

    The service raises; the global exception handlers (main.py) pick the
    response shape. Successful actions return the `data` payload.

Input Handling:
    Request bodies are never mutated. Actor stamping and protected-field
    stripping always build new dicts, so the caller's structures stay intact.

Ownership:
    `addedBy` is set once at creation. Updates strip any caller-supplied
    `addedBy` (and the immutable `_id` / `id`) before merging and stamp `updatedBy`.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from entityhub.entities import EntityDescriptor
from entityhub.exceptions import (
    BadRequestError,
    DatabaseError,
    EntityHubError,
    NotFoundError,
    ValidationError,
)
from entityhub.services.data_access import data_access
from entityhub.services.query import (
    build_page_options,
    by_id,
    by_ids,
    normalize_filter,
)
from entityhub.validation.schema import (
    SchemaKind,
    is_object_id,
    validate,
    validate_filter,
)

logger = logging.getLogger(__name__)

MISSING_ID_MESSAGE = "Insufficient request parameters! id is required."
INVALID_ID_MESSAGE = "invalid objectId."
INVALID_PARAMS_PREFIX = "Invalid values in parameters, "

# Fields an update may never write
PROTECTED_UPDATE_FIELDS = ("addedBy", "_id", "id")


def strip_protected(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of `payload` without creator / identifier fields."""
    return {k: v for k, v in payload.items() if k not in PROTECTED_UPDATE_FIELDS}


def require_id(record_id: Optional[str]) -> str:
    """
    Check a path identifier before any store call.

    Raises:
        BadRequestError: the identifier is missing
        ValidationError: the identifier is not 24 hex characters
    """
    if not record_id:
        raise BadRequestError(message=MISSING_ID_MESSAGE)
    if not is_object_id(record_id):
        raise ValidationError(message=INVALID_ID_MESSAGE, field="id")
    return record_id


def require_ids(ids: Any) -> List[str]:
    """
    Check the `ids` array of a bulk delete / soft delete.

    Raises:
        BadRequestError: not a list, or empty
        ValidationError: any element is not a 24-hex identifier
    """
    if not isinstance(ids, list) or len(ids) < 1:
        raise BadRequestError()
    invalid = [value for value in ids if not is_object_id(value)]
    if invalid:
        raise ValidationError(
            message=INVALID_ID_MESSAGE,
            field="ids",
            context={"invalid_ids": [str(value) for value in invalid]},
        )
    return list(ids)


def _object_body(body: Any) -> Dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError(message='"value" must be of type object')
    return body


class EntityService:
    """
    Controller dispatch for one entity.

    Each public method maps to one route. Arguments:
        db:        request-scoped AsyncSession
        body:      the JSON request body (dict), never mutated
        record_id: the `{id}` path parameter
        actor_id:  authenticated caller id, stamped into addedBy / updatedBy
    """

    def __init__(self, entity: EntityDescriptor):
        self.entity = entity

    # ══════════════════════════════════════════════════════════════════════
    # Create
    # ══════════════════════════════════════════════════════════════════════

    async def add(
        self, db: AsyncSession, body: Any, actor_id: Optional[str]
    ) -> Dict[str, Any]:
        """Create one record. Returns the created record."""
        payload = _object_body(body)
        self._check(payload, SchemaKind.CREATE)
        document = {**payload, "addedBy": actor_id}
        with self._store_errors("add"):
            return await data_access.create(db, self.entity.model, document)

    async def bulk_insert(
        self, db: AsyncSession, body: Any, actor_id: Optional[str]
    ) -> Dict[str, int]:
        """Create many records from `data: [...]`. Returns {"count": n}."""
        data = _object_body(body).get("data")
        if not isinstance(data, list) or len(data) < 1:
            raise BadRequestError()
        if any(not isinstance(item, dict) for item in data):
            raise BadRequestError(message="Every item in data must be an object.")

        errors = []
        for index, item in enumerate(data):
            result = validate(item, self.entity.schema, SchemaKind.CREATE)
            if not result.is_valid:
                errors.append(f"[{index}] {result.message}")
        if errors:
            raise ValidationError(message=INVALID_PARAMS_PREFIX + ", ".join(errors))

        documents = [{**item, "addedBy": actor_id} for item in data]
        with self._store_errors("bulkInsert"):
            count = await data_access.bulk_create(db, self.entity.model, documents)
        return {"count": count or 0}

    # ══════════════════════════════════════════════════════════════════════
    # Read
    # ══════════════════════════════════════════════════════════════════════

    async def find_all(self, db: AsyncSession, body: Any) -> Dict[str, Any]:
        """
        List records matching `query`, paginated by `options`.

        `isCountOnly: true` short-circuits to {"totalRecords": n}.
        An empty page raises NotFoundError.
        """
        body = _object_body(body)
        result = validate(body, self.entity.schema, SchemaKind.FILTER)
        if not result.is_valid:
            raise ValidationError(message=result.message)

        query = normalize_filter(body.get("query"))
        if body.get("isCountOnly"):
            with self._store_errors("findAll"):
                total = await data_access.count(db, self.entity.model, query)
            return {"totalRecords": total}

        options = build_page_options(
            body.get("options"), select=body.get("select"), populate=body.get("populate")
        )
        with self._store_errors("findAll"):
            page = await data_access.paginate(db, self.entity.model, query, options)
        if not page or not page.get("data"):
            raise NotFoundError(resource=self.entity.name)
        return page

    async def get(self, db: AsyncSession, record_id: Optional[str]) -> Dict[str, Any]:
        require_id(record_id)
        with self._store_errors("get"):
            found = await data_access.find_one(db, self.entity.model, by_id(record_id))
        if found is None:
            raise NotFoundError(resource=self.entity.name, resource_id=record_id)
        return found

    async def get_count(self, db: AsyncSession, body: Any) -> Dict[str, int]:
        """Count records matching `where`. Returns {"count": n}."""
        body = _object_body(body)
        result = validate(body, self.entity.schema, SchemaKind.FILTER)
        if not result.is_valid:
            raise ValidationError(message=result.message)
        where = normalize_filter(body.get("where"))
        with self._store_errors("getCount"):
            count = await data_access.count(db, self.entity.model, where)
        return {"count": count}

    # ══════════════════════════════════════════════════════════════════════
    # Update
    # ══════════════════════════════════════════════════════════════════════

    async def update(
        self, db: AsyncSession, record_id: Optional[str], body: Any, actor_id: Optional[str]
    ) -> Dict[str, Any]:
        return await self._update_by_id("update", db, record_id, body, actor_id)

    async def partial_update(
        self, db: AsyncSession, record_id: Optional[str], body: Any, actor_id: Optional[str]
    ) -> Dict[str, Any]:
        # A missing id returns early with a bad request; nothing is merged
        return await self._update_by_id("partialUpdate", db, record_id, body, actor_id)

    async def bulk_update(
        self, db: AsyncSession, body: Any, actor_id: Optional[str]
    ) -> Dict[str, int]:
        """
        Update every record matching `filter` with `data`. Returns {"count": n}.

        An absent filter matches every record.
        """
        body = _object_body(body)
        raw_filter = body.get("filter") or {}
        result = validate_filter(raw_filter, self.entity.schema, "filter")
        if not result.is_valid:
            raise ValidationError(message=result.message, field="filter")
        data = body.get("data")
        if not isinstance(data, dict):
            raise BadRequestError()
        self._check(data, SchemaKind.UPDATE)

        query = normalize_filter(raw_filter)
        changes = {**strip_protected(data), "updatedBy": actor_id}
        with self._store_errors("bulkUpdate"):
            count = await data_access.update_many(db, self.entity.model, query, changes)
        if not count:
            raise NotFoundError(resource=self.entity.name)
        return {"count": count}

    async def soft_delete(
        self, db: AsyncSession, record_id: Optional[str], actor_id: Optional[str]
    ) -> Dict[str, Any]:
        """
        Flag one record as deleted (isDeleted=true). The record stays in the store
        and stays visible to get; repeating the call succeeds again.
        """
        require_id(record_id)
        changes = {"isDeleted": True, "updatedBy": actor_id}
        with self._store_errors("softDelete"):
            updated = await data_access.update_one(db, self.entity.model, by_id(record_id), changes)
        if updated is None:
            raise NotFoundError(resource=self.entity.name, resource_id=record_id)
        return updated

    async def soft_delete_many(
        self, db: AsyncSession, body: Any, actor_id: Optional[str]
    ) -> Dict[str, int]:
        ids = require_ids(_object_body(body).get("ids"))
        changes = {"isDeleted": True, "updatedBy": actor_id}
        with self._store_errors("softDeleteMany"):
            count = await data_access.update_many(db, self.entity.model, by_ids(ids), changes)
        if not count:
            raise NotFoundError(resource=self.entity.name)
        return {"count": count}

    # ══════════════════════════════════════════════════════════════════════
    # Delete (physical)
    # ══════════════════════════════════════════════════════════════════════

    async def delete(self, db: AsyncSession, record_id: Optional[str]) -> Dict[str, Any]:
        require_id(record_id)
        with self._store_errors("delete"):
            deleted = await data_access.delete_one(db, self.entity.model, by_id(record_id))
        if deleted is None:
            raise NotFoundError(resource=self.entity.name, resource_id=record_id)
        return deleted

    async def delete_many(self, db: AsyncSession, body: Any) -> Dict[str, int]:
        ids = require_ids(_object_body(body).get("ids"))
        with self._store_errors("deleteMany"):
            count = await data_access.delete_many(db, self.entity.model, by_ids(ids))
        if not count:
            raise NotFoundError(resource=self.entity.name)
        return {"count": count}

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    async def _update_by_id(
        self,
        action: str,
        db: AsyncSession,
        record_id: Optional[str],
        body: Any,
        actor_id: Optional[str],
    ) -> Dict[str, Any]:
        require_id(record_id)
        payload = _object_body(body)
        self._check(payload, SchemaKind.UPDATE)
        changes = {**strip_protected(payload), "updatedBy": actor_id}
        with self._store_errors(action):
            updated = await data_access.update_one(db, self.entity.model, by_id(record_id), changes)
        if updated is None:
            raise NotFoundError(resource=self.entity.name, resource_id=record_id)
        return updated

    def _check(self, payload: Dict[str, Any], kind: SchemaKind) -> None:
        result = validate(payload, self.entity.schema, kind)
        if not result.is_valid:
            raise ValidationError(message=INVALID_PARAMS_PREFIX + result.message)

    @contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        """
        Wrap unexpected store failures in DatabaseError.

        Our own exceptions pass through untouched. Anything else is logged with
        its stack trace and re-raised as DatabaseError carrying the underlying
        message (the DBAPI message when SQLAlchemy wrapped one).
        """
        try:
            yield
        except EntityHubError:
            raise
        except Exception as e:
            underlying = getattr(e, "orig", None) or e
            logger.error(
                "%s.%s failed: %s", self.entity.name, action, underlying, exc_info=True
            )
            raise DatabaseError(
                message=str(underlying),
                context={
                    "entity": self.entity.name,
                    "action": action,
                    "error_type": type(e).__name__,
                },
            ) from e
