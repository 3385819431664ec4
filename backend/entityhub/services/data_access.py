"""
EntityHub Backend — Generic Data-Access Facade
================================================

What:  Entity-agnostic store operations: create, bulk create, find one,
       paginate, count, update one / many, delete one / many.
Why:   Every entity needs the same nine primitives. Writing them once over
       `Model.__table__` means a new entity gets all of them for free.
How:   Documents are plain dicts keyed by column name (`_id`, `dueDate`, ...).
       A normalized FilterQuery (services/query.py) is translated into a SQL
       WHERE clause here, the only place that knows the store's query language.
Who:   Called by EntityService; receives the request-scoped AsyncSession.

Stateless:
    The facade holds no state between calls. Every call is parameterized by
    (session, model, query, payload); transactions are owned by the session
    dependency (commit on success, rollback on error).

Store semantics:
    - Keys without a column are dropped on write (validation stays permissive)
    - `_id` is generated on insert and never written by updates
    - createdAt / updatedAt are set on insert, updatedAt refreshed on update
    - Date columns accept ISO strings / epoch ms and store datetimes
    - Filters on unknown fields match nothing
    - updateOne / deleteOne act on the first match in identifier order
    - Records leave the store with `_id` renamed to `id`

Supported comparison operators (object filter values):
    $eq $ne $gt $gte $lt $lte $in $nin $exists $regex (+ $options "i")
    Anything else raises QueryTranslationError, which surfaces as a store failure.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Type

from sqlalchemy import (
    JSON,
    DateTime,
    Table,
    and_,
    delete,
    false,
    func,
    insert,
    not_,
    or_,
    select,
    true,
    update,
)
from sqlalchemy.ext.asyncio import AsyncSession

from entityhub.database import Base
from entityhub.models.mixins import new_object_id
from entityhub.services.query import Condition, FilterQuery, PageOptions
from entityhub.validation.schema import coerce_date

logger = logging.getLogger(__name__)

ID_FIELD = "_id"
TIMESTAMP_FIELDS = ("createdAt", "updatedAt")
SUPPORTED_OPERATORS = {
    "$eq", "$ne", "$gt", "$gte", "$lt", "$lte",
    "$in", "$nin", "$exists", "$regex", "$options",
}


class QueryTranslationError(ValueError):
    """A filter could not be expressed in the store's query language."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataAccessService:
    """
    Store primitives parameterized per call by the entity model.

    Return conventions:
        single-record operations → document dict, or None when nothing matched
        multi-record operations  → number of affected records
        paginate                 → {"data": [...], "paginator": {...}}
    """

    # ══════════════════════════════════════════════════════════════════════
    # Create
    # ══════════════════════════════════════════════════════════════════════

    async def create(
        self, db: AsyncSession, model: Type[Base], document: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Insert one record and return it as stored (with generated `id`)."""
        table = model.__table__
        row = self._prepare_insert(table, document, _utcnow())
        await db.execute(insert(table).values(row))
        logger.info("Created %s record %s", table.name, row[ID_FIELD])
        return await self._fetch(db, table, row[ID_FIELD])

    async def bulk_create(
        self, db: AsyncSession, model: Type[Base], documents: Iterable[Dict[str, Any]]
    ) -> int:
        """
        Insert many records in ONE batched statement.

        Why executemany: one round trip instead of a call per record; atomicity
        is the session transaction's.
        """
        table = model.__table__
        now = _utcnow()
        rows = [self._prepare_insert(table, document, now) for document in documents]
        if not rows:
            return 0
        await db.execute(insert(table), rows)
        logger.info("Bulk created %d %s records", len(rows), table.name)
        return len(rows)

    # ══════════════════════════════════════════════════════════════════════
    # Read
    # ══════════════════════════════════════════════════════════════════════

    async def find_one(
        self, db: AsyncSession, model: Type[Base], query: FilterQuery
    ) -> Optional[Dict[str, Any]]:
        table = model.__table__
        stmt = (
            select(table)
            .where(self._where(table, query))
            .order_by(table.c[ID_FIELD])
            .limit(1)
        )
        row = (await db.execute(stmt)).mappings().first()
        return self._to_document(row) if row is not None else None

    async def count(self, db: AsyncSession, model: Type[Base], query: FilterQuery) -> int:
        table = model.__table__
        stmt = select(func.count()).select_from(table).where(self._where(table, query))
        return int((await db.execute(stmt)).scalar_one())

    async def paginate(
        self,
        db: AsyncSession,
        model: Type[Base],
        query: FilterQuery,
        options: PageOptions,
    ) -> Dict[str, Any]:
        """
        Return one page of matching records plus paging metadata.

        Paginator fields:
            itemCount    total matches
            perPage      page size (total matches when pagination is off)
            pageCount    ceil(itemCount / perPage), at least 1
            currentPage  1-based page number
            slNo         serial number of the first record on the page
            hasPrevPage / hasNextPage, prev / next page numbers (or None)
        """
        table = model.__table__
        where = self._where(table, query)
        total = await self.count(db, model, query)

        stmt = (
            select(*self._columns(table, options))
            .where(where)
            .order_by(*self._order_by(table, options))
        )

        if options.pagination:
            limit = max(options.limit, 1)
            if options.offset is not None:
                offset = options.offset
            else:
                offset = (max(options.page, 1) - 1) * limit
            stmt = stmt.offset(offset).limit(limit)
            current_page = offset // limit + 1
            page_count = math.ceil(total / limit) or 1
        else:
            limit = total
            offset = 0
            current_page = 1
            page_count = 1

        if options.populate:
            logger.debug("populate %s ignored for %s: no relations", options.populate, table.name)

        rows = (await db.execute(stmt)).mappings().all()
        has_prev = current_page > 1
        has_next = current_page < page_count
        return {
            "data": [self._to_document(row) for row in rows],
            "paginator": {
                "itemCount": total,
                "perPage": limit,
                "pageCount": page_count,
                "currentPage": current_page,
                "slNo": offset + 1,
                "hasPrevPage": has_prev,
                "hasNextPage": has_next,
                "prev": current_page - 1 if has_prev else None,
                "next": current_page + 1 if has_next else None,
            },
        }

    # ══════════════════════════════════════════════════════════════════════
    # Update
    # ══════════════════════════════════════════════════════════════════════

    async def update_one(
        self,
        db: AsyncSession,
        model: Type[Base],
        query: FilterQuery,
        changes: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """Update the first matching record; return it after the update, or None."""
        table = model.__table__
        target = await self._first_id(db, table, query)
        if target is None:
            return None
        values = self._prepare_changes(table, changes)
        await db.execute(update(table).where(table.c[ID_FIELD] == target).values(values))
        logger.info("Updated %s record %s", table.name, target)
        return await self._fetch(db, table, target)

    async def update_many(
        self,
        db: AsyncSession,
        model: Type[Base],
        query: FilterQuery,
        changes: Dict[str, Any],
    ) -> int:
        """Update every matching record in one statement; return the matched count."""
        table = model.__table__
        values = self._prepare_changes(table, changes)
        result = await db.execute(
            update(table).where(self._where(table, query)).values(values)
        )
        logger.info("Updated %d %s records", result.rowcount, table.name)
        return result.rowcount

    # ══════════════════════════════════════════════════════════════════════
    # Delete
    # ══════════════════════════════════════════════════════════════════════

    async def delete_one(
        self, db: AsyncSession, model: Type[Base], query: FilterQuery
    ) -> Optional[Dict[str, Any]]:
        """Physically remove the first matching record; return it as it was, or None."""
        table = model.__table__
        document = await self.find_one(db, model, query)
        if document is None:
            return None
        await db.execute(delete(table).where(table.c[ID_FIELD] == document["id"]))
        logger.info("Deleted %s record %s", table.name, document["id"])
        return document

    async def delete_many(self, db: AsyncSession, model: Type[Base], query: FilterQuery) -> int:
        table = model.__table__
        result = await db.execute(delete(table).where(self._where(table, query)))
        logger.info("Deleted %d %s records", result.rowcount, table.name)
        return result.rowcount

    # ══════════════════════════════════════════════════════════════════════
    # Document ↔ Row
    # ══════════════════════════════════════════════════════════════════════

    def _prepare_insert(
        self, table: Table, document: Dict[str, Any], now: datetime
    ) -> Dict[str, Any]:
        """Full row for insert: every column present so batched rows share one shape."""
        row: Dict[str, Any] = {}
        for column in table.columns:
            name = column.name
            if name == ID_FIELD:
                row[name] = new_object_id()
            elif name in TIMESTAMP_FIELDS:
                row[name] = now
            elif name in document:
                row[name] = self._cast(column, document[name])
            elif column.default is not None and column.default.is_scalar:
                row[name] = column.default.arg
            else:
                row[name] = None
        return row

    def _prepare_changes(self, table: Table, changes: Dict[str, Any]) -> Dict[str, Any]:
        values = {
            name: self._cast(table.c[name], value)
            for name, value in changes.items()
            if name in table.c and name not in (ID_FIELD, "createdAt")
        }
        values["updatedAt"] = _utcnow()
        return values

    @staticmethod
    def _cast(column, value: Any) -> Any:
        if isinstance(column.type, DateTime):
            return coerce_date(value)
        return value

    @staticmethod
    def _to_document(row) -> Dict[str, Any]:
        document = dict(row)
        if ID_FIELD in document:
            document = {"id": document.pop(ID_FIELD), **document}
        return document

    async def _fetch(self, db: AsyncSession, table: Table, record_id: str) -> Optional[Dict[str, Any]]:
        stmt = select(table).where(table.c[ID_FIELD] == record_id)
        row = (await db.execute(stmt)).mappings().first()
        return self._to_document(row) if row is not None else None

    async def _first_id(self, db: AsyncSession, table: Table, query: FilterQuery) -> Optional[str]:
        stmt = (
            select(table.c[ID_FIELD])
            .where(self._where(table, query))
            .order_by(table.c[ID_FIELD])
            .limit(1)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    # ══════════════════════════════════════════════════════════════════════
    # Selection & Ordering
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _columns(table: Table, options: PageOptions) -> List[Any]:
        if options.select:
            names = [ID_FIELD] + [n for n in options.select if n != ID_FIELD and n in table.c]
            return [table.c[name] for name in names]
        if options.exclude:
            return [c for c in table.columns if c.name not in options.exclude]
        return list(table.columns)

    @staticmethod
    def _order_by(table: Table, options: PageOptions) -> List[Any]:
        order = []
        for name, descending in options.sort:
            if name not in table.c:
                continue
            column = table.c[name]
            order.append(column.desc() if descending else column.asc())
        # Identifier tiebreaker keeps pages stable
        order.append(table.c[ID_FIELD].asc())
        return order

    # ══════════════════════════════════════════════════════════════════════
    # Filter Translation
    # ══════════════════════════════════════════════════════════════════════

    def _where(self, table: Table, query: FilterQuery):
        if not query:
            return true()
        return and_(*(self._condition(table, condition) for condition in query))

    def _condition(self, table: Table, condition: Condition):
        if condition.op in ("and", "or", "nor"):
            clauses = [self._where(table, clause) for clause in condition.value]
            if condition.op == "and":
                return and_(*clauses)
            if condition.op == "or":
                return or_(*clauses)
            return not_(or_(*clauses))

        if condition.field not in table.c:
            # Unknown field: nothing can match it
            return false()
        column = table.c[condition.field]

        if condition.op == "expr":
            return self._expression(column, condition.value)
        if isinstance(column.type, JSON):
            raise QueryTranslationError(
                f"Array field '{column.name}' only supports the $exists operator"
            )
        if condition.op == "in":
            return self._in(column, condition.value)
        return self._equals(column, condition.value)

    def _equals(self, column, value: Any):
        if value is None:
            return column.is_(None)
        return column == self._cast(column, value)

    def _in(self, column, values: Iterable[Any]):
        values = list(values)
        present = [self._cast(column, v) for v in values if v is not None]
        clause = column.in_(present)
        if len(present) != len(values):
            clause = or_(clause, column.is_(None))
        return clause

    def _expression(self, column, operators: Dict[str, Any]):
        """Translate a comparison object such as {"$gte": 1, "$lt": 5} onto a column."""
        if not operators:
            return false()
        unknown = set(operators) - SUPPORTED_OPERATORS
        if unknown:
            raise QueryTranslationError(f"unknown operator: {sorted(unknown)[0]}")
        if isinstance(column.type, JSON) and set(operators) != {"$exists"}:
            raise QueryTranslationError(
                f"Array field '{column.name}' only supports the $exists operator"
            )

        clauses = []
        for operator, operand in operators.items():
            if operator == "$options":
                continue
            if operator == "$eq":
                clauses.append(self._equals(column, operand))
            elif operator == "$ne":
                if operand is None:
                    clauses.append(column.isnot(None))
                else:
                    clauses.append(or_(column != self._cast(column, operand), column.is_(None)))
            elif operator == "$gt":
                clauses.append(column > self._cast(column, operand))
            elif operator == "$gte":
                clauses.append(column >= self._cast(column, operand))
            elif operator == "$lt":
                clauses.append(column < self._cast(column, operand))
            elif operator == "$lte":
                clauses.append(column <= self._cast(column, operand))
            elif operator == "$in":
                clauses.append(self._in(column, self._operand_list(operator, operand)))
            elif operator == "$nin":
                clauses.append(not_(self._in(column, self._operand_list(operator, operand))))
            elif operator == "$exists":
                clauses.append(column.isnot(None) if operand else column.is_(None))
            elif operator == "$regex":
                pattern = str(operand)
                if "i" in str(operators.get("$options", "")):
                    pattern = "(?i)" + pattern
                clauses.append(column.regexp_match(pattern))
        return and_(true(), *clauses)

    @staticmethod
    def _operand_list(operator: str, operand: Any) -> List[Any]:
        if not isinstance(operand, list):
            raise QueryTranslationError(f"{operator} needs an array")
        return operand


# ── Singleton Instance ────────────────────────────────────────────────────
data_access = DataAccessService()
