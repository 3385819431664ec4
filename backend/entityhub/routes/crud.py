"""
EntityHub Backend — Generated CRUD Route Handlers
===================================================

What:  Builds the twelve standard routes for one entity descriptor.
Why:   Every entity exposes the same surface; generating the router from the
       descriptor keeps the HTTP layer as uniform as the service layer.
How:   `build_entity_router(entity)` returns an APIRouter mounted at
       `entity.prefix`; main.py calls it once per registered entity.

Route Table (relative to the prefix):
    POST    /create               add              body: record fields
    POST    /addBulk              bulkInsert       body: {"data": [...]}
    POST    /list                 findAll          body: {"query", "options", "isCountOnly"}
    GET     /{id}                 get
    POST    /count                getCount         body: {"where"}
    PUT     /update/{id}          update           body: record fields
    PUT     /updateBulk           bulkUpdate       body: {"filter", "data"}
    PUT     /partial-update/{id}  partialUpdate    body: record fields
    PUT     /softDelete/{id}      softDelete
    DELETE  /delete/{id}          delete
    POST    /deleteMany           deleteMany       body: {"ids": [...]}
    PUT     /softDeleteMany       softDeleteMany   body: {"ids": [...]}

Response shapes: see entityhub.responses (success here, errors via main.py handlers).
"""

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from entityhub.database import get_db_session
from entityhub.deps import get_actor_id
from entityhub.entities import EntityDescriptor
from entityhub.responses import success
from entityhub.schemas.common import ApiResponse
from entityhub.services.entity_service import EntityService

logger = logging.getLogger(__name__)

# Documented outcomes shared by every route
ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    400: {"description": "Missing id or required array", "model": ApiResponse},
    404: {"description": "No matching record", "model": ApiResponse},
    422: {"description": "Schema or identifier validation failed", "model": ApiResponse},
    500: {"description": "Store failure", "model": ApiResponse},
}

JsonBody = Optional[Dict[str, Any]]


def build_entity_router(
    entity: EntityDescriptor, service: Optional[EntityService] = None
) -> APIRouter:
    """
    Create the router for one entity.

    Args:
        entity:  descriptor (name, model, schema, prefix)
        service: EntityService to dispatch to (a new one for `entity` by default)
    """
    service = service or EntityService(entity)
    name = entity.name
    key = name.lower()
    router = APIRouter(prefix=entity.prefix, tags=[name], responses=ERROR_RESPONSES)

    @router.post(
        "/create",
        name=f"{key}_add",
        summary=f"Create a {name}",
        response_model=ApiResponse,
    )
    async def add(
        body: JsonBody = Body(default=None),
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.add(db, body, actor_id))

    @router.post(
        "/addBulk",
        name=f"{key}_bulk_insert",
        summary=f"Create many {name} records",
        response_model=ApiResponse,
    )
    async def bulk_insert(
        body: JsonBody = Body(default=None),
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.bulk_insert(db, body, actor_id))

    @router.post(
        "/list",
        name=f"{key}_find_all",
        summary=f"List {name} records with filters and pagination",
        response_model=ApiResponse,
    )
    async def find_all(
        body: JsonBody = Body(default=None),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.find_all(db, body))

    @router.post(
        "/count",
        name=f"{key}_count",
        summary=f"Count {name} records",
        response_model=ApiResponse,
    )
    async def get_count(
        body: JsonBody = Body(default=None),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.get_count(db, body))

    @router.put(
        "/updateBulk",
        name=f"{key}_bulk_update",
        summary=f"Update every {name} matching a filter",
        response_model=ApiResponse,
    )
    async def bulk_update(
        body: JsonBody = Body(default=None),
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.bulk_update(db, body, actor_id))

    @router.put(
        "/update/{id}",
        name=f"{key}_update",
        summary=f"Update a {name} by id",
        response_model=ApiResponse,
    )
    async def update(
        id: str,
        body: JsonBody = Body(default=None),
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.update(db, id, body, actor_id))

    @router.put(
        "/partial-update/{id}",
        name=f"{key}_partial_update",
        summary=f"Partially update a {name} by id",
        response_model=ApiResponse,
    )
    async def partial_update(
        id: str,
        body: JsonBody = Body(default=None),
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.partial_update(db, id, body, actor_id))

    @router.put(
        "/softDelete/{id}",
        name=f"{key}_soft_delete",
        summary=f"Flag a {name} as deleted",
        response_model=ApiResponse,
    )
    async def soft_delete(
        id: str,
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.soft_delete(db, id, actor_id))

    @router.put(
        "/softDeleteMany",
        name=f"{key}_soft_delete_many",
        summary=f"Flag many {name} records as deleted",
        response_model=ApiResponse,
    )
    async def soft_delete_many(
        body: JsonBody = Body(default=None),
        actor_id: Optional[str] = Depends(get_actor_id),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.soft_delete_many(db, body, actor_id))

    @router.delete(
        "/delete/{id}",
        name=f"{key}_delete",
        summary=f"Permanently delete a {name}",
        response_model=ApiResponse,
    )
    async def delete(
        id: str,
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.delete(db, id))

    @router.post(
        "/deleteMany",
        name=f"{key}_delete_many",
        summary=f"Permanently delete many {name} records",
        response_model=ApiResponse,
    )
    async def delete_many(
        body: JsonBody = Body(default=None),
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.delete_many(db, body))

    # Registered last so the literal paths above win over the id pattern
    @router.get(
        "/{id}",
        name=f"{key}_get",
        summary=f"Get a {name} by id",
        response_model=ApiResponse,
    )
    async def get(
        id: str,
        db: AsyncSession = Depends(get_db_session),
    ) -> JSONResponse:
        return success(await service.get(db, id))

    logger.debug("Built %d routes for %s at %s", len(router.routes), name, entity.prefix)
    return router
