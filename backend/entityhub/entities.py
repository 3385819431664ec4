"""
EntityHub Backend — Entity Registry
=====================================

What:  Descriptors binding an entity name to its schema and store table.
Why:   The controller, facade and router factory are generic; a descriptor is
       everything they need to serve one entity.
Who:   Read by main.py (router mounting), EntityService and the tests.

Adding an entity:
    1. Model in entityhub/models/<name>.py (inherit RecordMixin, Base)
    2. Schema in entityhub/validation/<name>.py
    3. One EntityDescriptor below + an entry in ENTITIES
"""

from dataclasses import dataclass
from typing import Dict, Type

from sqlalchemy import Table

from entityhub.database import Base
from entityhub.models.blog import Blog
from entityhub.models.task import Task
from entityhub.validation.blog import BLOG_SCHEMA
from entityhub.validation.schema import EntitySchema
from entityhub.validation.task import TASK_SCHEMA


@dataclass(frozen=True)
class EntityDescriptor:
    """
    Attributes:
        name:    Entity name used in logs and OpenAPI tags ("Task")
        model:   SQLAlchemy model whose table stores the records
        schema:  Declarative validation schema
        prefix:  URL prefix the generated router is mounted under
    """
    name: str
    model: Type[Base]
    schema: EntitySchema
    prefix: str

    @property
    def table(self) -> Table:
        return self.model.__table__


BLOG = EntityDescriptor(name="Blog", model=Blog, schema=BLOG_SCHEMA, prefix="/admin/blog")
TASK = EntityDescriptor(name="Task", model=Task, schema=TASK_SCHEMA, prefix="/device/api/v1/task")

ENTITIES: Dict[str, EntityDescriptor] = {
    "blog": BLOG,
    "task": TASK,
}
