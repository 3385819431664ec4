"""
EntityHub Backend — Task Schema
================================

What:  Validation keys and properties of Task for create, update and filter requests.
"""

from entityhub.validation.schema import EntitySchema, FieldKind, FieldSpec

# Text and date fields accept null and "" (clients clear them that way)
_TEXT = FieldSpec(FieldKind.STRING, nullable=True, allow_empty=True)
_DATE = FieldSpec(FieldKind.DATE, nullable=True, allow_empty=True)

TASK_SCHEMA = EntitySchema(
    fields={
        "title": _TEXT,
        "description": _TEXT,
        "attachments": FieldSpec(FieldKind.ARRAY),
        "status": FieldSpec(FieldKind.INTEGER),
        "date": _DATE,
        "dueDate": _DATE,
        "completedBy": FieldSpec(FieldKind.OBJECT_ID, nullable=True, allow_empty=True),
        "completedAt": _DATE,
        "isActive": FieldSpec(FieldKind.BOOLEAN),
        "isDeleted": FieldSpec(FieldKind.BOOLEAN),
    }
)
