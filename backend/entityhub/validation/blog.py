"""
EntityHub Backend — Blog Schema
================================

What:  Validation keys and properties of Blog for create, update and filter requests.
"""

from entityhub.validation.schema import EntitySchema, FieldKind, FieldSpec

_TEXT = FieldSpec(FieldKind.STRING, nullable=True, allow_empty=True)

BLOG_SCHEMA = EntitySchema(
    fields={
        "title": _TEXT,
        "alternativeHeadline": _TEXT,
        "image": _TEXT,
        "publishDate": FieldSpec(FieldKind.DATE, nullable=True, allow_empty=True),
        "author": FieldSpec(FieldKind.OBJECT_ID, nullable=True, allow_empty=True),
        "articleBody": _TEXT,
        "isActive": FieldSpec(FieldKind.BOOLEAN),
        "isDeleted": FieldSpec(FieldKind.BOOLEAN),
    }
)
