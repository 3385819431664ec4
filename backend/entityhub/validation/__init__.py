"""
EntityHub Backend — Declarative Validation Package
====================================================

What:  Per-entity schemas (field → kind / nullability / empty-allowed) and the
       single routine that interprets them.
Why:   One engine, many schemas. Entities never carry hand-written validation code.

Module Inventory:
    - schema.py:  FieldSpec / EntitySchema / validate(), the engine
    - common.py:  rules for the list-request envelope (options, isCountOnly, select, populate)
    - blog.py:    BLOG_SCHEMA
    - task.py:    TASK_SCHEMA

Permissiveness:
    Unknown keys never fail validation. The store drops keys it has no column
    for, so new attributes can be sent before the schema learns about them.
"""
