"""
EntityHub Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP, services handle the CRUD rules, the facade handles SQL.

Service Inventory:
    - query.py:           Filter / query normalizer and page options
    - data_access.py:     DataAccessService: generic store primitives (singleton)
    - entity_service.py:  EntityService: the twelve actions, one instance per entity

Why services are separate from routes:
    1. Testability: services can be unit-tested without HTTP overhead
    2. One controller for every entity: routes are generated, logic is not copied
"""
