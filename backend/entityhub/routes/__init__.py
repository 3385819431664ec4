"""
EntityHub Backend — API Routes Package
========================================

Route Inventory:
    - crud.py:    twelve CRUD routes per registered entity, generated from its descriptor
                  Blog → /admin/blog/...        Task → /device/api/v1/task/...
    - health.py:  GET /health (service health check)

Design Principle:
    Routes are THIN: they pull the body, path id and caller id, call the
    EntityService action, and wrap the result with responses.success().
    Failures are raised by the service and shaped by the global handlers.
"""
