"""
EntityHub Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Access logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error envelopes
    2. Access logging: one line per request, tagged with the request ID
"""
