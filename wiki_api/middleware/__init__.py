# Middleware package init
"""
Wiki API — Middleware Package
===============================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    - Request ID: correlation ID in a ContextVar and the X-Request-ID header
    - Access Log: method, path, status, duration for every non-health request
"""
