# Middleware package init
"""
Accounting Notes Backend — Middleware Package
===============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logging and error bodies
    2. Logging: access log line with status and duration
    3. GZip / CORS: Starlette built-ins registered by the app factory
"""
