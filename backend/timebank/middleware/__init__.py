# Middleware package init
"""
TimeBank Backend — Middleware Package
======================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Auth Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Auth Rate Limit: reject credential brute forcing before any work
    2. Request ID: correlation id for every log line of the request
    3. Logging: one access line with status and duration
"""
