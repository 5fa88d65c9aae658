"""
BoxIT Backend — Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route

    The request ID is assigned first, so every log line and error body,
    429 replies included, carries it. Rate limiting comes next and rejects
    before any route work is done.
"""
