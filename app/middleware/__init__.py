"""
Skenderaj Places Backend — Middleware Package
==============================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    The request id is assigned first so the access log line and any error
    body of the same request carry it.
"""
