"""
Platebase — Middleware Package
================================

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

Request ID runs first so the access log line carries the request's ID.
"""
