"""
Trip Track Backend — Middleware Package
========================================

Request → [Request ID] → [Access Log] → [GZip] → [CORS] → handler

The request id is assigned first so the access log line and any error
body produced further in carry the same id.
"""
