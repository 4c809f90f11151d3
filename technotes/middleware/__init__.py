# Middleware package init
"""
TechNotes Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit rejects abusive clients before any other work
    2. Request ID sets the correlation id used by every later log line
    3. Logging records method, path, status and duration with that id
"""
