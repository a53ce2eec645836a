# Middleware package init
"""
Quotes API — Middleware Package
=================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Preflight] → [CORS] → Route Handler

    1. Request ID: assigns X-Request-ID and the ContextVar used in log lines
    2. Logging: one access line per request with status and duration
    3. Preflight: answers any OPTIONS with an empty 204 before routing or auth
    4. CORS: Starlette's CORSMiddleware adds origin headers to real responses
"""
