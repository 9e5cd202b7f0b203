# Middleware package init
"""
Medication API - Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: Generate correlation ID for logging and tracing
    2. Logging: Log method, path, status and duration with the request ID
    3. CORS: FastAPI's CORSMiddleware (answers preflight, adds headers),
       only when CORS_ENABLED is set

    The order is reversed for responses:
    Response ← [Request ID] ← [Logging] ← [CORS] ← Route Handler
"""
