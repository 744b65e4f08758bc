"""
MET API — Middleware Package
==============================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Auth] → [GZip] → [CORS] → Route

    1. Request ID first so every later log line can carry it
    2. Logging wraps everything below it, so its duration covers auth
    3. Auth attaches request.state.auth_model before the route runs
"""
