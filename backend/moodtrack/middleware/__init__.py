"""
MoodTrack Backend — Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - request_id.py: assigns X-Request-ID and stores it in a ContextVar so
      log lines and error bodies carry it
    - logging.py:    one access log line per request, level by status code
"""
