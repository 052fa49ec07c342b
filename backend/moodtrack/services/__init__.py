"""
MoodTrack Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the persistence layer.

Service Inventory:
    - password_service: bcrypt hash/verify on a dedicated thread pool
    - token_service:    HS256 JWT issue/verify (module of functions)
    - auth_service:     signup / signin workflows
    - checkin_service:  check-in creation and monthly, paginated listing
    - music_service:    meditation music generation call-through
"""
