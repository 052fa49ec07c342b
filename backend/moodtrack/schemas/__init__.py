"""
MoodTrack Backend — Pydantic Schemas
======================================

Request bodies and response payloads. Wire names are camelCase for the auth
payloads and snake_case for check-ins and meditation music.
"""
