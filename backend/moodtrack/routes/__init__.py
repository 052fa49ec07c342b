"""
MoodTrack Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:        POST /api/auth/signup, POST /api/auth/signin
    - checkins.py:    POST /api/checkin, GET /api/checkin
    - meditation.py:  POST /api/meditation/generate-music
                      GET  /api/meditation/music/{filename}
    - health.py:      GET  /health

Routes stay thin: parse the request, call a service, wrap the result in the
response envelope. Business rules live in moodtrack.services.
"""
