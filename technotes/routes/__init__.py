# Routes package init
"""
TechNotes Backend — API Routes Package
========================================

Route Inventory:
    - notes.py:   GET    /api/notes   (list notes with owner usernames)
                  POST   /api/notes   (create)
                  PATCH  /api/notes   (full-replacement update)
                  DELETE /api/notes   (delete by id in JSON body)
    - health.py:  GET    /health      (service health check)

Routes are thin: they read the body, call NoteService, and return its result.
Status codes for failures come from the exception handlers in main.py.
"""
