# Models package init
"""
TechNotes Backend — ORM Models
================================

    - user.py:  User (read-only here; owned by the account subsystem)
    - note.py:  Note (the managed resource)
"""
