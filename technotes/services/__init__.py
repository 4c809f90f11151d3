# Services package init
"""
TechNotes Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services take a database session plus plain values, apply the note
       rules, and return response models or raise application exceptions.

Service Inventory:
    - NoteService:    list / create / update / delete notes
    - UserDirectory:  batch username lookup for note owners
"""
