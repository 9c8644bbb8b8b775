# Services package init
"""
Accounting Notes Backend — Services Layer
===========================================

What:  Business logic between routes (HTTP) and the repository (persistence).
How:   Services are built once by the app factory and stored on app.state;
       routes receive them through the dependencies in app.dependencies.

Service Inventory:
    - FileService: upload validation, storage and removal of note images
    - NoteService: orchestrates file storage and note persistence
    - ChapterCatalog: static chapter lists per paper
"""
