# Routes package init
"""
Accounting Notes Backend — API Routes Package
===============================================

Route Inventory:
    - notes.py:     GET    /api/notes                      (all notes, newest first)
                    GET    /api/notes/{paper}/{chapterId}  (notes of one chapter)
                    POST   /api/notes                      (create with image upload)
                    DELETE /api/notes/{id}                 (delete note and images)
    - chapters.py:  GET    /api/chapters/{paper}           (static chapter list)
    - health.py:    GET    /health                         (service health check)

Routes stay thin: extract request data, call a service, return the result.
"""
