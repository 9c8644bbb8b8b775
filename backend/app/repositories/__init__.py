# Repositories package init
"""
Accounting Notes Backend — Persistence Layer
==============================================

What:  Database access objects, one per aggregate.
How:   Each repository is constructed around the request's AsyncSession and
       converts missing rows and driver failures into application exceptions.

Repository Inventory:
    - NoteRepository: insert, list, filter, find and delete notes
"""
