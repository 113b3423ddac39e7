# Routes package init
"""
NoteSmith Backend — API Routes Package
========================================

Route Inventory:
    - generate.py:  POST /api/notes/generate   (structure raw content)
                    GET  /api/purposes          (purpose catalog)
    - chat.py:      POST /api/chat              (assistant reply + action)
                    POST /api/images/analyze    (question about an image)
    - health.py:    GET  /health                (service health check)

Routes stay thin: parse the body, call NoteService, return its model.
"""
