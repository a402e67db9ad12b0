"""
Skenderaj Places Backend — API Routes Package
==============================================

Route Inventory:
    - places.py:  /api/places...            (CRUD, JSON and multipart variants)
    - upload.py:  /api/upload/image...      (standalone image upload/delete)
    - health.py:  GET /health               (service health check)

Routes stay thin: parse the request, call a service, return its result.
"""
