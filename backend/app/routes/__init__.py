# Routes package init
"""
HeartSmiles Backend — API Routes Package
==========================================

Route Inventory:
    - info.py:       GET /, GET /test, GET /api/test, favicons
    - health.py:     GET /api/health, GET /health
    - resources.py:  everything else → RouteTable → collaborator or 404

Routes stay THIN: the only decisions made here are which collaborator
gets the request, and those come from services/route_table.py.
"""
