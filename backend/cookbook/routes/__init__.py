# Routes package init
"""
Cookbook Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - recipes.py:  GET/POST      /api/recipes
                   GET/PUT/DELETE /api/recipes/{id}
    - uploads.py:  GET  /uploads/{name}   (stored recipe images)
    - health.py:   GET  /                 (welcome message)
                   GET  /health           (service health check)

Routes stay thin: extract request data, call RecipeService, pick the status
code. Business rules live in the services package.
"""
