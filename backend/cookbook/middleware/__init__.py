# Middleware package init
"""
Cookbook Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request context: ID + access log] → [GZip] → [CORS] → Route Handler
"""
