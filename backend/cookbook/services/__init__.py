# Services package init
"""
Cookbook Backend — Services Layer
===================================

What:  Business logic layer sitting between routes (HTTP) and the record store.
How:   Services accept decoded request data, apply the recipe rules, and
       return entities or raise application exceptions. Instances are built
       by the app factory and reached from routes through dependencies.

Service Inventory:
    - UploadService: image validation, storage, scoped cleanup and removal
    - validation: recipe payload decoding and pydantic validation helpers
    - RecipeService: orchestrates upload → validate → store for every route
"""
