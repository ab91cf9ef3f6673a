# Services package init
"""
TimeBank Backend — Services Layer
==================================

Business rules between the routes (HTTP) and the database.

Service Inventory:
    - AssetStore:       stored file naming, writing, removal
    - asset_links:      which rows still reference a stored file
    - ownership:        the guard every owner-only mutation runs
    - IdentityService:  registration, login, profiles
    - ServiceCatalog:   offered services
    - ResourceCatalog:  learning resources and their files
    - ContactService:   contact messages
    - description_service: canned service descriptions
"""
