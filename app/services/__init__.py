"""
Skenderaj Places Backend — Services Layer
==========================================

Service Inventory:
    - MediaHost (abstract): interface for image hosting providers
    - CloudinaryService: concrete implementation over the Cloudinary REST API
    - ImageService: upload validation, batch upload and compensation
    - PlaceService: CRUD with constraint-first uniqueness and slug derivation
    - slugify: name → URL slug
"""
