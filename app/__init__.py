"""
Skenderaj Places Backend — Application Package
===============================================

Layered the usual way:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← uniqueness, slugs, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database & Migrations (Storage)   │  ← async sessions, script runner
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
