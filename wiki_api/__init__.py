"""
Wiki API — Application Package
================================

A RESTful CRUD service for wiki articles stored as schemaless documents.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← /articles, /articles/{title}, /health
    ├─────────────────────────────────────┤
    │     ArticleStore (Persistence)      │  ← find / insert / replace / update / delete
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy JSON document + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Connections)       │  ← Async engine and sessions per app
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
