"""
Wiki API — Article SQLAlchemy Model
=====================================

What:  ORM model for the `articles` table, a schemaless document collection.
How:   Each row is one document: a store-assigned integer id plus a JSON body.
       The body is JSONB on PostgreSQL and JSON text on SQLite.
Who:   Used by ArticleStore for every CRUD operation.

Table Design:
    - id: Autoincrementing key; defines store order (insertion order) and is
      exposed to clients as "_id"
    - document: Arbitrary JSON object. "title" and "content" are conventional
      fields but neither is required nor unique.
    - No secondary indexes.
"""

from typing import Any, Dict

from sqlalchemy import JSON, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from wiki_api.database import Base


class Article(Base):
    """
    One stored article document.

    Lifecycle:
        1. Inserted by POST /articles
        2. Replaced by PUT or merged by PATCH /articles/{title}
        3. Deleted by DELETE /articles/{title} or DELETE /articles
    """

    __tablename__ = "articles"
    # Keep ids monotonic on SQLite so deleted ids are never reused
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Store-assigned identifier, returned to clients as _id",
    )

    # Mutations always assign a new dict; in-place edits are not tracked.
    document: Mapped[Dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
        comment="Schemaless document body (title, content, any PATCHed fields)",
    )

    def to_document(self) -> Dict[str, Any]:
        """Document as returned to clients: store id first, then the body fields."""
        return {"_id": self.id, **(self.document or {})}

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, title={(self.document or {}).get('title')!r})>"
