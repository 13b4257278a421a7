"""
Wiki API — Article Store (Document Persistence Layer)
=======================================================

What:  Document-store operations over the `articles` table.
How:   Every method is one store call with one outcome. Filters are plain
       dicts of field → value, ANDed together; an empty filter matches every
       document. Writes commit before returning.
Who:   Called by the article route handlers, one method per handler.

Operations:
    find_all      → every document, store order
    find_one      → first document matching a filter, or None
    insert_one    → new document, returns its _id
    replace_one   → first match's body becomes exactly the given document
    update_one    → given fields are merged into the first match
    delete_one    → removes the first match
    delete_many   → removes every match

Store order is ascending id (insertion order). "First match" in the
single-document operations follows that order.

Error Handling:
    Any SQLAlchemyError is rolled back and re-raised as DatabaseError carrying
    the driver exception's name and message, which the app echoes to clients.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wiki_api.exceptions import DatabaseError
from wiki_api.models.article import Article

logger = logging.getLogger(__name__)

ID_FIELD = "_id"


class ArticleStore:
    """
    Document store bound to one request's database session.

    Stateless apart from the session; constructed per request by the
    get_article_store dependency.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Filters ───────────────────────────────────────────────────────────

    @staticmethod
    def _conditions(filter_dict: Dict[str, Any]) -> list:
        """Translate a field → value filter into SQLAlchemy WHERE clauses."""
        conditions = []
        for field, value in filter_dict.items():
            if field == ID_FIELD:
                conditions.append(Article.id == int(value))
                continue
            column = Article.document[field].as_string()
            if value is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == str(value))
        return conditions

    async def _first(self, filter_dict: Dict[str, Any], for_update: bool = False) -> Optional[Article]:
        query = select(Article).where(*self._conditions(filter_dict)).order_by(Article.id).limit(1)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _fail(self, operation: str, exc: SQLAlchemyError) -> DatabaseError:
        logger.error("Store operation %s failed: %s", operation, exc)
        await self.db.rollback()
        return DatabaseError(operation=operation, original=exc)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_all(self, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Every document matching the filter (all documents when omitted)."""
        try:
            query = select(Article).where(*self._conditions(filter_dict or {})).order_by(Article.id)
            result = await self.db.execute(query)
            return [article.to_document() for article in result.scalars().all()]
        except SQLAlchemyError as e:
            raise await self._fail("find_all", e)

    async def find_one(self, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """First matching document, or None when nothing matches."""
        try:
            article = await self._first(filter_dict)
            return article.to_document() if article is not None else None
        except SQLAlchemyError as e:
            raise await self._fail("find_one", e)

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert_one(self, document: Dict[str, Any]) -> int:
        """Persist a new document and return its store-assigned id."""
        try:
            article = Article(document=dict(document))
            self.db.add(article)
            await self.db.commit()
            logger.debug("Inserted article %s", article.id)
            return article.id
        except SQLAlchemyError as e:
            raise await self._fail("insert_one", e)

    async def replace_one(self, filter_dict: Dict[str, Any], document: Dict[str, Any]) -> int:
        """
        Replace the first match's body with `document`.

        Fields missing from `document` are gone afterwards. The store id is
        kept. Returns the number of matched documents (0 or 1).
        """
        try:
            article = await self._first(filter_dict, for_update=True)
            if article is None:
                return 0
            article.document = dict(document)
            await self.db.commit()
            return 1
        except SQLAlchemyError as e:
            raise await self._fail("replace_one", e)

    async def update_one(self, filter_dict: Dict[str, Any], fields: Dict[str, Any]) -> int:
        """
        Merge `fields` into the first match; other fields keep their values.

        "_id" is never overwritten. An empty update matches nothing and
        succeeds. Returns the number of matched documents (0 or 1).
        """
        fields = {k: v for k, v in fields.items() if k != ID_FIELD}
        if not fields:
            return 0
        try:
            article = await self._first(filter_dict, for_update=True)
            if article is None:
                return 0
            article.document = {**(article.document or {}), **fields}
            await self.db.commit()
            return 1
        except SQLAlchemyError as e:
            raise await self._fail("update_one", e)

    async def delete_one(self, filter_dict: Dict[str, Any]) -> int:
        """Delete the first match. Returns the number of deleted documents."""
        try:
            article = await self._first(filter_dict, for_update=True)
            if article is None:
                return 0
            await self.db.delete(article)
            await self.db.commit()
            return 1
        except SQLAlchemyError as e:
            raise await self._fail("delete_one", e)

    async def delete_many(self, filter_dict: Dict[str, Any]) -> int:
        """Delete every match; an empty filter clears the collection."""
        try:
            result = await self.db.execute(
                delete(Article)
                .where(*self._conditions(filter_dict))
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            logger.info("Deleted %d article(s)", result.rowcount)
            return result.rowcount
        except SQLAlchemyError as e:
            raise await self._fail("delete_many", e)
