"""
Wiki API — Article Route Handlers
===================================

What:  REST endpoints for the article collection and for single articles.
How:   Each handler builds a filter and/or document from the path parameter
       and the request body, awaits exactly one ArticleStore call, and returns
       the raw result or a fixed confirmation string.
Who:   Any HTTP client (forms posting x-www-form-urlencoded, or JSON clients).

Route Inventory:
    /articles           GET     all documents
                        POST    create one document from title/content
                        DELETE  delete every document
    /articles/{title}   GET     first document with this title (or null)
                        PUT     replace first match with title/content only
                        PATCH   merge the whole body into first match
                        DELETE  delete first match

Store errors propagate as DatabaseError and are echoed by the handler
registered in main.py, for every route including PUT. A title or content value
with no string form raises CastError and is echoed the same way.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wiki_api.database import get_db_session
from wiki_api.exceptions import CastError, ValidationError
from wiki_api.schemas.article import ArticleFields, ErrorResponse, StoreErrorResponse
from wiki_api.services.article_store import ArticleStore

logger = logging.getLogger(__name__)

ARTICLE_ADDED = "Successfully added a new article."
ARTICLES_DELETED = "Successfully deleted all articles."
ARTICLE_UPDATED = "Successfully updated article."
ARTICLE_DELETED = "Successfully deleted document."

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

router = APIRouter(tags=["Articles"])

# Shared OpenAPI documentation for error payloads
ERROR_RESPONSES = {
    400: {"description": "Malformed request body", "model": ErrorResponse},
    500: {"description": "Unexpected server error", "model": ErrorResponse},
}
STORE_ERROR_DOC = "Confirmation, or the echoed store error (StoreErrorResponse)"


# ══════════════════════════════════════════════════════════════════════════
# Dependencies & Body Parsing
# ══════════════════════════════════════════════════════════════════════════

def get_article_store(db: AsyncSession = Depends(get_db_session)) -> ArticleStore:
    """Provides an ArticleStore bound to the request's session."""
    return ArticleStore(db)


async def read_body(request: Request) -> Dict[str, Any]:
    """
    Parse the request body into a dict of fields.

    Content types:
        application/json (and +json)      → must decode to a JSON object
        x-www-form-urlencoded / multipart → flat string fields
        anything else, or an empty body   → {}

    Raises:
        ValidationError: malformed JSON, or JSON that is not an object
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type == "application/json" or content_type.endswith("+json"):
        raw = await request.body()
        if not raw.strip():
            return {}
        try:
            body = json.loads(raw)
        except ValueError:
            raise ValidationError(message="Request body is not valid JSON", field="body")
        if not isinstance(body, dict):
            raise ValidationError(
                message="Request body must be a JSON object",
                field="body",
                context={"received": type(body).__name__},
            )
        return body

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        # Uploaded files have no meaning for articles
        return {key: value for key, value in form.items() if isinstance(value, str)}

    return {}


def article_fields(body: Dict[str, Any], operation: str) -> Dict[str, Any]:
    """Build a new document from the body's title and content, omitting absent fields."""
    try:
        return ArticleFields.model_validate(body).to_document()
    except pydantic.ValidationError as e:
        # Refused the way the store refuses a bad cast: echoed, not a 400
        raise CastError(
            operation=operation,
            fields={".".join(str(p) for p in err["loc"]): err["msg"] for err in e.errors()},
        )


# ══════════════════════════════════════════════════════════════════════════
# Collection Endpoint: /articles
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/articles",
    responses={200: {"description": "Every stored article, store order"}, **ERROR_RESPONSES},
    summary="List all articles",
)
async def list_articles(
    store: ArticleStore = Depends(get_article_store),
) -> List[Dict[str, Any]]:
    return await store.find_all()


@router.post(
    "/articles",
    response_class=PlainTextResponse,
    responses={200: {"description": STORE_ERROR_DOC, "model": StoreErrorResponse}, **ERROR_RESPONSES},
    summary="Create an article",
    description="Creates one article from the body's title and content. Absent fields stay absent.",
)
async def create_article(
    request: Request,
    store: ArticleStore = Depends(get_article_store),
) -> str:
    document = article_fields(await read_body(request), "insert_one")
    article_id = await store.insert_one(document)
    logger.info("Created article %s (title=%r)", article_id, document.get("title"))
    return ARTICLE_ADDED


@router.delete(
    "/articles",
    response_class=PlainTextResponse,
    responses={200: {"description": STORE_ERROR_DOC, "model": StoreErrorResponse}, **ERROR_RESPONSES},
    summary="Delete every article",
)
async def delete_articles(
    store: ArticleStore = Depends(get_article_store),
) -> str:
    await store.delete_many({})
    return ARTICLES_DELETED


# ══════════════════════════════════════════════════════════════════════════
# Item Endpoint: /articles/{title}
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/articles/{title}",
    responses={200: {"description": "The first article with this title, or null"}, **ERROR_RESPONSES},
    summary="Get an article by title",
)
async def get_article(
    title: str,
    store: ArticleStore = Depends(get_article_store),
) -> Optional[Dict[str, Any]]:
    # No match is null with 200, not 404
    return await store.find_one({"title": title})


@router.put(
    "/articles/{title}",
    response_class=PlainTextResponse,
    responses={200: {"description": STORE_ERROR_DOC, "model": StoreErrorResponse}, **ERROR_RESPONSES},
    summary="Replace an article",
    description=(
        "Replaces the first article with this title by a document built only from the "
        "body's title and content. Fields left out of the body are removed."
    ),
)
async def replace_article(
    title: str,
    request: Request,
    store: ArticleStore = Depends(get_article_store),
) -> str:
    document = article_fields(await read_body(request), "replace_one")
    matched = await store.replace_one({"title": title}, document)
    logger.debug("PUT /articles/%s matched %d", title, matched)
    return ARTICLE_UPDATED


@router.patch(
    "/articles/{title}",
    response_class=PlainTextResponse,
    responses={200: {"description": STORE_ERROR_DOC, "model": StoreErrorResponse}, **ERROR_RESPONSES},
    summary="Update fields of an article",
    description="Overwrites only the fields present in the body; other fields keep their values.",
)
async def update_article(
    title: str,
    request: Request,
    store: ArticleStore = Depends(get_article_store),
) -> str:
    body = await read_body(request)
    # Other keys merge as sent; title/content get the same cast as POST and PUT
    fields = {**body, **article_fields(body, "update_one")}
    matched = await store.update_one({"title": title}, fields)
    logger.debug("PATCH /articles/%s matched %d", title, matched)
    return ARTICLE_UPDATED


@router.delete(
    "/articles/{title}",
    response_class=PlainTextResponse,
    responses={200: {"description": STORE_ERROR_DOC, "model": StoreErrorResponse}, **ERROR_RESPONSES},
    summary="Delete an article",
)
async def delete_article(
    title: str,
    store: ArticleStore = Depends(get_article_store),
) -> str:
    await store.delete_one({"title": title})
    return ARTICLE_DELETED
