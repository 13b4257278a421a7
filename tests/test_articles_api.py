"""
Wiki API — Article Endpoint Tests
===================================

What:  End-to-end tests of /articles and /articles/{title} over HTTP.
How:   HTTPX AsyncClient with ASGITransport against an app backed by a
       per-test SQLite file. Store failures are injected by patching
       ArticleStore methods.

What we test:
    ✅ Confirmation strings and plain-text bodies
    ✅ JSON and form-encoded bodies
    ✅ PUT replace vs PATCH merge semantics
    ✅ Item DELETE removes one document, collection DELETE removes all
    ✅ Store errors echoed by every handler, including PUT
    ✅ Malformed bodies rejected with 400
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from wiki_api.exceptions import DatabaseError
from wiki_api.services.article_store import ArticleStore


async def _post(client, **fields):
    response = await client.post("/articles", json=fields)
    assert response.status_code == 200
    assert response.text == "Successfully added a new article."
    return response


class TestCollectionEndpoint:
    """GET / POST / DELETE /articles."""

    @pytest.mark.asyncio
    async def test_list_empty(self, test_client):
        response = await test_client.get("/articles")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_post_then_get_item(self, test_client):
        response = await _post(test_client, title="Rome", content="A city.")
        assert response.headers["content-type"].startswith("text/plain")

        document = (await test_client.get("/articles/Rome")).json()

        assert document["title"] == "Rome"
        assert document["content"] == "A city."
        assert isinstance(document["_id"], int)

    @pytest.mark.asyncio
    async def test_post_form_encoded(self, test_client):
        response = await test_client.post(
            "/articles", data={"title": "Jack Bauer", "content": "Hero of 24."}
        )
        assert response.text == "Successfully added a new article."

        document = (await test_client.get("/articles/Jack Bauer")).json()
        assert document["content"] == "Hero of 24."

    @pytest.mark.asyncio
    async def test_post_absent_fields_stay_absent(self, test_client):
        await _post(test_client, title="No content", extra="ignored")

        document = (await test_client.get("/articles/No content")).json()

        assert "content" not in document
        assert "extra" not in document

    @pytest.mark.asyncio
    async def test_post_numeric_title_cast_to_string(self, test_client):
        await _post(test_client, title=42, content="answer")

        document = (await test_client.get("/articles/42")).json()

        assert document["title"] == "42"

    @pytest.mark.asyncio
    async def test_post_boolean_title_cast_to_string(self, test_client):
        await _post(test_client, title=True, content=False)

        document = (await test_client.get("/articles/true")).json()

        assert document["title"] == "true"
        assert document["content"] == "false"

    @pytest.mark.asyncio
    async def test_list_in_insertion_order(self, test_client):
        for title in ("A", "B", "C"):
            await _post(test_client, title=title, content=title.lower())

        documents = (await test_client.get("/articles")).json()

        assert [d["title"] for d in documents] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_delete_all(self, test_client):
        await _post(test_client, title="A")
        await _post(test_client, title="B")

        response = await test_client.delete("/articles")

        assert response.status_code == 200
        assert response.text == "Successfully deleted all articles."
        assert (await test_client.get("/articles")).json() == []


class TestItemEndpoint:
    """GET / PUT / PATCH / DELETE /articles/{title}."""

    @pytest.mark.asyncio
    async def test_get_missing_is_null(self, test_client):
        response = await test_client.get("/articles/Nowhere")

        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_put_replaces_whole_document(self, test_client, test_app):
        await _post(test_client, title="T", content="z")

        response = await test_client.put("/articles/T", json={"content": "x"})

        assert response.status_code == 200
        assert response.text == "Successfully updated article."
        assert (await test_client.get("/articles/T")).json() is None

        async with test_app.state.database.session_factory() as session:
            document = await ArticleStore(session).find_one({"content": "x"})
        assert document is not None
        assert "title" not in document

    @pytest.mark.asyncio
    async def test_put_with_new_title(self, test_client):
        await _post(test_client, title="Old", content="z")

        await test_client.put("/articles/Old", json={"title": "New", "content": "fresh"})

        assert (await test_client.get("/articles/Old")).json() is None
        document = (await test_client.get("/articles/New")).json()
        assert document["content"] == "fresh"

    @pytest.mark.asyncio
    async def test_put_unknown_title_still_confirms(self, test_client):
        response = await test_client.put("/articles/Ghost", json={"title": "Ghost"})

        assert response.text == "Successfully updated article."
        assert (await test_client.get("/articles")).json() == []

    @pytest.mark.asyncio
    async def test_patch_merges_fields(self, test_client):
        await _post(test_client, title="T", content="z")

        response = await test_client.patch("/articles/T", json={"content": "y"})

        assert response.text == "Successfully updated article."
        document = (await test_client.get("/articles/T")).json()
        assert document["title"] == "T"
        assert document["content"] == "y"

    @pytest.mark.asyncio
    async def test_patch_numeric_title_cast_to_string(self, test_client):
        await _post(test_client, title="T", content="z")

        response = await test_client.patch("/articles/T", json={"title": 7, "views": 3})

        assert response.text == "Successfully updated article."
        document = (await test_client.get("/articles/7")).json()
        assert document["title"] == "7"
        assert document["content"] == "z"
        assert document["views"] == 3

    @pytest.mark.asyncio
    async def test_patch_form_encoded(self, test_client):
        await _post(test_client, title="T", content="z")

        await test_client.patch("/articles/T", data={"content": "from a form"})

        assert (await test_client.get("/articles/T")).json()["content"] == "from a form"

    @pytest.mark.asyncio
    async def test_patch_empty_body_is_noop(self, test_client):
        await _post(test_client, title="T", content="z")

        response = await test_client.patch("/articles/T")

        assert response.text == "Successfully updated article."
        assert (await test_client.get("/articles/T")).json()["content"] == "z"

    @pytest.mark.asyncio
    async def test_delete_item_leaves_others(self, test_client):
        await _post(test_client, title="Rome", content="A city.")
        await _post(test_client, title="Paris", content="Another city.")

        response = await test_client.delete("/articles/Rome")

        assert response.text == "Successfully deleted document."
        assert (await test_client.get("/articles/Rome")).json() is None
        remaining = (await test_client.get("/articles")).json()
        assert [d["title"] for d in remaining] == ["Paris"]

    @pytest.mark.asyncio
    async def test_delete_item_duplicate_titles_removes_first(self, test_client):
        await _post(test_client, title="Dup", content="first")
        await _post(test_client, title="Dup", content="second")

        await test_client.delete("/articles/Dup")

        remaining = (await test_client.get("/articles")).json()
        assert [d["content"] for d in remaining] == ["second"]


class TestRequestBodies:
    """Body parsing and field cast errors."""

    @pytest.mark.asyncio
    async def test_malformed_json_rejected(self, test_client):
        response = await test_client.post(
            "/articles",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_json_array_rejected(self, test_client):
        response = await test_client.patch("/articles/T", json=["content", "x"])

        assert response.status_code == 400
        assert response.json()["details"]["received"] == "list"

    @pytest.mark.asyncio
    async def test_object_title_echoed_as_cast_error(self, test_client):
        response = await test_client.post("/articles", json={"title": {"nested": True}})

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == "store_error"
        assert body["name"] == "CastError"
        assert '"title"' in body["message"]
        assert (await test_client.get("/articles")).json() == []

    @pytest.mark.asyncio
    async def test_array_content_on_put_leaves_document(self, test_client):
        await _post(test_client, title="T", content="z")

        response = await test_client.put("/articles/T", json={"title": "T", "content": ["a", "b"]})

        assert response.json()["name"] == "CastError"
        assert (await test_client.get("/articles/T")).json()["content"] == "z"

    @pytest.mark.asyncio
    async def test_object_title_on_patch_echoed(self, test_client):
        await _post(test_client, title="T", content="z")

        response = await test_client.patch("/articles/T", json={"title": {"$ne": "x"}})

        assert response.json()["name"] == "CastError"
        assert (await test_client.get("/articles/T")).json()["title"] == "T"


class TestStoreErrorEcho:
    """Every handler echoes store errors in the same shape."""

    @staticmethod
    def _error(operation: str) -> DatabaseError:
        original = OperationalError("SQL", {}, Exception("disk I/O error"))
        return DatabaseError(operation=operation, original=original)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path, store_method, body",
        [
            ("GET", "/articles", "find_all", None),
            ("POST", "/articles", "insert_one", {"title": "T"}),
            ("DELETE", "/articles", "delete_many", None),
            ("GET", "/articles/T", "find_one", None),
            ("PUT", "/articles/T", "replace_one", {"content": "x"}),
            ("PATCH", "/articles/T", "update_one", {"content": "y"}),
            ("DELETE", "/articles/T", "delete_one", None),
        ],
    )
    async def test_store_error_echoed(self, test_client, method, path, store_method, body):
        with patch.object(
            ArticleStore, store_method, AsyncMock(side_effect=self._error(store_method))
        ):
            response = await test_client.request(method, path, json=body)

        assert response.status_code == 200
        payload = response.json()
        assert payload["error"] == "store_error"
        assert payload["name"] == "OperationalError"
        assert "disk I/O error" in payload["message"]
        assert payload["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_store_error_status_configurable(self, test_client, test_app):
        test_app.state.settings.store_error_status_code = 500

        with patch.object(
            ArticleStore, "find_all", AsyncMock(side_effect=self._error("find_all"))
        ):
            response = await test_client.get("/articles")

        assert response.status_code == 500
        assert response.json()["error"] == "store_error"
