"""
Accounting Notes Backend — Notes API Tests
============================================

What:  End-to-end tests for the /api/notes endpoints, static /uploads
       serving and /health.
How:   HTTPX AsyncClient against the real app with a temporary SQLite
       database and upload directory (see conftest.test_client).
"""

import os
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.exceptions import PayloadTooLargeError
from app.main import create_app
from app.routes.notes import read_uploads
from app.schemas.note import MAX_CHAPTER_ID

NOTE_FORM = {
    "title": "Bank reconciliation",
    "authorName": "Rahim",
    "paper": "1st Paper",
    "chapterId": "3",
}


def image_parts(count=1, size=64):
    return [("images", (f"page{i}.jpg", bytes([i]) * size, "image/jpeg")) for i in range(count)]


async def create_note(client, files=None, **overrides):
    data = {**NOTE_FORM, **overrides}
    return await client.post("/api/notes", data=data, files=files if files is not None else image_parts())


def stored_files(settings):
    if not os.path.isdir(settings.storage_root):
        return []
    return sorted(os.listdir(settings.storage_root))


class TestCreateNote:
    """Tests for POST /api/notes."""

    @pytest.mark.asyncio
    async def test_create_with_images(self, test_client, test_settings):
        response = await create_note(test_client, files=image_parts(3))

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Bank reconciliation"
        assert body["authorName"] == "Rahim"
        assert body["paper"] == "1st Paper"
        assert body["chapterId"] == 3
        assert body["id"]
        assert body["createdAt"]
        assert len(body["images"]) == 3
        assert all(url.startswith("http://test/uploads/image-") for url in body["images"])
        assert all(url.endswith(".jpg") for url in body["images"])
        assert len(stored_files(test_settings)) == 3

        # Files are served back in upload order
        for i, url in enumerate(body["images"]):
            served = await test_client.get(url.replace("http://test", ""))
            assert served.status_code == 200
            assert served.content == bytes([i]) * 64

    @pytest.mark.asyncio
    async def test_created_note_is_listed(self, test_client):
        created = (await create_note(test_client, files=image_parts(2))).json()

        response = await test_client.get("/api/notes")

        assert response.status_code == 200
        notes = response.json()
        assert len(notes) == 1
        assert notes[0]["id"] == created["id"]
        assert notes[0]["images"] == created["images"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "authorName", "paper", "chapterId"])
    async def test_missing_field_rejected(self, test_client, test_settings, field):
        data = {k: v for k, v in NOTE_FORM.items() if k != field}

        response = await test_client.post("/api/notes", data=data, files=image_parts())

        assert response.status_code == 400
        assert field in response.json()["message"]
        assert stored_files(test_settings) == []
        assert (await test_client.get("/api/notes")).json() == []

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, test_client, test_settings):
        response = await create_note(test_client, title="   ")

        assert response.status_code == 400
        assert stored_files(test_settings) == []

    @pytest.mark.asyncio
    async def test_non_integer_chapter_rejected(self, test_client):
        response = await create_note(test_client, chapterId="three")

        assert response.status_code == 400
        assert "chapterId" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_no_images_rejected(self, test_client):
        response = await test_client.post("/api/notes", data=NOTE_FORM)

        assert response.status_code == 400
        assert response.json()["message"] == "No images uploaded"
        assert (await test_client.get("/api/notes")).json() == []

    @pytest.mark.asyncio
    async def test_too_many_images_rejected(self, test_client, test_settings):
        response = await create_note(test_client, files=image_parts(11))

        assert response.status_code == 400
        assert stored_files(test_settings) == []

    @pytest.mark.asyncio
    async def test_oversized_image_rejected(self, test_settings):
        settings = test_settings.model_copy(update={"max_file_size": 1024})
        app = create_app(settings)

        async with app.router.lifespan_context(app):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                files = image_parts(1) + [("images", ("big.jpg", b"x" * 2048, "image/jpeg"))]
                response = await create_note(client, files=files)
                listed = await client.get("/api/notes")

        assert response.status_code == 413
        assert "big.jpg" in response.json()["message"]
        assert listed.json() == []
        assert stored_files(settings) == []


class TestListNotes:
    """Tests for GET /api/notes and GET /api/notes/{paper}/{chapterId}."""

    @pytest.mark.asyncio
    async def test_empty_list(self, test_client):
        response = await test_client.get("/api/notes")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_newest_first(self, test_client):
        for title in ("first", "second", "third"):
            await create_note(test_client, title=title)

        notes = (await test_client.get("/api/notes")).json()

        assert [n["title"] for n in notes] == ["third", "second", "first"]

    @pytest.mark.asyncio
    async def test_filter_by_paper_and_chapter(self, test_client):
        await create_note(test_client, title="match-old", paper="2nd Paper", chapterId="4")
        await create_note(test_client, title="other-chapter", paper="2nd Paper", chapterId="5")
        await create_note(test_client, title="other-paper", paper="1st Paper", chapterId="4")
        await create_note(test_client, title="match-new", paper="2nd Paper", chapterId="4")

        response = await test_client.get("/api/notes/2nd Paper/4")

        assert response.status_code == 200
        assert [n["title"] for n in response.json()] == ["match-new", "match-old"]

    @pytest.mark.asyncio
    async def test_filter_with_no_matches(self, test_client):
        await create_note(test_client)
        response = await test_client.get("/api/notes/1st Paper/9")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_filter_non_integer_chapter(self, test_client):
        response = await test_client.get("/api/notes/1st Paper/abc")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestDeleteNote:
    """Tests for DELETE /api/notes/{id}."""

    @pytest.mark.asyncio
    async def test_delete_removes_note_and_files(self, test_client, test_settings):
        created = (await create_note(test_client, files=image_parts(2))).json()
        kept = (await create_note(test_client, title="keep")).json()

        response = await test_client.delete(f"/api/notes/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Note deleted successfully"}
        for url in created["images"]:
            assert (await test_client.get(url.replace("http://test", ""))).status_code == 404
        assert len(stored_files(test_settings)) == 1
        assert [n["id"] for n in (await test_client.get("/api/notes")).json()] == [kept["id"]]

    @pytest.mark.asyncio
    async def test_delete_twice(self, test_client):
        created = (await create_note(test_client)).json()

        first = await test_client.delete(f"/api/notes/{created['id']}")
        second = await test_client.delete(f"/api/notes/{created['id']}")

        assert first.status_code == 200
        assert second.status_code == 404
        assert second.json()["message"] == "Note not found"

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, test_client):
        response = await test_client.delete("/api/notes/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, test_client):
        response = await test_client.delete("/api/notes/not-a-uuid")
        assert response.status_code == 404
        assert response.json()["message"] == "Note not found"


class TestHealth:
    """Tests for GET /health and cross-cutting headers."""

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "writable"

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        response = await test_client.get("/api/notes", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.delete("/api/notes/not-a-uuid", headers={"X-Request-ID": "req-42"})
        assert response.json()["request_id"] == "req-42"


class TestChapterIdBounds:
    """chapterId values the column cannot hold are rejected up front."""

    @pytest.mark.asyncio
    async def test_filter_chapter_too_large(self, test_client):
        response = await test_client.get("/api/notes/1st Paper/99999999999999999999")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_filter_negative_chapter(self, test_client):
        response = await test_client.get("/api/notes/1st Paper/-1")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_filter_largest_chapter(self, test_client):
        response = await test_client.get(f"/api/notes/1st Paper/{MAX_CHAPTER_ID}")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_create_chapter_too_large(self, test_client, test_settings):
        response = await create_note(test_client, chapterId="99999999999999999999")

        assert response.status_code == 400
        assert "chapterId" in response.json()["message"]
        assert stored_files(test_settings) == []
        assert (await test_client.get("/api/notes")).json() == []

    @pytest.mark.asyncio
    async def test_create_largest_chapter(self, test_client):
        response = await create_note(test_client, chapterId=str(MAX_CHAPTER_ID))

        assert response.status_code == 201
        assert response.json()["chapterId"] == MAX_CHAPTER_ID


class TestTimestamps:
    """createdAt is reported as UTC on every route."""

    @pytest.mark.asyncio
    async def test_created_at_matches_between_create_and_list(self, test_client):
        created = (await create_note(test_client)).json()
        listed = (await test_client.get("/api/notes")).json()
        filtered = (await test_client.get("/api/notes/1st Paper/3")).json()

        assert listed[0]["createdAt"] == created["createdAt"]
        assert filtered[0]["createdAt"] == created["createdAt"]
        assert datetime.fromisoformat(created["createdAt"].replace("Z", "+00:00")).utcoffset() == timedelta(0)


class TestReadUploads:
    """Size checks on multipart parts before their content is read."""

    @staticmethod
    def make_part(filename, size, content=b""):
        part = MagicMock()
        part.filename = filename
        part.size = size
        part.read = AsyncMock(return_value=content)
        return part

    @pytest.mark.asyncio
    async def test_oversized_part_is_not_read(self, file_service):
        small = self.make_part("small.jpg", 10, b"x" * 10)
        big = self.make_part("big.jpg", 5000)

        with pytest.raises(PayloadTooLargeError, match="big.jpg"):
            await read_uploads([small, big], file_service)

        big.read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_size_is_read(self, file_service):
        part = self.make_part("a.jpg", None, b"abc")

        assert await read_uploads([part], file_service) == [("a.jpg", b"abc")]
        part.read.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_placeholder_skipped(self, file_service):
        part = self.make_part("", 0, b"")
        assert await read_uploads([part], file_service) == []
