"""
Integration Tests for Notes API.

Requests go through the full application stack against the per-test
database.
"""

import pytest
from httpx import AsyncClient

from notevault.backend.core.utils import utc_days_ago

NOTES = "/api/v1/notes"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client: AsyncClient, api):
        response = await client.get(NOTES)

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_unknown_token_is_401(self, client: AsyncClient, api):
        response = await client.get(NOTES, headers={"Authorization": "Bearer nope"})

        api.assert_error(response, 401)

    @pytest.mark.asyncio
    async def test_bare_token_accepted(self, client: AsyncClient, api, owner, issue_token):
        token = await issue_token(owner)

        response = await client.get(NOTES, headers={"Authorization": token})

        api.assert_success(response)


class TestCreateNote:
    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient, api, owner_headers):
        response = await client.post(
            NOTES,
            json={"title": "Groceries", "body": "- milk"},
            headers=owner_headers,
        )

        data = api.assert_success(response, expected_status=201)["data"]
        assert data["title"] == "Groceries"
        assert data["status"] == "active"
        assert data["max_size"] == 32768
        assert data["tags"] == []

    @pytest.mark.asyncio
    async def test_body_too_long(self, client: AsyncClient, api, owner_headers):
        response = await client.post(
            NOTES,
            json={"body": "x" * 6, "max_size": 5},
            headers=owner_headers,
        )

        api.assert_validation_error(response, field="body")

    @pytest.mark.asyncio
    async def test_malformed_payload(self, client: AsyncClient, api, owner_headers):
        response = await client.post(NOTES, json={"pinned": "sometimes"}, headers=owner_headers)

        api.assert_validation_error(response, field="pinned", code="VAL_REQUEST_INVALID")


class TestListNotes:
    @pytest.mark.asyncio
    async def test_pagination_envelope(self, client: AsyncClient, api, owner, owner_headers, make_note):
        for i in range(3):
            await make_note(owner, title=f"n{i}")

        response = await client.get(NOTES, params={"limit": 2}, headers=owner_headers)

        data = api.assert_success(response)
        assert len(data["data"]) == 2
        assert data["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}
        assert "body" not in data["data"][0]

    @pytest.mark.asyncio
    async def test_limit_clamped_to_max(self, client: AsyncClient, api, owner_headers):
        response = await client.get(NOTES, params={"limit": 1000}, headers=owner_headers)

        assert api.assert_success(response)["pagination"]["limit"] == 100

    @pytest.mark.asyncio
    async def test_unknown_filter_rejected(self, client: AsyncClient, api, owner_headers):
        response = await client.get(NOTES, params={"filter": "everything"}, headers=owner_headers)

        api.assert_validation_error(response, code="VAL_REQUEST_INVALID")

    @pytest.mark.asyncio
    async def test_pinned_first(self, client: AsyncClient, api, owner, owner_headers, make_note):
        await make_note(owner, title="plain")
        pinned = await make_note(owner, title="pinned", pinned=True)

        response = await client.get(NOTES, headers=owner_headers)

        assert api.assert_success(response)["data"][0]["id"] == pinned.id

    @pytest.mark.asyncio
    async def test_trash_view(self, client: AsyncClient, api, owner, owner_headers, make_note):
        trashed = await make_note(owner, trashed=True, trashed_at=utc_days_ago(1))
        await make_note(owner)

        response = await client.get(f"{NOTES}/trash", headers=owner_headers)

        assert [n["id"] for n in api.assert_success(response)["data"]] == [trashed.id]


class TestNoteAccess:
    @pytest.mark.asyncio
    async def test_stranger_gets_404(self, client: AsyncClient, api, owner, make_note, stranger_headers):
        note = await make_note(owner)

        response = await client.get(f"{NOTES}/{note.id}", headers=stranger_headers)

        api.assert_error(response, 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_recipient_cannot_trash(
        self, client: AsyncClient, api, owner, recipient, make_note, recipient_headers, owner_headers
    ):
        note = await make_note(owner)
        await client.post(
            f"{NOTES}/{note.id}/shares", json={"email": recipient.email}, headers=owner_headers
        )

        response = await client.delete(f"{NOTES}/{note.id}", headers=recipient_headers)

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_update_body(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, body="before")

        response = await client.patch(
            f"{NOTES}/{note.id}", json={"body": "after"}, headers=owner_headers
        )

        assert api.assert_success(response)["data"]["body"] == "after"

    @pytest.mark.asyncio
    async def test_null_pinned_rejected(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, pinned=True)

        response = await client.patch(
            f"{NOTES}/{note.id}", json={"pinned": None}, headers=owner_headers
        )

        api.assert_validation_error(response, field="pinned")

    @pytest.mark.asyncio
    async def test_delete_trashes_then_removes(
        self, client: AsyncClient, api, owner, owner_headers, make_note
    ):
        note = await make_note(owner)

        first = api.assert_success(await client.delete(f"{NOTES}/{note.id}", headers=owner_headers))
        second = api.assert_success(await client.delete(f"{NOTES}/{note.id}", headers=owner_headers))

        assert first["data"]["permanently_deleted"] is False
        assert second["data"]["permanently_deleted"] is True
        api.assert_error(await client.get(f"{NOTES}/{note.id}", headers=owner_headers), 404)

    @pytest.mark.asyncio
    async def test_restore(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, trashed=True, trashed_at=utc_days_ago(1))

        response = await client.patch(f"{NOTES}/{note.id}/restore", headers=owner_headers)

        assert api.assert_success(response)["data"]["trashed"] is False

    @pytest.mark.asyncio
    async def test_restore_live_note_404(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner)

        response = await client.patch(f"{NOTES}/{note.id}/restore", headers=owner_headers)

        api.assert_error(response, 404)

    @pytest.mark.asyncio
    async def test_archive_and_unarchive(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, pinned=True)

        archived = api.assert_success(
            await client.patch(f"{NOTES}/{note.id}/archive", headers=owner_headers)
        )["data"]
        unarchived = api.assert_success(
            await client.patch(f"{NOTES}/{note.id}/unarchive", headers=owner_headers)
        )["data"]

        assert archived["status"] == "archived"
        assert archived["pinned"] is False
        assert unarchived["status"] == "active"

    @pytest.mark.asyncio
    async def test_pin_in_trash_422(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, trashed=True, trashed_at=utc_days_ago(1))

        response = await client.patch(f"{NOTES}/{note.id}/toggle-pin", headers=owner_headers)

        api.assert_validation_error(response, field="pinned")


class TestDuplicateMergeExport:
    @pytest.mark.asyncio
    async def test_duplicate(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, title="Original")

        response = await client.post(f"{NOTES}/{note.id}/duplicate", headers=owner_headers)

        data = api.assert_success(response, expected_status=201)["data"]
        assert data["title"] == "Original (copy)"
        assert data["id"] != note.id

    @pytest.mark.asyncio
    async def test_merge_trashes_other_by_default(
        self, client: AsyncClient, api, owner, owner_headers, make_note
    ):
        first = await make_note(owner, body="First")
        second = await make_note(owner, body="Second")

        response = await client.post(
            f"{NOTES}/{first.id}/merge",
            json={"merge_with_id": second.id},
            headers=owner_headers,
        )

        assert api.assert_success(response)["data"]["body"] == "First\n\n---\n\nSecond"
        other = api.assert_success(await client.get(f"{NOTES}/{second.id}", headers=owner_headers))
        assert other["data"]["trashed"] is True

    @pytest.mark.asyncio
    async def test_export(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, title="Groceries", body="- milk")

        response = await client.get(f"{NOTES}/{note.id}/export", headers=owner_headers)

        assert api.assert_success(response)["data"] == {
            "filename": "Groceries.md",
            "content": "# Groceries\n\n- milk",
        }

    @pytest.mark.asyncio
    async def test_bulk_export(self, client: AsyncClient, api, owner, owner_headers, make_note):
        await make_note(owner, title="a")
        await make_note(owner, title="b")

        response = await client.post(f"{NOTES}/bulk-export", json={}, headers=owner_headers)

        files = api.assert_success(response)["data"]["files"]
        assert sorted(f["filename"] for f in files) == ["a.md", "b.md"]


class TestSearch:
    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient, api, owner, owner_headers, make_note):
        note = await make_note(owner, title="Training", body="I like to run")

        response = await client.get(f"{NOTES}/search", params={"q": "running"}, headers=owner_headers)

        data = api.assert_success(response)
        assert [n["id"] for n in data["data"]] == [note.id]
        assert data["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_blank_search(self, client: AsyncClient, api, owner, owner_headers, make_note):
        await make_note(owner, body="anything")

        response = await client.get(f"{NOTES}/search", headers=owner_headers)

        assert api.assert_success(response)["data"] == []
