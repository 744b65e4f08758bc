"""MET API — /api/notes route tests."""

import pytest

BASE = "/api/notes"


async def _add_note(client, headers, title, date_added):
    response = await client.post(
        f"{BASE}/addNote",
        json={"note": {
            "title": title,
            "content": f"{title} body",
            "dateAdded": date_added,
            "authorId": "someone-else",
        }},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["note"]


@pytest.mark.asyncio
class TestNotesRoutes:
    async def test_author_comes_from_token(self, test_client, auth_headers):
        note = await _add_note(test_client, auth_headers, "First", "2024-01-01T00:00:00+00:00")
        assert note["authorId"] == "user-1"

    async def test_newest_first_and_private(self, test_client, auth_headers, other_auth_headers):
        await _add_note(test_client, auth_headers, "Old", "2024-01-01T00:00:00+00:00")
        await _add_note(test_client, auth_headers, "New", "2024-02-01T00:00:00+00:00")

        mine = await test_client.get(BASE + "/notes", headers=auth_headers)
        theirs = await test_client.get(BASE + "/notes", headers=other_auth_headers)

        assert [n["title"] for n in mine.json()["notes"]] == ["New", "Old"]
        assert theirs.json()["notes"] == []

    async def test_other_user_cannot_delete(self, test_client, auth_headers, other_auth_headers):
        note = await _add_note(test_client, auth_headers, "Mine", "2024-01-01T00:00:00+00:00")

        response = await test_client.post(
            f"{BASE}/deleteNote", json={"noteId": note["id"]}, headers=other_auth_headers
        )

        assert response.status_code == 500
        still_there = await test_client.get(f"{BASE}/note/{note['id']}", headers=auth_headers)
        assert still_there.status_code == 200

    async def test_date_window(self, test_client, auth_headers):
        await _add_note(test_client, auth_headers, "Jan", "2024-01-15T00:00:00+00:00")
        await _add_note(test_client, auth_headers, "Feb", "2024-02-15T00:00:00+00:00")

        response = await test_client.get(
            BASE + "/notes",
            params={"startDate": "2024-02-01T00:00:00+00:00"},
            headers=auth_headers,
        )

        assert [n["title"] for n in response.json()["notes"]] == ["Feb"]
