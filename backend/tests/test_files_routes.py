"""
MET API — File Route Tests
============================

What:  Upload, download (public and private), listing, update and delete
       of stored files.
"""

import pytest

BASE = "/api/files"


async def _upload(client, headers, name="hello.txt", content=b"hello", private=False):
    response = await client.post(
        f"{BASE}/upload",
        files={"file": (name, content, "text/plain")},
        data={"isPrivate": "true" if private else "false"},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["fileDetails"]


@pytest.mark.asyncio
class TestUpload:
    async def test_upload_records_details(self, test_client, auth_headers):
        details = await _upload(test_client, auth_headers, name="my notes.txt")

        assert details["originalFilename"] == "my_notes.txt"
        assert details["filename"].endswith(".txt")
        assert details["size"] == 5
        assert details["isPrivate"] is False
        assert details["authorId"] == "user-1"
        assert details["mimetype"] == "text/plain"

    async def test_upload_requires_auth(self, test_client):
        response = await test_client.post(
            f"{BASE}/upload", files={"file": ("a.txt", b"a", "text/plain")}
        )
        assert response.status_code == 401

    async def test_missing_file_is_invalid_input(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/upload", data={"isPrivate": "false"}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_oversized_upload_is_rejected(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/upload",
            files={"file": ("big.bin", b"x" * 2048, "application/octet-stream")},
            headers=auth_headers,
        )
        assert response.status_code == 400


@pytest.mark.asyncio
class TestDownload:
    async def test_public_file(self, test_client, auth_headers):
        details = await _upload(test_client, auth_headers)

        response = await test_client.get(f"{BASE}/{details['filename']}")

        assert response.status_code == 200
        assert response.content == b"hello"

    async def test_private_file_needs_auth(self, test_client, auth_headers):
        details = await _upload(test_client, auth_headers, private=True)

        anonymous = await test_client.get(f"{BASE}/{details['filename']}")
        assert anonymous.status_code == 404

        authorized = await test_client.get(f"{BASE}/{details['filename']}", headers=auth_headers)
        assert authorized.status_code == 200

    async def test_unknown_file(self, test_client):
        response = await test_client.get(f"{BASE}/does-not-exist.txt")
        assert response.status_code == 404


@pytest.mark.asyncio
class TestManage:
    async def test_list(self, test_client, auth_headers):
        await _upload(test_client, auth_headers, name="b.txt")
        await _upload(test_client, auth_headers, name="a.txt")

        response = await test_client.get(f"{BASE}/list", headers=auth_headers)

        assert [f["originalFilename"] for f in response.json()["files"]] == ["a.txt", "b.txt"]
        assert response.json()["morePages"] is False

    async def test_update(self, test_client, auth_headers):
        details = await _upload(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/update",
            json={
                "filename": details["filename"],
                "originalFilename": "renamed file.txt",
                "isPrivate": True,
            },
            headers=auth_headers,
        )

        assert response.json()["fileDetails"]["originalFilename"] == "hello.txt"
        listed = (await test_client.get(f"{BASE}/list", headers=auth_headers)).json()["files"]
        assert listed[0]["originalFilename"] == "renamed_file.txt"
        assert listed[0]["isPrivate"] is True

    async def test_update_rejects_bad_privacy_flag(self, test_client, auth_headers):
        details = await _upload(test_client, auth_headers)
        response = await test_client.post(
            f"{BASE}/update",
            json={"filename": details["filename"], "isPrivate": "yes"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_delete_reports_each_file(self, test_client, auth_headers, file_service):
        details = await _upload(test_client, auth_headers)

        response = await test_client.post(
            f"{BASE}/delete",
            json={"filenames": [details["filename"], "missing.txt"]},
            headers=auth_headers,
        )

        results = response.json()["files"]
        assert results[0]["fileDetails"]["id"] == details["id"]
        assert results[1] == {"filename": "missing.txt", "error": "File not found"}
        assert not file_service.file_path(details["filename"]).exists()

    async def test_delete_requires_list(self, test_client, auth_headers):
        response = await test_client.post(
            f"{BASE}/delete", json={"filenames": "a.txt"}, headers=auth_headers
        )
        assert response.status_code == 400
