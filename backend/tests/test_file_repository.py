"""
MET API — File Repository Tests
=================================

What:  Loading, persisting, recovering and backing up JSON-file collections.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from met_api.exceptions import FileStorageError
from met_api.models import ViceBankUser
from met_api.repositories import FileRepository, PageQuery

from factories import vice_bank_user_json

BASE_NAME = "vice_bank_user_data"


def _backups(data_path):
    backup_dir = data_path / "backup"
    if not backup_dir.exists():
        return []
    return sorted(backup_dir.iterdir())


@pytest.mark.asyncio
class TestInit:
    async def test_creates_missing_file(self, tmp_path):
        data_path = tmp_path / "data"

        repo = await FileRepository.init(ViceBankUser, str(data_path), BASE_NAME)

        assert repo.file_path == data_path / f"{BASE_NAME}.json"
        assert json.loads(repo.file_path.read_text()) == []
        assert await repo.count(PageQuery()) == 0

    async def test_loads_valid_and_skips_invalid(self, tmp_path):
        (tmp_path / f"{BASE_NAME}.json").write_text(json.dumps([
            vice_bank_user_json(id="a", name="Alice"),
            {"id": "b", "name": "Broken"},
            "not even an object",
            vice_bank_user_json(id="c", name="Carol"),
        ]))

        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)

        assert sorted(repo.entities) == ["a", "c"]
        assert _backups(tmp_path) == []

    async def test_corrupt_file_is_backed_up_and_reset(self, tmp_path):
        path = tmp_path / f"{BASE_NAME}.json"
        path.write_text("{not json")

        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)

        assert repo.entities == {}
        assert json.loads(path.read_text()) == []
        backups = _backups(tmp_path)
        assert len(backups) == 1
        assert backups[0].name.startswith(f"{BASE_NAME}_backup_")
        assert backups[0].read_text() == "{not json"

    async def test_non_utf8_file_is_backed_up_verbatim_and_reset(self, tmp_path):
        path = tmp_path / f"{BASE_NAME}.json"
        garbage = b"\xff\xfe\x00garbage\x80"
        path.write_bytes(garbage)

        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)

        assert repo.entities == {}
        assert json.loads(path.read_text()) == []
        backups = _backups(tmp_path)
        assert len(backups) == 1
        assert backups[0].read_bytes() == garbage

    async def test_non_array_is_treated_as_corrupt(self, tmp_path):
        path = tmp_path / f"{BASE_NAME}.json"
        path.write_text(json.dumps({"users": []}))

        await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)

        assert json.loads(path.read_text()) == []
        assert len(_backups(tmp_path)) == 1

    async def test_empty_file_is_reset_without_backup(self, tmp_path):
        path = tmp_path / f"{BASE_NAME}.json"
        path.write_text("")

        await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)

        assert json.loads(path.read_text()) == []
        assert _backups(tmp_path) == []


@pytest.mark.asyncio
class TestPersistence:
    async def test_mutations_survive_reload(self, tmp_path):
        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)
        alice = await repo.add(ViceBankUser.from_json(vice_bank_user_json(name="Alice")))
        bob = await repo.add(ViceBankUser.from_json(vice_bank_user_json(name="Bob")))
        await repo.update(alice.copy_with(current_tokens=7))
        await repo.delete(bob.id)

        reloaded = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)

        assert list(reloaded.entities) == [alice.id]
        assert (await reloaded.get(alice.id)).current_tokens == 7

    async def test_no_temp_file_left_behind(self, tmp_path):
        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)
        await repo.add(ViceBankUser.from_json(vice_bank_user_json()))
        assert not (tmp_path / f"{BASE_NAME}.json.tmp").exists()

    async def test_write_failure_keeps_memory_change(self, tmp_path):
        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)
        user = ViceBankUser.from_json(vice_bank_user_json())

        with patch.object(repo, "_write_text", AsyncMock(side_effect=OSError("disk full"))):
            with pytest.raises(FileStorageError):
                await repo.add(user)

        assert await repo.count(PageQuery()) == 1
        assert json.loads(repo.file_path.read_text()) == []

        # The next successful write catches the file up with memory
        await repo.add(user)
        assert len(json.loads(repo.file_path.read_text())) == 2

    async def test_backup_writes_snapshot(self, tmp_path):
        repo = await FileRepository.init(ViceBankUser, str(tmp_path), BASE_NAME)
        added = await repo.add(ViceBankUser.from_json(vice_bank_user_json()))

        await repo.backup()

        backups = _backups(tmp_path)
        assert len(backups) == 1
        assert [u["id"] for u in json.loads(backups[0].read_text())] == [added.id]
