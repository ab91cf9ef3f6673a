"""
TimeBank Backend — Asset Store Unit Tests
==========================================

What:  Tests for AssetStore naming, validation, storage and deletion, and
       for the reference-checked release in asset_links.
How:   Real files in a per-test temporary directory; aiofiles and os.remove
       are patched where a disk failure has to be simulated.

Test Strategy:
    ✅ Generated names: <millis><ext>, never overwriting an existing file
    ✅ Empty / oversized / wrong-type uploads rejected before any write
    ✅ Failed write leaves nothing behind
    ✅ delete() is idempotent; unsafe names never resolve
    ✅ release_asset keeps files still referenced by a row
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from timebank.exceptions import StorageFailureError, ValidationError
from timebank.models.user import User
from timebank.services.asset_links import find_asset_references, release_asset
from timebank.services.asset_store import IMAGE_EXTENSIONS, AssetStore, UploadedFile, public_url


class TestAssetNaming:

    def test_extension_of_keeps_lowercased_suffix(self):
        assert AssetStore.extension_of("Report.PDF") == ".pdf"
        assert AssetStore.extension_of("photo.jpeg") == ".jpeg"

    def test_extension_of_drops_unusable_suffix(self):
        assert AssetStore.extension_of("noextension") == ""
        assert AssetStore.extension_of("weird.$$$") == ""
        assert AssetStore.extension_of("") == ""

    def test_public_url(self):
        assert public_url("1718031212345.pdf") == "/uploads/1718031212345.pdf"
        assert public_url(None) is None
        assert public_url("") is None


class TestAssetValidation:

    def setup_method(self):
        self.store = AssetStore.__new__(AssetStore)

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.store._validate_size(b"", None)

    def test_size_at_limit_accepted(self):
        self.store._validate_size(b"x" * 100, 100)

    def test_size_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="too large"):
            self.store._validate_size(b"x" * 101, 100)

    def test_image_extension_allowed(self):
        assert self.store._validate_extension("me.PNG", IMAGE_EXTENSIONS) == ".png"

    def test_non_image_extension_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.store._validate_extension("script.exe", IMAGE_EXTENSIONS)

    def test_any_extension_allowed_without_restriction(self):
        assert self.store._validate_extension("notes.docx", None) == ".docx"


class TestAssetStore:

    @pytest.mark.asyncio
    async def test_store_writes_file_under_generated_name(self, store, sample_pdf_bytes):
        with patch.object(AssetStore, "_time_token", return_value=1718031212345):
            ref = await store.store(UploadedFile("lecture.pdf", sample_pdf_bytes))

        assert ref.filename == "1718031212345.pdf"
        assert ref.size == len(sample_pdf_bytes)
        assert store.path_for(ref.filename).read_bytes() == sample_pdf_bytes

    @pytest.mark.asyncio
    async def test_store_never_overwrites_existing_asset(self, store):
        with patch.object(AssetStore, "_time_token", return_value=1000):
            first = await store.store(UploadedFile("a.txt", b"first"))
            second = await store.store(UploadedFile("b.txt", b"second"))

        assert first.filename == "1000.txt"
        assert second.filename == "1001.txt"
        assert store.path_for(first.filename).read_bytes() == b"first"
        assert store.path_for(second.filename).read_bytes() == b"second"

    @pytest.mark.asyncio
    async def test_store_without_extension(self, store):
        with patch.object(AssetStore, "_time_token", return_value=42):
            ref = await store.store(UploadedFile("README", b"hello"))
        assert ref.filename == "42"

    @pytest.mark.asyncio
    async def test_store_rejects_empty_upload_without_writing(self, store, temp_storage):
        with pytest.raises(ValidationError):
            await store.store(UploadedFile("empty.pdf", b""))
        assert list(store.storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_write_failure_leaves_nothing_behind(self, store):
        failing = MagicMock()
        failing.return_value.__aenter__ = AsyncMock(side_effect=OSError("disk full"))
        failing.return_value.__aexit__ = AsyncMock(return_value=False)

        with patch("timebank.services.asset_store.aiofiles.open", failing):
            with pytest.raises(StorageFailureError):
                await store.store(UploadedFile("a.pdf", b"data"))

        assert list(store.storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store):
        ref = await store.store(UploadedFile("a.txt", b"data"))

        assert await store.delete(ref.filename) is True
        assert not store.exists(ref.filename)
        assert await store.delete(ref.filename) is False

    @pytest.mark.asyncio
    async def test_delete_failure_raises_storage_failure(self, store):
        ref = await store.store(UploadedFile("a.txt", b"data"))
        with patch("timebank.services.asset_store.os.remove", side_effect=PermissionError("denied")):
            with pytest.raises(StorageFailureError):
                await store.delete(ref.filename)
        assert store.exists(ref.filename)

    @pytest.mark.parametrize("name", ["../secret", "a/b.txt", "..", "", "/etc/passwd"])
    def test_path_for_rejects_non_bare_names(self, store, name):
        with pytest.raises(ValidationError, match="Invalid asset reference"):
            store.path_for(name)
        assert store.exists(name) is False

    def test_check_writable(self, store):
        assert store.check_writable() is True


class TestReleaseAsset:

    @pytest.mark.asyncio
    async def test_unreferenced_asset_is_deleted(self, db_session, store):
        ref = await store.store(UploadedFile("a.pdf", b"data"))

        assert await release_asset(db_session, store, ref.filename) is True
        assert not store.exists(ref.filename)

    @pytest.mark.asyncio
    async def test_referenced_asset_is_kept(self, db_session, store):
        ref = await store.store(UploadedFile("me.png", b"png"))
        db_session.add(User(name="A", email="a@x.com", password_hash="h", profile_pic=ref.filename))
        await db_session.commit()

        assert await find_asset_references(db_session, ref.filename) == [("users", 1)]
        assert await release_asset(db_session, store, ref.filename) is False
        assert store.exists(ref.filename)

    @pytest.mark.asyncio
    async def test_lookup_failure_keeps_file(self, mock_db_session, store):
        ref = await store.store(UploadedFile("a.pdf", b"data"))
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        assert await release_asset(mock_db_session, store, ref.filename) is False
        assert store.exists(ref.filename)

    @pytest.mark.asyncio
    async def test_delete_failure_is_not_raised(self, db_session, store):
        ref = await store.store(UploadedFile("a.pdf", b"data"))
        with patch("timebank.services.asset_store.os.remove", side_effect=OSError("busy")):
            assert await release_asset(db_session, store, ref.filename) is False
