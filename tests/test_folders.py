"""Tests for folder workflows over the memory store."""

import logging

import pytest

from tenantdrive.errors import (
    BucketMissing,
    Conflict,
    InvalidArgument,
    NotFound,
    StoreError,
    StoreUnavailable,
)
from tenantdrive.folders import FolderOperationEngine
from tenantdrive.gateway import ObjectStoreGateway
from tenantdrive.storage.memory import MemoryObjectStore


class FlakyStore(MemoryObjectStore):
    """Memory store whose copies and puts can be made to fail."""

    def __init__(self, fail_copy_for=(), put_error=None, **kwargs):
        super().__init__(**kwargs)
        self.fail_copy_for = set(fail_copy_for)
        self.put_error = put_error
        self.deleted_batches = []

    async def copy_object(self, src_key, dst_key):
        if src_key in self.fail_copy_for:
            raise StoreUnavailable()
        await super().copy_object(src_key, dst_key)

    async def put_object(self, key, data, content_type=None):
        if self.put_error is not None:
            raise self.put_error
        await super().put_object(key, data, content_type)

    async def delete_objects(self, keys):
        self.deleted_batches.append(list(keys))
        await super().delete_objects(keys)


def _engine(store) -> FolderOperationEngine:
    return FolderOperationEngine(ObjectStoreGateway(store, call_timeout_seconds=0), copy_concurrency=2)


class TestChecks:
    """Tests for existence and conflict checks."""

    async def test_object_exists(self, engine, seed):
        await seed({"users/a/f": b"1"})
        await engine.ensure_object_exists("users/a/f")

    async def test_object_missing(self, engine):
        with pytest.raises(NotFound):
            await engine.ensure_object_exists("users/a/missing")

    async def test_file_target_conflict(self, engine, seed):
        await seed({"users/a/f": b"1"})
        with pytest.raises(Conflict, match="Destination file already exists"):
            await engine.ensure_target_available("users/a/f")

    async def test_folder_target_conflict_on_descendant(self, engine, seed):
        """Any key beneath the folder occupies it, marker or not."""
        await seed({"users/a/docs/deep/f": b"1"})
        with pytest.raises(Conflict, match="Destination folder already exists"):
            await engine.ensure_target_available("users/a/docs", is_folder=True)

    async def test_folder_target_conflict_on_marker(self, engine, seed):
        await seed({"users/a/docs/": b""})
        with pytest.raises(Conflict):
            await engine.ensure_target_available("users/a/docs/", is_folder=True)

    async def test_folder_target_free(self, engine, seed):
        await seed({"users/a/docs2/f": b"1"})
        await engine.ensure_target_available("users/a/docs/", is_folder=True)


class TestMarkers:
    """Tests for folder marker creation."""

    async def test_placeholder_adds_slash(self, engine, store):
        marker = await engine.create_folder_placeholder("users/a/new")
        assert marker == "users/a/new/"
        assert await store.get_object("users/a/new/") == b""

    async def test_ensure_folder_exists_idempotent(self, engine, store):
        await engine.ensure_folder_exists("users/a/")
        await engine.ensure_folder_exists("users/a/")
        assert store.keys() == ["users/a/"]

    async def test_ensure_folder_exists_swallows_store_errors(self, caplog):
        engine = _engine(FlakyStore(put_error=StoreError()))
        with caplog.at_level(logging.WARNING, logger="tenantdrive.folders"):
            await engine.ensure_folder_exists("users/a/")
        assert any("not written" in r.getMessage() for r in caplog.records)

    async def test_ensure_folder_exists_missing_bucket_is_fatal(self):
        engine = _engine(FlakyStore(put_error=BucketMissing()))
        with pytest.raises(BucketMissing):
            await engine.ensure_folder_exists("users/a/")


class TestDeleteFolder:
    """Tests for delete_folder_objects()."""

    async def test_deletes_everything_beneath(self, engine, store, seed):
        await seed({
            "users/a/docs/": b"",
            "users/a/docs/1": b"1",
            "users/a/docs/sub/2": b"2",
            "users/a/docs2/keep": b"3",
        })

        deleted = await engine.delete_folder_objects("users/a/docs/")

        assert deleted == 3
        assert store.keys() == ["users/a/docs2/keep"]

    async def test_requires_trailing_slash(self, engine):
        with pytest.raises(InvalidArgument):
            await engine.delete_folder_objects("users/a/docs")

    async def test_missing_folder(self, engine):
        with pytest.raises(NotFound, match="Folder not found"):
            await engine.delete_folder_objects("users/a/nothing/")

    async def test_batches(self):
        store = FlakyStore()
        for i in range(5):
            await store.put_object(f"users/a/d/{i}", b"")
        engine = FolderOperationEngine(
            ObjectStoreGateway(store, batch_delete_size=2, call_timeout_seconds=0)
        )

        assert await engine.delete_folder_objects("users/a/d/") == 5
        assert [len(b) for b in store.deleted_batches] == [2, 2, 1]


class TestRelocateFolder:
    """Tests for relocate_folder()."""

    async def test_preserves_structure(self, engine, store, seed):
        await seed({
            "users/a/a/": b"",
            "users/a/a/x.txt": b"x",
            "users/a/a/b/y.txt": b"yy",
        })

        moved = await engine.relocate_folder("users/a/a/", "users/a/z/")

        assert moved == 3
        assert store.keys() == ["users/a/z/", "users/a/z/b/y.txt", "users/a/z/x.txt"]
        assert await store.get_object("users/a/z/b/y.txt") == b"yy"

    async def test_destination_conflict(self, engine, store, seed):
        await seed({"users/a/a/x": b"1", "users/a/z/y": b"2"})

        with pytest.raises(Conflict):
            await engine.relocate_folder("users/a/a/", "users/a/z/")
        assert store.keys() == ["users/a/a/x", "users/a/z/y"]

    async def test_requires_trailing_slashes(self, engine):
        with pytest.raises(InvalidArgument):
            await engine.relocate_folder("users/a/a", "users/a/z/")
        with pytest.raises(InvalidArgument):
            await engine.relocate_folder("users/a/a/", "users/a/z")

    async def test_missing_source(self, engine):
        with pytest.raises(NotFound):
            await engine.relocate_folder("users/a/none/", "users/a/z/")

    async def test_failed_copy_leaves_source_intact(self):
        store = FlakyStore(fail_copy_for={"users/a/a/2"})
        for i in range(4):
            await store.put_object(f"users/a/a/{i}", b"d")
        engine = _engine(store)

        with pytest.raises(StoreUnavailable):
            await engine.relocate_folder("users/a/a/", "users/a/z/")

        source = [k for k in store.keys() if k.startswith("users/a/a/")]
        assert len(source) == 4
        assert store.deleted_batches == []
        # The other copies all ran before the failure was raised
        assert "users/a/z/3" in store.keys()

    async def test_resume_after_partial_copy(self):
        store = FlakyStore(fail_copy_for={"users/a/a/1"})
        for i in range(3):
            await store.put_object(f"users/a/a/{i}", b"d")
        engine = _engine(store)
        with pytest.raises(StoreUnavailable):
            await engine.relocate_folder("users/a/a/", "users/a/z/")

        # A plain retry now sees the partial copy
        with pytest.raises(Conflict):
            await engine.relocate_folder("users/a/a/", "users/a/z/")

        store.fail_copy_for.clear()
        assert await engine.relocate_folder("users/a/a/", "users/a/z/", resume=True) == 3
        assert store.keys() == ["users/a/z/0", "users/a/z/1", "users/a/z/2"]
