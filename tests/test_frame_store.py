"""
Frame Store Tests
=================

Name validation, counting and best-effort purging.
"""

import asyncio
import pathlib

import pytest

from render_capture.errors import InvalidFrameName, StorageError
from render_capture.storage import FrameStore, is_frame_name


@pytest.fixture
def store(tmp_path) -> FrameStore:
    store = FrameStore(tmp_path / "frames")
    asyncio.run(store.ensure_working_directory())
    return store


def _failing_iterdir(monkeypatch, fail_on_call: int = 1):
    """Make the Nth directory listing raise PermissionError."""
    original_iterdir = pathlib.Path.iterdir
    calls = {"count": 0}

    def iterdir(self):
        calls["count"] += 1
        if calls["count"] == fail_on_call:
            raise PermissionError("simulated")
        return original_iterdir(self)

    monkeypatch.setattr(pathlib.Path, "iterdir", iterdir)


class TestFrameNames:
    """Tests for the frame naming convention."""

    def test_accepts_six_digit_names(self):
        """Verify boundary sequence numbers are valid names."""
        assert is_frame_name("frame_000000.png")
        assert is_frame_name("frame_999999.png")

    @pytest.mark.parametrize(
        "name",
        [
            "frame_1.png",
            "frame_0000001.png",
            "frame_00000a.png",
            "frame_000001.PNG",
            "frame_000001.jpg",
            "frame_000001.png.tmp",
            "xframe_000001.png",
            "../frame_000001.png",
            "frame_000001.png\n",
            "frame_٠٠٠٠٠١.png",
            "",
            None,
        ],
    )
    def test_rejects_other_names(self, store, png_bytes, name):
        """Verify rejected names never touch the working directory."""
        with pytest.raises(InvalidFrameName):
            asyncio.run(store.store_frame(name, png_bytes))

        assert list(store.directory.iterdir()) == []
        assert list(store.directory.parent.iterdir()) == [store.directory]


class TestStoreFrame:
    """Tests for storing frames."""

    def test_writes_exact_name(self, store, png_bytes):
        """Verify the frame is written under its own name."""
        path = asyncio.run(store.store_frame("frame_000042.png", png_bytes))

        assert path == store.directory / "frame_000042.png"
        assert path.read_bytes() == png_bytes

    def test_reupload_overwrites(self, store):
        """Verify the last write of a name wins."""
        asyncio.run(store.store_frame("frame_000001.png", b"first"))
        asyncio.run(store.store_frame("frame_000001.png", b"second"))

        assert (store.directory / "frame_000001.png").read_bytes() == b"second"
        assert asyncio.run(store.count_frames()) == 1

    def test_concurrent_distinct_frames(self, store):
        """Verify concurrent uploads of distinct names do not interfere."""
        async def upload_all():
            await asyncio.gather(*(
                store.store_frame(f"frame_{i:06d}.png", bytes([i]) * 64)
                for i in range(20)
            ))

        asyncio.run(upload_all())

        assert asyncio.run(store.count_frames()) == 20
        for i in range(20):
            assert (store.directory / f"frame_{i:06d}.png").read_bytes() == bytes([i]) * 64


class TestCountFrames:
    """Tests for counting frames."""

    def test_missing_directory_counts_zero(self, tmp_path):
        """Verify a missing working directory holds no frames."""
        store = FrameStore(tmp_path / "does" / "not" / "exist")
        assert asyncio.run(store.count_frames()) == 0

    def test_empty_directory_counts_zero(self, store):
        """Verify an empty working directory holds no frames."""
        assert asyncio.run(store.count_frames()) == 0

    def test_file_in_place_of_directory_counts_zero(self, tmp_path):
        """Verify a regular file at the working directory path holds no frames."""
        (tmp_path / "frames").write_text("not a directory")
        store = FrameStore(tmp_path / "frames")

        assert asyncio.run(store.count_frames()) == 0

    def test_unreadable_directory_raises_storage_error(self, store, monkeypatch):
        """Verify other listing failures surface as StorageError."""
        _failing_iterdir(monkeypatch)

        with pytest.raises(StorageError) as excinfo:
            asyncio.run(store.count_frames())

        assert excinfo.value.http_status == 500
        assert "simulated" in excinfo.value.message

    def test_ignores_non_frames(self, store, png_bytes):
        """Verify only files matching the frame pattern are counted."""
        for i in range(3):
            asyncio.run(store.store_frame(f"frame_{i:06d}.png", png_bytes))
        (store.directory / "frame_1.png").write_bytes(png_bytes)
        (store.directory / "notes.txt").write_text("stray")
        (store.directory / "frame_000099.png.partial").write_bytes(b"")

        assert asyncio.run(store.count_frames()) == 3


class TestEnsureWorkingDirectory:
    """Tests for working directory creation."""

    def test_creates_missing_parents(self, tmp_path):
        """Verify missing parent segments are created."""
        store = FrameStore(tmp_path / "a" / "b" / "frames")
        asyncio.run(store.ensure_working_directory())
        assert store.directory.is_dir()

    def test_idempotent(self, store, png_bytes):
        """Verify repeated and concurrent calls keep existing frames."""
        asyncio.run(store.store_frame("frame_000000.png", png_bytes))

        async def ensure_twice():
            await asyncio.gather(
                store.ensure_working_directory(),
                store.ensure_working_directory(),
            )

        asyncio.run(ensure_twice())
        assert asyncio.run(store.count_frames()) == 1


class TestPurgeFrames:
    """Tests for best-effort purging."""

    def test_removes_only_frames(self, store, png_bytes):
        """Verify frames are deleted and other files are left alone."""
        for i in range(4):
            asyncio.run(store.store_frame(f"frame_{i:06d}.png", png_bytes))
        (store.directory / "out.mp4").write_bytes(b"video")
        (store.directory / "frame_7.png").write_bytes(png_bytes)

        report = asyncio.run(store.purge_frames())

        assert report.removed_count == 4
        assert report.failed == []
        assert report.complete
        assert sorted(p.name for p in store.directory.iterdir()) == ["frame_7.png", "out.mp4"]

    def test_one_failure_does_not_stop_others(self, store, png_bytes, monkeypatch):
        """Verify a failed deletion is recorded and the rest still go."""
        for i in range(3):
            asyncio.run(store.store_frame(f"frame_{i:06d}.png", png_bytes))
        (store.directory / "out.mp4").write_bytes(b"video")

        original_unlink = pathlib.Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "frame_000001.png":
                raise PermissionError("simulated")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(pathlib.Path, "unlink", flaky_unlink)

        report = asyncio.run(store.purge_frames())

        assert report.removed == ["frame_000000.png", "frame_000002.png"]
        assert [name for name, _ in report.failed] == ["frame_000001.png"]
        assert not report.complete
        assert sorted(p.name for p in store.directory.iterdir()) == [
            "frame_000001.png",
            "out.mp4",
        ]

    def test_listing_failure_is_reported(self, store, png_bytes, monkeypatch):
        """Verify an unreadable directory is recorded, not raised."""
        asyncio.run(store.store_frame("frame_000000.png", png_bytes))
        _failing_iterdir(monkeypatch)

        report = asyncio.run(store.purge_frames())

        assert report.removed == []
        assert "simulated" in report.listing_error
        assert not report.complete
        assert (store.directory / "frame_000000.png").exists()

    def test_missing_directory(self, tmp_path):
        """Verify purging a missing directory is a no-op."""
        store = FrameStore(tmp_path / "missing")
        report = asyncio.run(store.purge_frames())
        assert report.removed == []
        assert report.failed == []
        assert report.complete
