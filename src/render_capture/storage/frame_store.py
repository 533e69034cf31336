"""
Frame Store
===========

Validates and persists uploaded frames in the working directory.

Frame identity is purely the sequence number encoded in the file name
(``frame_000000.png`` ... ``frame_999999.png``). The store keeps no
in-memory index: every count is a fresh directory scan, so it is always
consistent with what is on disk.

Design Rules:
    - Names are validated BEFORE any filesystem access
    - Re-uploading a name overwrites the previous file (last write wins)
    - Files not matching the frame pattern are never counted or deleted
    - Purging is best effort and never raises
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from render_capture.errors import InvalidFrameName, StorageError


logger = logging.getLogger(__name__)


FRAME_NAME_PATTERN = re.compile(r"^frame_\d{6}\.png$", re.ASCII)

# Input pattern handed to the encoder, relative to the working directory
FRAME_SEQUENCE_TEMPLATE = "frame_%06d.png"


def is_frame_name(name: object) -> bool:
    """Whether ``name`` is exactly ``frame_`` + 6 digits + ``.png``."""
    return isinstance(name, str) and FRAME_NAME_PATTERN.fullmatch(name) is not None


@dataclass
class PurgeReport:
    """
    Outcome of a purge.

    Always a success from the caller's point of view; per-file
    failures are collected here and logged.

    Attributes:
        removed: Names of deleted frames
        failed: (name, error message) for frames that could not be deleted
        listing_error: Why the directory could not be listed, if it could not
    """

    removed: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    listing_error: Optional[str] = None

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def complete(self) -> bool:
        """Whether every frame was deleted."""
        return self.listing_error is None and not self.failed


class FrameStore:
    """
    Frame persistence for one working directory.

    Blocking filesystem calls are pushed to a worker thread so the event
    loop keeps serving other uploads while a frame is written.

    Attributes:
        directory: Working directory holding the frames

    Example:
        store = FrameStore(Path("frames"))
        await store.ensure_working_directory()
        await store.store_frame("frame_000000.png", png_bytes)
        assert await store.count_frames() == 1
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    async def ensure_working_directory(self) -> None:
        """Create the working directory and missing parents (idempotent)."""
        await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)

    async def store_frame(self, name: str, data: bytes) -> Path:
        """
        Persist one frame under its exact name.

        Args:
            name: Candidate file name
            data: Raw image bytes (not inspected)

        Returns:
            Path of the written file

        Raises:
            InvalidFrameName: If the name is not a frame name
        """
        if not is_frame_name(name):
            raise InvalidFrameName(name)

        path = self.directory / name
        await asyncio.to_thread(path.write_bytes, data)
        logger.debug(f"Stored {name} ({len(data)} bytes)")
        return path

    def _list_frames(self) -> List[str]:
        try:
            names = [entry.name for entry in self.directory.iterdir()]
        except (FileNotFoundError, NotADirectoryError):
            return []
        return sorted(name for name in names if is_frame_name(name))

    async def list_frames(self) -> List[str]:
        """
        Sorted names of stored frames.

        A missing working directory, or a file in its place, holds no frames.

        Raises:
            StorageError: If the directory exists but cannot be read
        """
        try:
            return await asyncio.to_thread(self._list_frames)
        except OSError as e:
            raise StorageError(self.directory, e) from e

    async def count_frames(self) -> int:
        """Number of stored frames; 0 if the directory does not exist."""
        return len(await self.list_frames())

    async def purge_frames(self) -> PurgeReport:
        """
        Delete every stored frame, best effort.

        One failed deletion never stops the others, and the purge as a
        whole never raises. Other files in the directory are untouched.
        """
        report = PurgeReport()
        try:
            names = await self.list_frames()
        except StorageError as e:
            report.listing_error = e.message
            logger.warning(f"Purge skipped: {e.message}")
            return report

        for name in names:
            try:
                await asyncio.to_thread((self.directory / name).unlink)
            except FileNotFoundError:
                # Already gone
                report.removed.append(name)
            except OSError as e:
                report.failed.append((name, str(e)))
                logger.warning(f"Failed to delete {name}: {e}")
            else:
                report.removed.append(name)

        logger.info(
            f"Purged {report.removed_count} frames "
            f"({report.failed_count} failures)"
        )
        return report
