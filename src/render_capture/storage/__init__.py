"""
Storage Module
==============

On-disk state of the capture service.

Components:
    - FrameStore: Validated frame uploads, counting and purging
    - PurgeReport: Aggregated outcome of a best-effort purge
    - PathResolver: Traversal-safe mapping of URL paths to files
"""

from render_capture.storage.frame_store import (
    FRAME_NAME_PATTERN,
    FRAME_SEQUENCE_TEMPLATE,
    FrameStore,
    PurgeReport,
    is_frame_name,
)
from render_capture.storage.paths import PathResolver


__all__ = [
    "FRAME_NAME_PATTERN",
    "FRAME_SEQUENCE_TEMPLATE",
    "FrameStore",
    "PurgeReport",
    "PathResolver",
    "is_frame_name",
]
