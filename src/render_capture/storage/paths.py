"""
Path Resolution
===============

Maps request paths to locations under the service root.

Traversal segments are stripped, never honored: however many ``..``
segments a caller supplies, the result stays inside the root. Resolution
is pure and does not check existence.
"""

import posixpath
from pathlib import Path


class PathResolver:
    """
    Resolve URL paths against a fixed root directory.

    Example:
        resolver = PathResolver(Path("/srv/sketch"))
        resolver.resolve("/")                  # /srv/sketch/index.html
        resolver.resolve("/../../etc/passwd")  # /srv/sketch/etc/passwd
    """

    def __init__(self, root: Path, default_document: str = "index.html") -> None:
        self.root = Path(root)
        self.default_document = default_document

    def resolve(self, request_path: str) -> Path:
        path = (request_path or "").replace("\\", "/")
        if path in ("", "/"):
            path = self.default_document

        # Rooted first, so normpath drops any leading ".." segments
        relative = posixpath.normpath("/" + path).lstrip("/")

        if not relative or relative == ".":
            return self.root
        return self.root.joinpath(*relative.split("/"))
