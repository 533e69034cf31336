"""
Error Taxonomy
==============

Exceptions raised by the frame store and encode orchestrator.

Every error carries the HTTP status the request router answers with, so
the router can convert them at a single boundary. None of these errors
are fatal to the process.
"""

from typing import Optional


class RenderCaptureError(Exception):
    """Base class for all request-level failures."""

    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidFrameName(RenderCaptureError):
    """Uploaded file name is not ``frame_######.png``."""

    http_status = 400

    def __init__(self, name: Optional[str]) -> None:
        super().__init__(f"bad filename: {name}")
        self.name = name


class MissingFile(RenderCaptureError):
    """Frame upload carried no file part."""

    http_status = 400

    def __init__(self) -> None:
        super().__init__("missing file")


class InsufficientFrames(RenderCaptureError):
    """Encode requested before the expected number of frames exists."""

    http_status = 400

    def __init__(self, got: int, expected: int) -> None:
        super().__init__(f"not enough frames: got {got}, expected {expected}")
        self.got = got
        self.expected = expected


class SubprocessFailure(RenderCaptureError):
    """
    External encoder failed to launch or exited nonzero.

    Attributes:
        exit_code: Process exit status, or None if it never started
        detail: Tail of the encoder's error output, if any was captured
    """

    http_status = 500

    def __init__(
        self,
        exit_code: Optional[int],
        detail: str = "",
        binary: str = "ffmpeg",
    ) -> None:
        if exit_code is None:
            message = f"{binary} failed to start"
        else:
            message = f"{binary} exited with code {exit_code}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.exit_code = exit_code
        self.detail = detail


class NotFound(RenderCaptureError):
    """Static file does not exist under the service root."""

    http_status = 404

    def __init__(self, path: str = "") -> None:
        super().__init__("not found")
        self.path = path


class InvalidEncodeBody(RenderCaptureError):
    """Encode body is not a JSON object (strict mode only)."""

    http_status = 400

    def __init__(self) -> None:
        super().__init__("invalid JSON body")


class StorageError(RenderCaptureError):
    """Working directory exists but cannot be read."""

    http_status = 500

    def __init__(self, directory: object, error: OSError) -> None:
        super().__init__(f"cannot read frames directory {directory}: {error}")
        self.directory = directory
        self.error = error
