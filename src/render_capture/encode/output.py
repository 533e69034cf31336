"""
Encoder Output Forwarding
=========================

Copies a subprocess's stdout and stderr to the service's own streams,
verbatim and as the bytes arrive.

The encoder's progress output is part of the service's observable
behavior, so it is written straight to the process streams rather than
going through logging. A bounded tail of stderr is kept so a failure
response can quote the encoder's last words.
"""

import asyncio
import logging
import sys
from collections import deque
from typing import Callable, Deque, Optional, TextIO


logger = logging.getLogger(__name__)


CHUNK_SIZE = 4096


def _write_bytes(stream: TextIO, chunk: bytes) -> None:
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        buffer.write(chunk)
    else:
        stream.write(chunk.decode("utf-8", errors="replace"))
    stream.flush()


class StreamForwarder:
    """
    Pump one subprocess pipe into a sink stream.

    The sink is looked up on every write (``sys.stdout`` by default), so
    swapping the process streams at runtime is respected.

    Attributes:
        tail_lines: Number of trailing lines retained
    """

    def __init__(
        self,
        sink: Callable[[], TextIO],
        forward: bool = True,
        tail_lines: int = 0,
    ) -> None:
        self._sink = sink
        self._forward = forward
        self.tail_lines = tail_lines
        self._tail: Deque[str] = deque(maxlen=tail_lines or None)
        self._partial = b""
        self.bytes_forwarded: int = 0

    @property
    def tail(self) -> str:
        """Trailing output lines, joined."""
        lines = list(self._tail)
        if self._partial and self.tail_lines:
            lines.append(self._partial.decode("utf-8", errors="replace").split("\r")[-1])
            lines = lines[-self.tail_lines:]
        return "\n".join(line.rstrip("\r") for line in lines).strip()

    def _remember(self, chunk: bytes) -> None:
        if not self.tail_lines:
            return
        data = self._partial + chunk
        *complete, self._partial = data.split(b"\n")
        for line in complete:
            # ffmpeg redraws its progress line with carriage returns
            text = line.decode("utf-8", errors="replace").split("\r")[-1]
            if text.strip():
                self._tail.append(text)

    async def pump(self, reader: Optional[asyncio.StreamReader]) -> None:
        """Read until EOF, forwarding every chunk."""
        if reader is None:
            return
        while True:
            chunk = await reader.read(CHUNK_SIZE)
            if not chunk:
                break
            self.bytes_forwarded += len(chunk)
            self._remember(chunk)
            if self._forward:
                try:
                    _write_bytes(self._sink(), chunk)
                except OSError as e:
                    # Keep draining so the encoder never blocks on a full pipe
                    logger.warning(f"Encoder output forwarding stopped: {e}")
                    self._forward = False


def stdout_sink() -> TextIO:
    return sys.stdout


def stderr_sink() -> TextIO:
    return sys.stderr
