"""
Encode Orchestrator
===================

Runs the external encoder against the frames in the working directory.

Flow for one encode call:
    1. Verify the frame count if the request names one
    2. Build the ffmpeg invocation for the requested codec
    3. Launch it with the service root as working directory
    4. Forward stdout/stderr while awaiting exit
    5. Map the exit status to an EncodeResult
    6. Purge frames if requested and the encode succeeded

Concurrency:
    Nothing serializes encodes against each other or against uploads.
    Callers upload every frame before asking for an encode, and run one
    encode at a time.
"""

import asyncio
import logging
import shlex
from pathlib import Path
from typing import Callable, List, TextIO

from render_capture.encode.command import build_encoder_args
from render_capture.encode.output import StreamForwarder, stderr_sink, stdout_sink
from render_capture.errors import InsufficientFrames, SubprocessFailure
from render_capture.models.encode import EncodeRequest, EncodeResult
from render_capture.storage.frame_store import FRAME_SEQUENCE_TEMPLATE, FrameStore


logger = logging.getLogger(__name__)


class EncodeOrchestrator:
    """
    Launches and supervises the encoder subprocess.

    Attributes:
        frame_store: Store whose working directory is encoded
        root: Service root, used as the encoder's working directory
        output_file: Output name relative to root
        binary: Encoder executable
        forward_output: Whether encoder output is copied to our streams

    Example:
        orchestrator = EncodeOrchestrator(frame_store, root=Path("."))
        result = await orchestrator.encode(EncodeRequest(codec="h264"))
        if result.ok:
            print(result.summary)
    """

    def __init__(
        self,
        frame_store: FrameStore,
        root: Path,
        output_file: str = "out.mp4",
        binary: str = "ffmpeg",
        forward_output: bool = True,
        stderr_tail_lines: int = 20,
        stdout: Callable[[], TextIO] = stdout_sink,
        stderr: Callable[[], TextIO] = stderr_sink,
    ) -> None:
        self.frame_store = frame_store
        self.root = Path(root)
        self.output_file = output_file
        self.binary = binary
        self.forward_output = forward_output
        self.stderr_tail_lines = stderr_tail_lines
        self._stdout = stdout
        self._stderr = stderr

    @property
    def input_pattern(self) -> str:
        """Frame sequence pattern relative to the encoder working directory."""
        frames_dir = Path(self.frame_store.directory)
        try:
            relative = frames_dir.relative_to(self.root)
        except ValueError:
            relative = frames_dir
        return (relative / FRAME_SEQUENCE_TEMPLATE).as_posix()

    def build_command(self, request: EncodeRequest) -> List[str]:
        """Full command line, executable first."""
        args = build_encoder_args(request, self.input_pattern, self.output_file)
        return [self.binary, *args]

    async def check_frames(self, request: EncodeRequest) -> int:
        """
        Verify enough frames are on disk.

        Returns:
            Current frame count

        Raises:
            InsufficientFrames: If total_frames is set and not yet reached
        """
        got = await self.frame_store.count_frames()
        if request.total_frames and got < request.total_frames:
            raise InsufficientFrames(got=got, expected=request.total_frames)
        return got

    async def encode(self, request: EncodeRequest) -> EncodeResult:
        """
        Encode the current frame sequence.

        Args:
            request: Coerced encode parameters

        Returns:
            EncodeResult (failure results carry the exit code and message)

        Raises:
            InsufficientFrames: Raised before any subprocess is launched
        """
        frame_count = await self.check_frames(request)

        command = self.build_command(request)
        logger.info(
            f"Encoding {frame_count} frames ({request.codec.value}, "
            f"fps={request.fps}): {shlex.join(command)}"
        )

        try:
            await self._run(command)
        except SubprocessFailure as e:
            logger.error(f"Encode failed: {e.message}")
            return EncodeResult.failure(request.codec, e.exit_code, e.message)

        logger.info(f"Encoded {self.output_file} ({request.codec.value})")

        if request.cleanup:
            report = await self.frame_store.purge_frames()
            if not report.complete:
                logger.warning(
                    f"Cleanup incomplete ({report.failed_count} frames left, "
                    f"listing error: {report.listing_error}); encode result unaffected"
                )

        return EncodeResult.success(self.output_file, request.codec)

    async def _run(self, command: List[str]) -> None:
        """
        Run the encoder to completion.

        Both output pipes are drained concurrently and fully before the
        exit status is looked at, so no output is lost.

        Raises:
            SubprocessFailure: On launch failure or nonzero exit
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.root),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Failed to launch {self.binary}: {e}")
            raise SubprocessFailure(None, str(e), binary=self.binary) from e

        out = StreamForwarder(self._stdout, forward=self.forward_output)
        err = StreamForwarder(
            self._stderr,
            forward=self.forward_output,
            tail_lines=self.stderr_tail_lines,
        )

        pumps = [
            asyncio.ensure_future(out.pump(process.stdout)),
            asyncio.ensure_future(err.pump(process.stderr)),
        ]
        try:
            await asyncio.gather(*pumps)
        except BaseException:
            # Reap the encoder before propagating
            for pump in pumps:
                pump.cancel()
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            await process.wait()
            raise
        exit_code = await process.wait()

        logger.debug(f"{self.binary} exited with code {exit_code}")
        if exit_code != 0:
            raise SubprocessFailure(exit_code, err.tail, binary=self.binary)
