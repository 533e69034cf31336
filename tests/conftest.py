"""
Test Configuration
==================

Pytest fixtures and test configuration for render-capture.

The real ffmpeg is never run: tests point the encoder at small executable
Python scripts that record their arguments, write a fake output file and
exit with a chosen status.
"""

import stat
import sys
import textwrap
from pathlib import Path

import pytest

from render_capture.config import EncoderConfig, Settings, StorageConfig


# Smallest valid PNG: 1x1 transparent pixel
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc330000000049454e44ae426082"
)


def write_fake_encoder(directory: Path, exit_code: int = 0, name: str = "fake_ffmpeg") -> Path:
    """
    Write an executable stand-in for ffmpeg.

    It records its argv to ``argv.txt`` in its working directory, prints
    one line to each stream, and on success writes the last argument
    (the output file) with placeholder bytes.
    """
    script = directory / name
    script.write_text(
        f"#!{sys.executable}\n"
        + textwrap.dedent(
            f"""\
            import sys
            from pathlib import Path

            args = sys.argv[1:]
            Path("argv.txt").write_text("\\n".join(args))
            sys.stdout.write("fake encoder starting\\n")
            sys.stdout.flush()
            sys.stderr.write("frame=    5 fps=0.0 q=-0.0 size=0kB\\n")
            if {exit_code} != 0:
                sys.stderr.write("Conversion failed!\\n")
            else:
                Path(args[-1]).write_bytes(b"fake video")
            sys.exit({exit_code})
            """
        )
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def png_bytes() -> bytes:
    """Provide a tiny PNG payload."""
    return PNG_BYTES


@pytest.fixture
def service_root(tmp_path) -> Path:
    """Provide an empty service root with a default document."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_text("<html>sketch</html>")
    return root


@pytest.fixture
def fake_encoder(tmp_path) -> Path:
    """Provide a fake encoder that succeeds."""
    return write_fake_encoder(tmp_path, exit_code=0)


@pytest.fixture
def failing_encoder(tmp_path) -> Path:
    """Provide a fake encoder that exits with status 3."""
    return write_fake_encoder(tmp_path, exit_code=3, name="failing_ffmpeg")


@pytest.fixture
def settings(service_root, fake_encoder) -> Settings:
    """Provide settings rooted at the temporary service root."""
    return Settings(
        storage=StorageConfig(root=service_root),
        encoder=EncoderConfig(binary=str(fake_encoder)),
    )


@pytest.fixture
def client(settings):
    """Provide a TestClient with the app lifespan running."""
    from fastapi.testclient import TestClient

    from render_capture.main import create_app

    with TestClient(create_app(settings)) as test_client:
        yield test_client
