"""
Encode Models
=============

Request and result models for a single encode call.

The request model mirrors the JSON body accepted by ``POST /encode``:

    {
        "fps": 60,
        "totalFrames": 0,
        "cleanup": false,
        "codec": "hevc10",
        "preset": "slow",
        "crf": 16
    }

All fields are optional. Values are coerced leniently rather than rejected:
numbers are floored and clamped, unknown codecs fall back to ``hevc10`` and
anything unusable takes the field default.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Codec(str, Enum):
    """Supported output codecs."""

    HEVC10 = "hevc10"
    H264 = "h264"


DEFAULT_FPS = 60
DEFAULT_PRESET = "slow"
DEFAULT_CRF = 16.0


def _finite_number(value: Any) -> Optional[float]:
    """Interpret a JSON value as a finite number, or None if it is not one."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


class EncodeRequest(BaseModel):
    """
    Parameters for one encode invocation.

    Constructed fresh from each ``/encode`` body and never persisted.

    Attributes:
        fps: Input frame rate, at least 1
        total_frames: Frames expected on disk (0 = don't verify)
        cleanup: Delete frames after a successful encode
        codec: Output codec
        preset: Encoder speed/quality preset
        crf: Constant rate factor, at least 0
    """

    model_config = ConfigDict(populate_by_name=True)

    fps: int = Field(default=DEFAULT_FPS, ge=1)
    total_frames: int = Field(default=0, ge=0, alias="totalFrames")
    cleanup: bool = False
    codec: Codec = Codec.HEVC10
    preset: str = DEFAULT_PRESET
    crf: float = Field(default=DEFAULT_CRF, ge=0)

    @field_validator("fps", mode="before")
    @classmethod
    def _coerce_fps(cls, value: Any) -> int:
        number = _finite_number(value)
        if number is None:
            return DEFAULT_FPS
        return max(1, math.floor(number))

    @field_validator("total_frames", mode="before")
    @classmethod
    def _coerce_total_frames(cls, value: Any) -> int:
        number = _finite_number(value)
        if number is None:
            return 0
        return max(0, math.floor(number))

    @field_validator("crf", mode="before")
    @classmethod
    def _coerce_crf(cls, value: Any) -> float:
        number = _finite_number(value)
        if number is None:
            return DEFAULT_CRF
        return max(0.0, number)

    @field_validator("codec", mode="before")
    @classmethod
    def _coerce_codec(cls, value: Any) -> Codec:
        return Codec.H264 if value == Codec.H264.value else Codec.HEVC10

    @field_validator("preset", mode="before")
    @classmethod
    def _coerce_preset(cls, value: Any) -> str:
        if isinstance(value, str) and value:
            return value
        return DEFAULT_PRESET

    @field_validator("cleanup", mode="before")
    @classmethod
    def _coerce_cleanup(cls, value: Any) -> bool:
        return bool(value)

    @classmethod
    def from_body(cls, body: Any) -> "EncodeRequest":
        """Build a request from a decoded JSON body of any shape."""
        if not isinstance(body, dict):
            body = {}
        return cls.model_validate(body)


@dataclass(frozen=True)
class EncodeResult:
    """
    Outcome of an encode call.

    Attributes:
        ok: Whether the encoder exited with status 0
        codec: Codec that was requested
        output_file: Output file name relative to the service root
        exit_code: Encoder exit status (None if it never launched)
        message: Diagnostic text on failure
    """

    ok: bool
    codec: Codec
    output_file: Optional[str] = None
    exit_code: Optional[int] = None
    message: str = ""

    @classmethod
    def success(cls, output_file: str, codec: Codec) -> "EncodeResult":
        return cls(ok=True, codec=codec, output_file=output_file, exit_code=0)

    @classmethod
    def failure(
        cls,
        codec: Codec,
        exit_code: Optional[int],
        message: str,
    ) -> "EncodeResult":
        return cls(ok=False, codec=codec, exit_code=exit_code, message=message)

    @property
    def summary(self) -> str:
        """Human-readable one-liner for HTTP responses."""
        if self.ok:
            return f"encoded {self.output_file} ({self.codec.value})"
        return self.message
