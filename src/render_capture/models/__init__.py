"""
Data Models
===========

Models for the render-capture service.

Models:
    - Codec: Output codec enum (hevc10, h264)
    - EncodeRequest: Leniently coerced ``/encode`` parameters
    - EncodeResult: Success or failure of one encode call
"""

from render_capture.models.encode import Codec, EncodeRequest, EncodeResult

__all__ = [
    "Codec",
    "EncodeRequest",
    "EncodeResult",
]
