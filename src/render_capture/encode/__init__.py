"""
Encode Module
=============

External encoder orchestration.

Components:
    - build_encoder_args: ffmpeg argument construction per codec
    - StreamForwarder: Real-time copy of encoder output
    - EncodeOrchestrator: Frame-count check, launch, exit-status mapping
"""

from render_capture.encode.command import build_encoder_args, common_input_args
from render_capture.encode.output import StreamForwarder
from render_capture.encode.orchestrator import EncodeOrchestrator


__all__ = [
    "build_encoder_args",
    "common_input_args",
    "StreamForwarder",
    "EncodeOrchestrator",
]
