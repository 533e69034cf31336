"""
render-capture
==============

Local capture-and-encode service for generative animation sketches.

A sketch renders its animation frame by frame and uploads each frame as a
numbered PNG. Once every frame is in place the sketch asks the service to
assemble them into a video, which is done by an external ffmpeg process.

Components:
    - storage: Frame store and static path resolution
    - encode: ffmpeg command construction and subprocess orchestration
    - server: Port binding with ephemeral fallback
    - models: Encode request/result models

Example:
    from render_capture.config import load_config
    from render_capture.main import create_app

    settings = load_config()
    app = create_app(settings)
"""

__version__ = "0.1.0"
__author__ = "render-capture contributors"

__all__ = [
    "__version__",
]
