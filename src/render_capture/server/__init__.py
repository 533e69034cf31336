"""
Server Module
=============

Listening socket setup for the HTTP front end.
"""

from render_capture.server.binder import PortBinder, bound_port


__all__ = [
    "PortBinder",
    "bound_port",
]
