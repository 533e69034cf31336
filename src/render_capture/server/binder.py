"""
Port Binder
===========

Binds the listening socket before the HTTP server starts.

The preferred port is tried first. If it is taken and the operator did
not pin a port, a single retry on an OS-assigned ephemeral port follows.
Any other bind error, or a failed retry, propagates and aborts startup.
"""

import errno
import logging
import socket


logger = logging.getLogger(__name__)


class PortBinder:
    """
    Bind a listening TCP socket with ephemeral-port fallback.

    Example:
        sock = PortBinder("127.0.0.1", 3000, explicit=False).bind()
        print(sock.getsockname()[1])
    """

    def __init__(
        self,
        host: str,
        port: int,
        explicit: bool = False,
        backlog: int = 2048,
    ) -> None:
        self.host = host
        self.port = port
        self.explicit = explicit
        self.backlog = backlog

    def _bind(self, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, port))
            sock.listen(self.backlog)
        except OSError:
            sock.close()
            raise
        sock.setblocking(False)
        return sock

    def bind(self) -> socket.socket:
        """
        Return a bound, listening, non-blocking socket.

        Raises:
            OSError: If the port cannot be bound and no fallback applies
        """
        try:
            return self._bind(self.port)
        except OSError as e:
            if e.errno != errno.EADDRINUSE or self.explicit:
                raise
            logger.warning(
                f"Port {self.port} is in use, falling back to an ephemeral port"
            )

        return self._bind(0)


def bound_port(sock: socket.socket) -> int:
    """Port a socket is bound to."""
    return sock.getsockname()[1]
