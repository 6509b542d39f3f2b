from __future__ import annotations

import errno
import logging
import socket

logger = logging.getLogger(__name__)


def port_available(port: int, host: str = "0.0.0.0") -> bool:
    """True if nothing is bound to ``port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                return False
            raise
    return True


def get_available_port(start_port: int, host: str = "0.0.0.0") -> int:
    """First free port at or above ``start_port``."""
    port = start_port
    while not port_available(port, host):
        logger.warning("Port %d is in use, trying %d", port, port + 1)
        port += 1
    return port
