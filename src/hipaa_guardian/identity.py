"""Identity of the user a scan runs as, recorded in audit entries."""

import os
import socket

DEFAULT_USER = "Unknown User"


def get_username() -> str:
    """Resolve the acting user: $USER, then $USERNAME, then the host name."""
    for var in ("USER", "USERNAME"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return socket.gethostname() or DEFAULT_USER
