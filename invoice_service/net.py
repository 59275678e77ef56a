"""Connection and header helpers for the HTTP layer."""

from __future__ import annotations

import errno
import re

# Errors raised when the peer goes away mid-request or mid-response.
CLIENT_GONE_ERRNOS = frozenset(
    code
    for code in (
        errno.EPIPE,
        errno.ECONNRESET,
        errno.ECONNABORTED,
        errno.ETIMEDOUT,
        getattr(errno, "WSAECONNRESET", None),
    )
    if code is not None
)

UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f"\\]')


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, ConnectionAbortedError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in CLIENT_GONE_ERRNOS


def content_disposition(file_name: str, attachment: bool) -> str:
    """Build a Content-Disposition value with the file name made header-safe."""
    kind = "attachment" if attachment else "inline"
    safe_name = UNSAFE_FILENAME_CHARS.sub("_", file_name)
    return f'{kind}; filename="{safe_name}"'
