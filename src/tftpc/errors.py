from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .packet import ErrorCode


class TftpError(Exception):
    """Base class for every error raised by this package.

    Transport failures are not wrapped: the ``OSError`` raised by the socket
    (``TimeoutError`` included) reaches the caller unchanged.
    """


class MalformedMessageError(TftpError, ValueError):
    pass


class ValidationError(TftpError, ValueError):
    pass


class ProtocolError(TftpError):
    """The peer answered with an ERROR message."""

    def __init__(self, error_code: "ErrorCode", message: Optional[str] = None):
        super().__init__(error_code, message)
        self.error_code = error_code
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return f"{self.error_code.name} ({int(self.error_code)}): {self.message}"
        return f"{self.error_code.name} ({int(self.error_code)})"
