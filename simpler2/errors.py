"""Exceptions raised by the R2 client."""

from typing import Optional


class R2Error(Exception):
    """Base class for every failure surfaced by the client."""

    def __init__(self, status: Optional[int], message: str = '') -> None:
        self.status = status
        self.message = message
        status_part = '' if status is None else str(status)
        super().__init__(f"R2 request failed: {status_part} {message}".rstrip())


class TransportFailure(R2Error):
    """The HTTP exchange could not be completed (DNS, connection, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(None, message)


class HttpStatusError(R2Error):
    """The service answered with a status outside the success range."""

    def __init__(self, status: int, message: str = '', code: Optional[str] = None) -> None:
        super().__init__(status, message)
        self.code = code


class MalformedErrorBody(R2Error):
    """An error response carried a body that is not valid XML."""

    def __init__(self, status: int, body: bytes) -> None:
        self.body = body
        text = body.decode('utf-8', errors='replace')
        super().__init__(status, f"Could not parse the R2 response: {text}")


class R2ConfigError(R2Error):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(None, message)

    def __str__(self) -> str:
        return self.message
