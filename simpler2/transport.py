"""HTTP transport used by the client, built on ``requests``."""

import logging
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from typing import Dict, Iterable, Optional, Protocol, Tuple

import requests

from .errors import TransportFailure

logger = logging.getLogger(__name__)

RawResponse = Tuple[int, bytes, Dict[str, str]]


class Transport(Protocol):
    def perform_request(
            self,
            method: str,
            url: str,
            headers: Dict[str, str],
            body: bytes,
            timeout: float
    ) -> RawResponse:
        ...


def _decode_value(value: str) -> str:
    if '=?' not in value:
        return value
    try:
        return str(make_header(decode_header(value)))
    except (HeaderParseError, LookupError, UnicodeDecodeError):
        return value


def decode_headers(items: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """
    Build a header map, decoding RFC 2047 encoded words where possible.

    A value that cannot be decoded is kept as received. Repeated names are
    joined with ``", "``.
    """
    result: Dict[str, str] = {}
    for name, value in items:
        value = _decode_value(value)
        if name in result:
            result[name] = f"{result[name]}, {value}"
        else:
            result[name] = value
    return result


class RequestsTransport:
    """Performs one blocking HTTP exchange per call."""

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self.session = session if session is not None else requests.Session()

    def perform_request(
            self,
            method: str,
            url: str,
            headers: Dict[str, str],
            body: bytes,
            timeout: float
    ) -> RawResponse:
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                data=body,
                timeout=timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed before a response arrived: %s", method, url, e)
            raise TransportFailure(str(e) or e.__class__.__name__) from e
        return response.status_code, response.content, decode_headers(response.headers.items())
