"""
R2 object client.

Each public call builds one request, signs it, sends it through the transport
and either returns an ``R2Response`` or raises an ``R2Error``.
"""

import logging
import re
from typing import Mapping, NamedTuple, Optional, Tuple, Union
from urllib.parse import quote
from xml.etree import ElementTree

from .config import DEFAULT_TIMEOUT, R2Config
from .errors import HttpStatusError, MalformedErrorBody, R2Error
from .sigv4 import Headers, SigV4Signer
from .transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*://')


class R2Response(NamedTuple):
    status: int
    body: bytes
    headers: Headers


def hostname_from_endpoint(endpoint: str) -> str:
    """``https://abc.r2.cloudflarestorage.com/`` -> ``abc.r2.cloudflarestorage.com``"""
    return _SCHEME_RE.sub('', endpoint).rstrip('/')


def uri_encode(value: str, keep_slash: bool = False) -> str:
    """Percent-encode everything outside the RFC 3986 unreserved set."""
    return quote(value, safe='/~' if keep_slash else '~')


def object_path(bucket: str, key: str) -> str:
    # "." and ".." key segments are signed as-is, but requests removes them
    # from the URL it sends, so such keys fail authentication.
    return f"/{uri_encode(bucket)}/{uri_encode(key, keep_slash=True)}"


def is_error_status(status: int, missing_is_error: bool) -> bool:
    if status == 404:
        return missing_is_error
    return status < 200 or status >= 400


def parse_error_body(body: bytes) -> Tuple[str, Optional[str]]:
    """
    Extract ``(message, code)`` from an S3 style XML error document.

    The message is the full text content of a root ``<Error>`` element and
    is empty for any other root. Raises ``ElementTree.ParseError`` on
    invalid XML and ``LookupError`` for an unknown declared encoding.
    """
    root = ElementTree.fromstring(body)
    if root.tag.rpartition('}')[2] != 'Error':
        return '', None
    code = None
    for child in root:
        if child.tag.rpartition('}')[2] == 'Code':
            code = (child.text or '').strip() or None
            break
    return ''.join(root.itertext()), code


class R2Client:
    """Signed get/put/delete against an R2 (S3 compatible) endpoint."""

    def __init__(
            self,
            access_key_id: str,
            secret_key: str,
            session_token: Optional[str],
            endpoint: str,
            timeout: float = DEFAULT_TIMEOUT,
            transport: Optional[Transport] = None
    ) -> None:
        self._config = R2Config(
            access_key_id=access_key_id,
            secret_key=secret_key,
            endpoint=endpoint,
            session_token=session_token,
            timeout=timeout,
        )
        self._signer = SigV4Signer(access_key_id, secret_key, session_token)
        self._transport = transport or RequestsTransport()

    @classmethod
    def from_config(cls, config: R2Config, transport: Optional[Transport] = None) -> 'R2Client':
        return cls(
            config.access_key_id,
            config.secret_key,
            config.session_token,
            config.endpoint,
            timeout=config.timeout,
            transport=transport,
        )

    @classmethod
    def from_environment(
            cls,
            endpoint: str,
            environ: Optional[Mapping[str, str]] = None,
            transport: Optional[Transport] = None
    ) -> 'R2Client':
        return cls.from_config(R2Config.from_environment(endpoint, environ), transport)

    @property
    def config(self) -> R2Config:
        return self._config

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    @property
    def timeout(self) -> float:
        return self._config.timeout

    def __repr__(self) -> str:
        return f"R2Client(endpoint={self.endpoint!r}, timeout={self.timeout!r})"

    def with_timeout(self, timeout: float) -> 'R2Client':
        """Return a client identical to this one but with another timeout."""
        return self.from_config(self._config.with_timeout(timeout), self._transport)

    def get(self, bucket: str, key: str, headers: Optional[Headers] = None,
            timeout: Optional[float] = None) -> R2Response:
        return self.execute('GET', bucket, key, headers, timeout=timeout)

    def get_if_exists(self, bucket: str, key: str, headers: Optional[Headers] = None,
                      timeout: Optional[float] = None) -> R2Response:
        """Like ``get``, but a 404 comes back as a response instead of an error."""
        return self.execute('GET', bucket, key, headers, missing_is_error=False, timeout=timeout)

    def put(self, bucket: str, key: str, content: Union[str, bytes], headers: Optional[Headers] = None,
            timeout: Optional[float] = None) -> R2Response:
        return self.execute('PUT', bucket, key, headers, content, timeout=timeout)

    def delete(self, bucket: str, key: str, headers: Optional[Headers] = None,
               timeout: Optional[float] = None) -> R2Response:
        return self.execute('DELETE', bucket, key, headers, timeout=timeout)

    def execute(
            self,
            method: str,
            bucket: str,
            key: str,
            headers: Optional[Headers] = None,
            body: Union[str, bytes] = b'',
            missing_is_error: bool = True,
            timeout: Optional[float] = None
    ) -> R2Response:
        uri_path = object_path(bucket, key)
        query_string = ''
        payload = body.encode('utf-8') if isinstance(body, str) else body

        request_headers = {
            name: str(value) for name, value in (headers or {}).items() if name.lower() != 'host'
        }
        request_headers['host'] = hostname_from_endpoint(self.endpoint)
        request_headers = self._signer.create_headers(method, uri_path, query_string, request_headers, payload)

        url = self.endpoint.rstrip('/') + uri_path
        if query_string:
            url = f"{url}?{query_string}"

        status, response_body, response_headers = self._transport.perform_request(
            method,
            url,
            request_headers,
            payload,
            self.timeout if timeout is None else timeout,
        )
        logger.debug("%s %s -> %s", method, uri_path, status)

        if is_error_status(status, missing_is_error):
            raise self._error_for(status, response_body)
        return R2Response(status, response_body, response_headers)

    @staticmethod
    def _error_for(status: int, body: bytes) -> R2Error:
        message, code = '', None
        if body:
            try:
                message, code = parse_error_body(body)
            except (ElementTree.ParseError, LookupError, ValueError):
                logger.warning("R2 returned %s with a body that is not XML", status)
                return MalformedErrorBody(status, body)
        logger.warning("R2 returned %s: %s", status, message)
        return HttpStatusError(status, message, code)
