"""
AWS Signature Version 4 header signing for the R2 object API.

Everything here is pure: the only input that is not an argument is the wall
clock, and even that can be supplied explicitly through ``now``.
"""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

Headers = Dict[str, str]
Body = Optional[Union[str, bytes]]

ALGORITHM = 'AWS4-HMAC-SHA256'
DEFAULT_REGION = 'auto'
DEFAULT_SERVICE = 's3'
EMPTY_SHA256 = hashlib.sha256(b'').hexdigest()


def _to_bytes(body: Body) -> bytes:
    if body is None:
        return b''
    if isinstance(body, str):
        return body.encode('utf-8')
    return body


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()


def hash_payload(body: Body) -> str:
    """SHA-256 hex digest of the request body."""
    return hashlib.sha256(_to_bytes(body)).hexdigest()


def sort_headers(headers: Headers) -> List[Tuple[str, str]]:
    """Order headers by name, ignoring case; equal names keep their order."""
    return sorted(headers.items(), key=lambda item: item[0].lower())


def signed_headers(sorted_headers: List[Tuple[str, str]]) -> str:
    return ';'.join(name.lower() for name, _ in sorted_headers)


def canonical_headers(sorted_headers: List[Tuple[str, str]]) -> str:
    # Only surrounding whitespace is stripped; inner runs stay as sent.
    return ''.join(f"{name.lower()}:{str(value).strip()}\n" for name, value in sorted_headers)


def canonical_request(
        method: str,
        uri_path: str,
        query_string: str,
        sorted_headers: List[Tuple[str, str]],
        payload_hash: str
) -> str:
    return '\n'.join([
        method,
        uri_path,
        query_string,
        canonical_headers(sorted_headers),
        signed_headers(sorted_headers),
        payload_hash,
    ])


def credential_scope(short_date: str, region: str, service: str) -> str:
    return f"{short_date}/{region}/{service}/aws4_request"


def string_to_sign(long_date: str, scope: str, request: str) -> str:
    request_hash = hashlib.sha256(request.encode('utf-8')).hexdigest()
    return f"{ALGORITHM}\n{long_date}\n{scope}\n{request_hash}"


def derive_signing_key(secret_key: str, short_date: str, region: str, service: str) -> bytes:
    """
    Derive the SigV4 signing key.

    kSecret -> kDate -> kRegion -> kService -> kSigning, each step an
    HMAC-SHA256 keyed by the previous one.
    """
    k_date = _hmac(('AWS4' + secret_key).encode('utf-8'), short_date)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, 'aws4_request')


class SigV4Signer:
    """Computes the authentication headers for a single request."""

    def __init__(
            self,
            access_key: str,
            secret_key: str,
            token: Optional[str] = None,
            region: str = DEFAULT_REGION,
            service: str = DEFAULT_SERVICE
    ) -> None:
        self.access_key = access_key
        self.secret_key = secret_key
        self.token = token
        self.region = region
        self.service = service

    def __repr__(self) -> str:
        return f"SigV4Signer(access_key={self.access_key!r}, region={self.region!r}, service={self.service!r})"

    @staticmethod
    def _timestamps(now: Optional[datetime]) -> Tuple[str, str]:
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.strftime('%Y%m%dT%H%M%SZ'), now.strftime('%Y%m%d')

    def create_headers(
            self,
            method: str,
            uri_path: str,
            query_string: str,
            headers: Headers,
            body: Body = None,
            now: Optional[datetime] = None
    ) -> Headers:
        """
        Return a copy of ``headers`` with ``x-amz-date``,
        ``x-amz-content-sha256`` and ``authorization`` added (plus
        ``x-amz-security-token`` when a session token is configured).

        ``query_string`` must already be canonical; it is signed verbatim.
        """
        long_date, short_date = self._timestamps(now)
        scope = credential_scope(short_date, self.region, self.service)
        payload_hash = hash_payload(body)

        signed = dict(headers)
        if self.token is not None:
            signed['x-amz-security-token'] = self.token
        signed['x-amz-date'] = long_date
        signed['x-amz-content-sha256'] = payload_hash

        ordered = sort_headers(signed)
        request = canonical_request(method, uri_path, query_string, ordered, payload_hash)
        key = derive_signing_key(self.secret_key, short_date, self.region, self.service)
        signature = hmac.new(
            key,
            string_to_sign(long_date, scope, request).encode('utf-8'),
            hashlib.sha256
        ).hexdigest()

        signed['authorization'] = (
            f"{ALGORITHM} Credential={self.access_key}/{scope},"
            f"SignedHeaders={signed_headers(ordered)},Signature={signature}"
        )
        return signed
