"""
AWS Signature Version 4 for canonical requests.

The same canonicalization routine serves both signing styles:

* :class:`HeaderSigned` adds an ``authorization`` header to the request.
* :class:`QuerySigned` adds the ``X-Amz-*`` parameters to the query string and
  appends ``X-Amz-Signature`` to it, producing a presigned URL.

See https://docs.aws.amazon.com/IAM/latest/UserGuide/reference_sigv.html
"""

import datetime
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from .credentials import Credentials
from .request import CanonicalRequest

logger = logging.getLogger(__name__)

ALGORITHM = 'AWS4-HMAC-SHA256'
TERMINATOR = 'aws4_request'
UNSIGNED_PAYLOAD = 'UNSIGNED-PAYLOAD'
EMPTY_PAYLOAD_SHA256 = hashlib.sha256(b'').hexdigest()
DEFAULT_EXPIRES_IN = 60
MAX_EXPIRES_IN = 7 * 24 * 60 * 60

_AMZ_DATE_FORMAT = '%Y%m%dT%H%M%SZ'
_DATE_STAMP_FORMAT = '%Y%m%d'


@dataclass(frozen=True)
class HeaderSigned:
    """Sign with an ``authorization`` header."""


@dataclass(frozen=True)
class QuerySigned:
    """Sign with query-string parameters, valid for ``expires_in`` seconds."""

    expires_in: Union[int, datetime.timedelta] = DEFAULT_EXPIRES_IN
    sign_payload: bool = True

    def __post_init__(self) -> None:
        seconds = self.expires_in
        if isinstance(seconds, datetime.timedelta):
            seconds = int(seconds.total_seconds())
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            raise ValueError(f"expires_in must be int seconds or timedelta, got {self.expires_in!r}")
        if not 1 <= seconds <= MAX_EXPIRES_IN:
            raise ValueError(f"expires_in must be between 1 and {MAX_EXPIRES_IN} seconds, got {seconds}")
        object.__setattr__(self, 'expires_in', seconds)


SigningMode = Union[HeaderSigned, QuerySigned]


@dataclass(frozen=True)
class SignedRequest:
    request: CanonicalRequest
    signature: str
    amz_date: str
    credential_scope: str
    signed_headers: str
    query_string: str

    @property
    def headers(self) -> Dict[str, List[str]]:
        return self.request.headers

    @property
    def url(self) -> str:
        if self.query_string:
            return f"{self.request.endpoint_url}?{self.query_string}"
        return self.request.endpoint_url


def _sign(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()


def _utc(now: Optional[datetime.datetime]) -> datetime.datetime:
    if now is None:
        return datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=datetime.timezone.utc)
    return now.astimezone(datetime.timezone.utc)


def _normalize_value(value: str) -> str:
    return ' '.join(value.split())


def canonical_headers(headers: Dict[str, List[str]]) -> Tuple[str, str]:
    """Return ``(canonical header block, signed header list)``."""
    names = sorted(headers)
    block = ''.join(
        f"{name}:{','.join(_normalize_value(v) for v in headers[name])}\n"
        for name in names
    )
    return block, ';'.join(names)


def payload_hash(request: CanonicalRequest) -> str:
    if not request.body:
        return EMPTY_PAYLOAD_SHA256
    return hashlib.sha256(request.body).hexdigest()


def canonical_request(request: CanonicalRequest, body_hash: str) -> Tuple[str, str]:
    """Return ``(canonical request, signed header list)``."""
    header_block, signed_headers = canonical_headers(request.headers)
    canonical = '\n'.join((
        request.method,
        request.path,
        request.canonical_query_string(),
        header_block,
        signed_headers,
        body_hash,
    ))
    return canonical, signed_headers


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{TERMINATOR}"


def string_to_sign(amz_date: str, scope: str, canonical: str) -> str:
    return '\n'.join((
        ALGORITHM,
        amz_date,
        scope,
        hashlib.sha256(canonical.encode('utf-8')).hexdigest(),
    ))


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    k_date = _sign(f"AWS4{secret_key}".encode('utf-8'), date_stamp)
    k_region = _sign(k_date, region)
    k_service = _sign(k_region, service)
    return _sign(k_service, TERMINATOR)


class SigV4Signer:
    """
    Signs :class:`CanonicalRequest` objects with one set of credentials.

    Signing is a pure function of the request, credentials, mode and time.
    The request passed in is left untouched; the signed copy is returned.
    """

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def sign(
            self,
            request: CanonicalRequest,
            mode: Optional[SigningMode] = None,
            now: Optional[datetime.datetime] = None,
    ) -> SignedRequest:
        mode = mode or HeaderSigned()
        timestamp = _utc(now)
        amz_date = timestamp.strftime(_AMZ_DATE_FORMAT)
        date_stamp = timestamp.strftime(_DATE_STAMP_FORMAT)
        region = request.region.name
        scope = credential_scope(date_stamp, region, request.service)
        token = self.credentials.session_token

        request = request.copy()
        request.set_header('host', request.hostname)

        if isinstance(mode, QuerySigned):
            request.remove_header('x-amz-date')
            request.params.update({
                'X-Amz-Algorithm': ALGORITHM,
                'X-Amz-Credential': f"{self.credentials.access_key_id}/{scope}",
                'X-Amz-Date': amz_date,
                'X-Amz-Expires': str(mode.expires_in),
                'X-Amz-SignedHeaders': ';'.join(sorted(request.headers)),
            })
            if token:
                request.params['X-Amz-Security-Token'] = token
            body_hash = payload_hash(request) if mode.sign_payload else UNSIGNED_PAYLOAD
        elif isinstance(mode, HeaderSigned):
            request.set_header('x-amz-date', amz_date)
            if token:
                request.set_header('x-amz-security-token', token)
            body_hash = payload_hash(request)
        else:
            raise TypeError(f"Unknown signing mode: {mode!r}")

        canonical, signed_headers = canonical_request(request, body_hash)
        signing_key = derive_signing_key(
            self.credentials.secret_access_key, date_stamp, region, request.service
        )
        signature = hmac.new(
            signing_key,
            string_to_sign(amz_date, scope, canonical).encode('utf-8'),
            hashlib.sha256,
        ).hexdigest()
        logger.debug("Signed %s request for scope %s with headers %s",
                     request.method, scope, signed_headers)

        query_string = request.canonical_query_string()
        if isinstance(mode, QuerySigned):
            query_string = f"{query_string}&X-Amz-Signature={signature}"
        else:
            request.set_header(
                'authorization',
                f"{ALGORITHM} "
                f"Credential={self.credentials.access_key_id}/{scope}, "
                f"SignedHeaders={signed_headers}, "
                f"Signature={signature}",
            )

        return SignedRequest(
            request=request,
            signature=signature,
            amz_date=amz_date,
            credential_scope=scope,
            signed_headers=signed_headers,
            query_string=query_string,
        )
