"""
Canonical request builder for STS ``GetCallerIdentity``.

Builds the abstract HTTP request that gets signed: method, service, region,
path, query parameters, lower-cased headers and body. Nothing here does I/O
or cryptography.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from .errors import HeaderError
from .region import Region, RegionLike, resolve_region

STS_SERVICE = 'sts'
GET_CALLER_IDENTITY_PARAMS = (
    ('Action', 'GetCallerIdentity'),
    ('Version', '2011-06-15'),
)
FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'

# Set by the signer; callers may not supply them.
RESERVED_HEADERS = frozenset({
    'authorization',
    'host',
    'x-amz-content-sha256',
    'x-amz-date',
    'x-amz-security-token',
})

_SAFE_CHARS = '-_.~'
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_FORBIDDEN_VALUE_CHARS = re.compile(r'[\x00-\x08\x0a-\x1f\x7f]')

HeaderText = Union[str, bytes]


def percent_encode(value: str) -> str:
    """URI-encode everything except unreserved characters (RFC 3986)."""
    return quote(value, safe=_SAFE_CHARS)


def encode_params(params: Mapping[str, str]) -> str:
    """Encode ``params`` as a sorted ``name=value&...`` string."""
    pairs = sorted((percent_encode(k), percent_encode(v)) for k, v in params.items())
    return '&'.join(f"{k}={v}" for k, v in pairs)


def _decode(text: HeaderText, what: str) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode('utf-8')
        except UnicodeDecodeError as e:
            raise HeaderError(f"Header {what} is not valid UTF-8: {text!r}") from e
    if not isinstance(text, str):
        raise HeaderError(f"Header {what} must be str or bytes, got {type(text).__name__}")
    return text


def validate_header(name: HeaderText, value: HeaderText) -> Tuple[str, str]:
    """Return ``(lower-cased name, value)`` or raise :class:`HeaderError`."""
    name = _decode(name, 'name')
    value = _decode(value, 'value')
    if not _TOKEN.fullmatch(name):
        raise HeaderError(f"Invalid header name: {name!r}")
    if _FORBIDDEN_VALUE_CHARS.search(value):
        raise HeaderError(f"Invalid characters in value of header {name!r}")
    return name.lower(), value


@dataclass
class CanonicalRequest:
    method: str
    service: str
    region: Region
    path: str = '/'
    params: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, List[str]] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def scheme(self) -> str:
        return self.region.scheme

    @property
    def hostname(self) -> str:
        return self.region.hostname(self.service)

    @property
    def endpoint_url(self) -> str:
        return f"{self.scheme}://{self.hostname}{self.path}"

    def add_header(self, name: HeaderText, value: HeaderText) -> None:
        """Append ``value`` to the header, merging names case-insensitively."""
        key, value = validate_header(name, value)
        self.headers.setdefault(key, []).append(value)

    def set_header(self, name: HeaderText, value: HeaderText) -> None:
        key, value = validate_header(name, value)
        self.headers[key] = [value]

    def remove_header(self, name: str) -> None:
        self.headers.pop(name.lower(), None)

    def canonical_query_string(self) -> str:
        return encode_params(self.params)

    def copy(self) -> 'CanonicalRequest':
        return CanonicalRequest(
            method=self.method,
            service=self.service,
            region=self.region,
            path=self.path,
            params=dict(self.params),
            headers={k: list(v) for k, v in self.headers.items()},
            body=self.body,
        )


def build(
        region: RegionLike = None,
        method: str = 'POST',
        extra_headers: Optional[Mapping[HeaderText, HeaderText]] = None,
        service: str = STS_SERVICE,
) -> CanonicalRequest:
    """
    Build an unsigned ``GetCallerIdentity`` request.

    For ``POST`` the fixed parameters are form-encoded into the body; for
    ``GET`` they travel in the query string. ``extra_headers`` are merged by
    lower-cased name and may not replace ``content-type`` on ``POST``.

    Raises:
        HeaderError: an extra header is malformed or uses a reserved name.
        ValueError: ``method`` is neither ``GET`` nor ``POST``.
    """
    method = method.upper()
    if method not in ('GET', 'POST'):
        raise ValueError(f"Unsupported method for GetCallerIdentity: {method}")

    request = CanonicalRequest(method=method, service=service, region=resolve_region(region))
    params = dict(GET_CALLER_IDENTITY_PARAMS)
    if method == 'POST':
        request.body = encode_params(params).encode('ascii')
        request.set_header('Content-Type', FORM_CONTENT_TYPE)
    else:
        request.params = params

    fixed = set(request.headers)
    for name, value in (extra_headers or {}).items():
        key, value = validate_header(name, value)
        if key in RESERVED_HEADERS:
            raise HeaderError(f"Header {key!r} is set by the signer and cannot be overridden")
        if key in fixed:
            raise HeaderError(f"Header {key!r} is fixed for {method} requests and cannot be overridden")
        request.add_header(key, value)

    return request
