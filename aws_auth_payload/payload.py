"""
Authentication artifacts built from a signed STS ``GetCallerIdentity`` request.

* :class:`AwsAuthIamPayload` is the POST payload used by HashiCorp Vault's
  AWS IAM auth method.
  See https://developer.hashicorp.com/vault/docs/auth/aws#iam-auth-method
* :func:`presigned_url` produces the presigned URL used by the Kubernetes
  AWS IAM Authenticator.
  See https://github.com/kubernetes-sigs/aws-iam-authenticator
"""

import base64
import binascii
import datetime
import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from . import request as canonical
from .credentials import Credentials
from .errors import SerializationError
from .region import RegionLike
from .sigv4 import DEFAULT_EXPIRES_IN, HeaderSigned, QuerySigned, SignedRequest, SigV4Signer

logger = logging.getLogger(__name__)

Headers = Mapping[Union[str, bytes], Union[str, bytes]]


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def _b64decode(text: str) -> str:
    try:
        return base64.b64decode(text, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as e:
        raise SerializationError(f"Invalid base64 field: {text!r}") from e


@dataclass(frozen=True)
class AwsAuthIamPayload:
    """Payload for Vault's AWS IAM auth method, made from a signed POST."""

    # HTTP method of the signed request, always POST
    iam_http_request_method: str
    # Base64-encoded URL of the signed request
    iam_request_url: str
    # Base64-encoded body of the signed request
    iam_request_body: str
    # Lower-cased header names to their values, including authorization
    iam_request_headers: Dict[str, List[str]]

    @classmethod
    def from_signed_request(cls, signed: SignedRequest) -> 'AwsAuthIamPayload':
        request = signed.request
        if request.body is None:
            raise SerializationError("Signed request has no body to encode")
        return cls(
            iam_http_request_method='POST',
            iam_request_url=_b64encode(request.endpoint_url.encode('utf-8')),
            iam_request_body=_b64encode(request.body),
            iam_request_headers={k: list(v) for k, v in request.headers.items()},
        )

    @classmethod
    def new(
            cls,
            credentials: Credentials,
            region: RegionLike = None,
            additional_headers: Optional[Headers] = None,
            now: Optional[datetime.datetime] = None,
    ) -> 'AwsAuthIamPayload':
        """
        Sign a POST to STS ``GetCallerIdentity`` and package it for Vault.

        Without a ``region`` the global STS endpoint is used. Use
        ``additional_headers`` to bind the request to a server, e.g.
        ``{'X-Vault-AWS-IAM-Server-ID': 'vault.example.com'}``.

        Raises:
            HeaderError: an additional header is malformed or reserved.
        """
        logger.info("Building login payload for AWS authentication")
        request = canonical.build(region, 'POST', additional_headers)
        signed = SigV4Signer(credentials).sign(request, HeaderSigned(), now)
        payload = cls.from_signed_request(signed)
        logger.debug("AWS payload for %s with signed headers %s",
                     request.endpoint_url, signed.signed_headers)
        return payload

    def decoded_url(self) -> str:
        return _b64decode(self.iam_request_url)

    def decoded_body(self) -> str:
        return _b64decode(self.iam_request_body)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, **kwargs: Any) -> str:
        try:
            return json.dumps(self.to_dict(), **kwargs)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Error serializing AWS payload: {e}") from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AwsAuthIamPayload':
        expected = {f.name for f in fields(cls)}
        if set(data) != expected:
            raise SerializationError(
                f"AWS payload must have exactly the fields {sorted(expected)}, got {sorted(data)}"
            )
        headers = data['iam_request_headers']
        if not isinstance(headers, Mapping) or not all(
                isinstance(v, list) and all(isinstance(i, str) for i in v)
                for v in headers.values()
        ):
            raise SerializationError("iam_request_headers must map names to lists of strings")
        return cls(
            iam_http_request_method=data['iam_http_request_method'],
            iam_request_url=data['iam_request_url'],
            iam_request_body=data['iam_request_body'],
            iam_request_headers={k: list(v) for k, v in headers.items()},
        )

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> 'AwsAuthIamPayload':
        try:
            data = json.loads(text)
        except ValueError as e:
            raise SerializationError(f"Error deserializing AWS payload: {e}") from e
        if not isinstance(data, dict):
            raise SerializationError("AWS payload must be a JSON object")
        return cls.from_dict(data)


def presigned_url(
        credentials: Credentials,
        region: RegionLike = None,
        additional_headers: Optional[Headers] = None,
        expires_in: Optional[Union[int, datetime.timedelta]] = None,
        now: Optional[datetime.datetime] = None,
) -> str:
    """
    Presign a GET to STS ``GetCallerIdentity``.

    The URL is valid for ``expires_in`` (60 seconds by default) from the
    time of signing. Keep it short: anyone holding the URL can use it.

    Raises:
        HeaderError: an additional header is malformed or reserved.
        ValueError: ``expires_in`` is out of range.
    """
    logger.info("Building pre-signed URL for AWS authentication")
    mode = QuerySigned(DEFAULT_EXPIRES_IN if expires_in is None else expires_in)
    request = canonical.build(region, 'GET', additional_headers)
    signed = SigV4Signer(credentials).sign(request, mode, now)
    logger.debug("Pre-signed URL for %s with signed headers %s",
                 request.endpoint_url, signed.signed_headers)
    return signed.url
