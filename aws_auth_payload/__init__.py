"""
AWS IAM Authentication Payloads

This package signs STS GetCallerIdentity requests with AWS Signature Version 4
and packages them as the POST payload used by Vault's AWS IAM auth method or
as the presigned URL used by the Kubernetes AWS IAM Authenticator.
"""

from .credentials import Credentials, CredentialChain, default_chain, get_aws_credentials
from .errors import ConfigError, CredentialsError, Error, HeaderError, SerializationError
from .payload import AwsAuthIamPayload, presigned_url
from .region import Region
from .sigv4 import HeaderSigned, QuerySigned, SigV4Signer, UNSIGNED_PAYLOAD

__version__ = "0.1.0"
__all__ = [
    "AwsAuthIamPayload",
    "ConfigError",
    "CredentialChain",
    "Credentials",
    "CredentialsError",
    "Error",
    "HeaderError",
    "HeaderSigned",
    "QuerySigned",
    "Region",
    "SerializationError",
    "SigV4Signer",
    "UNSIGNED_PAYLOAD",
    "default_chain",
    "get_aws_credentials",
    "presigned_url",
]
