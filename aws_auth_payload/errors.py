"""Exception types raised by aws_auth_payload."""


class Error(Exception):
    """Base class for all errors raised by this package."""


class CredentialsError(Error):
    """AWS credentials could not be resolved."""


class HeaderError(Error, ValueError):
    """A header name or value cannot be represented in a signed request."""


class SerializationError(Error):
    """A signed artifact could not be converted to or from its external form."""


class ConfigError(Error, ValueError):
    """An environment setting has a malformed value."""
