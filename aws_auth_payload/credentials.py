"""
AWS credential resolution.

Credentials are resolved by an explicit, ordered chain of providers. Each
provider either returns :class:`Credentials` or ``None`` when it does not
apply (no variables set, no such profile, not running on EC2). The default
chain is environment → shared files → container metadata → EC2 instance
metadata. Files and metadata endpoints are read through botocore's providers.

Assuming roles through profiles is not supported.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from botocore import credentials as botocore_credentials
from botocore.exceptions import BotoCoreError
from botocore.utils import InstanceMetadataFetcher

from .config import Settings
from .errors import CredentialsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.access_key_id or not self.secret_access_key:
            raise CredentialsError("Both an access key id and a secret access key are required")

    @classmethod
    def from_botocore(cls, creds) -> 'Credentials':
        frozen = creds.get_frozen_credentials()
        return cls(frozen.access_key, frozen.secret_key, frozen.token or None)


class StaticProvider:
    """Credentials given explicitly by the caller."""

    name = 'static'

    def __init__(
            self,
            access_key_id: Optional[str],
            secret_access_key: Optional[str],
            session_token: Optional[str] = None,
    ):
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._session_token = session_token

    def load(self) -> Optional[Credentials]:
        if not self._access_key_id and not self._secret_access_key:
            return None
        return Credentials(self._access_key_id, self._secret_access_key, self._session_token)


def _load_from(name: str, provider) -> Optional[Credentials]:
    """Run a botocore provider, translating its errors into CredentialsError."""
    try:
        creds = provider.load()
        if creds is None:
            return None
        return Credentials.from_botocore(creds)
    except BotoCoreError as e:
        raise CredentialsError(f"Error retrieving AWS credentials from {name}: {e}") from e


class EnvironmentProvider:
    """``AWS_ACCESS_KEY_ID``, ``AWS_SECRET_ACCESS_KEY`` and ``AWS_SESSION_TOKEN``."""

    name = 'environment'

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    def load(self) -> Optional[Credentials]:
        environ = os.environ if self._environ is None else self._environ
        return _load_from(self.name, botocore_credentials.EnvProvider(environ=environ))


class SharedFileProvider:
    """The shared credentials file, then the config file, for one profile."""

    name = 'shared-file'

    def __init__(self, settings: Settings):
        self._settings = settings

    def load(self) -> Optional[Credentials]:
        creds = _load_from(self.name, botocore_credentials.SharedCredentialProvider(
            creds_filename=self._settings.shared_credentials_file,
            profile_name=self._settings.profile,
        ))
        if creds is not None:
            return creds
        return _load_from(self.name, botocore_credentials.ConfigProvider(
            config_filename=self._settings.config_file,
            profile_name=self._settings.profile,
        ))


class ContainerProvider:
    """ECS/EKS task metadata, when ``AWS_CONTAINER_CREDENTIALS_*`` is set."""

    name = 'container'

    def __init__(self, environ: Optional[Mapping[str, str]] = None, fetcher=None):
        self._environ = environ
        self._fetcher = fetcher

    def load(self) -> Optional[Credentials]:
        environ = os.environ if self._environ is None else self._environ
        return _load_from(self.name, botocore_credentials.ContainerProvider(
            environ=environ, fetcher=self._fetcher,
        ))


class InstanceMetadataProvider:
    """EC2 instance profile credentials from IMDS."""

    name = 'instance-metadata'

    def __init__(self, settings: Settings, fetcher=None):
        self._settings = settings
        self._fetcher = fetcher

    def load(self) -> Optional[Credentials]:
        if self._settings.metadata_disabled:
            return None
        fetcher = self._fetcher or InstanceMetadataFetcher(
            timeout=self._settings.metadata_timeout,
            num_attempts=self._settings.metadata_attempts,
        )
        return _load_from(
            self.name, botocore_credentials.InstanceMetadataProvider(iam_role_fetcher=fetcher)
        )


class CredentialChain:
    """Try providers in order and return the first credentials found."""

    def __init__(self, providers: Sequence):
        self.providers = list(providers)

    def resolve(self) -> Credentials:
        """
        Raises:
            CredentialsError: no provider applied, or one of them failed.
        """
        for provider in self.providers:
            name = getattr(provider, 'name', type(provider).__name__)
            creds = provider.load()
            if creds is not None:
                logger.info("Found AWS credentials using the %s provider", name)
                return creds
            logger.debug("No AWS credentials from the %s provider", name)
        raise CredentialsError("Unable to locate AWS credentials")


def default_chain(
        settings: Optional[Settings] = None,
        explicit: Optional[StaticProvider] = None,
) -> CredentialChain:
    """Explicit credentials (when given), environment, shared files, container, IMDS."""
    settings = settings or Settings.from_environ()
    providers = [explicit] if explicit is not None else []
    providers.extend([
        EnvironmentProvider(),
        SharedFileProvider(settings),
        ContainerProvider(),
        InstanceMetadataProvider(settings),
    ])
    return CredentialChain(providers)


def get_aws_credentials(
        settings: Optional[Settings] = None,
        explicit: Optional[StaticProvider] = None,
) -> Credentials:
    """Resolve credentials with the default chain."""
    return default_chain(settings, explicit).resolve()
