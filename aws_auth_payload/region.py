"""
AWS regions and the STS endpoints they map to.

A region is a free-form identifier such as ``us-east-1``. Leaving the region
out selects the global STS endpoint (``sts.amazonaws.com``), which signs as
``us-east-1``. A custom endpoint can be attached for local or private STS
deployments.
"""

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Union
from urllib.parse import urlsplit

GLOBAL_SIGNING_REGION = 'us-east-1'
GLOBAL_STS_HOSTNAME = 'sts.amazonaws.com'

_REGION_NAME = re.compile(r'[a-z0-9]+(-[a-z0-9]+)*')


@dataclass(frozen=True)
class Region:
    name: str
    endpoint: Optional[str] = None
    is_global: bool = False

    def __post_init__(self) -> None:
        if not _REGION_NAME.fullmatch(self.name):
            raise ValueError(f"Invalid AWS region name: {self.name!r}")

    @classmethod
    def global_endpoint(cls) -> 'Region':
        return cls(GLOBAL_SIGNING_REGION, is_global=True)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> Optional['Region']:
        """The region named by ``AWS_REGION`` or ``AWS_DEFAULT_REGION``, if any."""
        if environ is None:
            environ = os.environ
        name = environ.get('AWS_REGION') or environ.get('AWS_DEFAULT_REGION')
        return cls(name) if name else None

    @property
    def partition(self) -> str:
        if self.name.startswith('cn-'):
            return 'aws-cn'
        if self.name.startswith('us-gov-'):
            return 'aws-us-gov'
        return 'aws'

    @property
    def dns_suffix(self) -> str:
        return 'amazonaws.com.cn' if self.partition == 'aws-cn' else 'amazonaws.com'

    @property
    def scheme(self) -> str:
        if self.endpoint and '://' in self.endpoint:
            return urlsplit(self.endpoint).scheme
        return 'https'

    def hostname(self, service: str) -> str:
        if self.endpoint:
            if '://' in self.endpoint:
                return urlsplit(self.endpoint).netloc
            return self.endpoint
        if self.is_global:
            return f"{service}.amazonaws.com"
        return f"{service}.{self.name}.{self.dns_suffix}"


RegionLike = Union[Region, str, None]


def resolve_region(region: RegionLike) -> Region:
    """Turn ``None``, a region name, or a :class:`Region` into a :class:`Region`."""
    if region is None:
        return Region.global_endpoint()
    if isinstance(region, Region):
        return region
    return Region(region)
