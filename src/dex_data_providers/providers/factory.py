"""
Construction of adaptees from registry descriptors and secrets.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

import httpx

from ..config import SecretsBundle
from ..core.registry import DataSourceDescriptor, DataSourceKind, DataSourceRegistry, RegistryLoadError
from .base import DataSourceAdaptee
from .gitea import GiteaClient, GiteaDataSourceAdaptee
from .github import GitHubClient, GitHubDataSourceAdaptee
from .gitlab import GitLabClient, GitLabDataSourceAdaptee

AdapteeBuilder = Callable[[DataSourceDescriptor, SecretsBundle, Optional[httpx.AsyncBaseTransport]], DataSourceAdaptee]


def _build_github(descriptor: DataSourceDescriptor, secrets: SecretsBundle, transport: Optional[httpx.AsyncBaseTransport]) -> DataSourceAdaptee:
    return GitHubDataSourceAdaptee(
        descriptor=descriptor,
        credentials=secrets.oauth_credentials(descriptor.key),
        client=GitHubClient(base_url=descriptor.api_url, transport=transport),
    )


def _build_gitlab(descriptor: DataSourceDescriptor, secrets: SecretsBundle, transport: Optional[httpx.AsyncBaseTransport]) -> DataSourceAdaptee:
    return GitLabDataSourceAdaptee(
        descriptor=descriptor,
        credentials=secrets.oauth_credentials(descriptor.key),
        client=GitLabClient(base_url=descriptor.api_url, transport=transport),
    )


def _build_gitea(descriptor: DataSourceDescriptor, secrets: SecretsBundle, transport: Optional[httpx.AsyncBaseTransport]) -> DataSourceAdaptee:
    return GiteaDataSourceAdaptee(
        descriptor=descriptor,
        client=GiteaClient(base_url=descriptor.api_url, transport=transport),
    )


_BUILDERS: Dict[Tuple[str, DataSourceKind], AdapteeBuilder] = {
    ("github", DataSourceKind.AUTHORIZED): _build_github,
    ("gitlab", DataSourceKind.AUTHORIZED): _build_gitlab,
    ("gitea", DataSourceKind.PUBLIC): _build_gitea,
}


def build_adaptee(
    descriptor: DataSourceDescriptor,
    secrets: SecretsBundle,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DataSourceAdaptee:
    """
    Create the adaptee implementing ``descriptor``.

    Raises :class:`RegistryLoadError` when no adaptee supports the
    descriptor's provider and kind combination.
    """

    builder = _BUILDERS.get((descriptor.provider, descriptor.kind))
    if builder is None:
        supported = ", ".join(f"{provider}/{kind.value}" for provider, kind in _BUILDERS)
        raise RegistryLoadError(
            f"Data source '{descriptor.key}' uses unsupported provider '{descriptor.provider}' with kind '{descriptor.kind.value}'. Supported: {supported}."
        )
    return builder(descriptor, secrets, transport)


def build_adaptees(
    registry: DataSourceRegistry,
    secrets: SecretsBundle,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[DataSourceAdaptee]:
    """Create adaptees for every descriptor in ``registry``."""

    return [build_adaptee(descriptor, secrets, transport=transport) for descriptor in registry.list()]
