"""
Adaptees for external project-hosting sources.

Each submodule exposes two layers:

* ``Client`` classes wrap the provider's REST API with async HTTP calls.
* ``DataSourceAdaptee`` classes expose the provider through the tiered
  adaptee contract defined in :mod:`.base`.
"""

from .base import (
    AdapterError,
    AuthenticationError,
    AuthenticationRequiredError,
    AuthorizedDataSourceAdaptee,
    CapabilityMismatchError,
    ConfigurationError,
    DataSourceAdaptee,
    ExternalProviderError,
    InvalidRequestError,
    ProjectNotFoundError,
    PublicDataSourceAdaptee,
    UnknownDataSourceError,
)
from .factory import build_adaptee, build_adaptees
from .gitea import GiteaClient, GiteaDataSourceAdaptee
from .github import GitHubClient, GitHubDataSourceAdaptee
from .gitlab import GitLabClient, GitLabDataSourceAdaptee
from .http import AsyncAPIClient

__all__ = [
    "AdapterError",
    "AsyncAPIClient",
    "AuthenticationError",
    "AuthenticationRequiredError",
    "AuthorizedDataSourceAdaptee",
    "CapabilityMismatchError",
    "ConfigurationError",
    "DataSourceAdaptee",
    "ExternalProviderError",
    "GiteaClient",
    "GiteaDataSourceAdaptee",
    "GitHubClient",
    "GitHubDataSourceAdaptee",
    "GitLabClient",
    "GitLabDataSourceAdaptee",
    "InvalidRequestError",
    "ProjectNotFoundError",
    "PublicDataSourceAdaptee",
    "UnknownDataSourceError",
    "build_adaptee",
    "build_adaptees",
]
