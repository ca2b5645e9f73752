"""
Base classes and error taxonomy for data source adaptees.

An adaptee wraps one external project-hosting source and speaks its native
API: it returns provider payloads as plain mappings and leaves translation to
:class:`~dex_data_providers.services.adapter.DataProviderAdapter`.

Adaptees come in two tiers. :class:`PublicDataSourceAdaptee` only reads
public data. :class:`AuthorizedDataSourceAdaptee` additionally owns the OAuth
flow, so OAuth operations simply do not exist on public sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, List, Mapping, Optional

from ..config import OAuthCredentials
from ..core.registry import DataSourceDescriptor, DataSourceKind

NativeRecord = Mapping[str, Any]


class AdapterError(RuntimeError):
    """Base class for every error raised by the data-provider layer."""


class UnknownDataSourceError(AdapterError, LookupError):
    """Raised when a data source guid is not present in the loader."""

    def __init__(self, guid: str) -> None:
        super().__init__(f"Data source '{guid}' is not registered.")
        self.guid = guid


class AuthenticationError(AdapterError):
    """Raised when the provider rejects the supplied access token."""


class AuthenticationRequiredError(AuthenticationError):
    """Raised when an operation needs a token and none was supplied."""


class CapabilityMismatchError(AdapterError):
    """Raised when an OAuth operation is requested from a public data source."""


class ExternalProviderError(AdapterError):
    """Raised on transport failures or non-success responses from a provider."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProjectNotFoundError(AdapterError, LookupError):
    """Raised when the provider does not know the requested project."""


class InvalidRequestError(AdapterError, ValueError):
    """Raised when caller input cannot be turned into a provider request."""


class ConfigurationError(AdapterError):
    """Raised when a data source lacks the client credentials an operation needs."""


class DataSourceAdaptee(ABC):
    """Capabilities shared by every data source."""

    provider: ClassVar[str]
    kind: ClassVar[DataSourceKind]
    # Project paths may span nested groups (``group/subgroup/name``).
    nested_namespaces: ClassVar[bool] = False
    descriptor: DataSourceDescriptor

    @property
    def guid(self) -> str:
        return self.descriptor.guid

    @property
    def name(self) -> str:
        return self.descriptor.name

    def requires_owner(self, *, authenticated: bool) -> bool:
        """Whether listing projects needs an explicit owner for this call."""

        return not authenticated

    @abstractmethod
    async def fetch_all_projects(self, *, access_token: Optional[str], owner: Optional[str]) -> List[NativeRecord]:
        """
        List native project records.

        With an ``access_token`` the projects visible to the token's user are
        returned. Without one, the public projects of ``owner`` are listed.
        """

    @abstractmethod
    async def fetch_project(self, project_id: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        """Return the native record for ``project_id`` or ``None`` if it does not exist."""

    @abstractmethod
    async def fetch_project_by_path(self, path: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        """Return the native record addressed by its ``owner/name`` path."""


class PublicDataSourceAdaptee(DataSourceAdaptee):
    """Data source reachable without user authorization."""

    kind: ClassVar[DataSourceKind] = DataSourceKind.PUBLIC


class AuthorizedDataSourceAdaptee(DataSourceAdaptee):
    """Data source that supports the OAuth authorization-code flow."""

    kind: ClassVar[DataSourceKind] = DataSourceKind.AUTHORIZED
    credentials: OAuthCredentials

    @abstractmethod
    def build_oauth_url(self) -> str:
        """Return the provider authorization URL for this application."""

    @abstractmethod
    async def exchange_code(self, code: str) -> NativeRecord:
        """Trade an authorization code for the provider's raw token payload."""

    def _require_credentials(self, *, exchange: bool = False) -> OAuthCredentials:
        credentials = self.credentials
        ready = credentials.can_exchange if exchange else credentials.can_authorize
        if not ready:
            raise ConfigurationError(
                f"Data source '{self.descriptor.key}' has no OAuth client credentials configured. "
                f"Set DEX_{self.descriptor.key.upper()}_CLIENT_ID, _CLIENT_SECRET and _REDIRECT_URI."
            )
        return credentials
