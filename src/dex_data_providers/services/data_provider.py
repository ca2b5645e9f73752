"""
Data provider service façade.

Callers address data sources by guid; the service resolves the adaptee from
the loader, wraps it in a fresh :class:`DataProviderAdapter` and delegates.
Unknown guids fail with :class:`UnknownDataSourceError` before any adapter is
built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.logging import ProviderLogger, get_logger, log_progress
from ..core.models import OauthTokens, Project
from ..core.registry import AuthFilter
from ..providers.base import AuthorizedDataSourceAdaptee, DataSourceAdaptee, PublicDataSourceAdaptee, UnknownDataSourceError
from .adapter import DataProviderAdapter
from .loader import DataProviderLoader


@dataclass(slots=True)
class DataProviderService:
    """Entry point used by controllers and the CLI."""

    loader: DataProviderLoader
    logger: ProviderLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(self.__class__.__name__)

    def _resolve(self, source_guid: str) -> DataSourceAdaptee:
        adaptee = self.loader.get_data_source_by_guid(source_guid)
        if adaptee is None:
            self.logger.warning("Unknown data source requested", extra={"source": source_guid})
            raise UnknownDataSourceError(source_guid)
        return adaptee

    def _adapter(self, source_guid: str) -> DataProviderAdapter:
        return DataProviderAdapter(self._resolve(source_guid))

    async def get_all_projects(
        self,
        source_guid: str,
        token: Optional[str],
        needs_auth: bool,
        *,
        owner: Optional[str] = None,
    ) -> List[Project]:
        """List projects of a data source, authenticated when ``needs_auth`` is set."""

        adapter = self._adapter(source_guid)
        log_progress(self.logger, "Listing projects", phase="projects", step="list", status="started", extra={"source": source_guid})
        projects = await adapter.get_all_projects(token, needs_auth, owner=owner)
        log_progress(
            self.logger,
            "Listing projects",
            phase="projects",
            step="list",
            status="completed",
            extra={"source": source_guid, "count": len(projects)},
        )
        return projects

    async def get_project_by_guid(self, source_guid: str, token: Optional[str], project_id: int, needs_auth: bool) -> Project:
        """Fetch a single project by its provider id."""

        return await self._adapter(source_guid).get_project_by_guid(token, str(project_id), needs_auth)

    async def get_project_from_uri(self, source_guid: str, uri: str, token: Optional[str] = None) -> Project:
        """Fetch a single project from its web address."""

        return await self._adapter(source_guid).get_project_from_uri(uri, token)

    def is_existing_data_source_guid(self, source_guid: str) -> bool:
        return self.loader.get_data_source_by_guid(source_guid) is not None

    def get_oauth_url(self, source_guid: str) -> str:
        return self._adapter(source_guid).get_oauth_url()

    async def get_tokens(self, code: str, source_guid: str) -> OauthTokens:
        return await self._adapter(source_guid).get_tokens(code)

    def retrieve_data_sources(self, auth_filter: AuthFilter = AuthFilter.ALL) -> List[DataSourceAdaptee]:
        """
        Return configured data sources, optionally restricted to one tier.

        Parameters
        ----------
        auth_filter:
            ``ALL`` returns every source, ``AUTHORIZED_ONLY`` the OAuth-capable
            ones and ``PUBLIC_ONLY`` the rest.
        """

        sources = self.loader.get_all_data_sources()
        if auth_filter is AuthFilter.AUTHORIZED_ONLY:
            return [source for source in sources if isinstance(source, AuthorizedDataSourceAdaptee)]
        if auth_filter is AuthFilter.PUBLIC_ONLY:
            return [source for source in sources if isinstance(source, PublicDataSourceAdaptee)]
        return list(sources)
