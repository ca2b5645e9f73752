"""
Gitea-family data source (Gitea, Forgejo, Codeberg).

Configured as a public source: only anonymous read endpoints are used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..core.registry import DataSourceDescriptor
from .base import NativeRecord, PublicDataSourceAdaptee
from .http import AsyncAPIClient

DEFAULT_BASE_URL = "https://codeberg.org/api/v1"
# Gitea caps list endpoints at 50 items by default.
PAGE_SIZE = 50


class GiteaClient(AsyncAPIClient):
    """Thin wrapper around the Gitea v1 REST API."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, default_headers={"Accept": "application/json"}, transport=transport)

    async def list_user_repositories(self, owner: str, *, access_token: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._get_paginated(
            f"/users/{quote(owner, safe='')}/repos",
            access_token=access_token,
            page_size_param="limit",
            page_size=PAGE_SIZE,
        )

    async def get_repository(self, repository_id: str, *, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return await self._get_json(f"/repositories/{quote(repository_id, safe='')}", access_token=access_token, allow_missing=True)

    async def get_repository_by_path(self, full_name: str, *, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return await self._get_json(f"/repos/{quote(full_name, safe='/')}", access_token=access_token, allow_missing=True)


@dataclass(slots=True)
class GiteaDataSourceAdaptee(PublicDataSourceAdaptee):
    """Public Gitea data source."""

    provider: ClassVar[str] = "gitea"

    descriptor: DataSourceDescriptor
    client: GiteaClient

    def requires_owner(self, *, authenticated: bool) -> bool:
        return True

    async def fetch_all_projects(self, *, access_token: Optional[str], owner: Optional[str]) -> List[NativeRecord]:
        return await self.client.list_user_repositories(owner or "", access_token=access_token)

    async def fetch_project(self, project_id: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        return await self.client.get_repository(project_id, access_token=access_token)

    async def fetch_project_by_path(self, path: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        return await self.client.get_repository_by_path(path, access_token=access_token)
