"""
GitLab data source (gitlab.com or self-managed instances).

Projects are addressed either by numeric id or by their URL-encoded
``namespace/name`` path; both go through ``/api/v4/projects/{id}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..config import OAuthCredentials
from ..core.registry import DataSourceDescriptor
from .base import AuthorizedDataSourceAdaptee, ExternalProviderError, NativeRecord
from .http import AsyncAPIClient, build_authorization_url

DEFAULT_BASE_URL = "https://gitlab.com/api/v4"


class GitLabClient(AsyncAPIClient):
    """Thin wrapper around the GitLab v4 REST API."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, default_headers={"Accept": "application/json"}, transport=transport)

    async def list_member_projects(self, access_token: str) -> List[Dict[str, Any]]:
        return await self._get_paginated(
            "/projects",
            params={"membership": "true", "order_by": "last_activity_at"},
            access_token=access_token,
        )

    async def list_user_projects(self, owner: str) -> List[Dict[str, Any]]:
        return await self._get_paginated(f"/users/{quote(owner, safe='')}/projects")

    async def get_project(self, project_ref: str, *, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return await self._get_json(f"/projects/{quote(project_ref, safe='')}", access_token=access_token, allow_missing=True)

    async def exchange_code(self, token_url: str, *, code: str, credentials: OAuthCredentials) -> Dict[str, Any]:
        payload = await self._post_form(
            token_url,
            data={
                "client_id": credentials.client_id or "",
                "client_secret": credentials.client_secret or "",
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": credentials.redirect_uri or "",
            },
        )
        if not isinstance(payload, dict):
            raise ExternalProviderError("Unexpected payload from the GitLab token endpoint.")
        return payload


@dataclass(slots=True)
class GitLabDataSourceAdaptee(AuthorizedDataSourceAdaptee):
    """GitLab data source."""

    provider: ClassVar[str] = "gitlab"
    nested_namespaces: ClassVar[bool] = True

    descriptor: DataSourceDescriptor
    credentials: OAuthCredentials
    client: GitLabClient

    async def fetch_all_projects(self, *, access_token: Optional[str], owner: Optional[str]) -> List[NativeRecord]:
        if access_token:
            return await self.client.list_member_projects(access_token)
        return await self.client.list_user_projects(owner or "")

    async def fetch_project(self, project_id: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        return await self.client.get_project(project_id, access_token=access_token)

    async def fetch_project_by_path(self, path: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        return await self.client.get_project(path, access_token=access_token)

    def build_oauth_url(self) -> str:
        credentials = self._require_credentials()
        return build_authorization_url(
            self.descriptor.authorization_url or "",
            {
                "client_id": credentials.client_id,
                "redirect_uri": credentials.redirect_uri,
                "response_type": "code",
                "scope": " ".join(self.descriptor.scopes),
            },
        )

    async def exchange_code(self, code: str) -> NativeRecord:
        credentials = self._require_credentials(exchange=True)
        return await self.client.exchange_code(self.descriptor.token_url or "", code=code, credentials=credentials)
