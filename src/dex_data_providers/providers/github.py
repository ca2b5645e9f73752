"""
GitHub data source.

Authenticated listing uses ``/user/repos`` and therefore includes private
repositories the token can see. Public listing goes through
``/users/{owner}/repos``. OAuth follows GitHub's web application flow; the
token endpoint lives on ``github.com`` rather than the API host and answers
rejected codes with HTTP 200 and an ``error`` field.
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

DEFAULT_BASE_URL = "https://api.github.com"
USER_AGENT = "dex-data-providers"


class GitHubClient(AsyncAPIClient):
    """Thin wrapper around the GitHub REST API."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        super().__init__(base_url=base_url, timeout=timeout, default_headers=headers, transport=transport)

    async def list_user_repositories(self, access_token: str) -> List[Dict[str, Any]]:
        return await self._get_paginated("/user/repos", params={"sort": "updated"}, access_token=access_token)

    async def list_public_repositories(self, owner: str) -> List[Dict[str, Any]]:
        return await self._get_paginated(f"/users/{quote(owner, safe='')}/repos", params={"type": "owner"})

    async def get_repository(self, repository_id: str, *, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return await self._get_json(f"/repositories/{quote(repository_id, safe='')}", access_token=access_token, allow_missing=True)

    async def get_repository_by_path(self, full_name: str, *, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return await self._get_json(f"/repos/{quote(full_name, safe='/')}", access_token=access_token, allow_missing=True)

    async def exchange_code(self, token_url: str, *, code: str, credentials: OAuthCredentials) -> Dict[str, Any]:
        payload = await self._post_form(
            token_url,
            data={
                "client_id": credentials.client_id or "",
                "client_secret": credentials.client_secret or "",
                "code": code,
                "redirect_uri": credentials.redirect_uri or "",
            },
            headers={"Accept": "application/json"},
        )
        if not isinstance(payload, dict):
            raise ExternalProviderError("Unexpected payload from the GitHub token endpoint.")
        return payload


@dataclass(slots=True)
class GitHubDataSourceAdaptee(AuthorizedDataSourceAdaptee):
    """GitHub (or GitHub Enterprise) data source."""

    provider: ClassVar[str] = "github"

    descriptor: DataSourceDescriptor
    credentials: OAuthCredentials
    client: GitHubClient

    async def fetch_all_projects(self, *, access_token: Optional[str], owner: Optional[str]) -> List[NativeRecord]:
        if access_token:
            return await self.client.list_user_repositories(access_token)
        return await self.client.list_public_repositories(owner or "")

    async def fetch_project(self, project_id: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        return await self.client.get_repository(project_id, access_token=access_token)

    async def fetch_project_by_path(self, path: str, *, access_token: Optional[str]) -> Optional[NativeRecord]:
        return await self.client.get_repository_by_path(path, access_token=access_token)

    def build_oauth_url(self) -> str:
        credentials = self._require_credentials()
        return build_authorization_url(
            self.descriptor.authorization_url or "",
            {
                "client_id": credentials.client_id,
                "redirect_uri": credentials.redirect_uri,
                "scope": " ".join(self.descriptor.scopes),
                "response_type": "code",
            },
        )

    async def exchange_code(self, code: str) -> NativeRecord:
        credentials = self._require_credentials(exchange=True)
        payload = await self.client.exchange_code(self.descriptor.token_url or "", code=code, credentials=credentials)
        if payload.get("error"):
            detail = payload.get("error_description") or payload["error"]
            raise ExternalProviderError(f"GitHub rejected the authorization code: {detail}")
        return payload
