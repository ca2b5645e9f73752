from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Callable

import httpx
import pytest
from typer.testing import CliRunner

from dex_data_providers.cli.main import app
from dex_data_providers.config import SecretsBundle
from dex_data_providers.core.registry import DataSourceRegistry
from dex_data_providers.services import DataProviderLoader, DataProviderService

GITHUB_GUID = "de38e528-1d6d-40e7-83b9-4334c51c19be"
GITLAB_GUID = "66de59d4-5db0-4bf8-a9a5-06abe8d3443a"
CODEBERG_GUID = "96666870-3afe-44e2-8d62-337d49cf972d"
UNKNOWN_GUID = "00000000-0000-4000-8000-000000000000"

GITHUB_REDIRECT = "https://dex.example.org/oauth/github"
GITLAB_REDIRECT = "https://dex.example.org/oauth/gitlab"

GITHUB_REPO = {
    "id": 42,
    "name": "dex-backend",
    "full_name": "dex/dex-backend",
    "description": "Digital Excellence backend",
    "html_url": "https://github.com/dex/dex-backend",
    "owner": {"login": "dex"},
    "created_at": "2020-02-01T10:00:00Z",
    "updated_at": "2021-03-04T12:30:00Z",
    "topics": ["portfolio", "dotnet"],
}

GITLAB_PROJECT = {
    "id": 7,
    "name": "frontend",
    "path_with_namespace": "dex/web/frontend",
    "description": None,
    "web_url": "https://gitlab.com/dex/web/frontend",
    "namespace": {"full_path": "dex/web"},
    "created_at": "2019-05-06T08:00:00.000Z",
    "last_activity_at": "2021-01-01T00:00:00.000Z",
    "tag_list": ["react"],
}

GITEA_REPO = {
    "id": 11,
    "name": "notes",
    "full_name": "alice/notes",
    "description": "Lecture notes",
    "html_url": "https://codeberg.org/alice/notes",
    "owner": {"login": "alice"},
    "created_at": "2022-09-01T08:00:00+02:00",
    "updated_at": "2022-09-02T08:00:00+02:00",
    "topics": [],
}

Handler = Callable[[httpx.Request], httpx.Response]


def fail_on_request(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected HTTP request: {request.method} {request.url}")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    for key in ("GITHUB", "GITLAB", "CODEBERG"):
        for suffix in ("CLIENT_ID", "CLIENT_SECRET", "REDIRECT_URI"):
            monkeypatch.delenv(f"DEX_{key}_{suffix}", raising=False)
    monkeypatch.delenv("DEX_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("DEX_SECRETS_PATH", raising=False)


@pytest.fixture(scope="session")
def registry_file() -> Path:
    datasources_pkg = "dex_data_providers.resources.datasources"
    with resources.as_file(resources.files(datasources_pkg) / "core.yaml") as ref:
        return Path(ref)


@pytest.fixture()
def registry(registry_file) -> DataSourceRegistry:
    return DataSourceRegistry.from_yaml(registry_file)


@pytest.fixture()
def secrets() -> SecretsBundle:
    return SecretsBundle(
        source_path=None,
        data={
            "github": {"client_id": "C", "client_secret": "S", "redirect_uri": GITHUB_REDIRECT},
            "gitlab": {"client_id": "gl-client", "client_secret": "gl-secret", "redirect_uri": GITLAB_REDIRECT},
        },
    )


@pytest.fixture()
def make_service(registry, secrets) -> Callable[[Handler], DataProviderService]:
    def _factory(handler: Handler = fail_on_request) -> DataProviderService:
        loader = DataProviderLoader.from_registry(registry, secrets, transport=httpx.MockTransport(handler))
        return DataProviderService(loader=loader)

    return _factory


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_app():
    return app
