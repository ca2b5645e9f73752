from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest

from conftest import CODEBERG_GUID, GITEA_REPO, GITHUB_GUID, GITHUB_REPO, GITLAB_GUID, GITLAB_PROJECT, fail_on_request
from dex_data_providers.core.models import SHORT_DESCRIPTION_LIMIT
from dex_data_providers.providers.base import (
    AuthenticationError,
    AuthenticationRequiredError,
    CapabilityMismatchError,
    ExternalProviderError,
    InvalidRequestError,
    ProjectNotFoundError,
)
from dex_data_providers.services.adapter import DataProviderAdapter


def _adapter(make_service, guid, handler=fail_on_request) -> DataProviderAdapter:
    service = make_service(handler)
    return DataProviderAdapter(service.loader.get_data_source_by_guid(guid))


@pytest.mark.asyncio
async def test_github_projects_are_translated_field_by_field(make_service):
    adapter = _adapter(make_service, GITHUB_GUID, lambda request: httpx.Response(200, json=[GITHUB_REPO]))

    projects = await adapter.get_all_projects("tok", True)

    assert len(projects) == 1
    project = projects[0]
    assert project.id == 42
    assert project.name == "dex-backend"
    assert project.description == "Digital Excellence backend"
    assert project.short_description == "Digital Excellence backend"
    assert project.uri == "https://github.com/dex/dex-backend"
    assert project.owner == "dex"
    assert project.source_guid == GITHUB_GUID
    assert project.created == datetime(2020, 2, 1, 10, 0, tzinfo=UTC)
    assert project.tags == ("portfolio", "dotnet")


@pytest.mark.asyncio
async def test_gitlab_missing_fields_fall_back_to_defaults(make_service):
    adapter = _adapter(make_service, GITLAB_GUID, lambda request: httpx.Response(200, json=GITLAB_PROJECT))

    project = await adapter.get_project_by_guid("glpat", "7", True)

    assert project.id == 7
    assert project.description == ""
    assert project.short_description == ""
    assert project.owner == "dex/web"
    assert project.uri == "https://gitlab.com/dex/web/frontend"
    assert project.updated == datetime(2021, 1, 1, tzinfo=UTC)
    assert project.tags == ("react",)


@pytest.mark.asyncio
async def test_sparse_record_is_fully_populated_with_defaults(make_service):
    adapter = _adapter(make_service, CODEBERG_GUID, lambda request: httpx.Response(200, json=[{"id": 3}]))

    [project] = await adapter.get_all_projects(None, False, owner="alice")

    assert project.id == 3
    assert project.name == ""
    assert project.owner == ""
    assert project.created is None
    assert project.tags == ()
    assert project.source_guid == CODEBERG_GUID


@pytest.mark.asyncio
async def test_short_description_is_truncated(make_service):
    record = dict(GITEA_REPO, description="x" * 400)
    adapter = _adapter(make_service, CODEBERG_GUID, lambda request: httpx.Response(200, json=record))

    project = await adapter.get_project_by_guid(None, "11", False)

    assert len(project.description) == 400
    assert len(project.short_description) == SHORT_DESCRIPTION_LIMIT


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "   "])
async def test_missing_token_fails_before_network(make_service, token):
    adapter = _adapter(make_service, GITHUB_GUID)

    with pytest.raises(AuthenticationRequiredError):
        await adapter.get_all_projects(token, True)
    with pytest.raises(AuthenticationRequiredError):
        await adapter.get_project_by_guid(token, "42", True)


@pytest.mark.asyncio
async def test_token_is_not_sent_when_auth_is_not_needed(make_service):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, request.headers.get("Authorization")))
        return httpx.Response(200, json=[])

    adapter = _adapter(make_service, GITHUB_GUID, handler)

    await adapter.get_all_projects("ignored", False, owner="dex")

    assert seen == [("/users/dex/repos", None)]


@pytest.mark.asyncio
async def test_public_listing_without_owner_is_rejected(make_service):
    adapter = _adapter(make_service, GITHUB_GUID)

    with pytest.raises(InvalidRequestError, match="owner"):
        await adapter.get_all_projects(None, False)


@pytest.mark.asyncio
async def test_rejected_token_propagates_authentication_error(make_service):
    adapter = _adapter(make_service, GITHUB_GUID, lambda request: httpx.Response(401, json={"message": "Bad credentials"}))

    with pytest.raises(AuthenticationError):
        await adapter.get_all_projects("expired", True)


@pytest.mark.asyncio
async def test_unknown_project_raises_not_found(make_service):
    adapter = _adapter(make_service, GITHUB_GUID, lambda request: httpx.Response(404, json={}))

    with pytest.raises(ProjectNotFoundError):
        await adapter.get_project_by_guid("tok", "404404", True)


@pytest.mark.asyncio
async def test_provider_failure_is_not_masked_as_not_found(make_service):
    adapter = _adapter(make_service, GITHUB_GUID, lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(ExternalProviderError):
        await adapter.get_project_by_guid("tok", "42", True)


@pytest.mark.asyncio
async def test_unexpected_record_shape_is_a_provider_error(make_service):
    adapter = _adapter(make_service, CODEBERG_GUID, lambda request: httpx.Response(200, json=["not-a-record"]))

    with pytest.raises(ExternalProviderError):
        await adapter.get_all_projects(None, False, owner="alice")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("guid", "uri", "expected_path"),
    [
        (GITHUB_GUID, "https://github.com/dex/dex-backend", "/repos/dex/dex-backend"),
        (GITHUB_GUID, "https://github.com/dex/dex-backend/tree/main/src", "/repos/dex/dex-backend"),
        (GITHUB_GUID, "https://github.com/dex/dex-backend.git", "/repos/dex/dex-backend"),
        (CODEBERG_GUID, "https://codeberg.org/alice/notes/", "/api/v1/repos/alice/notes"),
    ],
)
async def test_get_project_from_uri(make_service, guid, uri, expected_path):
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json=GITHUB_REPO)

    adapter = _adapter(make_service, guid, handler)

    project = await adapter.get_project_from_uri(uri)

    assert project.id == 42
    assert paths == [expected_path]


@pytest.mark.asyncio
async def test_get_project_from_uri_keeps_gitlab_subgroups(make_service):
    raw_paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        raw_paths.append(request.url.raw_path)
        return httpx.Response(200, json=GITLAB_PROJECT)

    adapter = _adapter(make_service, GITLAB_GUID, handler)

    await adapter.get_project_from_uri("https://gitlab.com/dex/web/frontend/-/tree/main")

    assert raw_paths == [b"/api/v4/projects/dex%2Fweb%2Ffrontend"]


@pytest.mark.asyncio
@pytest.mark.parametrize("uri", ["https://gitlab.com/dex/dex-backend", "https://github.com/dex", "ftp://github.com/a/b"])
async def test_get_project_from_uri_rejects_foreign_or_incomplete_addresses(make_service, uri):
    adapter = _adapter(make_service, GITHUB_GUID)

    with pytest.raises(InvalidRequestError):
        await adapter.get_project_from_uri(uri)


def test_oauth_url_on_public_source_is_a_capability_mismatch(make_service):
    adapter = _adapter(make_service, CODEBERG_GUID)

    with pytest.raises(CapabilityMismatchError):
        adapter.get_oauth_url()


@pytest.mark.asyncio
async def test_token_exchange_on_public_source_is_a_capability_mismatch(make_service):
    adapter = _adapter(make_service, CODEBERG_GUID)

    with pytest.raises(CapabilityMismatchError):
        await adapter.get_tokens("abc")


@pytest.mark.asyncio
async def test_get_tokens_translates_gitlab_payload(make_service):
    payload = {
        "access_token": "gl-access",
        "token_type": "Bearer",
        "expires_in": 7200,
        "refresh_token": "gl-refresh",
        "scope": "read_api read_user",
        "created_at": 1607635748,
    }
    adapter = _adapter(make_service, GITLAB_GUID, lambda request: httpx.Response(200, json=payload))

    tokens = await adapter.get_tokens("code")

    assert tokens.access_token == "gl-access"
    assert tokens.refresh_token == "gl-refresh"
    assert tokens.expires_in == 7200
    assert tokens.token_type == "Bearer"
    assert tokens.created_at == datetime.fromtimestamp(1607635748, tz=UTC)


@pytest.mark.asyncio
async def test_get_tokens_without_access_token_is_a_provider_error(make_service):
    adapter = _adapter(make_service, GITHUB_GUID, lambda request: httpx.Response(200, json={"scope": "repo"}))

    with pytest.raises(ExternalProviderError, match="access_token"):
        await adapter.get_tokens("code")


@pytest.mark.asyncio
async def test_blank_code_is_rejected_before_network(make_service):
    adapter = _adapter(make_service, GITHUB_GUID)

    with pytest.raises(InvalidRequestError):
        await adapter.get_tokens("  ")
